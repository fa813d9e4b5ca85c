"""Shared fixtures: an in-memory Testomat.io reporter API."""

import functools
import json
import re
from typing import Any, Optional

import httpx
import pytest

from testomat_reporter.client import TestomatApiClient

BASE_PATH = "/api/reporter"
API_KEY = "test-key"


def count_row(text: str) -> Optional[list[int]]:
    """Digits of the summary table row, in Passed/Failed/Skipped order."""
    for line in text.splitlines():
        cells = [cell.strip() for cell in line.strip().strip("|").split("|")]
        if len(cells) == 3 and all(re.fullmatch(r"\d+", cell) for cell in cells):
            return [int(cell) for cell in cells]
    return None


class FakeReporterApi:
    """Stand-in for the reporter API behind an httpx.MockTransport.

    Answers run creation with ``{"uid": run_uid}`` and every other call
    with ``{"status": "ok"}``. Individual routes can be overridden with
    ``respond(method, path, status, body)``.
    """

    def __init__(self, run_uid: str = "abc"):
        self.run_uid = run_uid
        self.requests: list[httpx.Request] = []
        self._overrides: dict[tuple[str, str], tuple[int, Any]] = {}

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key in self._overrides:
            status, body = self._overrides[key]
            if isinstance(body, str):
                return httpx.Response(status, text=body)
            return httpx.Response(status, json=body)
        if key == ("POST", BASE_PATH):
            return httpx.Response(200, json={"uid": self.run_uid})
        return httpx.Response(200, json={"status": "ok"})

    def respond(self, method: str, path: str, status: int, body: Any = None) -> None:
        self._overrides[(method, path)] = (status, {} if body is None else body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    def calls(self) -> list[tuple[str, str]]:
        return [(r.method, r.url.path) for r in self.requests]

    def bodies(self, method: Optional[str] = None, path: Optional[str] = None) -> list[dict]:
        return [
            json.loads(r.content)
            for r in self.requests
            if (method is None or r.method == method) and (path is None or r.url.path == path)
        ]


@pytest.fixture
def api():
    """Fake reporter API recording every request."""
    return FakeReporterApi()


@pytest.fixture
def client(api):
    """Enabled API client wired to the fake API."""
    return TestomatApiClient(API_KEY, transport=api.transport)


@pytest.fixture
def disabled_client(api):
    """API client without a key, wired to the fake API."""
    return TestomatApiClient(None, transport=api.transport)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every TESTOMATIO* variable from the environment."""
    for name in (
        "TESTOMATIO",
        "TESTOMATIO_URL",
        "TESTOMATIO_TITLE",
        "TESTOMATIO_RUN",
        "TESTOMATIO_RUN_SCOPE",
        "TESTOMATIO_RAISE_ERRORS",
        "TESTOMATIO_TIMEOUT",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def fake_api_client(api):
    """Client factory with the signature of TestomatApiClient, bound to the fake API."""
    return functools.partial(TestomatApiClient, transport=api.transport)
