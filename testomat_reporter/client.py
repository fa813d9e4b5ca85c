"""HTTP client for the Testomat.io reporter API.

Issues three kinds of calls against the reporter root
(``https://app.testomat.io/api/reporter``), each authenticated with an
``api_key`` query parameter:

- POST {base}                  create a run
- POST {base}/{uid}/testrun    report one test
- PUT  {base}/{uid}            finish a run

Each call opens its own httpx.Client and closes it before returning.
There is no retry: one event, at most one request.

Failure classification:
- No API key: the call is skipped and None is returned
- Payload that cannot be serialized: logged, skipped, None returned
- HTTP 4xx: TestomatClientError
- HTTP 5xx: TestomatServerError
- Connection errors, timeouts, DNS failures: TestomatConnectionError
"""

import json
import logging
from typing import Any, Optional

import httpx

from testomat_reporter.config import DEFAULT_SERVICE_URL, REPORTER_PATH
from testomat_reporter.models import TestReport

log = logging.getLogger(__name__)

DEFAULT_BASE_URL = DEFAULT_SERVICE_URL + REPORTER_PATH


class TestomatError(Exception):
    """Base class for reporting failures."""

    __test__ = False


class TestomatApiError(TestomatError):
    """Raised when the service answers with a 4xx or 5xx status."""

    def __init__(self, status_code: int, response_body: str):
        super().__init__(f"Testomat API call failed with status {status_code}")
        self.status_code = status_code
        self.response_body = response_body


class TestomatClientError(TestomatApiError):
    """HTTP 4xx from the reporting service."""


class TestomatServerError(TestomatApiError):
    """HTTP 5xx from the reporting service."""


class TestomatConnectionError(TestomatError):
    """Raised when the service could not be reached at all."""


class TestomatApiClient:
    """Stateless wrapper around the three reporter API calls.

    Args:
        api_key: Project API key; None or "" disables every call
        base_url: Reporter API root
        timeout: Request timeout in seconds (None keeps httpx's default)
        transport: Optional httpx transport, used by tests
    """

    __test__ = False

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str = DEFAULT_BASE_URL,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key or None
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.transport = transport
        if not self.enabled:
            log.warning(
                "TESTOMATIO environment variable is not set. "
                "Testomat.io reporting will be disabled."
            )

    @property
    def enabled(self) -> bool:
        """True when an API key is configured."""
        return self.api_key is not None

    def create_run(self, title: str) -> Optional[dict[str, Any]]:
        """Create a test run.

        Args:
            title: Run title shown in Testomat.io

        Returns:
            Decoded response body (expected to contain "uid"), or None if
            the call was skipped.
        """
        return self._request("POST", "", {"title": title})

    def report_test(self, run_uid: Optional[str], report: TestReport) -> Optional[dict[str, Any]]:
        """Report one test result into a run.

        Args:
            run_uid: Uid of the active run; nothing is sent when empty
            report: The test report payload

        Returns:
            Decoded response body, or None if the call was skipped.
        """
        if not run_uid:
            return None
        return self._request("POST", f"/{run_uid}/testrun", report.to_dict())

    def finish_run(self, run_uid: Optional[str], duration: float) -> Optional[dict[str, Any]]:
        """Mark a run as finished.

        Args:
            run_uid: Uid of the run to close; nothing is sent when empty
            duration: Run duration in seconds

        Returns:
            Decoded response body, or None if the call was skipped.
        """
        if not run_uid:
            return None
        return self._request("PUT", f"/{run_uid}", {"status_event": "finish", "duration": duration})

    def _request(self, method: str, path: str, payload: dict[str, Any]) -> Optional[dict[str, Any]]:
        """Send one request and classify the response."""
        url = self.base_url + path

        if not self.enabled:
            log.debug("API key not available. Skipping API call: %s %s", method, url)
            return None

        try:
            body = json.dumps(payload)
        except (TypeError, ValueError) as e:
            log.warning("Error encoding payload for %s %s: %s", method, url, e)
            return None

        log.info("Executing API request: %s %s", method, url)
        log.debug("Request body: %s", body)

        try:
            with httpx.Client(**self._client_options()) as client:
                response = client.request(
                    method,
                    url,
                    params={"api_key": self.api_key},
                    content=body,
                    headers={"Content-Type": "application/json"},
                )
        except httpx.TransportError as e:
            log.error("Network error while calling Testomat API: %s", e)
            raise TestomatConnectionError("Testomat API connection failed") from e

        status_code = response.status_code
        text = response.text

        if 200 <= status_code < 300:
            log.info("API call successful (%d): %s", status_code, text)
            return _decode_body(text)

        if 400 <= status_code < 500:
            log.error("Client error %d: %s", status_code, text)
            raise TestomatClientError(status_code, text)

        if status_code >= 500:
            log.error("Server error %d: %s", status_code, text)
            raise TestomatServerError(status_code, text)

        log.warning("Unexpected status %d from %s %s", status_code, method, url)
        return None

    def _client_options(self) -> dict[str, Any]:
        options: dict[str, Any] = {}
        if self.timeout is not None:
            options["timeout"] = self.timeout
        if self.transport is not None:
            options["transport"] = self.transport
        return options


def _decode_body(text: str) -> Optional[dict[str, Any]]:
    """Decode a JSON object body; anything else yields None."""
    if not text:
        return None
    try:
        data = json.loads(text)
    except ValueError:
        log.warning("Response body is not JSON: %s", text)
        return None
    if not isinstance(data, dict):
        return None
    return data
