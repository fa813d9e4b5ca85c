"""
Testomat.io reporter for pytest.

Relays test lifecycle events (suite start/end, per-test pass/fail/skip)
to the Testomat.io reporting service.
"""

__version__ = "1.0.0"

from testomat_reporter.cli import main
from testomat_reporter.client import (
    TestomatApiClient,
    TestomatApiError,
    TestomatClientError,
    TestomatConnectionError,
    TestomatError,
    TestomatServerError,
)
from testomat_reporter.config import ConfigError, ReporterConfig
from testomat_reporter.models import TestEvent, TestMetadata, TestOutcome, TestReport, TestStatus
from testomat_reporter.session import ReportingSession

__all__ = [
    "main",
    "__version__",
    "ConfigError",
    "ReporterConfig",
    "ReportingSession",
    "TestEvent",
    "TestMetadata",
    "TestOutcome",
    "TestReport",
    "TestStatus",
    "TestomatApiClient",
    "TestomatApiError",
    "TestomatClientError",
    "TestomatConnectionError",
    "TestomatError",
    "TestomatServerError",
]
