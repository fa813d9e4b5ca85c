"""pytest plugin relaying test results to Testomat.io.

Registered through the ``pytest11`` entry point, so installing the package
is enough. Reporting stays a no-op until the TESTOMATIO variable holds an
API key.

Tests describe themselves with markers instead of being introspected:

    pytestmark = pytest.mark.testomat_run("Checkout regression")

    @pytest.mark.testomat(title="Verify basic addition", id="T12345")
    def test_addition():
        assert 2 + 2 == 4

Run scope:
- session (default): one run per pytest process, opened before the first
  test and closed when the session finishes
- module: one run per test module, each with its own ReportingSession
"""

import io
import logging
import traceback
from types import TracebackType
from typing import Optional

import pytest
from _pytest.skipping import Skip, evaluate_skip_marks
from rich.console import Console

from testomat_reporter.client import TestomatApiClient
from testomat_reporter.config import RUN_SCOPES, ConfigError, ReporterConfig
from testomat_reporter.models import TestEvent, TestMetadata, TestOutcome
from testomat_reporter.reporters import CompositeReporter, ConsoleReporter, Reporter
from testomat_reporter.session import ReportingSession

log = logging.getLogger(__name__)

PLUGIN_NAME = "testomat-reporter"
TEST_MARKER = "testomat"
RUN_MARKER = "testomat_run"
SESSION_SUITE = "<session>"


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup("testomat", "Testomat.io reporting")
    group.addoption(
        "--no-testomat",
        action="store_true",
        default=False,
        help="Disable Testomat.io reporting even when TESTOMATIO is set",
    )
    group.addoption(
        "--testomat-title",
        metavar="TITLE",
        default=None,
        help="Title of the Testomat.io run (overrides testomat_run markers)",
    )
    group.addoption(
        "--testomat-scope",
        choices=RUN_SCOPES,
        default=None,
        help="Create one run per pytest session or per test module",
    )


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        f"{TEST_MARKER}(title=None, id=None): Testomat.io title and test id of a test",
    )
    config.addinivalue_line(
        "markers",
        f"{RUN_MARKER}(title): Testomat.io run title for the tests of a module or class",
    )

    if config.getoption("no_testomat"):
        log.debug("Testomat.io reporting disabled by --no-testomat")
        return

    try:
        settings = ReporterConfig.from_env()
    except ConfigError as e:
        raise pytest.UsageError(f"Testomat.io configuration error: {e}") from e

    plugin = TestomatPlugin(
        settings,
        scope=config.getoption("testomat_scope") or settings.run_scope,
        title=config.getoption("testomat_title") or settings.title,
    )
    config.pluginmanager.register(plugin, PLUGIN_NAME)


class TestomatPlugin:
    """Translates pytest hooks into Reporter calls.

    Args:
        settings: Reporter configuration
        scope: "session" or "module"
        title: Run title that wins over any testomat_run marker
    """

    __test__ = False

    def __init__(
        self,
        settings: ReporterConfig,
        scope: str = "session",
        title: Optional[str] = None,
    ):
        self.settings = settings
        self.scope = scope
        self.title = title
        self.client = TestomatApiClient(
            settings.api_key,
            settings.base_url,
            timeout=settings.timeout,
        )
        self.summary = io.StringIO()
        self._console: Optional[Console] = None
        self._suites: dict[str, Reporter] = {}

    def suite_key(self, item: pytest.Item) -> str:
        if self.scope == "module":
            return item.nodeid.split("::", 1)[0]
        return SESSION_SUITE

    def summary_console(self, config: pytest.Config) -> Console:
        """Console buffering suite summaries until the terminal summary."""
        if self._console is None:
            terminal = config.pluginmanager.get_plugin("terminalreporter")
            self._console = Console(
                file=self.summary,
                force_terminal=terminal is not None and terminal.hasmarkup,
                width=config.get_terminal_writer().fullwidth if terminal is not None else None,
                legacy_windows=True,
            )
        return self._console

    def new_reporter(self, console: Console) -> Reporter:
        session = ReportingSession(
            self.client,
            raise_errors=self.settings.raise_errors,
            run_uid=self.settings.run_uid,
        )
        summary = ConsoleReporter(session, console=console, quiet=not self.client.enabled)
        return CompositeReporter([session, summary])

    def run_title(self, item: pytest.Item) -> Optional[str]:
        if self.title:
            return self.title
        marker = item.get_closest_marker(RUN_MARKER)
        if marker is None:
            return None
        return marker.kwargs.get("title") or (marker.args[0] if marker.args else None)

    @pytest.hookimpl(wrapper=True)
    def pytest_runtest_protocol(self, item: pytest.Item, nextitem: Optional[pytest.Item]):
        key = self.suite_key(item)
        if key not in self._suites:
            reporter = self.new_reporter(self.summary_console(item.config))
            self._suites[key] = reporter
            reporter.on_suite_start(self.run_title(item))
        try:
            return (yield)
        finally:
            if self.scope == "module" and (nextitem is None or self.suite_key(nextitem) != key):
                self.end_suite(key)

    @pytest.hookimpl(wrapper=True, tryfirst=True)
    def pytest_runtest_makereport(self, item: pytest.Item, call: pytest.CallInfo):
        report = yield
        event = event_from_report(item, call, report)
        if event is not None:
            reporter = self._suites.get(self.suite_key(item))
            if reporter is not None:
                reporter.on_test_event(event)
        return report

    def pytest_sessionfinish(self, session: pytest.Session) -> None:
        for key in list(self._suites):
            self.end_suite(key)

    def pytest_terminal_summary(self, terminalreporter: pytest.TerminalReporter) -> None:
        """Write the buffered suite summaries once progress output is done."""
        text = self.summary.getvalue()
        if text:
            terminalreporter.ensure_newline()
            terminalreporter.write(text)

    def end_suite(self, key: str) -> None:
        reporter = self._suites.pop(key, None)
        if reporter is not None:
            reporter.on_suite_end()


def event_from_report(
    item: pytest.Item,
    call: pytest.CallInfo,
    report: pytest.TestReport,
) -> Optional[TestEvent]:
    """Build the event for the phase that decides a test's outcome.

    That is the call phase, or the setup phase when setup did not pass.
    Teardown never produces an event, so every test yields exactly one.
    """
    decisive = report.when == "call" or (report.when == "setup" and not report.passed)
    if not decisive:
        return None

    outcome, message, stack = outcome_from_report(item, call, report)
    return TestEvent(
        name=item.name,
        suite_title=suite_title(item),
        file=item.location[0],
        outcome=outcome,
        metadata=metadata_for(item),
        message=message,
        stack=stack,
    )


def outcome_from_report(
    item: pytest.Item,
    call: pytest.CallInfo,
    report: pytest.TestReport,
) -> tuple[TestOutcome, Optional[str], Optional[str]]:
    """Classify a report as success, failure, aborted or disabled."""
    if report.passed:
        return TestOutcome.SUCCESS, None, None

    if report.skipped:
        if hasattr(report, "wasxfail"):
            return TestOutcome.ABORTED, report.wasxfail or "expected failure", None
        reason = skip_reason(report)
        if report.when == "setup":
            marker_skip = evaluate_skip_marks(item)
            if marker_skip is not None and (marker_skip.reason or None) == reason:
                return TestOutcome.DISABLED, marker_reason(item, marker_skip), None
        return TestOutcome.ABORTED, reason or "", None

    if call.excinfo is not None:
        error = call.excinfo.value
        return TestOutcome.FAILURE, str(error) or type(error).__name__, format_stack(call.excinfo.tb)
    return TestOutcome.FAILURE, str(report.longrepr), None


def skip_reason(report: pytest.TestReport) -> Optional[str]:
    longrepr = report.longrepr
    if isinstance(longrepr, tuple) and len(longrepr) == 3:
        reason = longrepr[2]
    else:
        reason = str(longrepr or "")
    # An empty skip message renders as the bare exception name
    if reason == "Skipped":
        return None
    return reason.removeprefix("Skipped: ") or None


def marker_reason(item: pytest.Item, marker_skip: Skip) -> Optional[str]:
    """Reason written on the marker that skipped the test.

    A bare ``@pytest.mark.skip`` gets pytest's placeholder reason, which
    is not a reason the author gave.
    """
    if marker_skip.reason == Skip().reason:
        mark = item.get_closest_marker("skip")
        if mark is not None and not mark.args and "reason" not in mark.kwargs:
            return None
    return marker_skip.reason or None


def format_stack(tb: Optional[TracebackType]) -> Optional[str]:
    """Render a traceback as one "file:line in function" line per frame."""
    if tb is None:
        return None
    return "".join(
        f"{frame.filename}:{frame.lineno} in {frame.name}\n"
        for frame in traceback.extract_tb(tb)
    )


def suite_title(item: pytest.Item) -> str:
    """Class name for tests in a class, else the module name."""
    cls = getattr(item, "cls", None)
    if cls is not None:
        return cls.__name__
    module = getattr(item, "module", None)
    if module is not None:
        return module.__name__.rsplit(".", 1)[-1]
    return item.parent.name if item.parent is not None else item.name


def metadata_for(item: pytest.Item) -> TestMetadata:
    """Read the testomat marker closest to the test."""
    marker = item.get_closest_marker(TEST_MARKER)
    if marker is None:
        return TestMetadata()
    title = marker.kwargs.get("title") or (marker.args[0] if marker.args else None)
    test_id = marker.kwargs.get("id")
    return TestMetadata(title=title, test_id=test_id)
