"""Reporting session: the run lifecycle tied to one suite or process.

A session is Idle until ``start()`` creates a run on the service, then
Active until ``finish()`` closes it. Reports sent while Idle are dropped,
never queued.

Reporting is a side channel. By default every TestomatError raised by the
client is logged and swallowed here so a broken backend cannot fail the
test run; pass ``raise_errors=True`` to let the typed errors propagate.
"""

import logging
import threading
import time
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Optional

from testomat_reporter.client import TestomatApiClient, TestomatError
from testomat_reporter.mapping import build_report
from testomat_reporter.models import RunInfo, TestEvent, TestReport, TestStatus
from testomat_reporter.reporters.base import Reporter

log = logging.getLogger(__name__)

DEFAULT_TITLE_PREFIX = "Pytest Test Run "


def current_time_ms() -> int:
    """Wall clock in epoch milliseconds."""
    return int(time.time() * 1000)


def default_run_title(start_time_ms: int) -> str:
    """Title for runs without an explicit one, unique per start instant."""
    started = datetime.fromtimestamp(start_time_ms / 1000.0)
    return DEFAULT_TITLE_PREFIX + started.isoformat(timespec="milliseconds")


class ReportingSession(Reporter):
    """Idle/Active state machine around one reporting run.

    All transitions are serialized by a per-session lock, so a session may
    be shared between threads. Give each suite its own session to keep
    runs apart.

    Args:
        client: API client used for every outbound call
        clock: Callable returning epoch milliseconds (defaults to wall clock)
        raise_errors: Propagate reporting failures instead of logging them
        run_uid: Uid of a run created elsewhere; the session reports into it
                 and leaves finishing it to its owner
    """

    def __init__(
        self,
        client: TestomatApiClient,
        clock: Optional[Callable[[], int]] = None,
        raise_errors: bool = False,
        run_uid: Optional[str] = None,
    ):
        self.client = client
        self.clock = clock or current_time_ms
        self.raise_errors = raise_errors
        self.shared_run_uid = run_uid
        self._lock = threading.Lock()
        self._run: Optional[RunInfo] = None
        self._attempted = False
        self._delivered: Counter = Counter()

    @property
    def is_active(self) -> bool:
        """True while a run is open."""
        return self._run is not None

    @property
    def run(self) -> Optional[RunInfo]:
        """The active run, or None while Idle."""
        return self._run

    @property
    def delivered(self) -> dict[TestStatus, int]:
        """Per-status count of reports the service accepted in the latest run."""
        with self._lock:
            return dict(self._delivered)

    def start(self, title_hint: Optional[str] = None) -> Optional[RunInfo]:
        """Create a run unless one was already created or attempted.

        Args:
            title_hint: Explicit run title; a timestamped default otherwise

        Returns:
            The active run, or None if the session stayed Idle.
        """
        with self._lock:
            if self._run is not None or self._attempted:
                return self._run
            self._attempted = True
            self._delivered.clear()

            start_time_ms = self.clock()
            title = title_hint or default_run_title(start_time_ms)

            if self.shared_run_uid:
                if not self.client.enabled:
                    return None
                log.info("Reporting into existing Testomat.io run %s", self.shared_run_uid)
                self._run = RunInfo(self.shared_run_uid, title, start_time_ms, owned=False)
                return self._run

            log.info("Creating Testomat.io test run: %s", title)
            response = self._call(self.client.create_run, title)
            if not response:
                return None

            uid = response.get("uid")
            if not uid:
                log.warning("Testomat.io response has no run uid: %s", response)
                return None

            self._run = RunInfo(str(uid), title, start_time_ms)
            log.info("Testomat.io run created with UID: %s", self._run.uid)
            return self._run

    def report(self, event: TestEvent) -> Optional[TestReport]:
        """Send one test result into the active run.

        Returns:
            The report that was built, or None when the session is Idle.
            Only reports the service accepted are counted in ``delivered``.
        """
        with self._lock:
            if self._run is None:
                log.warning(
                    "Testomat.io run UID is not initialized. Skipping test report for %s",
                    event.name,
                )
                return None

            report = build_report(event)
            log.info(
                "Reporting test '%s' with status '%s' to Testomat.io",
                report.title,
                report.status.value,
            )
            try:
                self.client.report_test(self._run.uid, report)
            except TestomatError as e:
                self._failed(e)
            else:
                self._delivered[report.status] += 1
            return report

    def finish(self) -> Optional[float]:
        """Close the active run and return to Idle.

        The session is Idle afterwards even if the finish call failed.

        Returns:
            Run duration in seconds, or None when the session was Idle.
        """
        with self._lock:
            self._attempted = False
            run = self._run
            if run is None:
                return None

            duration = max(self.clock() - run.start_time_ms, 0) / 1000.0
            try:
                if run.owned:
                    log.info(
                        "Finishing Testomat.io test run %s with duration %.3fs",
                        run.uid,
                        duration,
                    )
                    self._call(self.client.finish_run, run.uid, duration)
                else:
                    log.info("Leaving shared Testomat.io run %s open", run.uid)
            finally:
                self._run = None
            return duration

    def reset(self) -> None:
        """Drop the active run without contacting the service."""
        with self._lock:
            self._run = None
            self._attempted = False

    def on_suite_start(self, title_hint: Optional[str] = None) -> None:
        self.start(title_hint)

    def on_test_event(self, event: TestEvent) -> None:
        self.report(event)

    def on_suite_end(self) -> None:
        self.finish()

    def _call(self, func: Callable[..., Any], *args: Any) -> Any:
        """Run a client call under the session's failure policy."""
        try:
            return func(*args)
        except TestomatError as e:
            self._failed(e)
            return None

    def _failed(self, error: TestomatError) -> None:
        if self.raise_errors:
            raise error
        log.error("Testomat.io reporting failed: %s", error)
