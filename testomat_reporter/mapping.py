"""Translation of framework outcomes into service payloads.

| outcome  | status  | message                               | stack |
|----------|---------|---------------------------------------|-------|
| success  | passed  | -                                     | -     |
| failure  | failed  | exception message                     | trace |
| aborted  | skipped | "Test aborted: " + cause              | -     |
| disabled | skipped | explicit reason, else "Test disabled" | -     |
"""

from typing import Optional

from testomat_reporter.models import TestEvent, TestOutcome, TestReport, TestStatus

DISABLED_MESSAGE = "Test disabled"
ABORTED_PREFIX = "Test aborted: "


def map_outcome(
    outcome: TestOutcome,
    message: Optional[str] = None,
    stack: Optional[str] = None,
) -> tuple[TestStatus, Optional[str], Optional[str]]:
    """Translate a framework outcome into (status, message, stack).

    Args:
        outcome: How the framework finished the test
        message: Exception message, skip reason or abort cause
        stack: Formatted stack trace, kept only for failures

    Returns:
        Tuple of the service status and the message and stack to send
    """
    if outcome is TestOutcome.SUCCESS:
        return TestStatus.PASSED, None, None
    if outcome is TestOutcome.FAILURE:
        return TestStatus.FAILED, message, stack
    if outcome is TestOutcome.ABORTED:
        return TestStatus.SKIPPED, ABORTED_PREFIX + (message or ""), None
    if outcome is TestOutcome.DISABLED:
        return TestStatus.SKIPPED, message or DISABLED_MESSAGE, None
    raise ValueError(f"Unknown test outcome: {outcome!r}")


def build_report(event: TestEvent) -> TestReport:
    """Build the service payload for a finished test.

    The title comes from the test's metadata when set, else from the
    function name; the id only from metadata.
    """
    status, message, stack = map_outcome(event.outcome, event.message, event.stack)
    return TestReport(
        title=event.metadata.title or event.name,
        test_id=event.metadata.test_id,
        suite_title=event.suite_title,
        file=event.file,
        status=status,
        message=message,
        stack=stack,
    )
