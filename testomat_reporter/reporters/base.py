"""Base reporter interface."""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from testomat_reporter.models import TestEvent


class Reporter(ABC):
    """Abstract base class for consumers of test lifecycle events.

    The framework adapter calls these three entry points, in this order,
    for every suite it observes.
    """

    @abstractmethod
    def on_suite_start(self, title_hint: Optional[str] = None) -> None:
        """Called before the first test of a suite runs."""
        pass

    @abstractmethod
    def on_test_event(self, event: "TestEvent") -> None:
        """Called once for every finished test."""
        pass

    @abstractmethod
    def on_suite_end(self) -> None:
        """Called after the last test of a suite finished."""
        pass


class CompositeReporter(Reporter):
    """Reporter that delegates to multiple reporters.

    Allows relaying to the service and printing to the console at once.
    """

    def __init__(self, reporters: list[Reporter]):
        """Initialize with list of reporters.

        Args:
            reporters: List of reporters to delegate to
        """
        self._reporters = reporters

    @property
    def reporters(self) -> list[Reporter]:
        return list(self._reporters)

    def on_suite_start(self, title_hint: Optional[str] = None) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_suite_start(title_hint)

    def on_test_event(self, event: "TestEvent") -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_test_event(event)

    def on_suite_end(self) -> None:
        """Delegate to all reporters."""
        for reporter in self._reporters:
            reporter.on_suite_end()
