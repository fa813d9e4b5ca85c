"""Console reporter using Rich library for terminal output.

Prints a short summary after each suite of what was relayed to
Testomat.io:
- Run title and uid (or why nothing was reported)
- Per-status counts of the reports the service accepted
"""

from typing import TYPE_CHECKING, Optional

from rich import box
from rich.console import Console
from rich.rule import Rule
from rich.table import Table

from testomat_reporter.models import TestEvent, TestStatus
from testomat_reporter.reporters.base import Reporter

if TYPE_CHECKING:
    from testomat_reporter.session import ReportingSession

STATUS_STYLES = {
    TestStatus.PASSED: "green",
    TestStatus.FAILED: "red",
    TestStatus.SKIPPED: "yellow",
}


class ConsoleReporter(Reporter):
    """Rich-based summary of a reporting session.

    Must be placed after the session in a CompositeReporter so the run is
    known when a suite starts and its delivery counts are final when it ends.

    Args:
        session: The session whose run is summarised
        console: Console to print to (defaults to a new stdout console)
        quiet: If True, print nothing
    """

    def __init__(
        self,
        session: "ReportingSession",
        console: Optional[Console] = None,
        quiet: bool = False,
    ):
        # Use legacy_windows=True for ASCII-safe output on Windows consoles
        self.console = console or Console(legacy_windows=True)
        self.session = session
        self.quiet = quiet
        self._run_title: Optional[str] = None
        self._run_uid: Optional[str] = None

    def on_suite_start(self, title_hint: Optional[str] = None) -> None:
        """Remember the run the session is reporting into."""
        run = self.session.run
        self._run_title = run.title if run else None
        self._run_uid = run.uid if run else None

    def on_test_event(self, event: TestEvent) -> None:
        # Counts come from the session, which knows what was delivered.
        pass

    def on_suite_end(self) -> None:
        """Print the summary table for the suite."""
        if self.quiet:
            return

        self.console.print()
        self.console.print(Rule("[bold]Testomat.io[/bold]", style="cyan", characters="-"))

        if self._run_uid is None:
            self.console.print("[yellow]No run was created; results were not reported.[/yellow]")
            return

        self.console.print(f"Run [cyan]{self._run_title}[/cyan] ([dim]{self._run_uid}[/dim])")

        delivered = self.session.delivered
        table = Table(
            title="Reported",
            show_header=True,
            header_style="bold magenta",
            border_style="dim",
            box=box.ASCII,
        )
        for status in TestStatus:
            table.add_column(status.value.capitalize(), justify="center", no_wrap=True)
        table.add_row(
            *(
                f"[{STATUS_STYLES[status]}]{delivered.get(status, 0)}[/{STATUS_STYLES[status]}]"
                for status in TestStatus
            )
        )
        self.console.print(table)
