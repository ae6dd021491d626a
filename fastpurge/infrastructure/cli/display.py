import logging
from typing import Any, Optional, Sequence

from rich.box import HEAVY, SIMPLE
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from fastpurge.domain.interfaces.user_interface import UserInterface
from fastpurge.domain.models.purge import DeliveryOutcome, DeliveryResult

logger = logging.getLogger(__name__)

_OUTCOME_STYLES = {
    DeliveryOutcome.SUCCEEDED: "green",
    DeliveryOutcome.FAILED_TERMINAL: "red",
    DeliveryOutcome.EXHAUSTED_RETRIES: "yellow",
}


class ConsoleDisplay(UserInterface):
    """Concrete implementation of UserInterface using the rich library for console output."""

    def __init__(self, console: Optional[Console] = None):
        """Initializes the rich Console."""
        self._console = console or Console()

    @property
    def console(self) -> Console:
        """Get the Rich console instance for direct operations."""
        return self._console

    def display_error(self, error_message: str, **kwargs: Any) -> None:
        """Displays an error message in a distinct style.

        Args:
            error_message: The error message to display.
        """
        panel = Panel(
            Text(error_message, style="white"),
            title="[bold red]Error[/bold red]",
            border_style="red",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_info(self, info_message: str, **kwargs: Any) -> None:
        """Displays an informational message.

        Args:
            info_message: The informational message to display.
        """
        panel = Panel(
            Text(info_message, style="white"),
            title="[bold blue]Info[/bold blue]",
            border_style="blue",
            box=SIMPLE,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_warning(self, warning_message: str, **kwargs: Any) -> None:
        """Displays a warning message.

        Args:
            warning_message: The warning message to display.
        """
        logger.warning(f"Display warning: {warning_message}")
        panel = Panel(
            Text(warning_message, style="white"),
            title="[bold yellow]Warning[/bold yellow]",
            border_style="yellow",
            box=HEAVY,
            padding=(0, 1)
        )
        self.console.print(panel)

    def display_summary(self, results: Sequence[DeliveryResult]) -> None:
        """Renders one row per chunk plus a totals caption."""
        if not results:
            self.display_info("No invalidation requests were sent.")
            return

        table = Table(title="Purge requests", box=SIMPLE, show_lines=False)
        table.add_column("Request ID", style="dim", no_wrap=True)
        table.add_column("Objects", justify="right")
        table.add_column("Attempts", justify="right")
        table.add_column("Last status", justify="right")
        table.add_column("Outcome", no_wrap=True)

        succeeded = 0
        for result in results:
            if result.succeeded:
                succeeded += 1
            style = _OUTCOME_STYLES[result.outcome]
            table.add_row(
                result.request_id,
                str(result.object_count),
                str(result.attempts),
                str(result.last_status) if result.last_status is not None else "-",
                f"[{style}]{result.outcome.value}[/{style}]",
            )

        table.caption = f"{succeeded}/{len(results)} request(s) accepted"
        self.console.print(table)
