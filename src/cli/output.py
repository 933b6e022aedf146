"""Terminal output handling using Rich library.

This module provides the OutputHandler class for all CLI terminal output:
colored status lines, spinners for long-running phases and the run summary.
Supports verbosity levels and --no-color flag.
"""

from contextlib import contextmanager
from typing import Iterator, List

from rich.console import Console
from rich.live import Live
from rich.spinner import Spinner

from src.sync_engine.models import RunSummary


class OutputHandler:
    """Handles all terminal output using Rich library.

    Attributes:
        verbosity: Verbosity level (0=summary, 1=info, 2=debug)
        console: Rich Console instance for output

    Example:
        >>> handler = OutputHandler(verbosity=1, no_color=False)
        >>> handler.success("Operation completed")
        >>> with handler.spinner("Processing..."):
        ...     pass
    """

    def __init__(self, verbosity: int = 0, no_color: bool = False):
        self.verbosity = verbosity
        self.console = Console(
            force_terminal=not no_color,
            no_color=no_color,
            highlight=False,
        )

    def success(self, message: str) -> None:
        self.console.print(f"[green]✓[/green] {message}")

    def error(self, message: str) -> None:
        self.console.print(f"[red]✗[/red] {message}", style="red")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]⚠[/yellow] {message}", style="yellow")

    def info(self, message: str) -> None:
        """Display info message (only if verbosity >= 1)."""
        if self.verbosity >= 1:
            self.console.print(message)

    def debug(self, message: str) -> None:
        """Display debug message (only if verbosity >= 2)."""
        if self.verbosity >= 2:
            self.console.print(f"[dim]{message}[/dim]")

    def print(self, message: str) -> None:
        """Display message without formatting."""
        self.console.print(message)

    @contextmanager
    def spinner(self, message: str) -> Iterator[None]:
        """Display spinner for single operations.

        Example:
            >>> with handler.spinner("Syncing project..."):
            ...     summary = engine.run()
        """
        spinner = Spinner("dots", text=message)
        with Live(spinner, console=self.console, refresh_per_second=10):
            yield

    def _print_list(self, title: str, items: List[str], color: str) -> None:
        self.console.print(f"\n[{color}]{title} ({len(items)}):[/{color}]")
        for item in items:
            self.console.print(f"  • {item}")

    def print_run_summary(self, summary: RunSummary) -> None:
        """Display the result of a full sync run with color coding."""
        self.console.print("\n[bold]Sync Summary:[/bold]")
        self.console.print(f"  [blue]↓[/blue] Pulled: {summary.pulled} file(s)")

        if summary.vc_subtrees:
            self.console.print(f"  [cyan]⎇[/cyan] Version control: {summary.vc_subtrees} subtree(s)")

        self.console.print(f"  [green]↑[/green] Pushed: {summary.pushed} file(s)")

        if summary.reordered:
            self.console.print("  [green]≡[/green] Execution order applied")

        if summary.skipped_conflicts:
            self._print_list("Skipped conflicts", summary.skipped_conflicts, "red")

        if summary.pending_push:
            self._print_list("Pending local edits", summary.pending_push, "yellow")

        if summary.push_failures:
            self._print_list(
                "Push failures",
                [f"{f.path}: {f.reason}" for f in summary.push_failures],
                "red",
            )

        if summary.vc_failures:
            self._print_list(
                "Version control failures",
                [f"{f.path}: {f.reason}" for f in summary.vc_failures],
                "yellow",
            )

        if summary.errors:
            self._print_list("Errors", summary.errors, "red")

        if summary.reorder_warning:
            self.warning(summary.reorder_warning)

        if summary.cancelled:
            self.console.print("\n[yellow]Sync cancelled before completion[/yellow]")
        elif summary.errors or summary.push_failures:
            self.console.print("\n[red]Sync completed with errors[/red]")
        elif summary.skipped_conflicts:
            self.console.print("\n[red]Sync completed with conflicts[/red]")
        elif summary.pulled == 0 and summary.pushed == 0:
            self.console.print("\n[green]Already in sync. No changes detected.[/green]")
        else:
            self.console.print("\n[green]Sync completed successfully[/green]")

    def print_dryrun_summary(self, to_pull: List[str], to_push: List[str], conflicts: List[str]) -> None:
        """Display dry run preview of changes."""
        self.console.print("\n[bold]Dry Run - Changes Preview:[/bold]")

        if to_pull:
            self._print_list("Would pull", to_pull, "blue")

        if to_push:
            self._print_list("Would push", to_push, "green")

        if conflicts:
            self._print_list("Conflicts detected", conflicts, "red")

        if not to_push and not to_pull and not conflicts:
            self.console.print("\n[green]Already in sync. No changes to apply.[/green]")
