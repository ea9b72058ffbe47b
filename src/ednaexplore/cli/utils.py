"""
Shared CLI utilities for ednaexplore commands.

Provides common functionality used across CLI modules.
"""

from __future__ import annotations

from collections.abc import Callable, Generator
from contextlib import contextmanager
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.table import Table

from ednaexplore.core.progress import ProgressEvent

STAGE_LABELS = {
    "preprocessing": "Preprocessing sequences",
    "classifying": "Classifying taxa",
    "clustering": "Clustering novel taxa",
    "computing_metrics": "Computing biodiversity metrics",
}


@contextmanager
def pipeline_progress(
    console: Console | None = None,
    quiet: bool = False,
) -> Generator[Callable[[ProgressEvent], None], None, None]:
    """Progress bar driven by pipeline ProgressEvents.

    Yields a callback suitable for PipelineOrchestrator(progress_callback=...).
    The bar tracks overall progress; its description names the current stage.
    """
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=console if not quiet else None,
        disable=quiet,
    ) as progress:
        task = progress.add_task("Starting pipeline...", total=100.0)

        def on_event(event: ProgressEvent) -> None:
            progress.update(
                task,
                completed=event.overall_progress,
                description=STAGE_LABELS.get(event.stage, event.stage),
            )

        yield on_event


def validation_table(errors: list[str], valid_count: int, title: str = "Validation") -> Table:
    """Build a table listing validation problems."""
    table = Table(title=f"{title}: {valid_count:,} valid records")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Problem", style="yellow")
    for i, error in enumerate(errors, start=1):
        table.add_row(str(i), error)
    return table


class QuietConsole:
    """Console wrapper that suppresses output in quiet mode.

    This class wraps a Rich Console instance and conditionally suppresses
    print output when quiet mode is enabled. All other console methods
    are delegated to the wrapped instance.

    Example:
        >>> console = Console()
        >>> qc = QuietConsole(console, quiet=True)
        >>> qc.print("This won't be shown")  # Suppressed
        >>> qc.console.print("This will be shown")
    """

    def __init__(self, console: Console, quiet: bool = False):
        self._console = console
        self._quiet = quiet

    @property
    def console(self) -> Console:
        """The wrapped Console, for output that must appear even in quiet mode."""
        return self._console

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print to console unless quiet mode is enabled."""
        if not self._quiet:
            self._console.print(*args, **kwargs)

    def __getattr__(self, name: str) -> Any:
        return getattr(self._console, name)
