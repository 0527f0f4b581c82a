"""Rich-based progress reporter and logging setup."""
from __future__ import annotations

import logging
import sys
import time
from collections import deque
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import (
    Progress,
    ProgressColumn,
    SpinnerColumn,
    TextColumn,
    BarColumn,
    TimeElapsedColumn,
    MofNCompleteColumn,
    TaskID,
    Task,
)
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from rich.tree import Tree

from ..core.models import PlannedOperation
from ..services.folder_tree import FolderTree
from ..services.paths import relative_path


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route the standard logging module through a RichHandler on stderr."""
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True, show_path=verbose)],
        force=True,
    )
    # hachoir is chatty about containers it only half understands
    logging.getLogger("hachoir").setLevel(logging.ERROR)


class FilesPerSecondColumn(ProgressColumn):
    """Renders files per second as a rolling average."""

    def __init__(self, window_size: int = 10):
        super().__init__()
        self._samples: deque[tuple[float, int]] = deque(maxlen=window_size)
        self._last_completed = 0
        self._start_time: Optional[float] = None

    def render(self, task: Task) -> Text:
        completed = int(task.completed)
        now = time.time()

        if self._start_time is None:
            self._start_time = now
            self._last_completed = completed
            return Text("-- f/s", style="magenta")

        if completed > self._last_completed:
            self._samples.append((now, completed))
            self._last_completed = completed

        if len(self._samples) >= 2:
            oldest_time, oldest_completed = self._samples[0]
            newest_time, newest_completed = self._samples[-1]
            if newest_time > oldest_time:
                speed = (newest_completed - oldest_completed) / (newest_time - oldest_time)
                return Text(f"{speed:.1f} f/s", style="magenta")

        elapsed = now - self._start_time
        if elapsed > 0 and completed > 0:
            return Text(f"{completed / elapsed:.1f} f/s", style="magenta")
        return Text("-- f/s", style="magenta")


class RichProgressReporter:
    """Progress reporter using Rich for terminal output.

    Implements the ProgressReporter protocol.
    """

    def __init__(self, verbose: bool = False, quiet: bool = False, console: Optional[Console] = None):
        """Initialize the reporter.

        Args:
            verbose: Enable debug output.
            quiet: Suppress all non-essential output.
            console: Console to draw on (stderr by default).
        """
        self._console = console or Console(stderr=True)
        self._verbose = verbose
        self._quiet = quiet
        self._progress: Optional[Progress] = None
        self._current_task_id: Optional[TaskID] = None
        self._phase_name: str = ""

    @property
    def console(self) -> Console:
        return self._console

    # --- Phase Management ---

    def start_phase(self, name: str, total: Optional[int]) -> None:
        """Start a progress bar; ``total=None`` shows an indeterminate bar."""
        self.end_phase()
        self._phase_name = name
        if self._quiet:
            return

        self._progress = Progress(
            SpinnerColumn(),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            MofNCompleteColumn(),
            TextColumn("[cyan]•"),
            FilesPerSecondColumn(),
            TextColumn("[cyan]•"),
            TimeElapsedColumn(),
            console=self._console,
            transient=False,
        )
        self._progress.start()
        self._current_task_id = self._progress.add_task(name, total=total)

    def update_phase(
        self,
        completed: int,
        description: Optional[str] = None,
        total: Optional[int] = None,
    ) -> None:
        if self._progress is None or self._current_task_id is None:
            return
        fields = {"completed": completed}
        if description:
            fields["description"] = f"{self._phase_name}: {description}"
        if total is not None:
            fields["total"] = total
        self._progress.update(self._current_task_id, **fields)

    def end_phase(self) -> None:
        if self._progress:
            self._progress.stop()
            self._progress = None
            self._current_task_id = None

    # --- Logging Methods ---

    def info(self, message: str) -> None:
        if not self._quiet:
            self._console.print(f"[blue]ℹ[/blue] {message}")

    def success(self, message: str) -> None:
        if not self._quiet:
            self._console.print(f"[green]✓[/green] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]⚠[/yellow] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[red]✗[/red] {message}", style="red")

    def debug(self, message: str) -> None:
        if self._verbose:
            self._console.print(f"[dim]  {message}[/dim]")

    # --- Specialized Output ---

    def print_header(self, title: str) -> None:
        if self._quiet:
            return
        self._console.print(Panel(Text(title, style="bold cyan"), border_style="cyan"))

    def print_plan(self, operations: Sequence[PlannedOperation], destination_root: Path) -> None:
        """Table of planned moves, destinations shown relative to the root."""
        if self._quiet:
            return

        table = Table(title=f"Planned moves ({len(operations)})", show_header=True, header_style="bold")
        table.add_column("File", style="cyan")
        table.add_column("Destination", style="white")
        table.add_column("Date source", style="dim")

        for op in operations:
            destination = str(relative_path(destination_root, op.destination_path))
            if op.is_duplicate:
                destination = f"{destination} [yellow](renamed)[/yellow]"
            source = op.media_file.date_source.display_name if op.media_file else ""
            table.add_row(op.source_filename, destination, source)

        self._console.print(table)

    def print_summary(
        self,
        files_found: int,
        moved: int,
        duplicates: int,
        skipped: int,
        failed: int,
        elapsed_seconds: float = 0.0,
    ) -> None:
        if self._quiet:
            return

        table = Table(title="Organize Complete", show_header=False)
        table.add_column("Metric", style="cyan")
        table.add_column("Count", style="green", justify="right")

        table.add_row("Files Found", str(files_found))
        table.add_row("Files Moved", str(moved))
        table.add_row("Renamed Duplicates", str(duplicates))
        table.add_row("Skipped", str(skipped))
        table.add_row("Failed", str(failed))

        if elapsed_seconds > 0:
            table.add_row("", "")
            table.add_row("Time Elapsed", f"{elapsed_seconds:.1f}s")

        self._console.print(table)

    def print_table(self, table: Table) -> None:
        if not self._quiet:
            self._console.print(table)

    def print_failures(self, failures: Sequence[tuple[str, str]]) -> None:
        for filename, reason in failures:
            self._console.print(f"  [red]✗[/red] {filename}: {reason}")

    def print_folder_tree(self, tree: FolderTree) -> None:
        root = tree.root
        rendered = Tree(f"[bold]{root.name}[/bold] [dim]({root.recursive_file_count})[/dim]")
        branches = {0: rendered}
        for index in tree.flatten_all():
            node = tree[index]
            label = f"{node.name} [dim]({node.direct_file_count}/{node.recursive_file_count})[/dim]"
            branches[index] = branches[node.parent].add(label)
        self._console.print(rendered)

    # --- Context Managers ---

    def __enter__(self) -> "RichProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        self.end_phase()


class QuietProgressReporter:
    """Minimal progress reporter that only shows warnings and errors."""

    def start_phase(self, name: str, total: Optional[int]) -> None:
        pass

    def update_phase(
        self,
        completed: int,
        description: Optional[str] = None,
        total: Optional[int] = None,
    ) -> None:
        pass

    def end_phase(self) -> None:
        pass

    def info(self, message: str) -> None:
        pass

    def success(self, message: str) -> None:
        pass

    def warning(self, message: str) -> None:
        print(f"WARNING: {message}", file=sys.stderr)

    def error(self, message: str) -> None:
        print(f"ERROR: {message}", file=sys.stderr)

    def debug(self, message: str) -> None:
        pass

    def print_header(self, title: str) -> None:
        pass

    def print_plan(self, operations: Sequence[PlannedOperation], destination_root: Path) -> None:
        pass

    def print_summary(self, *args, **kwargs) -> None:
        pass

    def print_failures(self, failures: Sequence[tuple[str, str]]) -> None:
        for filename, reason in failures:
            print(f"FAILED: {filename}: {reason}", file=sys.stderr)

    def print_table(self, table: Table) -> None:
        pass

    def print_folder_tree(self, tree: FolderTree) -> None:
        pass

    def __enter__(self) -> "QuietProgressReporter":
        return self

    def __exit__(self, *args) -> None:
        pass
