"""CLI with subcommands: organize, inspect, folders."""
from __future__ import annotations

import argparse
import signal
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from rich.prompt import Confirm, Prompt

from .core.config import SettingsStore
from .core.exceptions import ScanCancelled
from .core.models import OperationProgress, ScanPhase, ScanProgress, WorkflowState
from .logging.rich_logger import RichProgressReporter, QuietProgressReporter, configure_logging


DATE_INPUT_FORMAT = "%Y-%m-%d"
NO_EVENT = "-"


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="shoebox",
        description="Organize photos and videos into YYYY/MM-DD Event folders.",
    )

    # Global options
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Settings file (default: $SHOEBOX_CONFIG or ~/.config/shoebox/settings.json)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ============ ORGANIZE command ============
    organize_parser = subparsers.add_parser(
        "organize",
        help="Move media from a source directory into a dated library",
    )
    organize_parser.add_argument(
        "source",
        type=Path,
        help="Directory to organize",
    )
    organize_parser.add_argument(
        "-d", "--destination",
        type=Path,
        default=None,
        help="Library root (default: the last destination used)",
    )
    organize_parser.add_argument(
        "--exclude",
        type=Path,
        action="append",
        default=[],
        help="Subdirectory of SOURCE to skip, with everything beneath it (repeatable)",
    )
    organize_parser.add_argument(
        "-y", "--yes",
        action="store_true",
        help="Accept suggested dates and event labels without prompting",
    )
    organize_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show the plan without moving anything",
    )

    # ============ INSPECT command ============
    inspect_parser = subparsers.add_parser(
        "inspect",
        help="Show the date that would be used for each file",
    )
    inspect_parser.add_argument(
        "files",
        nargs="+",
        type=Path,
        help="Media files to inspect",
    )

    # ============ FOLDERS command ============
    folders_parser = subparsers.add_parser(
        "folders",
        help="Show the folder tree of a source with media counts",
    )
    folders_parser.add_argument(
        "source",
        type=Path,
        help="Directory to inspect",
    )

    return parser


def parse_date_input(text: str) -> Optional[datetime]:
    """``YYYY-MM-DD`` at midday, or None if it does not parse."""
    try:
        return datetime.strptime(text.strip(), DATE_INPUT_FORMAT).replace(hour=12)
    except ValueError:
        return None


class _ScanDisplay:
    """Feeds scan progress into the reporter, switching bars between phases."""

    def __init__(self, reporter):
        self._reporter = reporter
        self._phase: Optional[ScanPhase] = None

    def __call__(self, progress: ScanProgress) -> None:
        if progress.phase is not self._phase:
            self._phase = progress.phase
            if progress.phase is ScanPhase.DISCOVERING:
                self._reporter.start_phase("Discovering", None)
            else:
                self._reporter.start_phase("Reading dates", progress.total_files_to_process)

        if progress.phase is ScanPhase.DISCOVERING:
            self._reporter.update_phase(progress.files_found, description=progress.current_directory)
        else:
            self._reporter.update_phase(progress.files_processed, description=progress.current_file)


def _confirm_dates(workflow, reporter, assume_yes: bool) -> None:
    while workflow.state is WorkflowState.DATE_CONFIRMATION:
        group = workflow.current_date_group
        suggested = group.suggested_date

        if assume_yes:
            if suggested is not None:
                workflow.confirm_date(suggested)
            else:
                reporter.warning(f"Skipping {group.directory_name}: no date found")
                workflow.skip_date()
            continue

        reporter.info(
            f"[bold]{group.directory_name}[/bold]: {group.file_count} files without a reliable date "
            f"({', '.join(group.sample_filenames)})"
        )
        default = suggested.strftime(DATE_INPUT_FORMAT) if suggested else ""
        answer = Prompt.ask("Date (YYYY-MM-DD), blank to skip", default=default, show_default=bool(default))
        if not answer.strip():
            workflow.skip_date()
            continue
        date = parse_date_input(answer)
        if date is None:
            reporter.warning(f"Not a date: {answer!r}")
            continue
        workflow.confirm_date(date)


def _confirm_events(workflow, reporter, assume_yes: bool) -> None:
    while workflow.state is WorkflowState.EVENT_CONFIRMATION:
        group = workflow.current_event_group

        if assume_yes:
            workflow.confirm_event()
            continue

        reporter.info(f"[bold]{group.directory_name}[/bold]: {group.file_count} files, {group.date_range}")
        answer = Prompt.ask(
            f"Event label ('{NO_EVENT}' for none)",
            default=group.suggested_event or NO_EVENT,
        )
        if answer.strip() in ("", NO_EVENT):
            workflow.skip_event()
        else:
            workflow.confirm_event(answer)


def cmd_organize(args: argparse.Namespace, reporter) -> int:
    """Handle the organize command."""
    from .services.folder_tree import FolderTree
    from .services.report import logs_directory, write_session_log
    from .services.workflow import CANCELLED_BY_USER, Workflow

    workflow = Workflow(settings_store=SettingsStore(args.config))

    source = args.source.expanduser().resolve()
    include_dirs = None
    if args.exclude:
        tree = FolderTree.build(source, workflow.settings.skip_hidden, workflow.settings.skip_packages)
        for excluded in args.exclude:
            excluded = (excluded if excluded.is_absolute() else source / excluded).resolve()
            index = tree.index_of(excluded)
            if index is None:
                reporter.warning(f"Not a folder under {source}: {excluded}")
                continue
            tree.set_selected(index, False)
        include_dirs = tree.selected_paths()
    workflow.set_source(source, include_dirs)

    if args.destination is not None:
        workflow.set_destination(args.destination)
    if workflow.destination is None:
        reporter.error("No destination given and none remembered; pass --destination")
        return 1
    try:
        workflow.destination.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        reporter.error(f"Cannot create destination {workflow.destination}: {e}")
        return 1

    reporter.print_header("shoebox organize")
    reporter.info(f"Source: {workflow.source}")
    reporter.info(f"Destination: {workflow.destination}")

    # First Ctrl+C cancels cooperatively, a second one interrupts
    def on_interrupt(signum, frame):
        signal.signal(signal.SIGINT, signal.default_int_handler)
        workflow.cancel()

    previous_handler = signal.signal(signal.SIGINT, on_interrupt)
    started = time.monotonic()
    try:
        try:
            workflow.start_scan(_ScanDisplay(reporter))
        except ScanCancelled:
            reporter.warning("Scan cancelled")
            return 130
        finally:
            reporter.end_phase()

        if workflow.state is WorkflowState.ERROR:
            reporter.error(workflow.error_message)
            return 1

        reporter.info(
            f"Found {workflow.total_files} files, {workflow.files_with_date} with a date"
        )
        _confirm_dates(workflow, reporter, args.yes)
        _confirm_events(workflow, reporter, args.yes)
        if workflow.state is WorkflowState.ERROR:
            reporter.error(workflow.error_message)
            return 1

        reporter.print_plan(workflow.operations, workflow.destination)
        if not workflow.operations:
            reporter.info("Nothing to move")
            return 0
        if args.dry_run:
            reporter.info("Dry run: nothing was moved")
            return 0
        if not args.yes and not Confirm.ask(f"Move {len(workflow.operations)} files?", default=True):
            reporter.info("Aborted")
            return 0

        reporter.start_phase("Moving", len(workflow.operations))

        def on_progress(progress: OperationProgress) -> None:
            reporter.update_phase(progress.current - 1, description=progress.current_file)

        try:
            workflow.execute(on_progress)
        finally:
            reporter.end_phase()
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if workflow.state is WorkflowState.ERROR:
        if workflow.error_message == CANCELLED_BY_USER:
            reporter.warning(f"{CANCELLED_BY_USER}; {workflow.completed_count} files were moved")
            return 130
        reporter.error(workflow.error_message)
        return 1

    snapshot = workflow.snapshot()
    try:
        write_session_log(snapshot, logs_directory(workflow.destination, snapshot))
    except OSError as e:
        reporter.warning(f"Could not write session log: {e}")

    reporter.print_summary(
        files_found=workflow.total_files,
        moved=workflow.completed_count,
        duplicates=workflow.duplicate_count,
        skipped=len(workflow.skipped_files),
        failed=workflow.failed_count,
        elapsed_seconds=time.monotonic() - started,
    )
    if workflow.operation_errors:
        reporter.print_failures(workflow.operation_errors)
        return 1
    return 0


def cmd_inspect(args: argparse.Namespace, reporter) -> int:
    """Handle the inspect command."""
    from rich.table import Table

    from .core.media_types import media_kind
    from .core.models import DateConfidence
    from .services.date_resolver import MetadataDateResolver
    from .services.folder_names import extract_event_label, parse_folder_date
    from .services.paths import DestinationPathBuilder

    settings = SettingsStore(args.config).load()
    resolver = MetadataDateResolver.from_settings(settings)

    table = Table(title="Resolved dates", show_header=True, header_style="bold")
    table.add_column("File", style="cyan")
    table.add_column("Date", style="white")
    table.add_column("Source", style="white")
    table.add_column("Confidence", style="dim")
    table.add_column("Folder date", style="dim")
    table.add_column("Folder", style="dim")

    missing = 0
    for path in args.files:
        kind = media_kind(path.suffix)
        if kind is None:
            reporter.warning(f"Unsupported file type: {path}")
            continue

        extracted = resolver.resolve(path, kind)
        if extracted is None:
            reporter.error(f"File not found: {path}")
            missing += 1
            continue

        folder_date = parse_folder_date(path.parent.name)
        event = extract_event_label(path.parent.name)
        # same precedence the organize scan applies
        date = extracted.timestamp
        if folder_date is not None and extracted.confidence.rank <= DateConfidence.LOW.rank:
            date = folder_date.date
        table.add_row(
            path.name,
            extracted.timestamp.isoformat(sep=" ", timespec="seconds"),
            extracted.source.display_name,
            extracted.confidence.value,
            folder_date.date.strftime(DATE_INPUT_FORMAT) if folder_date else "",
            DestinationPathBuilder.describe(date, event),
        )

    if table.row_count:
        reporter.print_table(table)
    return 1 if missing else 0


def cmd_folders(args: argparse.Namespace, reporter) -> int:
    """Handle the folders command."""
    from .services.folder_tree import FolderTree

    source = args.source.expanduser().resolve()
    if not source.is_dir():
        reporter.error(f"Not a directory: {source}")
        return 1

    settings = SettingsStore(args.config).load()
    tree = FolderTree.build(source, settings.skip_hidden, settings.skip_packages)
    reporter.print_folder_tree(tree)
    reporter.info(f"{tree.root.recursive_file_count} media files in {len(tree)} folders")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(verbose=args.verbose, quiet=args.quiet)

    # Create reporter
    if args.quiet:
        reporter = QuietProgressReporter()
    else:
        reporter = RichProgressReporter(verbose=args.verbose)

    # No command specified - show help
    if not args.command:
        parser.print_help()
        return 0

    # Dispatch to command handler
    try:
        if args.command == "organize":
            return cmd_organize(args, reporter)
        elif args.command == "inspect":
            return cmd_inspect(args, reporter)
        elif args.command == "folders":
            return cmd_folders(args, reporter)
        else:
            reporter.error(f"Unknown command: {args.command}")
            return 1

    except KeyboardInterrupt:
        # Clean exit on Ctrl+C - no stack trace
        return 130
    except Exception as e:
        reporter.error(f"Error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
