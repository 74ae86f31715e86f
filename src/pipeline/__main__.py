#!/usr/bin/env python3
"""
CLI interface for the Media Manager ingestion dispatcher.

Meant to be run periodically (cron or a systemd timer):
    1. next:   ingest pending/staged tasks while under the concurrency ceiling
    2. update: poll Media Manager for staging/in-progress tasks

Usage:
    uv run -m src.pipeline next
    uv run -m src.pipeline next --concurrent-tasks 10
    uv run -m src.pipeline update --verbose
    uv run -m src.pipeline cancel
    uv run -m src.pipeline status

Examples:
    # See which tasks the next pass would pick up
    uv run -m src.pipeline next --dry-run

    # Cancel everything currently being ingested
    uv run -m src.pipeline cancel
"""

import sys
import argparse

from rich.console import Console
from rich.table import Table

from src.logger import setup_logging
from src.db import (
    TaskStatus,
    check_database_connection,
    get_database_info,
    get_task_status_counts,
)
from .config import PipelineConfig
from .scheduler import build_orchestrator, cancel_processing, ingest_next, update_tasks


console = Console()

STATUS_STYLES = {
    TaskStatus.DONE: "green",
    TaskStatus.CANCELLED: "dim",
    TaskStatus.SEASON_FAILED: "red",
    TaskStatus.SPECIAL_FAILED: "red",
    TaskStatus.EPISODE_FAILED: "red",
    TaskStatus.ASSET_FAILED: "red",
    TaskStatus.IN_PROGRESS: "yellow",
    TaskStatus.STAGING: "cyan",
    TaskStatus.STAGED: "cyan",
}


def print_status_table() -> None:
    """
    Print the database in use and the number of tasks in each status.

    Raises:
        RuntimeError: If the database can't be reached.
    """
    if not check_database_connection():
        raise RuntimeError("Database connection failed, see database.log")

    info = get_database_info()
    console.print(f"Database: {info['database_url']}")
    if "file_size_mb" in info:
        console.print(f"Size: {info['file_size_mb']} MB")

    counts = get_task_status_counts()

    table = Table(title="Ingest tasks")
    table.add_column("Status")
    table.add_column("Tasks", justify="right")

    for status, count in counts.items():
        style = STATUS_STYLES.get(status, "")
        table.add_row(f"[{style}]{status.value}[/{style}]" if style else status.value, str(count))

    table.add_row("[bold]total[/bold]", f"[bold]{sum(counts.values())}[/bold]")
    console.print(table)


def parse_arguments(argv=None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments namespace
    """
    parser = argparse.ArgumentParser(
        description="Media Manager ingestion - ingest, poll, cancel and inspect tasks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Commands:
  next      Ingest pending and staged tasks (respects --concurrent-tasks)
  update    Poll Media Manager for staging and in-progress tasks
  cancel    Cancel every task currently being ingested
  status    Show task counts per status

Notes:
  - A slug is never ingested by two tasks at once
  - Failed assets are retried automatically while retries remain
  - Logs written to $LOG_DIR/pipeline.log and $LOG_DIR/ingestion.log
        """,
    )
    parser.add_argument(
        "command",
        choices=["next", "update", "cancel", "status"],
        help="Dispatcher command to run",
    )

    options_group = parser.add_argument_group("options")
    options_group.add_argument(
        "--concurrent-tasks",
        type=int,
        metavar="N",
        help="Maximum number of tasks in progress (default: $CONCURRENT_TASKS or 5)",
    )
    options_group.add_argument(
        "--dry-run",
        action="store_true",
        help="Show which tasks would be processed without calling Media Manager",
    )
    options_group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging output",
    )

    return parser.parse_args(argv)


def run_command(args: argparse.Namespace) -> int:
    """Execute a parsed command. Returns the process exit code."""
    if args.command == "status":
        print_status_table()
        return 0

    if args.command == "cancel":
        cancelled = cancel_processing()
        console.print(f"✓ Cancelled {cancelled} task(s)")
        return 0

    config = PipelineConfig()
    if args.concurrent_tasks is not None:
        config.concurrent_tasks = args.concurrent_tasks
    config.validate()

    orchestrator = None if args.dry_run else build_orchestrator()

    if args.command == "next":
        summary = ingest_next(orchestrator, config.concurrent_tasks, dry_run=args.dry_run)
        prefix = "[DRY RUN] " if args.dry_run else ""
        console.print(
            f"{prefix}✓ Ingest pass: {summary['processed']} processed, "
            f"{summary['skipped']} skipped, {summary['started']} started"
        )
        for slug in summary["slugs"]:
            console.print(f"  - {slug}")
        return 0

    summary = update_tasks(orchestrator, dry_run=args.dry_run)
    console.print("✓ Update pass:")
    for status, count in summary.items():
        console.print(f"  {status}: {count}")
    return 0


def main(argv=None) -> int:
    """Main entry point for the dispatcher CLI."""
    args = parse_arguments(argv)

    logger = setup_logging(
        logger_name="pipeline",
        log_file="pipeline.log",
        verbose=args.verbose,
    )
    if args.verbose:
        setup_logging(logger_name="ingestion", log_file="ingestion.log", verbose=True)

    logger.info(f"Running command: {args.command}")

    try:
        return run_command(args)

    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        print("\n✗ Interrupted", file=sys.stderr)
        return 130

    except Exception as e:
        logger.error(f"Command {args.command} failed: {e}")
        print(f"\n✗ {args.command.upper()} FAILED: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
