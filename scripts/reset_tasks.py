#!/usr/bin/env python3
"""Reset failed tasks so the dispatcher ingests them again.

Usage:
    # Test with a single task
    uv run scripts/reset_tasks.py --id 42

    # Reset every task for a slug
    uv run scripts/reset_tasks.py --slug my-show-clip-01

    # Reset all asset failures, consuming one retry each
    uv run scripts/reset_tasks.py --status asset_failed --retry

    # Dry run to see what would be reset
    uv run scripts/reset_tasks.py --status season_failed --dry-run
"""

import argparse

from src.db import get_db_session, Task, TaskStatus

RESETTABLE_STATUSES = [
    TaskStatus.SEASON_FAILED.value,
    TaskStatus.SPECIAL_FAILED.value,
    TaskStatus.EPISODE_FAILED.value,
    TaskStatus.ASSET_FAILED.value,
    TaskStatus.CANCELLED.value,
]


def reset_task(task, retry=False, dry_run=False):
    """Reset a single task. Returns False if the task was left unchanged."""
    print(f"  Task {task.id}: {(task.title or '')[:50]}...")
    print(f"    Slug: {task.slug}")
    print(f"    Current status: {task.status.value}")
    if task.failure_reason:
        print(f"    Failure: {task.failure_reason[:80]}")

    if retry and not task.retries:
        print("    No retries left, skipping")
        return False

    if dry_run:
        print("    [DRY RUN] Would reset to pending")
        return True

    if retry:
        task.retry()
        print(f"    Set to pending ({task.retries} retries left)")
    else:
        task.reset()
        print("    Set to pending")
    return True


def main():
    parser = argparse.ArgumentParser(description="Reset tasks back to pending")
    parser.add_argument("--id", type=int, help="Single task ID to reset")
    parser.add_argument("--slug", help="Reset every task with this asset slug")
    parser.add_argument(
        "--status", choices=RESETTABLE_STATUSES, help="Reset every task in this status"
    )
    parser.add_argument(
        "--retry", action="store_true", help="Consume one retry per reset task"
    )
    parser.add_argument(
        "--dry-run", action="store_true", help="Preview without changes"
    )
    args = parser.parse_args()

    if not args.id and not args.slug and not args.status:
        print("Error: Must specify --id, --slug or --status")
        return 1

    with get_db_session() as session:
        # Build query
        query = session.query(Task)

        if args.id:
            query = query.filter(Task.id == args.id)
        if args.slug:
            query = query.filter(Task.slug == args.slug)
        if args.status:
            query = query.filter(Task.status == TaskStatus(args.status))

        tasks = query.order_by(Task.id.asc()).all()

        if not tasks:
            print("No tasks found")
            return 1

        print(f"Found {len(tasks)} task(s) to reset")
        print("-" * 50)

        reset = sum(reset_task(task, args.retry, args.dry_run) for task in tasks)

        if not args.dry_run:
            session.commit()
            print("-" * 50)
            print(f"Done! Reset {reset} task(s)")
        else:
            print("-" * 50)
            print("[DRY RUN] No changes made")

    return 0


if __name__ == "__main__":
    exit(main())
