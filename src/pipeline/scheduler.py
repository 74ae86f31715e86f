import logging
from typing import Optional

from src.logger import log_function
from src.db import (
    INGESTABLE_STATUSES,
    UPDATABLE_STATUSES,
    TaskStatus,
    cancel_processing_tasks,
    claim_task,
    count_tasks_by_status,
    get_tasks_by_status,
    has_active_task_with_slug,
    release_task,
    save_task,
)
from src.ingestion import IngestOrchestrator
from src.mediamanager import MediaManagerClient, MediaManagerConfig
from src.validation import TaskValidator


def build_orchestrator(
    config: Optional[MediaManagerConfig] = None,
) -> IngestOrchestrator:
    """
    Wire the Media Manager client, the task validator and task persistence
    into an orchestrator.

    Raises:
        ValueError: If Media Manager credentials are missing.
    """
    client = MediaManagerClient(config)
    return IngestOrchestrator(client, TaskValidator(client), save=save_task)


@log_function(logger_name="pipeline", log_execution_time=True)
def ingest_next(
    orchestrator: Optional[IngestOrchestrator],
    concurrent_tasks: int,
    dry_run: bool = False,
) -> dict:
    """
    Run one ingest pass over pending and staged tasks.

    Tasks are taken oldest first while fewer than `concurrent_tasks` tasks
    are IN_PROGRESS. A task is skipped while another task with the same slug
    is staging, staged or in progress. Each task is claimed with a lease
    before it is ingested, so overlapping passes never ingest the same task
    or two tasks sharing a slug.

    Args:
        orchestrator: Orchestrator used to ingest (unused with dry_run)
        concurrent_tasks: Global ceiling of IN_PROGRESS tasks
        dry_run: Only report the tasks that would be ingested

    Returns:
        dict: processed / skipped / started counts and the slugs processed.
    """
    logger = logging.getLogger("pipeline")
    summary = {"processed": 0, "skipped": 0, "started": 0, "slugs": []}

    in_progress = count_tasks_by_status([TaskStatus.IN_PROGRESS])
    if in_progress >= concurrent_tasks:
        logger.info(
            f"{in_progress} tasks in progress (limit {concurrent_tasks}), nothing to ingest"
        )
        return summary

    try:
        for task in get_tasks_by_status(INGESTABLE_STATUSES):
            in_progress = count_tasks_by_status([TaskStatus.IN_PROGRESS])
            if in_progress >= concurrent_tasks:
                logger.info(f"Reached {concurrent_tasks} tasks in progress")
                break

            if has_active_task_with_slug(task.slug, exclude_id=task.id):
                logger.info(f"Skipping task {task.id}: slug {task.slug} is already being ingested")
                summary["skipped"] += 1
                continue

            if dry_run:
                logger.info(f"[DRY RUN] Would ingest task {task.id} ({task.slug}, {task.status.value})")
                summary["processed"] += 1
                summary["slugs"].append(task.slug)
                continue

            # Another pass may have taken the task or its slug since the list was read
            claimed = claim_task(task.id, task.status)
            if claimed is None:
                logger.info(f"Skipping task {task.id}: claimed by another pass")
                summary["skipped"] += 1
                continue

            summary["processed"] += 1
            summary["slugs"].append(claimed.slug)
            try:
                status = orchestrator.ingest(claimed)
            finally:
                release_task(claimed.id)

            if status == TaskStatus.IN_PROGRESS:
                summary["started"] += 1

    except Exception as e:
        logger.error(f"Ingest pass failed: {e}")
        raise

    logger.info(
        f"Ingest pass done: {summary['processed']} processed, "
        f"{summary['skipped']} skipped, {summary['started']} started"
    )
    return summary


@log_function(logger_name="pipeline", log_execution_time=True)
def update_tasks(
    orchestrator: Optional[IngestOrchestrator], dry_run: bool = False
) -> dict[str, int]:
    """
    Poll Media Manager for every staging and in-progress task.

    Returns:
        dict: Resulting status value -> number of tasks.
    """
    logger = logging.getLogger("pipeline")
    summary: dict[str, int] = {}

    try:
        for task in get_tasks_by_status(UPDATABLE_STATUSES):
            if dry_run:
                logger.info(f"[DRY RUN] Would update task {task.id} ({task.slug}, {task.status.value})")
                status = task.status
            else:
                status = orchestrator.update_ingest_task(task)
            summary[status.value] = summary.get(status.value, 0) + 1

    except Exception as e:
        logger.error(f"Update pass failed: {e}")
        raise

    logger.info(f"Update pass done: {summary}")
    return summary


@log_function(logger_name="pipeline", log_result=True)
def cancel_processing() -> int:
    """Cancel every task that is still part of an ingest. Returns the count."""
    return cancel_processing_tasks()
