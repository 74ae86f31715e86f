"""
Ingestion dispatcher module.

Schedules the orchestrator over the task table:
    1. Ingest pass (ingest_next): pending/staged tasks, bounded by the
       in-progress ceiling, one active task per slug
    2. Update pass (update_tasks): staging/in-progress tasks
    3. Cancellation (cancel_processing): stop every in-flight task

Usage:
    # CLI interface
    uv run -m src.pipeline next
    uv run -m src.pipeline update
    uv run -m src.pipeline status

    # Programmatic interface
    from src.pipeline import build_orchestrator, ingest_next
    summary = ingest_next(build_orchestrator(), concurrent_tasks=5)
"""

__version__ = "0.1.0"

from .config import PipelineConfig
from .scheduler import (
    build_orchestrator,
    ingest_next,
    update_tasks,
    cancel_processing,
)

__all__ = [
    "PipelineConfig",
    "build_orchestrator",
    "ingest_next",
    "update_tasks",
    "cancel_processing",
]
