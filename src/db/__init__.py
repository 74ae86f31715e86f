"""
Database package for the Media Manager ingestion service.

This package contains all database-related functionality including:
- SQLAlchemy models and table definitions
- Database connection and session management
- Task persistence helpers shared by the orchestrator and the dispatcher
- Alembic migration support

Structure:
- models.py: SQLAlchemy ORM models (Task, TimestampMixin) and TaskStatus
- database.py: Database connection, engine, session factory and task helpers
- __init__.py: Package initialization and exports

Database Patterns:
- Session-per-operation with the get_db_session() context manager
- Tasks handed to the orchestrator are detached; save_task() merges them back
- A dispatcher pass claims a task with claim_task() before ingesting it and
  drops the lease with release_task() afterwards
"""

from .models import (
    ACTIVE_STATUSES,
    INGESTABLE_STATUSES,
    OBJECT_TYPES,
    OUT_OF_INGEST_STATUSES,
    UPDATABLE_STATUSES,
    Base,
    Task,
    TaskStatus,
    TimestampMixin,
)
from .database import (
    get_db_session,
    check_database_connection,
    init_database,
    get_database_info,
    engine,
    SessionLocal,
    save_task,
    get_tasks_by_status,
    count_tasks_by_status,
    has_active_task_with_slug,
    claim_task,
    release_task,
    cancel_processing_tasks,
    get_task_status_counts,
)

__all__ = [
    # Models
    "Base",
    "Task",
    "TaskStatus",
    "TimestampMixin",
    "ACTIVE_STATUSES",
    "INGESTABLE_STATUSES",
    "OBJECT_TYPES",
    "OUT_OF_INGEST_STATUSES",
    "UPDATABLE_STATUSES",
    # Database utilities
    "get_db_session",
    "check_database_connection",
    "init_database",
    "get_database_info",
    "engine",
    "SessionLocal",
    # Task persistence
    "save_task",
    "get_tasks_by_status",
    "count_tasks_by_status",
    "has_active_task_with_slug",
    "claim_task",
    "release_task",
    "cancel_processing_tasks",
    "get_task_status_counts",
]
