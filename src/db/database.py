"""
Database engine and session management for the ingestion service.

This module provides database connectivity with:
- Session-per-operation pattern for the dispatcher and operator scripts
- NullPool connection pooling to avoid SQLite locking issues
- Comprehensive error handling and file-based logging
- SQLite optimization settings (WAL mode, foreign keys, timeouts)
- Task persistence helpers used by the orchestrator and the dispatcher
"""

import os
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Generator, Iterable, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv
from sqlalchemy import create_engine, event, exists, func, or_, select, text, update
from sqlalchemy.exc import SQLAlchemyError, OperationalError
from sqlalchemy.orm import aliased, sessionmaker, Session
from sqlalchemy.pool import NullPool

from .models import (
    ACTIVE_STATUSES,
    OUT_OF_INGEST_STATUSES,
    Base,
    Task,
    TaskStatus,
)
from src.logger import setup_logging, log_function


# Initialize logger using centralized logging setup
db_logger = setup_logging(
    logger_name="database",
    log_file="database.log",
    verbose=False,  # Only file logging, no console output
)


# Database configuration
load_dotenv()
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///data/ingest.db")
# How long a dispatcher pass may hold a task before another pass can claim it
TASK_LEASE_SECONDS = int(os.getenv("TASK_LEASE_SECONDS", "900"))

SUPPORTED_SCHEMES = ("sqlite", "postgresql", "postgresql+psycopg2")


@log_function(
    logger_name="database", log_args=True, log_result=True, log_execution_time=True
)
def validate_database_url(url: Optional[str]) -> tuple[bool, str]:
    """Validate the database URL format and, for SQLite, its file path."""
    if not url:
        return False, "DATABASE_URL is not set"

    try:
        parsed = urlparse(url)
        if parsed.scheme not in SUPPORTED_SCHEMES:
            return False, f"Unsupported database scheme: {parsed.scheme}"

        if not parsed.scheme.startswith("sqlite"):
            return True, f"{parsed.scheme}://{parsed.hostname}{parsed.path}"

        # sqlite:///relative.db -> "/relative.db", sqlite:////abs.db -> "//abs.db"
        db_path = parsed.path[1:] if parsed.path.startswith("/") else parsed.path
        if not db_path:
            return False, "Database file path is empty"
        if db_path == ":memory:":
            return True, db_path

        # Check if parent directory exists (but don't create it)
        parent_dir = Path(db_path).parent
        if not parent_dir.exists():
            return False, f"Database directory does not exist: {parent_dir}"

        return True, db_path

    except Exception as e:
        return False, f"Invalid database URL format: {e}"


def optimize_sqlite_connection(dbapi_connection, connection_record):
    """Apply SQLite-specific optimizations when connection is created."""
    cursor = dbapi_connection.cursor()

    # Enable WAL mode for better concurrent access
    cursor.execute("PRAGMA journal_mode=WAL")

    # Set busy timeout to 30 seconds to handle locks
    cursor.execute("PRAGMA busy_timeout=30000")

    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.execute("PRAGMA synchronous=NORMAL")

    cursor.close()


# Validate database URL on module import
is_valid, db_info = validate_database_url(DATABASE_URL)
if not is_valid:
    db_logger.error(f"Database configuration error: {db_info}")
    raise ValueError(f"Database configuration error: {db_info}")

db_logger.info(f"Database configured: {db_info}")

IS_SQLITE = DATABASE_URL.startswith("sqlite")


try:
    if IS_SQLITE:
        engine = create_engine(
            DATABASE_URL,
            poolclass=NullPool,  # Avoid connection pooling issues with SQLite
            echo=False,
            connect_args={
                "check_same_thread": False,
                "timeout": 30,
            },
        )
        event.listen(engine, "connect", optimize_sqlite_connection)
    else:
        engine = create_engine(DATABASE_URL, pool_pre_ping=True, echo=False)

    db_logger.info("Database engine created successfully")

except Exception as e:
    db_logger.error(f"Failed to create database engine: {e}")
    raise


# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    Context manager for database sessions (session-per-operation pattern).

    Provides automatic session cleanup, error handling, and logging.

    Usage:
        with get_db_session() as session:
            task = session.get(Task, 42)
            task.status = TaskStatus.CANCELLED
            session.commit()
    """
    session = SessionLocal()
    try:
        db_logger.debug("Database session created")
        yield session

    except OperationalError as e:
        db_logger.error(f"Database operational error: {e}")
        session.rollback()

        # Handle common SQLite errors with helpful messages
        error_msg = str(e.orig) if hasattr(e, "orig") else str(e)
        if "database is locked" in error_msg.lower():
            raise OperationalError(
                "Database is locked. This may be due to another process accessing the database. "
                "Please try again or check for long-running database operations.",
                None,
                e.orig,
            )
        elif "no such table" in error_msg.lower():
            raise OperationalError(
                "Database table does not exist. Please run database migrations first.",
                None,
                e.orig,
            )
        else:
            raise

    except SQLAlchemyError as e:
        db_logger.error(f"Database error: {e}")
        session.rollback()
        raise

    except Exception as e:
        db_logger.error(f"Unexpected database error: {e}")
        session.rollback()
        raise

    finally:
        session.close()
        db_logger.debug("Database session closed")


@log_function(logger_name="database", log_execution_time=True)
def check_database_connection() -> bool:
    """
    Check if database connection is working.

    Returns:
        bool: True if connection is successful, False otherwise
    """
    try:
        with get_db_session() as session:
            session.execute(text("SELECT 1"))
            db_logger.info("Database connection test successful")
            return True

    except Exception as e:
        db_logger.error(f"Database connection test failed: {e}")
        return False


@log_function(logger_name="database", log_execution_time=True)
def init_database() -> bool:
    """
    Initialize database by creating all tables defined in models.

    Note: This does not run Alembic migrations. Use alembic commands for migrations.

    Returns:
        bool: True if initialization successful, False otherwise
    """
    try:
        Base.metadata.create_all(bind=engine)
        db_logger.info("Database tables created successfully")
        return True

    except Exception as e:
        db_logger.error(f"Failed to initialize database: {e}")
        return False


def get_database_info() -> dict:
    """
    Get information about the database.

    Returns:
        dict: Database information including file size, path, etc.
    """
    info = {
        "database_url": engine.url.render_as_string(hide_password=True),
        "database_path": db_info,
        "engine_pool_class": engine.pool.__class__.__name__,
    }

    if IS_SQLITE:
        if os.path.exists(db_info):
            file_stats = os.stat(db_info)
            info.update(
                {
                    "file_exists": True,
                    "file_size_bytes": file_stats.st_size,
                    "file_size_mb": round(file_stats.st_size / (1024 * 1024), 2),
                    "last_modified": file_stats.st_mtime,
                }
            )
        else:
            info["file_exists"] = False

    return info


# ============ TASK PERSISTENCE ============
def save_task(task: Task) -> Task:
    """
    Persist a task's current state.

    The task is merged into a fresh session, so it may come from a closed
    session (the dispatcher's query) or be brand new.

    Returns:
        Task: The persisted instance (detached, with refreshed identity).
    """
    with get_db_session() as session:
        merged = session.merge(task)
        session.commit()
        session.refresh(merged)
        if task.id is None:
            task.id = merged.id
        session.expunge(merged)
    status = task.status.value if isinstance(task.status, TaskStatus) else task.status
    db_logger.debug(f"Saved task {task.id} ({task.slug}) with status {status}")
    return merged


def get_tasks_by_status(
    statuses: Iterable[TaskStatus], limit: Optional[int] = None
) -> list[Task]:
    """
    Fetch tasks in any of the given statuses, oldest first.

    The returned tasks are detached: all columns are loaded before the
    session closes.
    """
    with get_db_session() as session:
        query = (
            session.query(Task)
            .filter(Task.status.in_(list(statuses)))
            .order_by(Task.id.asc())
        )
        if limit is not None:
            query = query.limit(limit)
        tasks = query.all()
        session.expunge_all()
    return tasks


def count_tasks_by_status(statuses: Iterable[TaskStatus]) -> int:
    with get_db_session() as session:
        return session.query(Task).filter(Task.status.in_(list(statuses))).count()


def has_active_task_with_slug(slug: str, exclude_id: Optional[int] = None) -> bool:
    """
    Check whether another task with this slug is currently being ingested.

    A slug is owned by at most one task in STAGING, STAGED or IN_PROGRESS.
    """
    with get_db_session() as session:
        query = session.query(Task).filter(
            Task.slug == slug, Task.status.in_(list(ACTIVE_STATUSES))
        )
        if exclude_id is not None:
            query = query.filter(Task.id != exclude_id)
        return query.count() > 0


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


@log_function(logger_name="database", log_args=True)
def claim_task(
    task_id: int, status: TaskStatus, lease_seconds: int = TASK_LEASE_SECONDS
) -> Optional[Task]:
    """
    Atomically claim a task for one ingest.

    The claim is a single conditional UPDATE: it succeeds only while the task
    is still in `status`, holds no live lease, and no other task with the same
    slug is active or leased. On PostgreSQL a transaction-scoped advisory lock
    keyed on the slug serializes claims of sibling tasks.

    Args:
        task_id: Task to claim
        status: Status the caller read the task in
        lease_seconds: Lease length; an expired lease can be claimed again

    Returns:
        Task: The task re-read after the claim (detached), or None if another
        pass got there first or the task changed in between.
    """
    now = _utcnow()
    with get_db_session() as session:
        slug = session.execute(select(Task.slug).where(Task.id == task_id)).scalar()
        if slug is None:
            return None

        if session.get_bind().dialect.name == "postgresql":
            session.execute(select(func.pg_advisory_xact_lock(func.hashtext(slug))))

        sibling = aliased(Task)
        slug_taken = exists().where(
            sibling.slug == slug,
            sibling.id != task_id,
            or_(sibling.status.in_(list(ACTIVE_STATUSES)), sibling.lease_until > now),
        )
        result = session.execute(
            update(Task)
            .where(
                Task.id == task_id,
                Task.status == status,
                or_(Task.lease_until.is_(None), Task.lease_until <= now),
                ~slug_taken,
            )
            .values(lease_until=now + timedelta(seconds=lease_seconds))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            session.rollback()
            db_logger.info(f"Task {task_id} ({slug}) could not be claimed")
            return None

        session.commit()
        task = session.get(Task, task_id)
        session.expunge(task)
    return task


def release_task(task_id: int) -> None:
    """Drop the lease taken by claim_task()."""
    with get_db_session() as session:
        session.execute(
            update(Task)
            .where(Task.id == task_id)
            .values(lease_until=None)
            .execution_options(synchronize_session=False)
        )
        session.commit()


@log_function(logger_name="database", log_result=True)
def cancel_processing_tasks() -> int:
    """
    Cancel every task that is part of an ongoing ingest.

    Returns:
        int: Number of tasks cancelled.
    """
    with get_db_session() as session:
        tasks = (
            session.query(Task)
            .filter(Task.status.notin_(list(OUT_OF_INGEST_STATUSES)))
            .filter(Task.status != TaskStatus.CANCELLED)
            .all()
        )
        for task in tasks:
            task.status = TaskStatus.CANCELLED
        session.commit()
        return len(tasks)


def get_task_status_counts() -> dict[TaskStatus, int]:
    """Count tasks per status. Statuses without tasks are reported as 0."""
    with get_db_session() as session:
        rows = session.query(Task.status, func.count(Task.id)).group_by(Task.status).all()
    counts = {status: 0 for status in TaskStatus}
    for status, count in rows:
        counts[TaskStatus(status)] = count
    return counts
