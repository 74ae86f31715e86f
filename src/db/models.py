"""
SQLAlchemy ORM models for the Media Manager ingestion service.

This module defines the database schema using SQLAlchemy's declarative base.
All models inherit from Base and use consistent naming conventions.

Models:
    Task: One media asset to push into Media Manager, with its declared
        show/parent slugs, media locations and ingestion status
    TimestampMixin: Provides automatic created_at/updated_at timestamps

Enums:
    TaskStatus: Tracks a task through the ingestion lifecycle

Timestamps (premiered_on, encored_on and their parent_* counterparts) are
stored naive in SOURCE_TIMEZONE. The *_utc properties return them as UTC
ISO-8601 strings, the format Media Manager expects.
"""

import os
from datetime import date, datetime, time, timezone
from enum import Enum as PyEnum
from typing import Any, Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv
from sqlalchemy import (
    BigInteger,
    Column,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

load_dotenv()
SOURCE_TIMEZONE = os.getenv("SOURCE_TIMEZONE", "America/Chicago")
DEFAULT_RETRIES = int(os.getenv("DEFAULT_RETRIES", "3"))

ISO8601_FORMAT = "%Y-%m-%dT%H:%M:%SZ"
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

OBJECT_TYPES = ("clip", "preview", "full_length")


class TimestampMixin:
    """
    Mixin to add automatic timestamp tracking to models.

    Provides:
        created_at: Timestamp when record was created (set automatically)
        updated_at: Timestamp when record was last modified or checked

    Both fields use database-level defaults (func.now()) for consistency.
    """

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime, nullable=False, server_default=func.now(), onupdate=func.now()
    )


class TaskStatus(str, PyEnum):
    """
    Enum representing the ingestion lifecycle of a task.

    Lifecycle:
        PENDING -> STAGING | SPECIAL_FAILED | SEASON_FAILED | EPISODE_FAILED | ASSET_FAILED
        STAGING -> STAGED | ASSET_FAILED (stays STAGING while media is clearing)
        STAGED -> IN_PROGRESS -> DONE | ASSET_FAILED
        ASSET_FAILED -> PENDING through retry()
        CANCELLED is absorbing, set by an operator on any in-flight task.
    """

    PENDING = "pending"  # Waiting to be validated and ingested
    STAGING = "staging"  # Asset exists, previous media is being cleared
    STAGED = "staged"  # Asset is clear and ready for media
    IN_PROGRESS = "in_progress"  # Media attached, Media Manager is transcoding
    CANCELLED = "cancelled"
    SEASON_FAILED = "season_failed"
    SPECIAL_FAILED = "special_failed"
    EPISODE_FAILED = "episode_failed"
    ASSET_FAILED = "asset_failed"
    DONE = "done"


# Statuses in which a task is not part of an ongoing ingest
OUT_OF_INGEST_STATUSES = (
    TaskStatus.PENDING,
    TaskStatus.SEASON_FAILED,
    TaskStatus.SPECIAL_FAILED,
    TaskStatus.EPISODE_FAILED,
    TaskStatus.ASSET_FAILED,
    TaskStatus.DONE,
)

# Statuses the dispatcher hands to ingest()
INGESTABLE_STATUSES = (TaskStatus.PENDING, TaskStatus.STAGED)

# Statuses the dispatcher hands to update_ingest_task()
UPDATABLE_STATUSES = (TaskStatus.STAGING, TaskStatus.IN_PROGRESS)

# Statuses during which a slug is owned by exactly one task
ACTIVE_STATUSES = (TaskStatus.STAGING, TaskStatus.STAGED, TaskStatus.IN_PROGRESS)


def to_utc(value: Any) -> Optional[datetime]:
    """
    Interpret a stored timestamp as SOURCE_TIMEZONE time and convert it to UTC.

    Accepts datetimes, dates and ISO formatted strings. Aware datetimes keep
    their own timezone. Returns None for empty or unparseable values.
    """
    if value is None or value == "":
        return None

    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    if isinstance(value, date) and not isinstance(value, datetime):
        value = datetime.combine(value, time())

    if not isinstance(value, datetime):
        return None

    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(SOURCE_TIMEZONE))

    return value.astimezone(timezone.utc)


def to_iso8601(value: Any) -> Optional[str]:
    """Format a stored timestamp as a UTC ISO-8601 string (or None)."""
    converted = to_utc(value)
    return converted.strftime(ISO8601_FORMAT) if converted else None


def encore_or_premiere(encored_on: Any, premiered_on: Any) -> Optional[str]:
    """
    Return the UTC encore date, falling back to the premiere date.

    The storage default for a missing encore date is 1000-01-01, so anything
    before the Unix epoch counts as missing, as does an unparseable value.
    """
    encore = to_utc(encored_on)
    if encore is None or encore < EPOCH:
        return to_iso8601(premiered_on)
    return encore.strftime(ISO8601_FORMAT)


class Task(Base, TimestampMixin):
    """
    Represents one media asset to ingest into Media Manager.

    A task declares where the asset belongs (show_slug, parent_slug), how to
    create its parent container if it does not exist yet (parent_* fields,
    episode_number), and where its media lives (base_url + relative files).

    Attributes:
        id: Primary key
        slug: Asset slug in Media Manager
        show_slug: Slug of the show the asset belongs to
        parent_slug: Slug of the episode or special holding the asset
        episode_number: season * 100 + episode within season; None for specials
        object_type: clip, preview or full_length
        base_url: Location the media files are served from
        video_file / image_file / caption_file: Media paths relative to base_url
        tags: Comma separated tag list
        status: Current TaskStatus
        failure_reason: Last remote error payload, JSON serialized
        pbs_content_id: Media Manager asset id, set once the asset is resolved
        tp_media_id: Legacy media id reported by Media Manager
        retries: Remaining automatic retries after an asset failure
        lease_until: UTC expiry of the claim held by the pass ingesting the task
    """

    __tablename__ = "task"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Asset metadata
    title = Column(String(255), nullable=False)
    description_short = Column(String(255), nullable=False, default="")
    description_long = Column(Text, nullable=False, default="")
    object_type = Column(String(32), nullable=False)
    premiered_on = Column(DateTime, nullable=False)
    encored_on = Column(DateTime, nullable=True)
    slug = Column(String(255), nullable=False, index=True)
    tags = Column(String(255), nullable=True)
    topics = Column(String(255), nullable=True)

    # Media locations
    base_url = Column(String(255), nullable=False)
    video_file = Column(String(255), nullable=False)
    image_file = Column(String(255), nullable=False)
    caption_file = Column(String(255), nullable=False, default="")

    # Container metadata
    show_slug = Column(String(255), nullable=False)
    parent_title = Column(String(255), nullable=False)
    parent_slug = Column(String(255), nullable=False)
    parent_description_short = Column(String(255), nullable=False, default="")
    parent_description_long = Column(Text, nullable=False, default="")
    episode_number = Column(Integer, nullable=True)
    parent_premiered_on = Column(DateTime, nullable=False)
    parent_encored_on = Column(DateTime, nullable=True)

    # Ingestion tracking
    status = Column(
        Enum(
            TaskStatus,
            values_callable=lambda statuses: [s.value for s in statuses],
            native_enum=False,
            length=32,
        ),
        nullable=False,
        default=TaskStatus.PENDING,
        server_default=TaskStatus.PENDING.value,
        index=True,
    )
    failure_reason = Column(Text, nullable=True)
    pbs_content_id = Column(String(255), nullable=True)
    tp_media_id = Column(BigInteger, nullable=True)
    retries = Column(Integer, nullable=False, default=DEFAULT_RETRIES)
    # Set while one dispatcher pass is ingesting the task
    lease_until = Column(DateTime, nullable=True)

    def __init__(self, **kwargs):
        kwargs.setdefault("status", TaskStatus.PENDING)
        kwargs.setdefault("retries", DEFAULT_RETRIES)
        super().__init__(**kwargs)

    # ============ CONTAINER HELPERS ============
    def is_episode_task(self) -> bool:
        return self.episode_number is not None

    def is_special_task(self) -> bool:
        return not self.is_episode_task()

    def get_season_number(self) -> int:
        """Season part of the full episode number (5507 -> 55)."""
        return int(self.episode_number) // 100

    def get_episode_number(self) -> int:
        """Episode within its season (5507 -> 7)."""
        return int(self.episode_number) % 100

    def get_parent_premiere_year(self) -> Optional[int]:
        """Four digit year of the parent's UTC premiere date."""
        premiere = self.parent_premiered_on_utc
        return int(premiere[:4]) if premiere else None

    # ============ DATES ============
    @property
    def premiered_on_utc(self) -> Optional[str]:
        return to_iso8601(self.premiered_on)

    @property
    def encored_on_utc(self) -> Optional[str]:
        return encore_or_premiere(self.encored_on, self.premiered_on)

    @property
    def parent_premiered_on_utc(self) -> Optional[str]:
        return to_iso8601(self.parent_premiered_on)

    @property
    def parent_encored_on_utc(self) -> Optional[str]:
        return encore_or_premiere(self.parent_encored_on, self.parent_premiered_on)

    # ============ MEDIA ============
    def _media_url(self, filename: str) -> str:
        return f"{(self.base_url or '').rstrip('/')}/{filename.lstrip('/')}"

    @property
    def video_url(self) -> str:
        return self._media_url(self.video_file or "")

    @property
    def image_url(self) -> str:
        return self._media_url(self.image_file or "")

    @property
    def caption_url(self) -> str:
        """Absolute caption URL, or an empty string when there is no caption."""
        return self._media_url(self.caption_file) if self.caption_file else ""

    @property
    def tag_list(self) -> list[str]:
        return [tag.strip() for tag in (self.tags or "").split(",") if tag.strip()]

    # ============ LIFECYCLE ============
    def has_asset_failed(self) -> bool:
        return self.status == TaskStatus.ASSET_FAILED

    def reset(self) -> None:
        """Reset the task to its base state so it is ingested from scratch."""
        self.pbs_content_id = None
        self.tp_media_id = None
        self.failure_reason = None
        self.status = TaskStatus.PENDING

    def retry(self) -> bool:
        """
        Reset the task if it has retries left.

        Returns:
            bool: True if the task was reset (and a retry consumed), False if
            no retries remain, in which case the task is left untouched.
        """
        if (self.retries or 0) > 0:
            self.reset()
            self.retries = self.retries - 1
            return True
        return False

    def touch(self) -> None:
        """Mark the task as checked."""
        self.updated_at = datetime.now(timezone.utc).replace(tzinfo=None)

    def __repr__(self):
        status = self.status.value if isinstance(self.status, TaskStatus) else self.status
        return (
            f"<Task(id={self.id}, slug='{self.slug}', show_slug='{self.show_slug}', "
            f"parent_slug='{self.parent_slug}', status={status})>"
        )
