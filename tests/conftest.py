"""pytest configuration and shared fixtures."""

import os
import tempfile
from datetime import datetime
from pathlib import Path

# src.db creates its engine at import time: point it at a throwaway database
# before any test module imports it.
_TEST_DIR = Path(tempfile.mkdtemp(prefix="mm_ingest_test_"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DIR / 'test_ingest.db'}"
os.environ["LOG_DIR"] = str(_TEST_DIR / "logs")
os.environ["SOURCE_TIMEZONE"] = "America/Chicago"
os.environ["DEFAULT_RETRIES"] = "3"

import pytest  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

from src.db import Base, Task, engine, init_database  # noqa: E402
from src.validation import ValidationResult  # noqa: E402


# =============================================================================
# Database
# =============================================================================


@pytest.fixture
def db():
    """Fresh task table for one test."""
    init_database()
    yield
    Base.metadata.drop_all(bind=engine)


# =============================================================================
# Tasks
# =============================================================================

EPISODE_TASK_FIELDS = {
    "title": "Clip Title",
    "description_short": "Short clip description",
    "description_long": "Long clip description",
    "object_type": "clip",
    # January: America/Chicago is UTC-6
    "premiered_on": datetime(2024, 1, 15, 12, 0, 0),
    "encored_on": None,
    "slug": "show-a-clip-01",
    "tags": "news, weekly,,politics",
    "base_url": "https://media.example.org/",
    "video_file": "/video/clip-01.mp4",
    "image_file": "image/clip-01.jpg",
    "caption_file": "captions/clip-01.srt",
    "show_slug": "show-a",
    "parent_title": "Episode Title",
    "parent_slug": "parent-a",
    "parent_description_short": "Short episode description",
    "parent_description_long": "Long episode description",
    "episode_number": 5507,
    "parent_premiered_on": datetime(2024, 1, 10, 9, 30, 0),
    "parent_encored_on": None,
}


@pytest.fixture
def make_task():
    """Factory building an unsaved episode task; override any field."""

    def _make(**overrides) -> Task:
        fields = dict(EPISODE_TASK_FIELDS)
        fields.update(overrides)
        return Task(**fields)

    return _make


@pytest.fixture
def episode_task(make_task) -> Task:
    return make_task()


@pytest.fixture
def special_task(make_task) -> Task:
    return make_task(slug="show-a-special-clip", parent_slug="special-a", episode_number=None)


# =============================================================================
# Collaborators
# =============================================================================


@pytest.fixture
def client() -> MagicMock:
    """Media Manager client double; every lookup finds nothing by default."""
    mock = MagicMock()
    mock.get_asset.return_value = {"errors": {"status_code": 404}}
    mock.get_episode.return_value = {"errors": {"status_code": 404}}
    mock.get_special.return_value = {"errors": {"status_code": 404}}
    mock.get_show.return_value = {"errors": {"status_code": 404}}
    mock.get_show_seasons.return_value = []
    mock.update_object.return_value = True
    return mock


@pytest.fixture
def passing_validator() -> MagicMock:
    mock = MagicMock()
    mock.validate.return_value = ValidationResult(True)
    return mock


@pytest.fixture
def save() -> MagicMock:
    return MagicMock(side_effect=lambda task: task)


@pytest.fixture
def status_task(episode_task) -> Task:
    """Task already resolved to an asset."""
    episode_task.pbs_content_id = "12345"
    return episode_task
