"""Alembic migrations against a throwaway SQLite file."""

from datetime import datetime
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import Session

from src.db import Task, TaskStatus


ROOT = Path(__file__).resolve().parent.parent

# Only the NOT NULL columns without a server default
MINIMAL_ROW = {
    "title": "Clip Title",
    "object_type": "clip",
    "premiered_on": "2024-01-15 12:00:00",
    "slug": "show-a-clip-01",
    "base_url": "https://media.example.org",
    "video_file": "video/clip-01.mp4",
    "image_file": "image/clip-01.jpg",
    "show_slug": "show-a",
    "parent_title": "Episode Title",
    "parent_slug": "parent-a",
    "parent_premiered_on": "2024-01-10 09:30:00",
}


def alembic_config(url: str) -> Config:
    config = Config()
    config.set_main_option("script_location", str(ROOT / "alembic"))
    config.set_main_option("sqlalchemy.url", url)
    return config


@pytest.fixture
def migrated(tmp_path):
    """Engine over a database built by `alembic upgrade head`."""
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    config = alembic_config(url)
    command.upgrade(config, "head")
    engine = create_engine(url)
    yield config, engine
    engine.dispose()


class TestUpgrade:
    def test_columns_match_model(self, migrated):
        _, engine = migrated

        columns = {c["name"] for c in inspect(engine).get_columns("task")}

        assert columns == set(Task.__table__.columns.keys())

    def test_indexes(self, migrated):
        _, engine = migrated

        indexes = {i["name"] for i in inspect(engine).get_indexes("task")}

        assert {"ix_task_slug", "ix_task_status"} <= indexes

    def test_server_defaults_read_back_through_model(self, migrated):
        _, engine = migrated
        columns = ", ".join(MINIMAL_ROW)
        values = ", ".join(f":{name}" for name in MINIMAL_ROW)
        with engine.begin() as connection:
            connection.execute(text(f"INSERT INTO task ({columns}) VALUES ({values})"), MINIMAL_ROW)

        with Session(engine) as session:
            task = session.query(Task).one()

            assert task.status == TaskStatus.PENDING
            assert task.retries == 3
            assert task.lease_until is None
            assert task.encored_on == datetime(1000, 1, 1)
            # America/Chicago is UTC-6 in January
            assert task.encored_on_utc == task.premiered_on_utc == "2024-01-15T18:00:00Z"
            assert task.parent_encored_on_utc == "2024-01-10T15:30:00Z"


class TestDowngrade:
    def test_drops_task_table(self, migrated):
        config, engine = migrated

        command.downgrade(config, "base")

        assert "task" not in inspect(engine).get_table_names()
