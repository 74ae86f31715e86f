"""Task model helpers: numbering, dates, media URLs and lifecycle."""

from datetime import date, datetime, timezone

import pytest

from src.db import Task, TaskStatus
from src.db.models import encore_or_premiere, to_iso8601, to_utc


# =============================================================================
# Container helpers
# =============================================================================


class TestEpisodeNumbering:
    @pytest.mark.parametrize(
        "episode_number,season,episode",
        [(5507, 55, 7), (5523, 55, 23), (5501, 55, 1), (101, 1, 1)],
    )
    def test_season_and_episode_numbers(self, make_task, episode_number, season, episode):
        task = make_task(episode_number=episode_number)

        assert task.get_season_number() == season
        assert task.get_episode_number() == episode

    def test_episode_number_marks_episode_task(self, episode_task):
        assert episode_task.is_episode_task()
        assert not episode_task.is_special_task()

    def test_missing_episode_number_marks_special_task(self, special_task):
        assert special_task.is_special_task()
        assert not special_task.is_episode_task()

    def test_parent_premiere_year(self, episode_task):
        assert episode_task.get_parent_premiere_year() == 2024

    def test_parent_premiere_year_uses_utc(self, make_task):
        # 8 PM on New Year's Eve in Chicago is already January 1st in UTC
        task = make_task(parent_premiered_on=datetime(2023, 12, 31, 20, 0, 0))

        assert task.get_parent_premiere_year() == 2024


# =============================================================================
# Dates
# =============================================================================


class TestDates:
    def test_premiere_converted_to_utc(self, episode_task):
        assert episode_task.premiered_on_utc == "2024-01-15T18:00:00Z"

    def test_daylight_saving_offset(self, make_task):
        task = make_task(premiered_on=datetime(2024, 7, 4, 20, 0, 0))

        assert task.premiered_on_utc == "2024-07-05T01:00:00Z"

    def test_missing_encore_falls_back_to_premiere(self, episode_task):
        assert episode_task.encored_on_utc == episode_task.premiered_on_utc
        assert episode_task.parent_encored_on_utc == "2024-01-10T15:30:00Z"

    def test_storage_default_encore_falls_back_to_premiere(self, make_task):
        task = make_task(encored_on=datetime(1000, 1, 1, 0, 0, 0))

        assert task.encored_on_utc == "2024-01-15T18:00:00Z"

    def test_real_encore_is_kept(self, make_task):
        task = make_task(encored_on=datetime(2024, 2, 1, 6, 0, 0))

        assert task.encored_on_utc == "2024-02-01T12:00:00Z"

    def test_string_timestamps_are_parsed(self):
        assert to_iso8601("2024-01-15 12:00:00") == "2024-01-15T18:00:00Z"

    def test_aware_timestamps_keep_their_zone(self):
        value = datetime(2024, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

        assert to_iso8601(value) == "2024-01-15T12:00:00Z"

    def test_dates_are_midnight_local(self):
        assert to_iso8601(date(2024, 1, 15)) == "2024-01-15T06:00:00Z"

    @pytest.mark.parametrize("value", [None, "", "not a date", 42])
    def test_unparseable_values(self, value):
        assert to_utc(value) is None

    def test_unparseable_encore_falls_back_to_premiere(self):
        assert encore_or_premiere("garbage", "2024-01-15 12:00:00") == "2024-01-15T18:00:00Z"


# =============================================================================
# Media
# =============================================================================


class TestMedia:
    def test_media_urls_join_base_url(self, episode_task):
        assert episode_task.video_url == "https://media.example.org/video/clip-01.mp4"
        assert episode_task.image_url == "https://media.example.org/image/clip-01.jpg"
        assert episode_task.caption_url == "https://media.example.org/captions/clip-01.srt"

    def test_caption_url_empty_without_caption_file(self, make_task):
        assert make_task(caption_file="").caption_url == ""
        assert make_task(caption_file=None).caption_url == ""

    def test_tag_list_splits_and_trims(self, episode_task):
        assert episode_task.tag_list == ["news", "weekly", "politics"]

    def test_tag_list_empty(self, make_task):
        assert make_task(tags=None).tag_list == []


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    def test_new_task_defaults(self, episode_task):
        assert episode_task.status == TaskStatus.PENDING
        assert episode_task.retries == 3

    def test_reset_clears_remote_state(self, make_task):
        task = make_task(
            status=TaskStatus.ASSET_FAILED,
            pbs_content_id="12345",
            tp_media_id=987,
            failure_reason='{"errors": {}}',
        )

        task.reset()

        assert task.status == TaskStatus.PENDING
        assert task.pbs_content_id is None
        assert task.tp_media_id is None
        assert task.failure_reason is None

    def test_retry_resets_and_decrements(self, make_task):
        task = make_task(status=TaskStatus.ASSET_FAILED, pbs_content_id="12345", retries=2)

        assert task.retry() is True
        assert task.status == TaskStatus.PENDING
        assert task.pbs_content_id is None
        assert task.retries == 1

    def test_retry_without_retries_leaves_task_untouched(self, make_task):
        task = make_task(
            status=TaskStatus.ASSET_FAILED,
            pbs_content_id="12345",
            failure_reason="boom",
            retries=0,
        )

        assert task.retry() is False
        assert task.status == TaskStatus.ASSET_FAILED
        assert task.pbs_content_id == "12345"
        assert task.failure_reason == "boom"
        assert task.retries == 0

    def test_has_asset_failed(self, make_task):
        assert make_task(status=TaskStatus.ASSET_FAILED).has_asset_failed()
        assert not make_task(status=TaskStatus.EPISODE_FAILED).has_asset_failed()

    def test_touch_sets_updated_at(self, episode_task):
        episode_task.touch()

        assert isinstance(episode_task.updated_at, datetime)
        assert episode_task.updated_at.tzinfo is None

    def test_repr(self, episode_task):
        assert "show-a-clip-01" in repr(episode_task)
        assert "pending" in repr(episode_task)


def test_task_is_declarative_model():
    assert Task.__tablename__ == "task"
