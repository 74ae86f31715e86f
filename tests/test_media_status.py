"""Media status derivation and per-show season rules."""

from datetime import datetime

import pytest

from src.ingestion import (
    AlmanacRules,
    DEFAULT_RULES,
    MediaStatus,
    caption_status,
    rules_for,
    video_status,
)
from payloads import (
    CAPTION_CLEAR,
    CAPTION_DONE,
    CAPTION_DONE_WITH_ERROR,
    CAPTION_FAILED,
    CAPTION_IN_PROGRESS,
    VIDEO_CLEAR,
    VIDEO_DONE,
    VIDEO_FAILED,
    VIDEO_IN_PROGRESS,
    asset_response,
)


# =============================================================================
# Video
# =============================================================================


class TestVideoStatus:
    @pytest.mark.parametrize(
        "video,expected",
        [
            (VIDEO_CLEAR, MediaStatus.CLEAR),
            ({}, MediaStatus.CLEAR),
            (VIDEO_IN_PROGRESS, MediaStatus.IN_PROGRESS),
            (VIDEO_DONE, MediaStatus.DONE),
            (VIDEO_FAILED, MediaStatus.FAILED),
        ],
    )
    def test_code_table(self, video, expected):
        assert video_status(asset_response(video=video)) == expected

    def test_error_message_wins_over_done(self):
        video = {"ingestion_status": "done", "ingestion_error": "Corrupt source"}

        assert video_status(asset_response(video=video)) == MediaStatus.FAILED

    def test_missing_status_code_is_failed(self):
        assert video_status(asset_response(video={"ingestion_error": ""})) == MediaStatus.FAILED

    def test_missing_field_is_failed(self):
        response = {"data": {"id": "x", "attributes": {}}}

        assert video_status(response) == MediaStatus.FAILED

    @pytest.mark.parametrize("response", [None, {}, {"errors": {}}, {"data": {"id": "x"}}])
    def test_unusable_response_is_failed(self, response):
        assert video_status(response) == MediaStatus.FAILED

    def test_caption_codes_do_not_apply_to_video(self):
        assert video_status(asset_response(video={"ingestion_status": 1})) == MediaStatus.IN_PROGRESS


# =============================================================================
# Caption
# =============================================================================


class TestCaptionStatus:
    @pytest.mark.parametrize(
        "caption,expected",
        [
            (CAPTION_CLEAR, MediaStatus.CLEAR),
            (CAPTION_IN_PROGRESS, MediaStatus.IN_PROGRESS),
            (CAPTION_DONE, MediaStatus.DONE),
            (CAPTION_FAILED, MediaStatus.FAILED),
            (CAPTION_DONE_WITH_ERROR, MediaStatus.FAILED),
        ],
    )
    def test_code_table(self, caption, expected):
        assert caption_status(asset_response(caption=caption)) == expected

    def test_video_codes_do_not_apply_to_captions(self):
        caption = {"ingestion_status": "done", "ingestion_error": None}

        assert caption_status(asset_response(caption=caption)) == MediaStatus.IN_PROGRESS

    def test_fields_are_independent(self):
        response = asset_response(video=VIDEO_DONE, caption=CAPTION_FAILED)

        assert video_status(response) == MediaStatus.DONE
        assert caption_status(response) == MediaStatus.FAILED


# =============================================================================
# Show rules
# =============================================================================


class TestShowRules:
    def test_default_rules_for_unknown_show(self):
        assert rules_for("show-a") is DEFAULT_RULES
        assert rules_for(None) is DEFAULT_RULES

    def test_default_season_year(self, episode_task):
        assert DEFAULT_RULES.season_year(episode_task) == 2024

    def test_almanac_is_registered(self):
        assert isinstance(rules_for("almanac"), AlmanacRules)

    @pytest.mark.parametrize(
        "premiere,year",
        [
            (datetime(2024, 8, 31, 12, 0, 0), 2024),
            (datetime(2024, 9, 1, 12, 0, 0), 2025),
            (datetime(2024, 12, 15, 12, 0, 0), 2025),
            (datetime(2025, 1, 5, 12, 0, 0), 2025),
        ],
    )
    def test_almanac_fiscal_year(self, make_task, premiere, year):
        task = make_task(show_slug="almanac", parent_premiered_on=premiere)

        assert rules_for("almanac").season_year(task) == year

    def test_missing_premiere(self, make_task):
        task = make_task(parent_premiered_on=None)

        assert DEFAULT_RULES.season_year(task) is None
        assert AlmanacRules().season_year(task) is None
