"""
Ingestion orchestrator: pushes tasks into Media Manager.

A task moves through Media Manager in two phases:

1. ingest(): validate (pending tasks only), resolve or create the container
   chain (special, or season + episode), resolve or create the asset, then
   either clear stale media (new asset -> STAGING/STAGED) or attach the task's
   media (asset already staged -> IN_PROGRESS).
2. update_ingest_task(): poll the asset and translate Media Manager's video
   and caption transcoding state into the task status, retrying failed assets
   while the task has retries left.

Every remote failure is stored on the task as the serialized error payload.
"""

import json
from typing import Any, Callable, Optional, Union

from src.db import Task, TaskStatus, save_task
from src.logger import setup_logging, log_function
from src.validation import TaskValidator, has_data
from .media_status import MediaStatus, caption_status, video_status
from .show_rules import rules_for


logger = setup_logging(logger_name="ingestion", log_file="ingestion.log")

VALIDATION_FAILURE_REASON = (
    "Task slugs are inconsistent with existing data in Media Manager"
)

VIDEO_PROFILE = "hd-16x9-mezzanine"
IMAGE_PROFILE = "asset-mezzanine-16x9"
AVAILABILITY_WINDOWS = ("public", "all_members", "station_members")

# Object types whose asset carries its own title and descriptions
FULL_LENGTH = "full_length"


def is_resolved_id(response: Any) -> bool:
    """Container lookups yield an id string on success, anything else is an error."""
    return isinstance(response, str) and bool(response)


def serialize_failure(response: Any) -> str:
    return json.dumps(response, default=str)


def _day(iso_timestamp: Optional[str]) -> Optional[str]:
    """YYYY-MM-DD part of an ISO-8601 timestamp."""
    return iso_timestamp[:10] if iso_timestamp else None


def _status_name(status: Union[TaskStatus, str, None]) -> str:
    return status.value if isinstance(status, TaskStatus) else str(status)


class IngestOrchestrator:
    """
    Drives tasks through Media Manager ingestion.

    Args:
        client: Media Manager API client (see src.mediamanager.MediaManagerClient)
        validator: Validator run on pending tasks before any remote mutation
        save: Callable persisting a task, called at the end of every operation

    The orchestrator holds no per-task state. Callers must make sure a slug is
    never ingested by two tasks at once.
    """

    def __init__(
        self,
        client,
        validator: TaskValidator,
        save: Callable[[Task], Any] = save_task,
    ):
        self._client = client
        self._validator = validator
        self._save = save

    # ============ INGEST ============
    @log_function(logger_name="ingestion", log_execution_time=True)
    def ingest(self, task: Task) -> TaskStatus:
        """
        Ingest a pending or staged task.

        Pending tasks are validated first; a task failing validation is
        cancelled without touching Media Manager.

        Returns:
            TaskStatus: The task's new status (already persisted).
        """
        previous = task.status

        if task.status != TaskStatus.PENDING or self._validate(task):
            if task.is_special_task():
                task.status = self._ingest_to_special(task)
            else:
                task.status = self._ingest_to_episode(task)
        else:
            task.status = TaskStatus.CANCELLED
            task.failure_reason = VALIDATION_FAILURE_REASON

        self._save(task)

        logger.info(f"{task.slug}: {_status_name(previous)} -> {_status_name(task.status)}")
        return task.status

    def _validate(self, task: Task) -> bool:
        result = self._validator.validate(task)
        if not result.is_valid:
            for message in result.messages:
                logger.warning(f"{task.slug}: {message}")
        return result.is_valid

    def _fail(self, task: Task, status: TaskStatus, response: Any) -> TaskStatus:
        task.failure_reason = serialize_failure(response)
        logger.warning(f"{task.slug}: {_status_name(status)} - {task.failure_reason}")
        return status

    # ============ SPECIALS ============
    def _ingest_to_special(self, task: Task) -> TaskStatus:
        special = self._resolve_special(task)
        if is_resolved_id(special):
            return self._ingest_to_container(task, special, "special")
        return self._fail(task, TaskStatus.SPECIAL_FAILED, special)

    def _resolve_special(self, task: Task) -> Union[str, Any]:
        """Find the special by parent slug, creating it under the show if missing."""
        special = self._client.get_special(task.parent_slug)
        if has_data(special):
            return special["data"]["id"]

        logger.info(f"Creating special {task.parent_slug} under show {task.show_slug}")
        return self._client.create_child(
            task.show_slug,
            "show",
            "special",
            {
                "title": task.parent_title,
                "description_short": task.parent_description_short,
                "description_long": task.parent_description_long,
                "slug": task.parent_slug,
            },
        )

    # ============ SEASONS & EPISODES ============
    def _ingest_to_episode(self, task: Task) -> TaskStatus:
        season = self._resolve_season(task)
        if not is_resolved_id(season):
            return self._fail(task, TaskStatus.SEASON_FAILED, season)

        episode = self._resolve_episode(task, season)
        if not is_resolved_id(episode):
            return self._fail(task, TaskStatus.EPISODE_FAILED, episode)

        return self._ingest_to_container(task, episode, "episode")

    def season_ordinal(self, task: Task, show: Any) -> Optional[int]:
        """
        Season key for a task: the season number for shows ordered by number,
        the season year otherwise. None when the show can't be read.
        """
        data = show.get("data") if isinstance(show, dict) else None
        attributes = data.get("attributes") if isinstance(data, dict) else None
        if not isinstance(attributes, dict) or attributes.get("ordinal_season") is None:
            logger.warning(f"{task.slug}: show {task.show_slug} has no ordinal_season attribute")
            return None

        if attributes["ordinal_season"]:
            return task.get_season_number()

        year = rules_for(task.show_slug).season_year(task)
        if year is None:
            logger.warning(
                f"{task.slug}: show {task.show_slug} keys seasons by year "
                "but the task has no parent premiere date"
            )
        return year

    def _resolve_season(self, task: Task) -> Union[str, Any]:
        """Find the season by ordinal, creating it under the show if missing."""
        show = self._client.get_show(task.show_slug)
        ordinal = self.season_ordinal(task, show)
        if ordinal is None:
            return None

        seasons = self._client.get_show_seasons(task.show_slug, {"ordinal": ordinal})
        if seasons and isinstance(seasons[0], dict) and seasons[0].get("id"):
            return seasons[0]["id"]

        logger.info(f"Creating season {ordinal} under show {task.show_slug}")
        return self._client.create_child(
            task.show_slug, "show", "season", {"ordinal": ordinal}
        )

    def _resolve_episode(self, task: Task, season_id: str) -> Union[str, Any]:
        """Find the episode by parent slug, creating it under the season if missing."""
        episode = self._client.get_episode(task.parent_slug)
        if has_data(episode):
            return episode["data"]["id"]

        logger.info(f"Creating episode {task.parent_slug} under season {season_id}")
        return self._client.create_child(
            season_id,
            "season",
            "episode",
            {
                "title": task.parent_title,
                "description_short": task.parent_description_short,
                "description_long": task.parent_description_long,
                "slug": task.parent_slug,
                "ordinal": task.get_episode_number(),
                "premiered_on": _day(task.parent_premiered_on_utc),
                "encored_on": _day(task.parent_encored_on_utc),
            },
        )

    # ============ ASSETS ============
    def _ingest_to_container(
        self, task: Task, parent_id: str, parent_type: str
    ) -> TaskStatus:
        """
        Ingest the task's asset into a resolved episode or special.

        A task that already has a content id was staged earlier: its media is
        attached now. Otherwise the asset is resolved (or created) and any
        media it still carries is cleared first.
        """
        if task.pbs_content_id:
            update = self._add_asset_media_files(task)
            if update is True:
                return TaskStatus.IN_PROGRESS
            return self._fail(task, TaskStatus.ASSET_FAILED, update)

        asset = self._resolve_asset(task, parent_id, parent_type)
        if not is_resolved_id(asset):
            return self._fail(task, TaskStatus.ASSET_FAILED, asset)

        task.pbs_content_id = asset
        response = self._client.get_updatable_object(asset, "asset")

        if self.clear_asset_media_files(task, response):
            return TaskStatus.STAGED
        return TaskStatus.STAGING

    def _resolve_asset(
        self, task: Task, parent_id: str, parent_type: str
    ) -> Union[str, Any]:
        asset = self._client.get_asset(task.slug)
        if has_data(asset):
            return asset["data"]["id"]

        asset = self._client.get_asset(task.slug, unpublished=True)
        if has_data(asset):
            return asset["data"]["id"]

        return self._create_asset(task, parent_id, parent_type)

    @staticmethod
    def _descriptive_attributes(task: Task) -> dict:
        if task.object_type == FULL_LENGTH:
            return {}
        return {
            "description_short": task.description_short,
            "description_long": task.description_long,
            "title": task.title,
        }

    def _create_asset(self, task: Task, parent_id: str, parent_type: str) -> Union[str, Any]:
        attributes = {
            "encored_on": _day(task.encored_on_utc),
            "premiered_on": _day(task.premiered_on_utc),
            "object_type": task.object_type,
            "slug": task.slug,
        }
        attributes.update(self._descriptive_attributes(task))

        logger.info(f"Creating asset {task.slug} under {parent_type} {parent_id}")
        return self._client.create_child(parent_id, parent_type, "asset", attributes)

    def media_attributes(self, task: Task) -> dict:
        """Attributes attaching the task's media and availability to its asset."""
        start = task.premiered_on_utc
        attributes = {
            "encored_on": _day(task.encored_on_utc),
            "premiered_on": _day(task.premiered_on_utc),
            "tags": task.tag_list,
            "auto_publish": True,
            "availabilities": {
                window: {"start": start, "end": None} for window in AVAILABILITY_WINDOWS
            },
            "images": [{"profile": IMAGE_PROFILE, "source": task.image_url}],
            "video": {"profile": VIDEO_PROFILE, "source": task.video_url},
            "caption": task.caption_url,
        }
        attributes.update(self._descriptive_attributes(task))
        return attributes

    def _add_asset_media_files(self, task: Task) -> Union[bool, Any]:
        return self._client.update_object(
            task.pbs_content_id, "asset", self.media_attributes(task)
        )

    def clear_asset_media_files(self, task: Task, response: Any) -> bool:
        """
        Ask Media Manager to detach any video or caption still on the asset.

        Clearing is asynchronous: a field that was just asked to clear is not
        assumed clear. The outcome of the clear calls is not inspected.

        Returns:
            bool: True only if both video and caption were already clear.
        """
        video = video_status(response)
        caption = caption_status(response)

        if video != MediaStatus.CLEAR:
            logger.debug(f"{task.slug}: clearing video ({video.value})")
            self._client.update_object(task.pbs_content_id, "asset", {"video": None})

        if caption != MediaStatus.CLEAR:
            logger.debug(f"{task.slug}: clearing caption ({caption.value})")
            self._client.update_object(task.pbs_content_id, "asset", {"caption": None})

        return video == MediaStatus.CLEAR and caption == MediaStatus.CLEAR

    # ============ STATUS RECONCILIATION ============
    def get_ingest_task_status(self, task: Task, response: Any) -> TaskStatus:
        """
        Compute a task's status from the current asset representation.

        Only STAGING and IN_PROGRESS tasks can change. While IN_PROGRESS, a
        cleared channel counts as a failure since media was already attached.
        A STAGING task whose media is still clearing gets another clear request.
        """
        if not task.pbs_content_id:
            return task.status

        video = video_status(response)
        caption = caption_status(response)

        if task.status == TaskStatus.STAGING:
            if MediaStatus.FAILED in (video, caption):
                return TaskStatus.ASSET_FAILED
            if video == MediaStatus.CLEAR and caption == MediaStatus.CLEAR:
                return TaskStatus.STAGED
            self.clear_asset_media_files(task, response)

        elif task.status == TaskStatus.IN_PROGRESS:
            failing = (MediaStatus.FAILED, MediaStatus.CLEAR)
            if video in failing or caption in failing:
                return TaskStatus.ASSET_FAILED
            if video == MediaStatus.DONE and caption == MediaStatus.DONE:
                return TaskStatus.DONE

        return task.status

    def update_status(self, task: Task, response: Any) -> None:
        task.status = self.get_ingest_task_status(task, response)

    @staticmethod
    def add_legacy_tp_media_id(task: Task, response: Any) -> None:
        data = response.get("data") if isinstance(response, dict) else None
        attributes = data.get("attributes") if isinstance(data, dict) else None
        if isinstance(attributes, dict) and attributes.get("legacy_tp_media_id") is not None:
            task.tp_media_id = attributes["legacy_tp_media_id"]

    @log_function(logger_name="ingestion", log_execution_time=True)
    def update_ingest_task(self, task: Task) -> TaskStatus:
        """
        Poll Media Manager for a staging or in-progress task.

        Failed assets are retried (reset to PENDING) while retries remain.
        The task is always marked as checked and persisted.

        Returns:
            TaskStatus: The task's status after reconciliation.
        """
        previous = task.status

        if task.pbs_content_id:
            response = self._client.get_updatable_object(task.pbs_content_id, "asset")
            data = response.get("data") if isinstance(response, dict) else None

            if isinstance(data, dict) and data.get("id") is not None:
                self.update_status(task, response)

                if task.has_asset_failed():
                    if task.retry():
                        logger.info(f"{task.slug}: asset failed, retrying ({task.retries} left)")
                    else:
                        logger.warning(f"{task.slug}: asset failed with no retries left")
                else:
                    self.add_legacy_tp_media_id(task, response)
            else:
                logger.warning(
                    f"{task.slug}: no asset data for {task.pbs_content_id}: {serialize_failure(response)}"
                )

        task.touch()
        self._save(task)

        if task.status != previous:
            logger.info(f"{task.slug}: {_status_name(previous)} -> {_status_name(task.status)}")
        return task.status
