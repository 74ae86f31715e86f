"""
Consistency checks between a task's slugs and what Media Manager already holds.

A task claims an asset slug, a parent (episode or special) slug and a show
slug. Before anything is created, those claims must agree with existing data:

1. If the asset already exists (published or unpublished), its parent_tree
   must contain the claimed parent and the claimed show.
2. Otherwise, if the parent exists, it must belong to the claimed show.
3. Otherwise the show itself must exist.
"""

import logging
from typing import Any

from src.db.models import Task
from .parent_tree import ContainerType, has_parent_in_tree
from .result import ValidationResult

logger = logging.getLogger("validation")


def has_data(response: Any) -> bool:
    """True when a Media Manager response carries an object with a non-empty id."""
    if not isinstance(response, dict):
        return False
    data = response.get("data")
    return isinstance(data, dict) and bool(data.get("id"))


class ConsistencyValidator:
    """Validates a task's slugs against the remote hierarchy."""

    def __init__(self, client):
        self._client = client

    def validate(self, task: Task) -> ValidationResult:
        asset = self._client.get_asset(task.slug)
        if not has_data(asset):
            asset = self._client.get_asset(task.slug, unpublished=True)

        if has_data(asset):
            return self._validate_asset(asset, task)

        parent_type = self._parent_type(task)
        if task.is_episode_task():
            parent = self._client.get_episode(task.parent_slug)
        else:
            parent = self._client.get_special(task.parent_slug)

        if has_data(parent):
            return self._validate_parent(parent, ContainerType.SHOW, task.show_slug)

        logger.debug(
            f"No asset {task.slug} or {parent_type} {task.parent_slug}, checking show {task.show_slug}"
        )
        return self._validate_show(task.show_slug)

    @staticmethod
    def _parent_type(task: Task) -> ContainerType:
        return ContainerType.EPISODE if task.is_episode_task() else ContainerType.SPECIAL

    def _validate_asset(self, response: dict, task: Task) -> ValidationResult:
        """Both the container and the show must appear somewhere in the parent tree."""
        attributes = response["data"].get("attributes")
        parent_tree = attributes.get("parent_tree") if isinstance(attributes, dict) else None
        if parent_tree is None:
            return ValidationResult(
                False, "Asset doesn't have data, attributes, or parent_tree."
            )

        container_is_valid = has_parent_in_tree(
            parent_tree, self._parent_type(task), task.parent_slug
        )
        show_is_valid = has_parent_in_tree(parent_tree, ContainerType.SHOW, task.show_slug)

        result = ValidationResult(True)
        if not container_is_valid:
            result.fail("Asset container is not valid.")
        if not show_is_valid:
            result.fail("Asset show is not valid.")
        return result

    def _validate_parent(
        self, response: dict, parent_type: ContainerType, parent_slug: str
    ) -> ValidationResult:
        """The response must embed a parent of the given type with the given slug."""
        attributes = response["data"].get("attributes")
        parent = attributes.get(parent_type.value) if isinstance(attributes, dict) else None
        parent_attributes = parent.get("attributes") if isinstance(parent, dict) else None

        result = ValidationResult(True)
        if not isinstance(parent_attributes, dict) or parent_attributes.get("slug") is None:
            result.fail(f"Expected parent type to be {parent_type.value}")
        elif parent_attributes["slug"] != parent_slug:
            result.fail(f"Expected parent slug to be {parent_slug}")
        return result

    def _validate_show(self, show_slug: str) -> ValidationResult:
        show = self._client.get_show(show_slug)

        result = ValidationResult(True)
        if not isinstance(show, dict):
            result.fail(f"No result found for show slug {show_slug}")
        elif not has_data(show):
            result.fail(f"No data for show {show_slug}")
        return result
