"""Field level checks on a task, no remote calls."""

import logging

from src.db.models import OBJECT_TYPES, Task, TaskStatus
from .result import ValidationResult

logger = logging.getLogger("validation")

# Field name -> message when the field is empty
REQUIRED_FIELDS = (
    ("title", "Expected a title."),
    ("slug", "Expected a slug."),
    ("base_url", "Expected a base_url."),
    ("video_file", "Expected a video_file."),
    ("image_file", "Expected a image_file."),
    ("parent_title", "Expected a parent title."),
    ("parent_slug", "Expected a parent_slug."),
)

MIN_EPISODE_NUMBER = 100


class ParameterValidator:
    """Checks that a task's own fields are populated and well formed."""

    def validate(self, task: Task) -> ValidationResult:
        """
        Validate presence and shape of the task's fields.

        Every violation adds one message; all checks always run.

        Returns:
            ValidationResult: Passing with no messages when all checks succeed.
        """
        messages = [
            message for name, message in REQUIRED_FIELDS if not getattr(task, name, None)
        ]

        if task.status != TaskStatus.PENDING:
            messages.append("Expected task status to be pending.")

        if task.episode_number is not None and task.episode_number <= MIN_EPISODE_NUMBER:
            messages.append("Expected episode number to be >100.")

        if task.object_type not in OBJECT_TYPES:
            messages.append("Expected object type to be clip, preview, or full_length.")

        result = ValidationResult(True)
        if messages:
            logger.debug(f"Parameter validation failed for {task.slug}: {messages}")
            result.fail(messages)

        return result
