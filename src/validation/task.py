"""Full pre-ingest validation: remote consistency plus local parameters."""

import logging
from typing import Optional

from src.db.models import Task
from .consistency import ConsistencyValidator
from .parameters import ParameterValidator
from .result import ValidationResult

logger = logging.getLogger("validation")

CONSISTENCY_CHECK_FAILED = "Client data consistency validation failed."
PARAMETER_CHECK_FAILED = "Client parameter validation failed."


class TaskValidator:
    """
    Runs the consistency and parameter validators and merges their results.

    Both validators always run. On failure, each validator's messages are
    preceded by a label naming which kind of check failed.
    """

    def __init__(
        self,
        client,
        consistency_validator: Optional[ConsistencyValidator] = None,
        parameter_validator: Optional[ParameterValidator] = None,
    ):
        self._consistency = consistency_validator or ConsistencyValidator(client)
        self._parameters = parameter_validator or ParameterValidator()

    def validate(self, task: Task) -> ValidationResult:
        result = ValidationResult(True)

        for label, validator in (
            (CONSISTENCY_CHECK_FAILED, self._consistency),
            (PARAMETER_CHECK_FAILED, self._parameters),
        ):
            outcome = validator.validate(task)
            if not outcome.is_valid:
                result.fail(label)
                result.add_message(outcome.messages)

        if not result.is_valid:
            logger.info(f"Task {task.slug} failed validation: {result.messages}")

        return result
