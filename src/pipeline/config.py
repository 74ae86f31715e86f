"""
Configuration settings for the ingestion dispatcher.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv


def _concurrent_tasks() -> int:
    load_dotenv()
    return int(os.getenv("CONCURRENT_TASKS", "5"))


@dataclass
class PipelineConfig:
    """Settings for the ingest/update passes"""

    # Maximum number of tasks allowed in IN_PROGRESS at once
    concurrent_tasks: int = field(default_factory=_concurrent_tasks)

    def validate(self) -> None:
        if self.concurrent_tasks < 1:
            raise ValueError(
                f"CONCURRENT_TASKS must be a positive integer, got {self.concurrent_tasks}"
            )
