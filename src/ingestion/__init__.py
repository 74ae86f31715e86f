"""
Ingestion package: moves tasks into Media Manager.

The ingestion flow consists of:

1. Ingest (orchestrator.IngestOrchestrator.ingest):
   - Validates pending tasks (src.validation)
   - Resolves or creates the special, or the season + episode
   - Resolves or creates the asset and clears stale media (STAGING/STAGED)
   - Attaches video, caption and image to staged assets (IN_PROGRESS)

2. Update (orchestrator.IngestOrchestrator.update_ingest_task):
   - Polls the asset and derives video/caption status (media_status)
   - Moves tasks to STAGED, DONE or ASSET_FAILED, retrying failures

Modules:
    orchestrator: IngestOrchestrator state machine
    media_status: Video and caption status derivation
    show_rules: Per-show season year rules

Usage:
    # Scheduling lives in src.pipeline
    uv run -m src.pipeline next
    uv run -m src.pipeline update
"""

from .media_status import MediaStatus, caption_status, video_status
from .orchestrator import (
    IngestOrchestrator,
    VALIDATION_FAILURE_REASON,
    is_resolved_id,
    serialize_failure,
)
from .show_rules import (
    AlmanacRules,
    DEFAULT_RULES,
    DefaultShowRules,
    SHOW_RULES,
    ShowRules,
    rules_for,
)

__all__ = [
    "IngestOrchestrator",
    "VALIDATION_FAILURE_REASON",
    "is_resolved_id",
    "serialize_failure",
    "MediaStatus",
    "caption_status",
    "video_status",
    "ShowRules",
    "DefaultShowRules",
    "AlmanacRules",
    "DEFAULT_RULES",
    "SHOW_RULES",
    "rules_for",
]
