"""
Translate Media Manager's media ingestion state into a local status.

Video and caption report progress with different vocabularies: video uses
strings ("done", "failed", ...), captions use small integers (1 done,
0 failed, 3 in progress). Both map onto the same four local states.
"""

from enum import Enum
from typing import Any


class MediaStatus(str, Enum):
    CLEAR = "cleared"  # No media attached
    IN_PROGRESS = "pending"  # Media attached, still transcoding
    DONE = "done"
    FAILED = "failed"


# Remote ingestion_status -> local status. Unknown codes mean "still working".
VIDEO_STATUS_CODES = {
    "done": MediaStatus.DONE,
    "failed": MediaStatus.FAILED,
}

CAPTION_STATUS_CODES = {
    1: MediaStatus.DONE,
    0: MediaStatus.FAILED,
}


def _media_status(response: Any, field: str, codes: dict) -> MediaStatus:
    """
    Derive the status of one media field of an asset response.

    - field missing (or null): FAILED
    - field empty: CLEAR
    - non-empty ingestion_error: FAILED, whatever the status code says
    - ingestion_status missing: FAILED
    - otherwise the code table, defaulting to IN_PROGRESS
    """
    data = response.get("data") if isinstance(response, dict) else None
    attributes = data.get("attributes") if isinstance(data, dict) else None
    if not isinstance(attributes, dict) or attributes.get(field) is None:
        return MediaStatus.FAILED

    media = attributes[field]
    if not media:
        return MediaStatus.CLEAR

    if not isinstance(media, dict):
        return MediaStatus.FAILED

    error = media.get("ingestion_error")
    if error is not None and error != "":
        return MediaStatus.FAILED

    code = media.get("ingestion_status")
    if code is None:
        return MediaStatus.FAILED

    return codes.get(code, MediaStatus.IN_PROGRESS)


def video_status(response: Any) -> MediaStatus:
    return _media_status(response, "original_video", VIDEO_STATUS_CODES)


def caption_status(response: Any) -> MediaStatus:
    return _media_status(response, "original_caption", CAPTION_STATUS_CODES)
