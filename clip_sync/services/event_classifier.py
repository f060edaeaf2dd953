# clip_sync/services/event_classifier.py
"""
Splits the camera's event list into the work the sync loop can act on.

Kept: MOVEMENT / AUDIO_ALARM events whose clip can still be produced and
whose <timestamp>.mp4 is not on the drive yet, oldest first.
Buckets: ready (Done), requestable (Local, Unavailable), pending (Pending).
"""

from dataclasses import dataclass, field
from typing import Iterable

from clip_sync.schemas.camera_event import CameraEvent, ClipUploadStatus
from clip_sync.utils.timestamps import object_name_for, try_parse_event_timestamp
from clip_sync.utils.logger import get_logger

logger = get_logger(__name__)

EXCLUDED_STATUSES = {ClipUploadStatus.UNKNOWN, ClipUploadStatus.PERMANENTLY_UNAVAILABLE}
REQUESTABLE_STATUSES = {ClipUploadStatus.LOCAL, ClipUploadStatus.UNAVAILABLE}


@dataclass
class ClassifiedEvents:
    events: list[CameraEvent] = field(default_factory=list)        # whole working set, oldest first
    ready: list[CameraEvent] = field(default_factory=list)
    requestable: list[CameraEvent] = field(default_factory=list)
    pending: list[CameraEvent] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.events


def events_not_yet_archived(events: Iterable[CameraEvent], stored_names: set[str]) -> list[CameraEvent]:
    """Filter to archivable events missing from the drive, ascending by timestamp."""
    keep = []
    for event in events:
        if not event.has_clip:
            continue
        if event.video_clip_upload_status in EXCLUDED_STATUSES:
            continue
        if object_name_for(event.timestamp) in stored_names:
            continue
        at = try_parse_event_timestamp(event.timestamp)
        if at is None:
            logger.warning(f"Skipping event {event.id}: unreadable timestamp {event.timestamp!r}")
            continue
        keep.append((at, event))
    keep.sort(key=lambda pair: pair[0])
    return [event for _, event in keep]


def classify_events(events: Iterable[CameraEvent], stored_names: set[str]) -> ClassifiedEvents:
    working_set = events_not_yet_archived(events, stored_names)
    result = ClassifiedEvents(events=working_set)
    for event in working_set:
        status = event.video_clip_upload_status
        if status == ClipUploadStatus.DONE:
            result.ready.append(event)
        elif status in REQUESTABLE_STATUSES:
            result.requestable.append(event)
        elif status == ClipUploadStatus.PENDING:
            result.pending.append(event)
    return result
