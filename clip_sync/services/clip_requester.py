# clip_sync/services/clip_requester.py
"""
Admission-controlled clip export requests.

At most MAX_PENDING_REQUESTS exports may be in flight on the camera side.
The newest requestable event goes first: when the remote pool is full an old
clip can be evicted by the camera before its slow export completes, and
going oldest-first would keep losing that race.
"""

import asyncio
from typing import Optional, Sequence

from clip_sync.config import Settings, settings as default_settings
from clip_sync.schemas.camera_event import CameraEvent, ClipUploadStatus
from clip_sync.services.event_source import EventSource
from clip_sync.utils.logger import get_logger

logger = get_logger(__name__)


def select_clip_to_request(requestable: Sequence[CameraEvent], pending: Sequence[CameraEvent],
                           max_pending: int) -> Optional[CameraEvent]:
    """Return the event to export now, or None when nothing is admitted this tick."""
    if not requestable or len(pending) >= max_pending:
        return None
    # requestable is ordered oldest first
    return requestable[-1]


async def request_clip(source: EventSource, event: CameraEvent) -> bool:
    """Fire one export request. Outcome is observed on later ticks."""
    logger.info(f"[REQUEST] Asking camera to export clip {event.id} ({event.timestamp})")
    try:
        await source.request_clip_export(event.id)
    except Exception as e:
        logger.error(f"[REQUEST] Export request for {event.id} failed: {e}")
        return False
    return True


async def await_clip_export(source: EventSource, event_id: str, poll_seconds: Optional[float] = None,
                            config: Optional[Settings] = None) -> bool:
    """
    Request an export and poll until the clip leaves Pending.
    Returns True only when the clip ends up Done.
    poll_seconds defaults to EXPORT_POLL_SECONDS.
    """
    if poll_seconds is None:
        poll_seconds = (config or default_settings).EXPORT_POLL_SECONDS
    logger.info(f"[REQUEST] Exporting clip {event_id} and waiting for it")
    await source.request_clip_export(event_id)
    while True:
        await asyncio.sleep(poll_seconds)
        status = await source.get_event_status(event_id)
        if status == ClipUploadStatus.PENDING:
            continue
        if status == ClipUploadStatus.DONE:
            logger.info(f"[REQUEST] Export of {event_id} succeeded")
            return True
        logger.error(f"[REQUEST] Export of {event_id} failed (status={status.value if status else 'gone'})")
        return False
