# clip_sync/services/retention_guard.py
"""
Favorite promotion so the camera cloud does not silently drop events.

The cloud keeps a bounded pool of non-favorite events and deletes the oldest
once it is full. While favorite slots remain, the oldest non-favorite event
still waiting to be archived is flagged favorite to buy it time.
"""

from typing import Optional, Sequence

from clip_sync.schemas.camera_event import CameraEvent
from clip_sync.services.event_source import EventSource
from clip_sync.utils.logger import get_logger

logger = get_logger(__name__)


def select_event_to_favorite(events: Sequence[CameraEvent], max_favorites: int,
                             max_non_favorites: int) -> Optional[CameraEvent]:
    """events is the classified working set, oldest first."""
    favorites = sum(1 for e in events if e.is_favorite)
    non_favorites = [e for e in events if not e.is_favorite]
    if favorites >= max_favorites or len(non_favorites) < max_non_favorites:
        return None
    return non_favorites[0]


async def promote_to_favorite(source: EventSource, event: CameraEvent) -> bool:
    logger.info(f"[FAVORITE] Marking {event.id} ({event.timestamp}) as favorite to keep it")
    try:
        await source.set_favorite(event.id, True)
    except Exception as e:
        logger.error(f"[FAVORITE] Could not favorite {event.id}: {e}")
        return False
    return True
