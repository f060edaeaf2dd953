# clip_sync/services/archiver.py
"""
Moves exported clips from the camera cloud to the drive.

One clip at a time (the camera cloud degrades under parallel downloads):
  1. download to DOWNLOAD_DIR/<event id>.mp4
  2. evict the oldest clips on the drive until free space minus the safety
     margin covers the file
  3. upload as <timestamp>.mp4 and forget the local copy
  4. optionally delete the event on the camera side

A failure only costs the current clip. The event is still missing from the
drive so the next tick picks it up again.
"""

import asyncio
import os
from dataclasses import dataclass
from typing import Sequence

from clip_sync.schemas.camera_event import CameraEvent
from clip_sync.services.event_source import EventSource
from clip_sync.services.object_store import ObjectStore
from clip_sync.utils.byte_size import format_bytes, megabytes
from clip_sync.utils.timestamps import object_name_for, oldest_object_name
from clip_sync.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass
class ArchiveStats:
    success: int = 0
    failure: int = 0


class ClipArchiver:
    def __init__(
        self,
        source: EventSource,
        store: ObjectStore,
        download_dir: str = "clips",
        safety_margin_mb: float = 10,
        delete_event_after_archive: bool = False,
        quota_poll_seconds: float = 30,
    ):
        self.source = source
        self.store = store
        self.download_dir = download_dir
        self.safety_margin = megabytes(safety_margin_mb)
        self.delete_event_after_archive = delete_event_after_archive
        self.quota_poll_seconds = quota_poll_seconds

    def local_path(self, event: CameraEvent) -> str:
        return os.path.join(self.download_dir, f"{event.id}.mp4")

    async def archive_ready(self, ready: Sequence[CameraEvent], stored_names: set[str]) -> ArchiveStats:
        """Archive every ready clip in order. stored_names is updated in place."""
        stats = ArchiveStats()
        logger.info(f"[ARCHIVE] {len(ready)} clip(s) ready to move to the drive")

        for event in ready:
            try:
                archived = await self.archive_clip(event, stored_names)
            except Exception as e:
                logger.error(f"[ARCHIVE] Clip {event.id} failed: {e}", exc_info=True)
                archived = False
            if archived:
                stats.success += 1
            else:
                stats.failure += 1

        logger.info(f"[ARCHIVE] Batch done: {stats.success} succeeded, {stats.failure} failed")
        return stats

    async def archive_clip(self, event: CameraEvent, stored_names: set[str]) -> bool:
        path = self.local_path(event)
        name = object_name_for(event.timestamp)

        try:
            os.makedirs(self.download_dir, exist_ok=True)
            logger.info(f"[ARCHIVE] Downloading clip {event.id} locally")
            if not await self.source.download_clip(event.id, path):
                logger.warning(f"[ARCHIVE] Local download of clip {event.id} failed")
                return False

            size = os.path.getsize(path)
            await self.make_room(size, stored_names)

            logger.info(f"[ARCHIVE] Uploading {name} ({format_bytes(size)})")
            if not await self.store.upload_object(path, name):
                logger.warning(f"[ARCHIVE] Upload of {name} failed")
                return False
            stored_names.add(name)
        finally:
            self._delete_local_file(path)

        if self.delete_event_after_archive:
            try:
                await self.source.delete_event(event.id)
                logger.info(f"[ARCHIVE] Event {event.id} deleted from the camera cloud")
            except Exception as e:
                # The clip is safe on the drive, the event simply lingers remotely
                logger.warning(f"[ARCHIVE] Could not delete event {event.id}: {e}")
        return True

    async def make_room(self, size: int, stored_names: set[str]) -> None:
        """
        Evict oldest clips until available - margin >= size.
        Blocks (polling) when the drive holds nothing we may evict.
        """
        while True:
            available = await self.store.get_available_bytes()
            if available - self.safety_margin >= size:
                return

            logger.info(
                f"[EVICT] Not enough space on the drive: {format_bytes(available)} free, "
                f"need {format_bytes(size)} + {format_bytes(self.safety_margin)} margin"
            )
            oldest = oldest_object_name(stored_names)
            if oldest is None:
                logger.warning(
                    f"[EVICT] Nothing left to evict, waiting {self.quota_poll_seconds}s for space to free up"
                )
                await asyncio.sleep(self.quota_poll_seconds)
                continue

            logger.info(f"[EVICT] Deleting {oldest} on the drive")
            if await self.store.delete_object(oldest):
                stored_names.discard(oldest)
            else:
                logger.warning(f"[EVICT] Deletion of {oldest} failed, retrying in {self.quota_poll_seconds}s")
                await asyncio.sleep(self.quota_poll_seconds)

    def _delete_local_file(self, path: str) -> None:
        try:
            os.remove(path)
            logger.debug(f"File {path} is deleted.")
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.error(f"Deletion of file {path} failed: {e}")
