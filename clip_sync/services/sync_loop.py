# clip_sync/services/sync_loop.py
"""
The synchronization loop, sole owner of the drive snapshot.

Each tick lists the camera events, classifies them against the set of names
known on the drive and runs exactly one action, in strict priority order:

  1. ready clips      → archive them all, re-tick at once
  2. requestable clip → ask for one export (admission capped), re-tick after REQUEST_DELAY
  3. pool nearly full → favorite the oldest event, re-tick at once
  4. nothing to do    → re-tick after IDLE_DELAY, re-list the drive every few idle ticks

Archiving always wins over requesting: we never ask the camera for more work
while completed clips are still sitting in its finite pool.
Ticks never overlap; run() awaits each one before sleeping.
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from clip_sync.config import Settings, settings as default_settings
from clip_sync.services.archiver import ClipArchiver
from clip_sync.services.audit_service import AuditLog
from clip_sync.services.clip_requester import request_clip, select_clip_to_request
from clip_sync.services.event_classifier import classify_events
from clip_sync.services.event_source import EventSource
from clip_sync.services.object_store import ObjectStore
from clip_sync.services.retention_guard import promote_to_favorite, select_event_to_favorite
from clip_sync.utils.logger import get_logger

logger = get_logger(__name__)

ACTION_ARCHIVE = "archive"
ACTION_REQUEST = "request"
ACTION_FAVORITE = "favorite"
ACTION_IDLE = "idle"


@dataclass
class TickResult:
    action: str
    delay: float


@dataclass
class SyncStats:
    started_at: Optional[datetime] = None
    ticks: int = 0
    last_tick_at: Optional[datetime] = None
    last_action: Optional[str] = None
    archived: int = 0
    failed: int = 0
    requested: int = 0
    favorited: int = 0


class SyncLoop:
    def __init__(
        self,
        source: EventSource,
        store: ObjectStore,
        config: Optional[Settings] = None,
        archiver: Optional[ClipArchiver] = None,
        audit: Optional[AuditLog] = None,
    ):
        self.source = source
        self.store = store
        self.config = config or default_settings
        self.archiver = archiver or ClipArchiver(
            source,
            store,
            download_dir=self.config.DOWNLOAD_DIR,
            safety_margin_mb=self.config.SAFETY_MARGIN_MB,
            delete_event_after_archive=self.config.DELETE_EVENT_AFTER_ARCHIVE,
            quota_poll_seconds=self.config.QUOTA_POLL_SECONDS,
        )
        self.audit = audit or AuditLog(self.config.AUDIT_DIR)
        self.stored_names: set[str] = set()
        self.stats = SyncStats()
        self._state_loaded = False
        self._idle_ticks = 0
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def refresh_state(self) -> None:
        """Replace the drive snapshot with a full listing."""
        logger.info("[SYNC] Fetching list of all clip names on the drive")
        self.stored_names = set(await self.store.list_object_names())
        self._state_loaded = True
        logger.info(f"[SYNC] {len(self.stored_names)} objects on the drive")

    async def tick(self) -> TickResult:
        if not self._state_loaded:
            await self.refresh_state()

        events = await self.source.list_events()
        self.audit.record(e.timestamp for e in events)
        work = classify_events(events, self.stored_names)

        result = await self._act(work)
        if result.action == ACTION_IDLE:
            self._idle_ticks += 1
            await self._maybe_refresh_state()
        else:
            self._idle_ticks = 0

        self.stats.ticks += 1
        self.stats.last_tick_at = datetime.now(timezone.utc)
        self.stats.last_action = result.action
        return result

    async def _act(self, work) -> TickResult:
        if work.ready:
            batch = await self.archiver.archive_ready(work.ready, self.stored_names)
            self.stats.archived += batch.success
            self.stats.failed += batch.failure
            return TickResult(ACTION_ARCHIVE, 0)

        to_request = select_clip_to_request(work.requestable, work.pending, self.config.MAX_PENDING_REQUESTS)
        if to_request is not None:
            if await request_clip(self.source, to_request):
                self.stats.requested += 1
            return TickResult(ACTION_REQUEST, self.config.REQUEST_DELAY_SECONDS)

        to_favorite = select_event_to_favorite(work.events, self.config.MAX_FAVORITES,
                                               self.config.MAX_NON_FAVORITES)
        if to_favorite is not None:
            if await promote_to_favorite(self.source, to_favorite):
                self.stats.favorited += 1
                return TickResult(ACTION_FAVORITE, 0)
            # Don't spin on a failing favorite call
            return TickResult(ACTION_FAVORITE, self.config.ERROR_DELAY_SECONDS)

        if work.pending:
            logger.info(f"[SYNC] Waiting on {len(work.pending)} clip export(s)")
        else:
            logger.info("[SYNC] No more clip to get from camera")
        return TickResult(ACTION_IDLE, self.config.IDLE_DELAY_SECONDS)

    async def _maybe_refresh_state(self) -> None:
        every = self.config.STATE_REFRESH_IDLE_TICKS
        if every <= 0 or self._idle_ticks % every != 0:
            return
        try:
            await self.refresh_state()
        except Exception as e:
            logger.warning(f"[SYNC] Drive re-listing failed, keeping current snapshot: {e}")

    async def run(self) -> None:
        """Tick forever. Stops only when the task is cancelled."""
        if self._running:
            raise RuntimeError("Sync loop is already running")
        self._running = True
        self.stats.started_at = datetime.now(timezone.utc)
        logger.info("🚀 Clip sync loop started")
        try:
            while True:
                try:
                    result = await self.tick()
                    delay = result.delay
                except Exception as e:
                    logger.error(f"[SYNC] Tick failed: {e}", exc_info=True)
                    delay = self.config.ERROR_DELAY_SECONDS
                if delay:
                    logger.info(f"[SYNC] Next check in {delay:g}s")
                await asyncio.sleep(delay)
        finally:
            self._running = False
            logger.info("🛑 Clip sync loop stopped")
