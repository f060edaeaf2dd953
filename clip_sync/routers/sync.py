# clip_sync/routers/sync.py
"""
Sync loop status and archive statistics.
GET /sync/status   : counters of the running loop
GET /archive/stats : archived clips per day / hour
"""

from fastapi import APIRouter, Request

from clip_sync.schemas.sync_status import ArchiveStatsOut, SyncStatusOut
from clip_sync.services.archive_stats import count_archived_clips

router = APIRouter()


@router.get("/sync/status", response_model=SyncStatusOut, summary="Sync loop counters")
async def sync_status(request: Request):
    loop = request.app.state.sync_loop
    stats = loop.stats
    return SyncStatusOut(
        running=loop.running,
        started_at=stats.started_at,
        ticks=stats.ticks,
        last_tick_at=stats.last_tick_at,
        last_action=stats.last_action,
        objects_on_drive=len(loop.stored_names),
        archived=stats.archived,
        failed=stats.failed,
        requested=stats.requested,
        favorited=stats.favorited,
    )


@router.get("/archive/stats", response_model=ArchiveStatsOut, summary="Archived clips per day and hour")
async def archive_stats(request: Request):
    """Computed from the loop's drive snapshot, no remote call. Runs on the loop thread."""
    return count_archived_clips(set(request.app.state.sync_loop.stored_names))
