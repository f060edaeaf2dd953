# clip_sync/schemas/sync_status.py
from pydantic import BaseModel
from datetime import datetime
from typing import Optional


class SyncStatusOut(BaseModel):
    running: bool
    started_at: Optional[datetime]
    ticks: int
    last_tick_at: Optional[datetime]
    last_action: Optional[str]
    objects_on_drive: int
    archived: int
    failed: int
    requested: int
    favorited: int


class ArchiveStatsOut(BaseModel):
    total: int
    by_day: dict[str, int]
    by_hour: dict[str, int]
