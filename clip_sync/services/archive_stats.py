# clip_sync/services/archive_stats.py
"""Counts of archived clips per day and per hour, from drive object names."""

from collections import Counter
from typing import Iterable

from clip_sync.utils.timestamps import try_parse_event_timestamp


def count_archived_clips(names: Iterable[str]) -> dict:
    """
    Group clip names by local day and hour of the event.
    Names that are not clip timestamps are ignored.
    """
    dates = sorted(d for d in (try_parse_event_timestamp(n) for n in names) if d is not None)
    by_day = Counter(d.strftime("%Y-%m-%d") for d in dates)
    by_hour = Counter(d.strftime("%Y-%m-%d %HH") for d in dates)
    return {"total": len(dates), "by_day": dict(by_day), "by_hour": dict(by_hour)}
