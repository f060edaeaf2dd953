# clip_sync/utils/timestamps.py
"""
Helpers for Bosch event timestamps and the drive object names derived from them.

Bosch sends instants like ``2021-12-08T17:52:47.339+01:00[Europe/Berlin]``.
Archived clips are stored as ``<timestamp>.mp4`` so the same parser is used
to order events and to find the oldest object on the drive.
"""

import re
from datetime import datetime, timezone
from typing import Iterable, Optional

CLIP_EXTENSION = ".mp4"

_FRACTION = re.compile(r"\.(\d+)")


def parse_event_timestamp(value: str) -> datetime:
    """
    Parse an event timestamp or an archived object name into an aware datetime.
    Raises ValueError when the value is not a timestamp.
    """
    text = value.strip()
    if text.endswith(CLIP_EXTENSION):
        text = text[: -len(CLIP_EXTENSION)]
    # Drop the zone name, the offset already pins the instant
    text = text.split("[", 1)[0].strip()
    if "T" in text:
        # Some uploaders replace ':' with ' ' in file names
        text = text.replace(" ", ":")
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    # fromisoformat wants exactly 6 fractional digits on older interpreters
    text = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), text, count=1)

    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def try_parse_event_timestamp(value: str) -> Optional[datetime]:
    """Same as parse_event_timestamp but returns None instead of raising."""
    try:
        return parse_event_timestamp(value)
    except ValueError:
        return None


def object_name_for(timestamp: str) -> str:
    return f"{timestamp}{CLIP_EXTENSION}"


def oldest_object_name(names: Iterable[str]) -> Optional[str]:
    """
    Pick the stored object with the oldest parsed timestamp.
    Names that don't parse are not ours and are never candidates.
    """
    oldest_name, oldest_at = None, None
    for name in names:
        at = try_parse_event_timestamp(name)
        if at is None:
            continue
        if oldest_at is None or at < oldest_at:
            oldest_name, oldest_at = name, at
    return oldest_name
