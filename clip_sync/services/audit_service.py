# clip_sync/services/audit_service.py
"""
Append-only record of every event timestamp the camera ever reported.
One timestamp per line, in a file named for the process start instant.
Never read back by the sync loop; scripts/audit/audit_failed_events.py uses
it to spot clips that never made it to the drive.
Best effort: a write failure is logged and the tick goes on.
"""

import os
from datetime import datetime, timezone
from typing import Iterable, Optional

from clip_sync.utils.logger import get_logger

logger = get_logger(__name__)


class AuditLog:
    def __init__(self, audit_dir: str, started_at: Optional[datetime] = None):
        started_at = started_at or datetime.now(timezone.utc)
        self.audit_dir = audit_dir
        self.path = os.path.join(audit_dir, f"events-{started_at:%Y-%m-%dT%H-%M-%S}.log")
        self._recorded: set[str] = set()

    def record(self, timestamps: Iterable[str]) -> int:
        """Append timestamps not written yet. Returns how many lines were added."""
        new = []
        for ts in timestamps:
            if ts not in self._recorded and ts not in new:
                new.append(ts)
        if not new:
            return 0

        try:
            os.makedirs(self.audit_dir, exist_ok=True)
            with open(self.path, "a", encoding="utf-8") as f:
                f.write("".join(f"{ts}\n" for ts in new))
        except OSError as e:
            logger.error(f"[AUDIT] Could not write {self.path}: {e}")
            return 0

        self._recorded.update(new)
        logger.debug(f"[AUDIT] {len(new)} new event timestamp(s) recorded")
        return len(new)


def read_audit_file(path: str) -> list[str]:
    with open(path, encoding="utf-8") as f:
        return [line.strip() for line in f if line.strip()]
