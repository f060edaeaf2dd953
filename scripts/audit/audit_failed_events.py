"""
Compares an audit file written by the sync loop with what is on the drive.
Writes every audited event instant, oldest first, and flags the ones whose
clip never reached the drive with "=> FAILED".
Usage: python scripts/audit/audit_failed_events.py audit/events-2024-01-01T00-00-00.log
       python scripts/audit/audit_failed_events.py <file> --output report.txt
"""

import sys
import os
import argparse
import asyncio
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", ".."))

from clip_sync.services.audit_service import read_audit_file
from clip_sync.services.object_store import DriveObjectStore
from clip_sync.utils.timestamps import try_parse_event_timestamp


def flag_failed_events(audited: list[str], stored_names: list[str]) -> list[str]:
    """One line per audited instant, ascending, suffixed when missing from the drive."""
    archived = {d for d in (try_parse_event_timestamp(n) for n in stored_names) if d is not None}
    instants = sorted(d for d in (try_parse_event_timestamp(t) for t in audited) if d is not None)
    return [d.isoformat() if d in archived else f"{d.isoformat()} => FAILED" for d in instants]


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("audit_file")
    parser.add_argument("--output", default="eventsWithFailedIndication")
    args = parser.parse_args()

    if not os.path.isfile(args.audit_file):
        print("Please give the path of an existing file")
        sys.exit(1)

    audited = read_audit_file(args.audit_file)
    stored_names = asyncio.run(DriveObjectStore().list_object_names())
    lines = flag_failed_events(audited, stored_names)

    with open(args.output, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))

    failed = sum(1 for line in lines if line.endswith("=> FAILED"))
    print(f"{len(lines)} events audited, {failed} never reached the drive → {args.output}")


if __name__ == "__main__":
    main()
