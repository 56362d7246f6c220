"""
Import sleep sessions from a smart-bassinet CSV export.

Expected columns: _id, sessionId, UTCTime, level, event, active, hold,
sinceSessionStart. Rows are device events; all rows sharing a `sessionId`
form one sleep. Rows without a `sessionId` are ignored.

Each session becomes one sleep event starting at its earliest `UTCTime`:
- `level == manual` -> location `crib`, ending `sinceSessionStart`
  (e.g. `1h 25m`) after the start
- any other level   -> location `bassinet`, ending at the session's last
  `UTCTime`

Sessions go through `EventService.create_event`; ones that fail are
reported and skipped.

Usage (from `backend/`):
    python import_sleep_events.py <sessions.csv> [--dry-run]
"""

import csv
import re
import sys
from datetime import timedelta
from typing import Dict, List

import psycopg

from import_events import parse_instant
from models import EventDraft
from repo_events import EventRepo
from service_events import EventService, to_utc
from validation import normalize_event


def parse_duration(text: str) -> int:
    """Minutes in a `Xh Ym` string; `''` and `'0'` are 0."""

    if not text or text == "0":
        return 0
    minutes = 0
    hours = re.search(r"(\d+)h", text)
    if hours:
        minutes += int(hours.group(1)) * 60
    mins = re.search(r"(\d+)m", text)
    if mins:
        minutes += int(mins.group(1))
    return minutes


def group_sessions(rows) -> Dict[str, List[Dict[str, str]]]:
    sessions: Dict[str, List[Dict[str, str]]] = {}
    for row in rows:
        session_id = row.get("sessionId") or ""
        if session_id:
            sessions.setdefault(session_id, []).append(row)
    return sessions


def session_to_event(rows: List[Dict[str, str]]) -> EventDraft:
    """Build the sleep event for one session's rows.

    `level` and `sinceSessionStart` are read from the session's first row.
    """

    first = rows[0]
    stamps = sorted(parse_instant(r["UTCTime"]) for r in rows)
    start = stamps[0]

    if (first.get("level") or "").lower() == "manual":
        location = "crib"
        end = start + timedelta(minutes=parse_duration(first.get("sinceSessionStart", "")))
    else:
        location = "bassinet"
        end = stamps[-1]

    return EventDraft(type="sleep", timestamp=start, end_time=end, sleep_location=location)


def main(csv_path: str, dry_run: bool = False) -> None:
    svc = EventService(EventRepo())

    with open(csv_path, newline="", encoding="utf-8") as fh:
        sessions = group_sessions(csv.DictReader(fh))

    print(f"Found {len(sessions)} sleep sessions to import")
    if dry_run:
        print("DRY RUN - No changes will be made to the database\n")

    imported = 0
    failed = 0
    for session_id, rows in sessions.items():
        try:
            draft = session_to_event(rows)
            if dry_run:
                draft = normalize_event(draft.model_copy(update={
                    "timestamp": to_utc(draft.timestamp),
                    "end_time": to_utc(draft.end_time),
                }))
                minutes = round((draft.end_time - draft.timestamp).total_seconds() / 60)
                print(f"Would import sleep event {session_id}: {draft.sleep_location}, {minutes} minutes")
            else:
                created = svc.create_event(draft)
                print(
                    f"Imported sleep event: {created.id} ({created.sleep_location}) "
                    f"from {created.timestamp.isoformat()} to {created.end_time.isoformat()}"
                )
            imported += 1
        except (KeyError, TypeError, ValueError, psycopg.Error) as e:
            failed += 1
            print(f"Skipped session {session_id}: {e}")

    verb = "validated" if dry_run else "imported"
    print(f"Import complete. {imported} sessions {verb}, {failed} skipped.")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python import_sleep_events.py <sessions.csv> [--dry-run]")
        sys.exit(1)

    main(sys.argv[1], dry_run="--dry-run" in sys.argv[2:])
