"""
Import events from a baby-tracker CSV export.

Expected columns: type, data (JSON), note, startTime, endTime.

Supported row types:
- `bottlefeeding`  -> feed/bottle, amount from `amountMetric` (ml)
- `breastfeeding`  -> feed/breastfeeding, per-side durations in seconds
                      converted to minutes
- `diaper`         -> diaper, `pee` only is wet, anything with `poo` is dirty

Every row goes through `EventService.create_event`, so imported events
obey the same rules as API writes. Rows that fail are reported and
skipped.

Usage:
    python import_events.py <export.csv> [--dry-run]
"""

import csv
import json
import math
import sys
from datetime import datetime
from typing import Any, Dict

import psycopg

from models import EventDraft
from repo_events import EventRepo
from service_events import EventService, to_utc
from validation import normalize_event


def parse_instant(raw: str):
    return datetime.fromisoformat(raw) if raw else None


def round_half_up(value: float) -> int:
    """Halves round up: 2.5 -> 3, 120.5 -> 121."""
    return math.floor(value + 0.5)


def _seconds(side: Any) -> float:
    if not side:
        return 0
    if not isinstance(side, dict):
        raise ValueError(f"Invalid breast side data: {side!r}")
    return float(side.get("duration", 0))


def map_csv_row(row: Dict[str, str]) -> EventDraft:
    """Translate one export row into a candidate event.

    Raises `ValueError` for row types we do not track and for `data`
    cells that are not JSON objects.
    """

    kind = row.get("type", "")
    timestamp = parse_instant(row.get("startTime", ""))
    data = json.loads(row.get("data") or "{}")
    if not isinstance(data, dict):
        raise ValueError(f"Row data must be a JSON object, got {data!r}")

    if kind == "bottlefeeding":
        return EventDraft(
            type="feed",
            timestamp=timestamp,
            feed_type="bottle",
            amount=round_half_up(float(data["amountMetric"])),
        )

    if kind == "breastfeeding":
        return EventDraft(
            type="feed",
            timestamp=timestamp,
            feed_type="breastfeeding",
            left_duration=round_half_up(_seconds(data.get("left")) / 60),
            right_duration=round_half_up(_seconds(data.get("right")) / 60),
        )

    if kind == "diaper":
        types = data.get("types") or []
        # no combined type: anything with poo is dirty
        diaper_type = "wet" if "pee" in types and "poo" not in types else "dirty"
        return EventDraft(type="diaper", timestamp=timestamp, diaper_type=diaper_type)

    raise ValueError(f"Unknown event type: {kind}")


def main(csv_path: str, dry_run: bool = False) -> None:
    svc = EventService(EventRepo())

    with open(csv_path, newline="", encoding="utf-8") as fh:
        rows = [r for r in csv.DictReader(fh) if any(r.values())]

    print(f"Found {len(rows)} events to import")
    if dry_run:
        print("DRY RUN - No changes will be made to the database\n")

    imported = 0
    failed = 0
    for row in rows:
        try:
            draft = map_csv_row(row)
            if dry_run:
                draft = normalize_event(draft.model_copy(update={"timestamp": to_utc(draft.timestamp)}))
                print("Would import event:", draft.model_dump(exclude_none=True, by_alias=True))
            else:
                created = svc.create_event(draft)
                print(f"Imported event: {created.type} at {created.timestamp.isoformat()}")
            imported += 1
        except (KeyError, TypeError, ValueError, psycopg.Error) as e:
            failed += 1
            print(f"Skipped row {row}: {e}")

    verb = "validated" if dry_run else "imported"
    print(f"Import complete. {imported} events {verb}, {failed} skipped.")


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print("Usage: python import_events.py <export.csv> [--dry-run]")
        sys.exit(1)

    main(sys.argv[1], dry_run="--dry-run" in sys.argv[2:])
