"""
Repository: SQL operations for `events`.

This file contains only DB interaction code. It maps Pydantic models
to SQL parameters and converts DB rows back into `Event` models. Keep
business rules out of this module; the service validates before calling
any write method here.

Important notes:
- SQL strings are simple and use positional parameters for psycopg.
- Connections come from `db.get_conn()` with `dict_row`, so rows are
  read by column name.
- Every write commits before returning; callers expect the write to be
  durable after the method returns.
- The start instant lives in the `ts` column (see
  `scripts/create_events_table.py`).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from db import get_conn
from models import Event, EventDraft


_COLUMNS = (
    "id, type, ts, end_time, feed_type, amount, left_duration, "
    "right_duration, sleep_location, diaper_type, created_at, updated_at"
)

_WRITE_COLUMNS = (
    "type", "ts", "end_time", "feed_type", "amount", "left_duration",
    "right_duration", "sleep_location", "diaper_type",
)


def _params(event: EventDraft) -> tuple:
    return (
        event.type,
        event.timestamp,
        event.end_time,
        event.feed_type,
        event.amount,
        event.left_duration,
        event.right_duration,
        event.sleep_location,
        event.diaper_type,
    )


def _row_to_event(r: Dict[str, Any]) -> Event:
    return Event(
        id=str(r["id"]),
        type=r["type"],
        timestamp=r["ts"],
        end_time=r["end_time"],
        feed_type=r["feed_type"],
        amount=r["amount"],
        left_duration=r["left_duration"],
        right_duration=r["right_duration"],
        sleep_location=r["sleep_location"],
        diaper_type=r["diaper_type"],
        created_at=r["created_at"],
        updated_at=r["updated_at"],
    )


class EventRepo:
    """DB access only. No business logic here.

    Responsibilities:
    - Map `EventDraft` -> SQL parameters
    - Execute queries and return `Event` models
    - Keep transaction/commit boundaries local and explicit
    """

    def fetch_range(
        self,
        start: datetime,
        end: datetime,
        newest_first: bool = False,
        limit: Optional[int] = None,
    ) -> List[Event]:
        """Fetch events with `start <= ts <= end`.

        Ordered oldest-first unless `newest_first` is set; `limit` caps the
        number of rows when given.
        """

        sql = (
            f"SELECT {_COLUMNS} FROM events WHERE ts >= %s AND ts <= %s "
            f"ORDER BY ts {'DESC' if newest_first else 'ASC'}"
        )
        params: list = [start, end]
        if limit is not None:
            sql += " LIMIT %s"
            params.append(limit)

        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(sql, params)
                return [_row_to_event(r) for r in cur.fetchall()]

    def count_before(self, instant: datetime) -> int:
        """Number of events strictly older than `instant`."""

        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) AS n FROM events WHERE ts < %s", (instant,))
                return cur.fetchone()["n"]

    def count_all(self) -> int:
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT COUNT(*) AS n FROM events")
                return cur.fetchone()["n"]

    def get_event(self, event_id: str) -> Optional[Event]:
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(f"SELECT {_COLUMNS} FROM events WHERE id = %s", (event_id,))
                row = cur.fetchone()
                return _row_to_event(row) if row else None

    def insert_event(self, event: EventDraft) -> Event:
        """Insert one normalized event and return the stored row.

        The store assigns `id`, `created_at` and `updated_at`.
        """

        placeholders = ", ".join(["%s"] * len(_WRITE_COLUMNS))
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"INSERT INTO events ({', '.join(_WRITE_COLUMNS)}) "
                    f"VALUES ({placeholders}) RETURNING {_COLUMNS}",
                    _params(event),
                )
                row = cur.fetchone()
            conn.commit()
        return _row_to_event(row)

    def update_event(self, event_id: str, event: EventDraft) -> Optional[Event]:
        """Overwrite every business column of `event_id`.

        Writing the full row (not just the patched fields) is what persists
        the validator's cleared clusters. Returns None if the id is absent.
        """

        assignments = ", ".join(f"{col} = %s" for col in _WRITE_COLUMNS)
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"UPDATE events SET {assignments}, updated_at = now() "
                    f"WHERE id = %s RETURNING {_COLUMNS}",
                    _params(event) + (event_id,),
                )
                row = cur.fetchone()
            conn.commit()
        return _row_to_event(row) if row else None

    def delete_event(self, event_id: str) -> bool:
        """Delete one event. Returns False when nothing matched."""

        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM events WHERE id = %s", (event_id,))
                deleted = cur.rowcount
            conn.commit()
        return deleted > 0

    def delete_all(self) -> int:
        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("DELETE FROM events")
                deleted = cur.rowcount
            conn.commit()
        return deleted

    def ping(self) -> None:
        """Lightweight DB health check. Raises on error.

        Used by the top-level `/health` endpoint to validate DB reachability.
        """

        with get_conn() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT 1;")
