"""
Service / facade layer.

This module implements business rules and normalization before any DB
interaction. It is intentionally free of SQL — it calls `EventRepo` to
perform database operations and `AggregationEngine` for weekly stats. All
write paths should go through this service so every stored row has passed
`normalize_event`.

Key responsibilities:
- enforce timestamp rules (UTC normalization, ordered query ranges)
- validate/normalize events before insert and update
- merge partial updates onto the stored row before validating
- translate "nothing matched" from the repo into `EventNotFound`
- cap listing page sizes
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from aggregation import AggregationEngine
from errors import EventNotFound, ValidationError
from models import AggregationData, Event, EventDraft, EventsPage
from repo_events import EventRepo
from settings import settings
from validation import normalize_event

logger = logging.getLogger(__name__)


def to_utc(instant: Optional[datetime]) -> Optional[datetime]:
    """Normalize to UTC; naive values are read as UTC."""

    if instant is None:
        return None
    if instant.tzinfo is None:
        return instant.replace(tzinfo=timezone.utc)
    return instant.astimezone(timezone.utc)


class EventService:
    """Business rules + validation + normalization.

    Example usage:
        repo = EventRepo()
        svc = EventService(repo)
        svc.create_event(EventDraft(type="diaper", timestamp=now, diaper_type="wet"))
    """

    def __init__(self, repo: EventRepo, engine: Optional[AggregationEngine] = None):
        self.repo = repo
        self.engine = engine or AggregationEngine(repo)

    @staticmethod
    def _check_range(start: datetime, end: datetime) -> None:
        if end < start:
            raise ValidationError("endDate must be after or equal to startDate")

    def _prepare(self, event: EventDraft) -> EventDraft:
        utc = event.model_copy(update={
            "timestamp": to_utc(event.timestamp),
            "end_time": to_utc(event.end_time),
        })
        return normalize_event(utc)

    def read_events(self, start: datetime, end: datetime, limit: Optional[int] = None) -> EventsPage:
        """Newest-first events in `[start, end]`, at most `limit` of them.

        `has_more` reports whether anything older than `start` exists, so
        clients can page further back in time.
        """

        start, end = to_utc(start), to_utc(end)
        self._check_range(start, end)
        if limit is None:
            limit = settings.default_list_limit
        limit = max(1, min(limit, settings.max_list_limit))

        logger.info("querying events between %s and %s", start.isoformat(), end.isoformat())
        events = self.repo.fetch_range(start, end, newest_first=True, limit=limit)
        logger.info("found %d events", len(events))

        has_more = self.repo.count_before(start) > 0
        return EventsPage(events=events, has_more=has_more)

    def create_event(self, event: EventDraft) -> Event:
        """Validate and persist a new event; returns the stored row.

        Raises:
        - `ValidationError` for events breaking a structural rule
        """

        return self.repo.insert_event(self._prepare(event))

    def update_event(self, event_id: str, changes: Dict[str, Any]) -> Event:
        """Apply a partial update.

        `changes` holds only the fields the client sent (snake_case keys,
        parsed values). They are merged onto the stored row and the merged
        event is validated as a whole; the normalized result is what gets
        written back.

        Raises:
        - `EventNotFound` if `event_id` is not stored
        - `ValidationError` if the merged event is invalid
        """

        existing = self.repo.get_event(event_id)
        if existing is None:
            raise EventNotFound(event_id)

        merged = existing.to_draft().model_copy(update=changes)
        updated = self.repo.update_event(event_id, self._prepare(merged))
        if updated is None:
            # deleted between the lookup and the write
            raise EventNotFound(event_id)
        return updated

    def delete_event(self, event_id: str) -> None:
        if not self.repo.delete_event(event_id):
            raise EventNotFound(event_id)

    def read_aggregate_event_data(self, start: datetime, end: datetime) -> AggregationData:
        start, end = to_utc(start), to_utc(end)
        self._check_range(start, end)
        return self.engine.get_aggregations(start, end)

    def health_check(self) -> None:
        """Perform a lightweight DB ping via the repository."""

        self.repo.ping()
