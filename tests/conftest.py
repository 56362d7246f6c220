from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

import main
from aggregation import AggregationEngine
from models import Event, EventDraft
from service_events import EventService


class InMemoryEventRepo:
    """Drop-in for `EventRepo` that keeps rows in a dict."""

    def __init__(self) -> None:
        self.rows: Dict[str, Event] = {}

    def add(self, event: Event) -> Event:
        self.rows[event.id] = event
        return event

    def fetch_range(self, start, end, newest_first=False, limit=None) -> List[Event]:
        events = sorted(
            (e for e in self.rows.values() if start <= e.timestamp <= end),
            key=lambda e: e.timestamp,
            reverse=newest_first,
        )
        return events[:limit] if limit is not None else events

    def count_before(self, instant) -> int:
        return sum(1 for e in self.rows.values() if e.timestamp < instant)

    def count_all(self) -> int:
        return len(self.rows)

    def get_event(self, event_id: str) -> Optional[Event]:
        return self.rows.get(event_id)

    def insert_event(self, event: EventDraft) -> Event:
        now = datetime.now(timezone.utc)
        return self.add(Event(id=str(uuid.uuid4()), created_at=now, updated_at=now, **event.model_dump()))

    def update_event(self, event_id: str, event: EventDraft) -> Optional[Event]:
        old = self.rows.get(event_id)
        if old is None:
            return None
        return self.add(Event(
            id=event_id,
            created_at=old.created_at,
            updated_at=datetime.now(timezone.utc),
            **event.model_dump(),
        ))

    def delete_event(self, event_id: str) -> bool:
        return self.rows.pop(event_id, None) is not None

    def delete_all(self) -> int:
        n = len(self.rows)
        self.rows.clear()
        return n

    def ping(self) -> None:
        return None


@pytest.fixture
def repo() -> InMemoryEventRepo:
    return InMemoryEventRepo()


@pytest.fixture
def engine(repo: InMemoryEventRepo) -> AggregationEngine:
    return AggregationEngine(repo, "UTC")


@pytest.fixture
def client(repo: InMemoryEventRepo, engine: AggregationEngine, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    monkeypatch.setattr(main, "svc", EventService(repo, engine))
    return TestClient(main.app)


@pytest.fixture
def make_event(repo: InMemoryEventRepo):
    """Store an already-normalized event directly, bypassing validation."""

    def _make(**fields) -> Event:
        return repo.add(Event(id=str(uuid.uuid4()), **fields))

    return _make
