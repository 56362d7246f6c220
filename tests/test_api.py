from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone

import pytest

UTC = timezone.utc
TODAY = datetime(2024, 5, 15, 9, 0, tzinfo=UTC)
TOMORROW = TODAY + timedelta(days=1)


def iso(dt: datetime) -> str:
    return dt.isoformat()


def post(client, **body):
    return client.post("/api/events", json=body)


@pytest.fixture
def seeded(client):
    """One event of each kind, all on TODAY."""
    post(client, type="feed", feedType="bottle", timestamp=iso(TODAY), amount=120)
    post(client, type="feed", feedType="breastfeeding", timestamp=iso(TODAY), leftDuration=300, rightDuration=240)
    post(client, type="diaper", timestamp=iso(TODAY), diaperType="wet")
    post(client, type="sleep", timestamp=iso(TODAY), endTime=iso(TODAY + timedelta(hours=1)), sleepLocation="crib")
    return client


# --- POST /api/events ---

def test_create_bottle_feed(client) -> None:
    res = post(client, type="feed", feedType="bottle", timestamp=iso(TODAY), amount=120)
    assert res.status_code == 201
    body = res.json()
    assert body["type"] == "feed"
    assert body["feedType"] == "bottle"
    assert body["amount"] == 120
    uuid.UUID(body["id"])


def test_create_breastfeeding(client) -> None:
    res = post(client, type="feed", feedType="breastfeeding", timestamp=iso(TODAY), leftDuration=300, rightDuration=240)
    assert res.status_code == 201
    assert res.json()["leftDuration"] == 300
    assert res.json()["rightDuration"] == 240
    assert res.json()["amount"] is None


def test_create_sleep_keeps_end_time(client) -> None:
    end = TODAY + timedelta(hours=1)
    res = post(client, type="sleep", timestamp=iso(TODAY), endTime=iso(end), sleepLocation="crib")
    assert res.status_code == 201
    assert datetime.fromisoformat(res.json()["endTime"]) == end


def test_create_stores_the_normalized_form(client, repo) -> None:
    res = post(
        client,
        type="diaper",
        timestamp=iso(TODAY),
        diaperType="dirty",
        sleepLocation="crib",
        amount=50,
    )
    assert res.status_code == 201
    stored = repo.get_event(res.json()["id"])
    assert stored.sleep_location is None
    assert stored.amount is None

    listed = client.get("/api/events", params={"startDate": "2024-05-15", "endDate": "2024-05-16"}).json()
    assert listed["events"] == [res.json()]
    assert listed["events"][0]["sleepLocation"] is None


def test_create_normalizes_offsets_to_utc(client) -> None:
    res = post(client, type="diaper", timestamp="2024-05-15T11:00:00+02:00", diaperType="wet")
    assert datetime.fromisoformat(res.json()["timestamp"]) == TODAY
    assert datetime.fromisoformat(res.json()["timestamp"]).utcoffset() == timedelta(0)


@pytest.mark.parametrize(
    "body, message",
    [
        ({"type": "invalid_type", "timestamp": iso(TODAY)}, "Invalid event type"),
        (
            {"type": "sleep", "timestamp": iso(TODAY), "endTime": iso(TODAY - timedelta(seconds=1)), "sleepLocation": "crib"},
            "End time must be after start time",
        ),
        ({"type": "feed", "feedType": "bottle", "timestamp": iso(TODAY)}, "Amount is required for bottle feeds"),
        ({"type": "diaper", "diaperType": "wet"}, "Timestamp is required"),
    ],
)
def test_create_rejects_invalid_events(client, body, message) -> None:
    res = client.post("/api/events", json=body)
    assert res.status_code == 400
    assert res.json()["detail"] == message


def test_create_rejects_malformed_timestamp(client) -> None:
    res = post(client, type="diaper", timestamp="not-a-date", diaperType="wet")
    assert res.status_code == 400


def test_create_hides_internal_errors(client, repo, monkeypatch) -> None:
    def boom(event):
        raise RuntimeError("connection refused by 10.0.0.3")

    monkeypatch.setattr(repo, "insert_event", boom)
    res = post(client, type="diaper", timestamp=iso(TODAY), diaperType="wet")
    assert res.status_code == 500
    assert res.json()["detail"] == "Failed to create event"
    assert "10.0.0.3" not in res.text


# --- GET /api/events ---

def test_list_events_in_range(seeded) -> None:
    res = seeded.get("/api/events", params={"startDate": "2024-05-15", "endDate": "2024-05-16"})
    assert res.status_code == 200
    body = res.json()
    assert len(body["events"]) == 4
    kinds = {(e["type"], e["feedType"]) for e in body["events"]}
    assert kinds == {("feed", "bottle"), ("feed", "breastfeeding"), ("diaper", None), ("sleep", None)}
    assert body["hasMore"] is False


def test_list_is_newest_first_and_limited(client) -> None:
    for hours in (1, 2, 3):
        post(client, type="diaper", timestamp=iso(TODAY + timedelta(hours=hours)), diaperType="wet")

    res = client.get("/api/events", params={"startDate": iso(TODAY), "endDate": iso(TOMORROW), "limit": 2})
    stamps = [datetime.fromisoformat(e["timestamp"]) for e in res.json()["events"]]
    assert stamps == [TODAY + timedelta(hours=3), TODAY + timedelta(hours=2)]


def test_has_more_reports_older_events(client) -> None:
    post(client, type="diaper", timestamp=iso(TODAY - timedelta(days=10)), diaperType="wet")
    post(client, type="diaper", timestamp=iso(TODAY), diaperType="dirty")

    body = client.get("/api/events", params={"startDate": iso(TODAY), "endDate": iso(TOMORROW)}).json()
    assert len(body["events"]) == 1
    assert body["hasMore"] is True


@pytest.mark.parametrize("path", ["/api/events", "/api/aggregations"])
@pytest.mark.parametrize(
    "params",
    [
        {},
        {"startDate": "2024-05-15"},
        {"startDate": "invalid-date", "endDate": "2024-05-16"},
        {"startDate": "2024-05-16", "endDate": "2024-05-15"},
    ],
)
def test_bad_ranges_are_rejected(client, path, params) -> None:
    assert client.get(path, params=params).status_code == 400


# --- PUT /api/events/{id} ---

@pytest.fixture
def bottle_id(client) -> str:
    return post(client, type="feed", feedType="bottle", timestamp=iso(TODAY), amount=120).json()["id"]


def test_update_amount(client, bottle_id) -> None:
    res = client.put(f"/api/events/{bottle_id}", json={"amount": 150})
    assert res.status_code == 200
    assert res.json()["id"] == bottle_id
    assert res.json()["amount"] == 150
    assert res.json()["feedType"] == "bottle"


def test_update_switches_cluster(client, repo, bottle_id) -> None:
    res = client.put(
        f"/api/events/{bottle_id}",
        json={"type": "sleep", "sleepLocation": "stroller", "endTime": iso(TODAY + timedelta(minutes=45))},
    )
    assert res.status_code == 200
    stored = repo.get_event(bottle_id)
    assert stored.type == "sleep"
    assert stored.feed_type is None
    assert stored.amount is None


def test_update_to_breastfeeding_must_clear_amount(client, bottle_id) -> None:
    res = client.put(f"/api/events/{bottle_id}", json={"feedType": "breastfeeding", "leftDuration": 10})
    assert res.status_code == 400
    assert res.json()["detail"] == "Amount is not allowed for breastfeeding"

    res = client.put(f"/api/events/{bottle_id}", json={"feedType": "breastfeeding", "leftDuration": 10, "amount": None})
    assert res.status_code == 200
    assert res.json()["amount"] is None


def test_update_missing_event(client) -> None:
    res = client.put(f"/api/events/{uuid.uuid4()}", json={"amount": 150})
    assert res.status_code == 404


@pytest.mark.parametrize(
    "body",
    [{"type": "invalid_type"}, {"endTime": iso(TODAY - timedelta(seconds=1))}],
)
def test_update_rejects_invalid_data(client, bottle_id, body) -> None:
    assert client.put(f"/api/events/{bottle_id}", json=body).status_code == 400


def test_update_rejects_malformed_id(client) -> None:
    assert client.put("/api/events/invalid-id-format", json={"amount": 150}).status_code == 400


# --- DELETE /api/events/{id} ---

def test_delete_event(client, repo, bottle_id) -> None:
    res = client.delete(f"/api/events/{bottle_id}")
    assert res.status_code == 204
    assert res.content == b""
    assert repo.get_event(bottle_id) is None


def test_delete_missing_event(client) -> None:
    assert client.delete(f"/api/events/{uuid.uuid4()}").status_code == 404


def test_delete_rejects_malformed_id(client) -> None:
    assert client.delete("/api/events/invalid-id-format").status_code == 400


# --- GET /api/aggregations ---

def test_aggregations_for_all_event_types(seeded) -> None:
    res = seeded.get("/api/aggregations", params={"startDate": iso(TODAY), "endDate": iso(TOMORROW)})
    assert res.status_code == 200
    body = res.json()
    assert datetime.fromisoformat(body["startDate"]) == TODAY
    assert datetime.fromisoformat(body["endDate"]) == TOMORROW

    assert len(body["weeklyStats"]) == 1
    week = body["weeklyStats"][0]
    assert datetime.fromisoformat(week["weekStart"]) == datetime(2024, 5, 13, tzinfo=UTC)
    assert week["dailyAverages"] == {
        "feed": {
            "count": 2,
            "byType": {
                "bottle": {"count": 1, "amount": 120},
                "breastfeeding": {"count": 1, "leftDuration": 300, "rightDuration": 240, "totalDuration": 540},
                "solids": {"count": 0, "amount": 0},
            },
        },
        "sleep": {"count": 1, "duration": 60, "byLocation": {"crib": {"count": 1, "duration": 60}}},
        "diaper": {"count": 1, "byType": {"wet": 1, "dirty": 0}},
    }


def test_aggregations_for_empty_range(seeded) -> None:
    res = seeded.get(
        "/api/aggregations",
        params={"startDate": "2024-01-01T00:00:00.000Z", "endDate": "2024-01-31T23:59:59.999Z"},
    )
    assert res.status_code == 200
    assert res.json()["weeklyStats"] == []


# --- GET /health ---

def test_health(client) -> None:
    assert client.get("/health").json() == {"ok": True}
