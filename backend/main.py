import logging
import uuid
from datetime import datetime
from typing import Optional, Tuple

from fastapi import FastAPI, HTTPException, Query, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from errors import EventNotFound, ValidationError
from models import AggregationData, Event, EventDraft, EventsPage
from repo_events import EventRepo
from service_events import EventService
from settings import settings

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Baby Tracker Backend")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Instantiate the repo + service here so the routes remain thin; tests
# swap `svc` for one backed by an in-memory repository.
repo = EventRepo()
svc = EventService(repo)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    # malformed bodies are client errors like any other validation failure
    return JSONResponse(status_code=400, content={"detail": jsonable_encoder(exc.errors())})


def _parse_instant(raw: str) -> datetime:
    try:
        return datetime.fromisoformat(raw)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid date format")


def _parse_range(start_date: Optional[str], end_date: Optional[str]) -> Tuple[datetime, datetime]:
    if not start_date or not end_date:
        raise HTTPException(status_code=400, detail="startDate and endDate are required")
    return _parse_instant(start_date), _parse_instant(end_date)


def _check_event_id(event_id: str) -> None:
    try:
        uuid.UUID(event_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid event ID format")


@app.get("/health")
def health():
    try:
        svc.health_check()
        return {"ok": True}
    except Exception:
        logger.exception("health check failed")
        raise HTTPException(status_code=500, detail="DB health check failed")


@app.get("/api/events", response_model=EventsPage)
def read_events(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
    limit: Optional[int] = None,
):
    start, end = _parse_range(start_date, end_date)
    try:
        return svc.read_events(start, end, limit)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("reading events failed")
        raise HTTPException(status_code=500, detail="Failed to read events")


@app.post("/api/events", response_model=Event, status_code=201)
def create_event(event: EventDraft):
    try:
        return svc.create_event(event)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("creating event failed")
        raise HTTPException(status_code=500, detail="Failed to create event")


@app.put("/api/events/{event_id}", response_model=Event)
def update_event(event_id: str, changes: EventDraft):
    _check_event_id(event_id)
    try:
        return svc.update_event(event_id, changes.model_dump(exclude_unset=True))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except Exception:
        logger.exception("updating event %s failed", event_id)
        raise HTTPException(status_code=500, detail="Failed to update event")


@app.delete("/api/events/{event_id}", status_code=204)
def delete_event(event_id: str):
    _check_event_id(event_id)
    try:
        svc.delete_event(event_id)
    except EventNotFound:
        raise HTTPException(status_code=404, detail="Event not found")
    except Exception:
        logger.exception("deleting event %s failed", event_id)
        raise HTTPException(status_code=500, detail="Failed to delete event")
    return Response(status_code=204)


@app.get("/api/aggregations", response_model=AggregationData)
def read_aggregations(
    start_date: Optional[str] = Query(None, alias="startDate"),
    end_date: Optional[str] = Query(None, alias="endDate"),
):
    start, end = _parse_range(start_date, end_date)
    try:
        return svc.read_aggregate_event_data(start, end)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("reading aggregations failed")
        raise HTTPException(status_code=500, detail="Failed to read aggregations")
