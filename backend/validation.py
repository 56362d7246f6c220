"""
Event validation and normalization.

`normalize_event` is the single gate every write goes through. It checks
the structural rules for the event's type and returns a *new* draft in
which every field outside the event's own cluster is null. The input is
never mutated, so callers must persist the returned value.

Rule order matters: the first broken rule decides the error message.
"""

from typing import Dict, Iterable

from errors import ValidationError
from models import (
    DIAPER_FIELDS,
    FEED_FIELDS,
    SLEEP_FIELDS,
    DiaperType,
    EventDraft,
    EventType,
    FeedType,
    SleepLocation,
)


def _cleared(fields: Iterable[str]) -> Dict[str, None]:
    return {name: None for name in fields}


def normalize_event(event: EventDraft) -> EventDraft:
    """Validate `event` and return its normalized copy.

    Raises:
    - `ValidationError` with a human readable reason on the first broken rule
    """

    if event.timestamp is None:
        raise ValidationError("Timestamp is required")

    if event.end_time is not None and event.end_time <= event.timestamp:
        raise ValidationError("End time must be after start time")

    if event.type == EventType.FEED.value:
        clear = _validate_feed(event)
    elif event.type == EventType.SLEEP.value:
        clear = _validate_sleep(event)
    elif event.type == EventType.DIAPER.value:
        clear = _validate_diaper(event)
    else:
        raise ValidationError("Invalid event type")

    return event.model_copy(update=clear)


def _validate_feed(event: EventDraft) -> Dict[str, None]:
    feed_type = event.feed_type
    if not feed_type:
        raise ValidationError("Feed type is required for feed events")

    if feed_type in (FeedType.BOTTLE.value, FeedType.SOLIDS.value):
        if event.amount is None:
            raise ValidationError(f"Amount is required for {feed_type} feeds")
        if event.amount <= 0:
            raise ValidationError(f"Amount must be positive for {feed_type} feeds")
        if event.left_duration or event.right_duration:
            raise ValidationError(f"Duration fields are not allowed for {feed_type} feeds")
        clear = _cleared(("left_duration", "right_duration"))
    elif feed_type == FeedType.BREASTFEEDING.value:
        if event.amount is not None:
            raise ValidationError("Amount is not allowed for breastfeeding")
        if not event.left_duration and not event.right_duration:
            raise ValidationError(
                "At least one breast duration is required for breastfeeding"
            )
        if (event.left_duration or 0) < 0 or (event.right_duration or 0) < 0:
            raise ValidationError("Duration must be non-negative")
        clear = _cleared(("amount",))
    else:
        raise ValidationError("Invalid feed type")

    # feeds carry nothing from the sleep or diaper clusters, endTime included
    clear.update(_cleared(SLEEP_FIELDS + DIAPER_FIELDS))
    return clear


def _validate_sleep(event: EventDraft) -> Dict[str, None]:
    if not event.sleep_location:
        raise ValidationError("Sleep location is required for sleep events")
    if event.sleep_location not in {loc.value for loc in SleepLocation}:
        raise ValidationError("Invalid sleep location")
    return _cleared(FEED_FIELDS + DIAPER_FIELDS)


def _validate_diaper(event: EventDraft) -> Dict[str, None]:
    if not event.diaper_type:
        raise ValidationError("Diaper type is required for diaper events")
    if event.diaper_type not in {d.value for d in DiaperType}:
        raise ValidationError("Invalid diaper type")
    return _cleared(FEED_FIELDS + SLEEP_FIELDS)
