"""
Pydantic models used across the backend.

Wire names are camelCase (`feedType`, `endTime`, `weekStart`, ...) while
Python attributes stay snake_case; every model inherits the alias setup
from `ApiModel`.

Guidelines:
- `EventDraft` is the candidate shape (create bodies, merged updates). Its
  enum-like fields are plain strings so the validator, not pydantic, gets
  to reject unknown values with a readable message.
- `Event` is a persisted row: a draft plus store-managed fields.
- Aggregation output models are derived-only and never stored.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EventType(str, Enum):
    FEED = "feed"
    SLEEP = "sleep"
    DIAPER = "diaper"


class FeedType(str, Enum):
    BOTTLE = "bottle"
    BREASTFEEDING = "breastfeeding"
    SOLIDS = "solids"


class DiaperType(str, Enum):
    WET = "wet"
    DIRTY = "dirty"


class SleepLocation(str, Enum):
    CRIB = "crib"
    BASSINET = "bassinet"
    STROLLER = "stroller"
    CAR = "car"
    CARRIER = "carrier"
    BED = "bed"
    ARMS = "arms"


class ApiModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# Fields owned by each cluster; the validator nulls whatever is not owned
# by the event's own cluster.
FEED_FIELDS = ("feed_type", "amount", "left_duration", "right_duration")
SLEEP_FIELDS = ("sleep_location", "end_time")
DIAPER_FIELDS = ("diaper_type",)


class EventDraft(ApiModel):
    """Candidate event before (or after) normalization.

    Fields:
    - `type`: feed | sleep | diaper.
    - `timestamp`: start instant (sole instant for diapers).
    - `end_time`: sleep end instant.
    - `feed_type`, `amount`, `left_duration`, `right_duration`: feed cluster.
    - `sleep_location`: sleep cluster.
    - `diaper_type`: diaper cluster.
    """

    type: Optional[str] = None
    timestamp: Optional[datetime] = None
    end_time: Optional[datetime] = None
    feed_type: Optional[str] = None
    amount: Optional[float] = None
    left_duration: Optional[int] = None
    right_duration: Optional[int] = None
    sleep_location: Optional[str] = None
    diaper_type: Optional[str] = None


class Event(EventDraft):
    """A stored event as returned by the repository and the API."""

    id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def to_draft(self) -> EventDraft:
        return EventDraft(**self.model_dump(include=set(EventDraft.model_fields)))


class EventsPage(ApiModel):
    events: List[Event]
    has_more: bool


class AmountStats(ApiModel):
    count: float = 0
    amount: float = 0


class BreastfeedingStats(ApiModel):
    count: float = 0
    left_duration: float = 0
    right_duration: float = 0
    total_duration: float = 0


class FeedByType(ApiModel):
    bottle: AmountStats = Field(default_factory=AmountStats)
    breastfeeding: BreastfeedingStats = Field(default_factory=BreastfeedingStats)
    solids: AmountStats = Field(default_factory=AmountStats)


class FeedAggregation(ApiModel):
    count: float = 0
    by_type: FeedByType = Field(default_factory=FeedByType)


class LocationStats(ApiModel):
    count: float = 0
    duration: float = 0


class SleepAggregation(ApiModel):
    count: float = 0
    duration: float = 0
    by_location: Dict[str, LocationStats] = Field(default_factory=dict)


class DiaperByType(ApiModel):
    wet: float = 0
    dirty: float = 0


class DiaperAggregation(ApiModel):
    count: float = 0
    by_type: DiaperByType = Field(default_factory=DiaperByType)


class DailyAverages(ApiModel):
    feed: FeedAggregation
    sleep: SleepAggregation
    diaper: DiaperAggregation


class WeeklyStat(ApiModel):
    week_start: datetime
    daily_averages: DailyAverages


class AggregationData(ApiModel):
    start_date: datetime
    end_date: datetime
    weekly_stats: List[WeeklyStat]
