"""
Weekly aggregation of tracked events.

The engine reads one range of events from the repository, buckets them by
Monday-start week and reduces each bucket to per-day averages for feeds,
sleeps and diapers.

Averages are normalized by `days_with_data`: the number of distinct
calendar dates in the bucket holding at least one event *of that
category*. A week with three feeding days and one diaper day divides feed
totals by 3 and diaper totals by 1. A category with no events in the week
gets its zero-valued default instead of a division.

Weeks and calendar days are computed in `settings.aggregation_tz`.
Nothing is rounded here; rounding is a presentation concern.
"""

import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo

from models import (
    AggregationData,
    AmountStats,
    BreastfeedingStats,
    DailyAverages,
    DiaperAggregation,
    DiaperByType,
    DiaperType,
    Event,
    EventType,
    FeedAggregation,
    FeedByType,
    FeedType,
    LocationStats,
    SleepAggregation,
    WeeklyStat,
)
from settings import settings

logger = logging.getLogger(__name__)


class AggregationEngine:
    """Read-only weekly statistics over the event store.

    Example usage:
        engine = AggregationEngine(EventRepo())
        data = engine.get_aggregations(start, end)
    """

    def __init__(self, repo, tz_name: Optional[str] = None):
        self.repo = repo
        self.tz: tzinfo = ZoneInfo(tz_name or settings.aggregation_tz)

    def get_aggregations(self, start_date: datetime, end_date: datetime) -> AggregationData:
        """Weekly stats for events in `[start_date, end_date]`.

        The caller guarantees `end_date >= start_date`. Weeks without events
        are omitted; the result is sorted by `week_start`.
        """

        events = self.repo.fetch_range(start_date, end_date)

        by_week: Dict[datetime, List[Event]] = defaultdict(list)
        for event in events:
            by_week[self._week_start(event.timestamp)].append(event)

        weekly_stats = [
            WeeklyStat(
                week_start=week_start.astimezone(timezone.utc),
                daily_averages=DailyAverages(
                    feed=self.feed_averages(week_events),
                    sleep=self.sleep_averages(week_events),
                    diaper=self.diaper_averages(week_events),
                ),
            )
            for week_start, week_events in sorted(by_week.items())
        ]
        logger.debug(
            "aggregated %d events into %d weeks", len(events), len(weekly_stats)
        )

        return AggregationData(
            start_date=start_date,
            end_date=end_date,
            weekly_stats=weekly_stats,
        )

    def _local(self, instant: datetime) -> datetime:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        return instant.astimezone(self.tz)

    def _week_start(self, instant: datetime) -> datetime:
        local = self._local(instant)
        monday = local - timedelta(days=local.weekday())
        return monday.replace(hour=0, minute=0, second=0, microsecond=0)

    def days_with_data(self, events: List[Event]) -> int:
        return len({self._local(e.timestamp).strftime("%Y-%m-%d") for e in events})

    def feed_averages(self, events: List[Event]) -> FeedAggregation:
        feeds = [e for e in events if e.type == EventType.FEED.value]
        days = self.days_with_data(feeds)
        if days == 0:
            return FeedAggregation()

        def amount_stats(feed_type: FeedType) -> AmountStats:
            matching = [e for e in feeds if e.feed_type == feed_type.value]
            return AmountStats(
                count=len(matching) / days,
                amount=sum(e.amount or 0 for e in matching) / days,
            )

        breast = [e for e in feeds if e.feed_type == FeedType.BREASTFEEDING.value]
        left = sum(e.left_duration or 0 for e in breast)
        right = sum(e.right_duration or 0 for e in breast)

        return FeedAggregation(
            count=len(feeds) / days,
            by_type=FeedByType(
                bottle=amount_stats(FeedType.BOTTLE),
                solids=amount_stats(FeedType.SOLIDS),
                breastfeeding=BreastfeedingStats(
                    count=len(breast) / days,
                    left_duration=left / days,
                    right_duration=right / days,
                    total_duration=(left + right) / days,
                ),
            ),
        )

    def sleep_averages(self, events: List[Event]) -> SleepAggregation:
        sleeps = [e for e in events if e.type == EventType.SLEEP.value]
        days = self.days_with_data(sleeps)
        if days == 0:
            return SleepAggregation()

        total_minutes = 0.0
        # location -> [events, minutes]
        totals: Dict[str, List[float]] = {}
        for e in sleeps:
            # unfinished or unlocated sleeps still count, but add no duration
            if not e.sleep_location or e.end_time is None:
                continue
            minutes = (e.end_time - e.timestamp).total_seconds() / 60
            total_minutes += minutes
            bucket = totals.setdefault(e.sleep_location, [0, 0.0])
            bucket[0] += 1
            bucket[1] += minutes

        return SleepAggregation(
            count=len(sleeps) / days,
            duration=total_minutes / days,
            by_location={
                location: LocationStats(count=n / days, duration=minutes / days)
                for location, (n, minutes) in totals.items()
            },
        )

    def diaper_averages(self, events: List[Event]) -> DiaperAggregation:
        diapers = [e for e in events if e.type == EventType.DIAPER.value]
        days = self.days_with_data(diapers)
        if days == 0:
            return DiaperAggregation()

        wet = sum(1 for e in diapers if e.diaper_type == DiaperType.WET.value)
        dirty = sum(1 for e in diapers if e.diaper_type == DiaperType.DIRTY.value)
        return DiaperAggregation(
            count=len(diapers) / days,
            by_type=DiaperByType(wet=wet / days, dirty=dirty / days),
        )
