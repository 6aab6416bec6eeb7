"""
Notebook Backend: Analytics Aggregation Folds
==============================================

What:  Pure functions that turn fetched event/note rows into summaries.
Why:   Keeps the arithmetic free of I/O so it can be tested with plain
       objects; AnalyticsService only fetches rows and calls these.
How:   Each function builds its own Counters from the sequence it is given.
       Nothing is cached or shared between calls.

Rows are duck-typed: anything with the attributes a fold reads works
(SQLAlchemy Row objects, ORM instances, SimpleNamespace in tests).

Time handling:
    Stored timestamps are timezone-aware UTC. Calendar days and hours of day
    are taken after converting to the reporting zone (settings.analytics_timezone).
    A naive timestamp is read as wall-clock time in the reporting zone, for
    window comparisons and bucketing alike.
"""

from collections import Counter
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from app.schemas.analytics import AnalyticsSummary, RecentEvent, TagCount, UsageStats

DEFAULT_LANGUAGE = "plain"


def _coerce_timestamp(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    # Rows restored from JSON carry ISO strings
    return datetime.fromisoformat(str(value).replace("Z", "+00:00"))


def _as_aware(ts: datetime, tz: tzinfo) -> datetime:
    return ts if ts.tzinfo is not None else ts.replace(tzinfo=tz)


def to_local(ts: datetime, tz: tzinfo) -> datetime:
    """Converts a timestamp to the reporting zone; naive ones are taken as already in it."""
    return _as_aware(ts, tz).astimezone(tz)


def summarize_events(
    events: Iterable[Any],
    since: Optional[datetime] = None,
    recent_limit: int = 10,
    tz: tzinfo = timezone.utc,
) -> AnalyticsSummary:
    """
    Fold analytics events into the summary returned by GET /summary.

    Events are ordered newest first (stable, so rows with identical
    timestamps keep their fetch order) and then restricted to
    `created_at >= since`. recent_events is the head of that ordering.

    Args:
        events: Rows with event_type and created_at (id, event_data,
                user_id, session_id are copied into recent_events when present)
        since: Window lower bound; None keeps every event
        recent_limit: How many events recent_events keeps
        tz: Zone used to derive the daily_activity keys
    """
    ordered = sorted(
        events,
        key=lambda e: to_local(_coerce_timestamp(e.created_at), tz),
        reverse=True,
    )
    if since is not None:
        lower = _as_aware(since, tz)
        ordered = [
            e for e in ordered if to_local(_coerce_timestamp(e.created_at), tz) >= lower
        ]

    by_type: Counter = Counter()
    by_day: Counter = Counter()
    for event in ordered:
        local = to_local(_coerce_timestamp(event.created_at), tz)
        by_type[str(getattr(event.event_type, "value", event.event_type))] += 1
        by_day[local.date().isoformat()] += 1

    recent = [_recent_event(e) for e in ordered[:recent_limit]]

    return AnalyticsSummary(
        total_events=len(ordered),
        events_by_type=dict(by_type),
        daily_activity=dict(by_day),
        recent_events=recent,
    )


def _recent_event(event: Any) -> RecentEvent:
    event_id = getattr(event, "id", None)
    return RecentEvent(
        id=str(event_id) if event_id is not None else None,
        event_type=str(getattr(event.event_type, "value", event.event_type)),
        event_data=getattr(event, "event_data", None) or {},
        user_id=getattr(event, "user_id", None),
        session_id=getattr(event, "session_id", None),
        created_at=_coerce_timestamp(event.created_at),
    )


def split_tags(tags: Optional[str]) -> List[str]:
    """'Go, go ,, Rust' → ['go', 'go', 'rust']. Empty fragments are dropped."""
    if not tags:
        return []
    return [tag for tag in (part.strip().lower() for part in tags.split(",")) if tag]


def rank_tags(
    tag_fields: Iterable[Optional[str]],
    limit: int = 10,
) -> Tuple[List[TagCount], int]:
    """
    Count tag occurrences across notes and rank them.

    Every occurrence counts, including repeats within one note. Ties are
    broken by first-seen order: the Counter keeps insertion order and the
    descending sort is stable.

    Returns:
        (top `limit` tags, number of distinct tags before truncation)
    """
    counts: Counter = Counter()
    for field in tag_fields:
        counts.update(split_tags(field))

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    top = [TagCount(tag=tag, count=count) for tag, count in ranked[:limit]]
    return top, len(counts)


def compute_usage_stats(
    notes: Sequence[Any],
    now: datetime,
    tz: tzinfo = timezone.utc,
) -> UsageStats:
    """
    Fold notes into the usage statistics returned by GET /stats.

    notes_this_week and notes_this_month use rolling 7- and 30-day windows
    ending at `now`. An empty sequence yields zeros and empty mappings.
    """
    now = _as_aware(now, tz)
    week_ago = now - timedelta(days=7)
    month_ago = now - timedelta(days=30)

    this_week = 0
    this_month = 0
    languages: Counter = Counter()
    hours: Counter = Counter()

    for note in notes:
        local = to_local(_coerce_timestamp(note.created_at), tz)
        if local >= week_ago:
            this_week += 1
        if local >= month_ago:
            this_month += 1
        languages[getattr(note, "language", None) or DEFAULT_LANGUAGE] += 1
        hours[str(local.hour)] += 1

    return UsageStats(
        total_notes=len(notes),
        notes_this_week=this_week,
        notes_this_month=this_month,
        languages_used=dict(languages),
        creation_pattern=dict(hours),
    )
