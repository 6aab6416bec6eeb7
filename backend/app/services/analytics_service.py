"""
Notebook Backend: Analytics Read Service
=========================================

What:  Fetches analytics events and notes, then folds them into summaries.
Who:   Called by the GET /api/analytics/* route handlers.
How:   One SELECT per call, scoped and windowed in SQL; the arithmetic is
       delegated to app.services.aggregation.

Scope Rule:
    A missing user_id, an empty one, or the anonymous sentinel means "all
    users": no owner filter is added. The echoed user_id in the response
    is the raw query value, or "all_users" when none was given.

Error Handling Strategy:
    Any failure while querying or folding is logged with its stack trace
    and re-raised as StorageError carrying a per-operation category and the
    underlying message (→ 500). Reads are not retried.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import StorageError
from app.models.analytics_event import AnalyticsEvent
from app.models.note import Note
from app.schemas.analytics import (
    PopularTagsResponse,
    SummaryResponse,
    UsageStatsResponse,
)
from app.services.aggregation import compute_usage_stats, rank_tags, summarize_events

logger = logging.getLogger(__name__)

ALL_USERS = "all_users"


def resolve_owner(user_id: Optional[str]) -> Optional[str]:
    """Owner to filter on, or None for all users."""
    if not user_id or user_id == settings.anonymous_user_id:
        return None
    return user_id


class AnalyticsService:
    """Stateless read side of the analytics API."""

    async def get_summary(
        self,
        db: AsyncSession,
        user_id: Optional[str] = None,
        days: int = 30,
        now: Optional[datetime] = None,
    ) -> SummaryResponse:
        """
        Event totals, per-type and per-day counts, and the newest events
        within the last `days` days.

        Query plan:
            SELECT ... FROM analytics_events
            WHERE created_at >= :since [AND user_id = :uid]
            ORDER BY created_at DESC
        """
        now = now or datetime.now(timezone.utc)
        since = now - timedelta(days=days)
        owner = resolve_owner(user_id)

        try:
            query = (
                select(
                    AnalyticsEvent.id,
                    AnalyticsEvent.event_type,
                    AnalyticsEvent.event_data,
                    AnalyticsEvent.user_id,
                    AnalyticsEvent.session_id,
                    AnalyticsEvent.created_at,
                )
                .where(AnalyticsEvent.created_at >= since)
                .order_by(desc(AnalyticsEvent.created_at))
            )
            if owner:
                query = query.where(AnalyticsEvent.user_id == owner)

            result = await db.execute(query)
            rows = result.all()

            summary = summarize_events(
                rows,
                since=since,
                recent_limit=settings.recent_events_limit,
                tz=settings.reporting_zone,
            )
        except Exception as e:
            logger.error("Error fetching analytics summary: %s", str(e), exc_info=True)
            raise StorageError(
                message="Failed to fetch analytics summary",
                details=str(e),
                context={"user_id": user_id, "days": days},
            )

        logger.debug(
            "Summary for %s over %d days: %d events",
            owner or ALL_USERS, days, summary.total_events,
        )
        return SummaryResponse(
            data=summary,
            period=f"{days} days",
            user_id=user_id or ALL_USERS,
        )

    async def get_popular_tags(
        self,
        db: AsyncSession,
        user_id: Optional[str] = None,
        limit: int = 10,
        tag_contains: Optional[str] = None,
    ) -> PopularTagsResponse:
        """
        Most frequent note tags, case-folded.

        Notes are scanned oldest first so tags with equal counts keep the
        order in which they first appeared. `tag_contains` narrows the scan
        to notes whose tag string contains the text (case-insensitive).
        """
        owner = resolve_owner(user_id)

        try:
            query = (
                select(Note.tags)
                .where(Note.tags.is_not(None), Note.tags != "")
                .order_by(Note.created_at, Note.id)
            )
            if owner:
                query = query.where(Note.user_id == owner)
            if tag_contains:
                # Wildcards in the filter text match literally
                query = query.where(Note.tags.icontains(tag_contains, autoescape=True))

            result = await db.execute(query)
            tag_fields = result.scalars().all()

            top, total_unique = rank_tags(tag_fields, limit=limit)
        except Exception as e:
            logger.error("Error fetching popular tags: %s", str(e), exc_info=True)
            raise StorageError(
                message="Failed to fetch popular tags",
                details=str(e),
                context={"user_id": user_id, "limit": limit},
            )

        return PopularTagsResponse(data=top, total_unique_tags=total_unique)

    async def get_usage_stats(
        self,
        db: AsyncSession,
        user_id: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> UsageStatsResponse:
        """Note counts, language mix and hour-of-day creation pattern."""
        now = now or datetime.now(timezone.utc)
        owner = resolve_owner(user_id)

        try:
            query = select(Note.id, Note.created_at, Note.language, Note.tags)
            if owner:
                query = query.where(Note.user_id == owner)

            result = await db.execute(query)
            notes = result.all()

            stats = compute_usage_stats(notes, now=now, tz=settings.reporting_zone)
        except Exception as e:
            logger.error("Error fetching usage stats: %s", str(e), exc_info=True)
            raise StorageError(
                message="Failed to fetch usage statistics",
                details=str(e),
                context={"user_id": user_id},
            )

        return UsageStatsResponse(data=stats, user_id=user_id or ALL_USERS)


analytics_service = AnalyticsService()
