"""
Notebook Backend: Analytics Event Ingestion
============================================

What:  Validates, normalizes, and records analytics events.
Who:   Called by POST /api/analytics/track.

Flow:
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────────────┐
    │  Payload │───▶│  Validate   │───▶│  Normalize   │───▶│  Fallible write  │
    │  (Route) │    │  (pydantic) │    │  (defaults)  │    │  (tenacity)      │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────────────┘

    Validate fails  → ValidationError (400), nothing written
    Write fails     → IngestionOutcome(UNCONFIRMED), still a success response

Tracking an event must never fail the user action that triggered it, so the
write path turns every storage fault into an UNCONFIRMED outcome. The event
is lost in that case; the ERROR log line is the only trace of it.
"""

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.exceptions import ValidationError
from app.models.analytics_event import AnalyticsEvent
from app.schemas.analytics import Location, TrackEventRequest

logger = logging.getLogger(__name__)

UNCONFIRMED_WARNING = "Analytics data may not have been stored"


class DeliveryStatus(str, Enum):
    DELIVERED = "delivered"
    UNCONFIRMED = "unconfirmed"


@dataclass(frozen=True)
class RequestContext:
    """Provenance captured from the HTTP request, used when the payload omits it."""

    user_agent: str = ""
    ip_address: str = ""


@dataclass(frozen=True)
class IngestionOutcome:
    """
    Result of the write step.

    DELIVERED:   the insert committed; `event` holds the stored row
    UNCONFIRMED: the insert failed or could not be confirmed; `warning` is set
    """

    status: DeliveryStatus
    event: Optional[Dict[str, Any]] = None
    warning: Optional[str] = None

    @property
    def delivered(self) -> bool:
        return self.status is DeliveryStatus.DELIVERED


def ingest_retry_wait() -> wait_exponential_jitter:
    """Backoff between write attempts: min_wait * 2**n plus jitter, capped at max_wait."""
    return wait_exponential_jitter(
        multiplier=settings.ingest_retry_min_wait,
        max=settings.ingest_retry_max_wait,
        jitter=settings.ingest_retry_min_wait,
    )


class EventIngestionService:
    """Stateless; one module-level instance is shared by all requests."""

    def validate(self, payload: Any) -> TrackEventRequest:
        """
        Validate a raw request body.

        Raises:
            ValidationError: naming the first failing field
        """
        if not isinstance(payload, dict):
            raise ValidationError(
                message="Request body must be a JSON object",
                field="body",
            )
        try:
            return TrackEventRequest.model_validate(payload)
        except PydanticValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or "body"
            raise ValidationError(
                message=f"{field}: {first.get('msg', 'invalid value')}",
                field=field,
            )

    def build_event(
        self,
        request: TrackEventRequest,
        context: RequestContext,
        now: Optional[datetime] = None,
    ) -> AnalyticsEvent:
        """Apply every default so the stored row has no missing field."""
        location = request.location or Location()
        return AnalyticsEvent(
            id=uuid.uuid4(),
            event_type=request.event_type.value,
            event_data=request.event_data or {},
            user_id=request.user_id or settings.anonymous_user_id,
            session_id=request.session_id or str(uuid.uuid4()),
            user_agent=request.user_agent or context.user_agent or "",
            ip_address=request.ip_address or context.ip_address or "",
            location=location.model_dump(),
            created_at=now or datetime.now(timezone.utc),
        )

    async def track(
        self,
        db: AsyncSession,
        payload: Any,
        context: RequestContext,
    ) -> IngestionOutcome:
        """
        Validate, normalize, and record one event.

        Raises:
            ValidationError: the only error this method lets through
        """
        request = self.validate(payload)
        event = self.build_event(request, context)
        return await self.record(db, event)

    async def record(self, db: AsyncSession, event: AnalyticsEvent) -> IngestionOutcome:
        """Fallible write wrapper: never raises, reports the outcome instead."""
        try:
            await self._insert_with_retry(db, event)
        except Exception as e:
            logger.error(
                "Analytics write failed for %s event %s: %s",
                event.event_type,
                event.id,
                str(e),
                exc_info=True,
            )
            return IngestionOutcome(
                status=DeliveryStatus.UNCONFIRMED,
                warning=UNCONFIRMED_WARNING,
            )

        logger.debug("Tracked %s event %s for %s", event.event_type, event.id, event.user_id)
        return IngestionOutcome(status=DeliveryStatus.DELIVERED, event=event.to_dict())

    @retry(
        # Dropped connections and failovers; constraint or data errors are not retried
        retry=retry_if_exception_type((OperationalError, InterfaceError)),
        stop=stop_after_attempt(settings.ingest_retry_attempts),
        wait=ingest_retry_wait(),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _insert_with_retry(self, db: AsyncSession, event: AnalyticsEvent) -> None:
        db.add(event)
        try:
            await db.commit()
        except Exception:
            # Pending rows are expunged on rollback, so a retry re-adds the same event
            await db.rollback()
            raise


event_ingestion_service = EventIngestionService()
