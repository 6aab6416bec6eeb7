"""
Notebook Backend: Analytics Route Handlers
===========================================

What:  POST /api/analytics/track and the three GET aggregation endpoints.
How:   Extracts body/query parameters and request provenance, delegates to
       the ingestion and analytics services, returns their envelopes.

Status codes:
    /track    200 whenever validation passes, even if the write failed
              (the body then carries `warning`); 400 on invalid payloads
    GET *     200, 400 for out-of-range query parameters, 500 when the
              store cannot be read
"""

import logging
from typing import Any, Dict, Optional, Type

from fastapi import APIRouter, Body, Depends, Query, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db_session
from app.schemas.analytics import (
    ErrorResponse,
    PopularTagsResponse,
    SummaryResponse,
    TrackEventRequest,
    TrackEventResponse,
    UsageStatsResponse,
)
from app.services.analytics_service import analytics_service
from app.services.event_ingestion import RequestContext, event_ingestion_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/analytics", tags=["Analytics"])


def inline_schema(model: Type[BaseModel]) -> Dict[str, Any]:
    """JSON schema of `model` with its $defs substituted in place."""
    schema = model.model_json_schema()
    defs = schema.pop("$defs", {})

    def resolve(node: Any) -> Any:
        if isinstance(node, dict):
            resolved = {key: resolve(value) for key, value in node.items() if key != "$ref"}
            if "$ref" in node:
                # Keys next to a $ref (description, default) win over the definition
                return {**resolve(defs[node["$ref"].rsplit("/", 1)[-1]]), **resolved}
            return resolved
        if isinstance(node, list):
            return [resolve(item) for item in node]
        return node

    return resolve(schema)


# The body is validated by EventIngestionService, so the contract is documented here
TRACK_REQUEST_BODY = {
    "requestBody": {
        "required": True,
        "content": {"application/json": {"schema": inline_schema(TrackEventRequest)}},
    }
}


def request_context(request: Request) -> RequestContext:
    """User-Agent header and peer address of the current request."""
    return RequestContext(
        user_agent=request.headers.get("user-agent", ""),
        ip_address=request.client.host if request.client else "",
    )


@router.post(
    "/track",
    response_model=TrackEventResponse,
    response_model_exclude_unset=True,
    responses={
        200: {"description": "Event accepted (check `warning` for unconfirmed writes)"},
        400: {"description": "Invalid event payload", "model": ErrorResponse},
    },
    summary="Track an analytics event",
    openapi_extra=TRACK_REQUEST_BODY,
)
async def track_event(
    request: Request,
    payload: Any = Body(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> TrackEventResponse:
    outcome = await event_ingestion_service.track(
        db=db,
        payload=payload,
        context=request_context(request),
    )

    if outcome.delivered:
        return TrackEventResponse(
            success=True,
            data=outcome.event,
            message="Event tracked successfully",
        )
    return TrackEventResponse(
        success=True,
        message="Event logged (with warnings)",
        warning=outcome.warning,
    )


@router.get(
    "/summary",
    response_model=SummaryResponse,
    responses={
        400: {"description": "Invalid query parameters", "model": ErrorResponse},
        500: {"description": "Store unavailable", "model": ErrorResponse},
    },
    summary="Event summary over a time window",
)
async def get_summary(
    user_id: Optional[str] = Query(
        default=None,
        description="Restrict to one owner; omit or 'anonymous' for all users",
    ),
    days: int = Query(
        default=settings.analytics_default_days,
        ge=1,
        le=settings.analytics_max_days,
        description="Window length in days",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> SummaryResponse:
    return await analytics_service.get_summary(db=db, user_id=user_id, days=days)


@router.get(
    "/tags",
    response_model=PopularTagsResponse,
    responses={
        400: {"description": "Invalid query parameters", "model": ErrorResponse},
        500: {"description": "Store unavailable", "model": ErrorResponse},
    },
    summary="Most used note tags",
)
async def get_popular_tags(
    user_id: Optional[str] = Query(default=None),
    limit: int = Query(
        default=settings.popular_tags_default_limit,
        ge=1,
        le=settings.popular_tags_max_limit,
    ),
    contains: Optional[str] = Query(
        default=None,
        max_length=100,
        description="Only count notes whose tag list contains this text (case-insensitive)",
    ),
    db: AsyncSession = Depends(get_db_session),
) -> PopularTagsResponse:
    return await analytics_service.get_popular_tags(
        db=db, user_id=user_id, limit=limit, tag_contains=contains,
    )


@router.get(
    "/stats",
    response_model=UsageStatsResponse,
    responses={500: {"description": "Store unavailable", "model": ErrorResponse}},
    summary="Note usage statistics",
)
async def get_usage_stats(
    user_id: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
) -> UsageStatsResponse:
    return await analytics_service.get_usage_stats(db=db, user_id=user_id)
