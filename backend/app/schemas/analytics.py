"""
Notebook Backend: Analytics Request/Response Schemas
=====================================================

What:  Pydantic models defining the analytics API contract.
Why:   Strict input validation, automatic serialization, and OpenAPI docs.
Who:   TrackEventRequest is validated by EventIngestionService; the response
       models are built by AnalyticsService and returned by the routes.

Every response carries `success`. Mappings keyed by day or hour use string
keys because they are JSON objects on the wire.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Event Ingestion
# ══════════════════════════════════════════════════════════════════════════


class EventType(str, Enum):
    """The closed set of trackable events."""

    NOTE_CREATED = "note_created"
    NOTE_UPDATED = "note_updated"
    NOTE_DELETED = "note_deleted"
    NOTE_VIEWED = "note_viewed"
    VOICE_INPUT_USED = "voice_input_used"
    EXPORT_NOTE = "export_note"
    SHARE_NOTE = "share_note"
    SEARCH_PERFORMED = "search_performed"
    LANGUAGE_CHANGED = "language_changed"
    PAGE_VIEW = "page_view"
    USER_SIGNUP = "user_signup"
    USER_SIGNIN = "user_signin"


# Column widths in analytics_events; longer values are rejected here, not at insert
MAX_ID_LENGTH = 255
MAX_IP_LENGTH = 64
MAX_LOCATION_LENGTH = 255


class Location(BaseModel):
    """Coarse client location; every key defaults to an empty string."""

    country: str = Field(default="", max_length=MAX_LOCATION_LENGTH)
    city: str = Field(default="", max_length=MAX_LOCATION_LENGTH)
    timezone: str = Field(default="", max_length=MAX_LOCATION_LENGTH)

    model_config = {"extra": "forbid"}


class TrackEventRequest(BaseModel):
    """
    Body of POST /api/analytics/track.

    Only event_type is required. Unknown keys are rejected so a typo in a
    client ("user" instead of "user_id") surfaces as a 400 instead of an
    anonymous event.
    """

    event_type: EventType = Field(description="One of the tracked event types")
    event_data: Optional[Dict[str, Any]] = Field(
        default=None, description="Opaque event payload"
    )
    user_id: Optional[str] = Field(
        default=None,
        max_length=MAX_ID_LENGTH,
        description="Owner id; anonymous if omitted",
    )
    session_id: Optional[str] = Field(
        default=None,
        max_length=MAX_ID_LENGTH,
        description="Client session id; generated if omitted",
    )
    user_agent: Optional[str] = Field(default=None, description="Defaults to the User-Agent header")
    ip_address: Optional[str] = Field(
        default=None,
        max_length=MAX_IP_LENGTH,
        description="Defaults to the client address",
    )
    location: Optional[Location] = Field(default=None)

    model_config = {"extra": "forbid"}


class TrackEventResponse(BaseModel):
    success: bool = True
    data: Optional[Dict[str, Any]] = Field(default=None, description="The stored event")
    message: str
    warning: Optional[str] = Field(
        default=None,
        description="Set when the event could not be confirmed as stored",
    )


# ══════════════════════════════════════════════════════════════════════════
# Summary
# ══════════════════════════════════════════════════════════════════════════


class RecentEvent(BaseModel):
    id: Optional[str] = None
    event_type: str
    event_data: Dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[str] = None
    session_id: Optional[str] = None
    created_at: datetime


class AnalyticsSummary(BaseModel):
    total_events: int = 0
    events_by_type: Dict[str, int] = Field(default_factory=dict)
    daily_activity: Dict[str, int] = Field(
        default_factory=dict, description="ISO date (YYYY-MM-DD) → event count"
    )
    recent_events: List[RecentEvent] = Field(default_factory=list)


class SummaryResponse(BaseModel):
    success: bool = True
    data: AnalyticsSummary
    period: str = Field(description="Window length, e.g. '30 days'")
    user_id: str = Field(description="Requested owner, or 'all_users'")


# ══════════════════════════════════════════════════════════════════════════
# Popular Tags
# ══════════════════════════════════════════════════════════════════════════


class TagCount(BaseModel):
    tag: str
    count: int


class PopularTagsResponse(BaseModel):
    success: bool = True
    data: List[TagCount]
    total_unique_tags: int = Field(description="Distinct tags seen before the limit was applied")


# ══════════════════════════════════════════════════════════════════════════
# Usage Statistics
# ══════════════════════════════════════════════════════════════════════════


class UsageStats(BaseModel):
    total_notes: int = 0
    notes_this_week: int = 0
    notes_this_month: int = 0
    languages_used: Dict[str, int] = Field(default_factory=dict)
    creation_pattern: Dict[str, int] = Field(
        default_factory=dict, description="Hour of day ('0'..'23') → notes created"
    )


class UsageStatsResponse(BaseModel):
    success: bool = True
    data: UsageStats
    user_id: str


# ══════════════════════════════════════════════════════════════════════════
# Errors & Health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error envelope shared by every endpoint.

    Example:
        {
            "success": false,
            "error": "Failed to fetch analytics summary",
            "details": "connection refused",
            "request_id": "1f0c2a9b"
        }
    """

    success: bool = False
    error: str = Field(description="Error category")
    details: Optional[str] = Field(default=None, description="Underlying message")
    field: Optional[str] = Field(default=None, description="Failing input field, for validation errors")
    request_id: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
