"""
Notebook Backend: Analytics Event SQLAlchemy Model
===================================================

What:  ORM model for the append-only `analytics_events` table.
Who:   Inserted by EventIngestionService; read by AnalyticsService.

Lifecycle:
    Created once per tracked event and never updated or deleted by this
    service. Every column is NOT NULL: the ingestion service fills defaults
    (anonymous owner, generated session, empty location) before the insert,
    so a stored row never has a missing field.

Query Patterns:
    - Summary window: WHERE created_at >= :since ORDER BY created_at DESC
      → idx_analytics_events_created_at
    - Scoped summary: WHERE user_id = :uid AND created_at >= :since
      → idx_analytics_events_user_created
    - Per-type drilldowns (ad hoc): idx_analytics_events_type_created
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict

from sqlalchemy import Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class AnalyticsEvent(Base):
    """One recorded user/system action."""

    __tablename__ = "analytics_events"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    # One of schemas.analytics.EventType; validated before insert
    event_type: Mapped[str] = mapped_column(String(50), nullable=False)

    # Opaque payload; the aggregations never look inside
    event_data: Mapped[Dict[str, Any]] = mapped_column(
        JSONB,
        nullable=False,
        default=dict,
        server_default=text("'{}'::jsonb"),
    )

    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    session_id: Mapped[str] = mapped_column(String(255), nullable=False)

    user_agent: Mapped[str] = mapped_column(Text, nullable=False, default="")
    ip_address: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    # {"country": "", "city": "", "timezone": ""}
    location: Mapped[Dict[str, str]] = mapped_column(JSONB, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_analytics_events_created_at", created_at.desc()),
        Index("idx_analytics_events_type_created", "event_type", "created_at"),
        Index("idx_analytics_events_user_created", "user_id", "created_at"),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Row as a JSON-ready dict, in the shape returned by POST /track."""
        return {
            "id": str(self.id),
            "event_type": self.event_type,
            "event_data": self.event_data,
            "user_id": self.user_id,
            "session_id": self.session_id,
            "user_agent": self.user_agent,
            "ip_address": self.ip_address,
            "location": self.location,
            "created_at": self.created_at.isoformat(),
        }

    def __repr__(self) -> str:
        return (
            f"<AnalyticsEvent(id={self.id}, event_type='{self.event_type}', "
            f"user_id='{self.user_id}')>"
        )
