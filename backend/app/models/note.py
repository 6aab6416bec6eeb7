"""
Notebook Backend: Note SQLAlchemy Model
========================================

What:  ORM model representing the `notes` table in PostgreSQL.
Who:   Written by the external notes service; read here by AnalyticsService
       for popular-tag and usage statistics.

The analytics core never inserts, updates, or deletes notes. Only the
columns the aggregations read (user_id, tags, language, created_at) carry
indexes declared here; the rest mirror what the notes collaborator stores.

Table Design:
    - tags: comma-separated free text ("Go, rust, ideas"); NULL or "" means untagged
    - language: editor language of the note; the notes service writes "plain"
      when the client sends nothing
    - user_id: owner id from the identity provider, "anonymous" for guests
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Index, String, Text, text
from sqlalchemy.dialects.postgresql import JSONB, UUID, TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base


class Note(Base):
    """A user's note, as stored by the notes collaborator."""

    __tablename__ = "notes"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        server_default=text("gen_random_uuid()"),
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="anonymous",
        server_default=text("'anonymous'"),
        comment="Owner id from the identity provider",
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)

    tags: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        default="",
        comment="Comma-separated tag list",
    )

    language: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
        default="plain",
        comment="Editor/recognition language; missing is reported as 'plain'",
    )

    color: Mapped[str | None] = mapped_column(String(20), nullable=True, default="")

    location: Mapped[dict | None] = mapped_column(JSONB, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_notes_created_at", created_at.desc()),
        Index("idx_notes_user_id", "user_id"),
    )

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, user_id='{self.user_id}', created_at='{self.created_at}')>"
