"""
Notebook Backend: Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the test suite.
How:   No database is needed: services get a mocked AsyncSession, and the
       HTTP tests route requests straight into the ASGI app with the
       session dependency overridden.

Fixtures:
    ├── mock_db_session: Mock AsyncSession (execute/commit/rollback/add)
    ├── now:             Fixed "current time" for window arithmetic
    ├── make_event:      Factory for analytics event rows
    ├── make_note:       Factory for note rows
    ├── query_result:    Factory for mocked SQLAlchemy results
    └── test_client:     HTTPX AsyncClient bound to the app
"""

import os
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

# Must be set before app.config is imported anywhere
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("ANALYTICS_TIMEZONE", "UTC")

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def now():
    return NOW


@pytest.fixture
def mock_db_session():
    """
    A mock async database session.

    Usage:
        result = MagicMock()
        result.all.return_value = [row, row]
        mock_db_session.execute.return_value = result
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def make_event():
    """Builds an analytics event row `days_ago`/`hours_ago` before NOW."""

    def _make(event_type="page_view", days_ago=0, hours_ago=0, user_id="user-1", **extra):
        return SimpleNamespace(
            id=extra.pop("id", uuid.uuid4()),
            event_type=event_type,
            event_data=extra.pop("event_data", {}),
            user_id=user_id,
            session_id=extra.pop("session_id", "session-1"),
            created_at=extra.pop(
                "created_at", NOW - timedelta(days=days_ago, hours=hours_ago)
            ),
        )

    return _make


@pytest.fixture
def make_note():
    """Builds a note row with the columns the aggregations read."""

    def _make(tags=None, language="plain", days_ago=0, created_at=None):
        return SimpleNamespace(
            id=uuid.uuid4(),
            tags=tags,
            language=language,
            created_at=created_at or NOW - timedelta(days=days_ago),
        )

    return _make


@pytest.fixture
def query_result():
    """Factory for MagicMocks shaped like a SQLAlchemy Result (.all(), .scalars().all())."""

    def _make(rows=None, scalars=None):
        result = MagicMock()
        result.all.return_value = list(rows or [])
        result.scalars.return_value.all.return_value = list(scalars or [])
        return result

    return _make


@pytest_asyncio.fixture
async def test_client(mock_db_session):
    """
    HTTPX AsyncClient talking to the app in-process.

    get_db_session is overridden with mock_db_session, so tests configure
    the session mock to drive the services.
    """
    from app.database import get_db_session
    from app.main import app

    async def _override_session():
        yield mock_db_session

    app.dependency_overrides[get_db_session] = _override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()
