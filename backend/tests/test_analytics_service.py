"""
Notebook Backend: Analytics Service Unit Tests
===============================================

What:  Tests for AnalyticsService query construction and error translation.
How:   Mock AsyncSession; the SELECT passed to execute() is compiled to SQL
       text to check scoping and windowing.

What we test:
    ✅ Owner filter only for real user ids (not absent/anonymous)
    ✅ Window lower bound derived from `days`
    ✅ Response envelopes (period, echoed user_id)
    ✅ Storage faults become StorageError with a per-operation category
"""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from app.exceptions import StorageError
from app.services.analytics_service import AnalyticsService, resolve_owner


def executed_sql(session) -> str:
    statement = session.execute.call_args.args[0]
    return str(statement)


def executed_params(session) -> dict:
    statement = session.execute.call_args.args[0]
    return statement.compile().params


class TestResolveOwner:
    def test_real_user(self):
        assert resolve_owner("u-1") == "u-1"

    def test_all_users(self):
        assert resolve_owner(None) is None
        assert resolve_owner("") is None
        assert resolve_owner("anonymous") is None


class TestGetSummary:
    """Tests for get_summary."""

    def setup_method(self):
        self.service = AnalyticsService()

    @pytest.mark.asyncio
    async def test_summary_all_users(self, mock_db_session, query_result, make_event, now):
        events = [make_event("note_created", days_ago=1), make_event("page_view", days_ago=2)]
        mock_db_session.execute.return_value = query_result(rows=events)

        response = await self.service.get_summary(mock_db_session, days=30, now=now)

        assert response.success is True
        assert response.period == "30 days"
        assert response.user_id == "all_users"
        assert response.data.total_events == 2
        assert response.data.events_by_type == {"note_created": 1, "page_view": 1}
        assert "analytics_events.user_id =" not in executed_sql(mock_db_session)

    @pytest.mark.asyncio
    async def test_summary_scoped_to_user(self, mock_db_session, query_result, now):
        mock_db_session.execute.return_value = query_result(rows=[])

        response = await self.service.get_summary(mock_db_session, user_id="u-7", now=now)

        assert response.user_id == "u-7"
        assert "analytics_events.user_id =" in executed_sql(mock_db_session)
        assert "u-7" in executed_params(mock_db_session).values()

    @pytest.mark.asyncio
    async def test_anonymous_means_all_users(self, mock_db_session, query_result, now):
        mock_db_session.execute.return_value = query_result(rows=[])

        response = await self.service.get_summary(mock_db_session, user_id="anonymous", now=now)

        assert response.user_id == "anonymous"
        assert "analytics_events.user_id =" not in executed_sql(mock_db_session)

    @pytest.mark.asyncio
    async def test_window_bound_and_order(self, mock_db_session, query_result, now):
        mock_db_session.execute.return_value = query_result(rows=[])

        response = await self.service.get_summary(mock_db_session, days=10, now=now)

        sql = executed_sql(mock_db_session)
        assert "analytics_events.created_at >=" in sql
        assert "ORDER BY analytics_events.created_at DESC" in sql
        assert now - timedelta(days=10) in executed_params(mock_db_session).values()
        assert response.period == "10 days"

    @pytest.mark.asyncio
    async def test_rows_outside_window_dropped(self, mock_db_session, query_result, make_event, now):
        events = [make_event(days_ago=d) for d in (40, 10, 1)]
        mock_db_session.execute.return_value = query_result(rows=events)

        response = await self.service.get_summary(mock_db_session, days=30, now=now)

        assert response.data.total_events == 2

    @pytest.mark.asyncio
    async def test_storage_fault(self, mock_db_session, now):
        mock_db_session.execute = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("connection refused"))
        )

        with pytest.raises(StorageError) as exc_info:
            await self.service.get_summary(mock_db_session, now=now)

        assert exc_info.value.message == "Failed to fetch analytics summary"
        assert "connection refused" in exc_info.value.details


class TestGetPopularTags:
    """Tests for get_popular_tags."""

    def setup_method(self):
        self.service = AnalyticsService()

    @pytest.mark.asyncio
    async def test_ranked_tags(self, mock_db_session, query_result):
        mock_db_session.execute.return_value = query_result(scalars=["Go, go, rust", "rust"])

        response = await self.service.get_popular_tags(mock_db_session)

        assert [(t.tag, t.count) for t in response.data] == [("go", 2), ("rust", 2)]
        assert response.total_unique_tags == 2
        sql = executed_sql(mock_db_session)
        assert "notes.tags IS NOT NULL" in sql
        assert "notes.user_id =" not in sql

    @pytest.mark.asyncio
    async def test_limit_and_scope(self, mock_db_session, query_result):
        mock_db_session.execute.return_value = query_result(scalars=["a, b, c"])

        response = await self.service.get_popular_tags(mock_db_session, user_id="u-1", limit=1)

        assert len(response.data) == 1
        assert response.total_unique_tags == 3
        assert "notes.user_id =" in executed_sql(mock_db_session)

    @pytest.mark.asyncio
    async def test_tag_contains_filter(self, mock_db_session, query_result):
        mock_db_session.execute.return_value = query_result(scalars=[])

        await self.service.get_popular_tags(mock_db_session, tag_contains="Rust")

        sql = executed_sql(mock_db_session)
        assert "lower(notes.tags) LIKE" in sql
        assert "Rust" in executed_params(mock_db_session).values()

    @pytest.mark.asyncio
    async def test_tag_contains_wildcards_escaped(self, mock_db_session, query_result):
        mock_db_session.execute.return_value = query_result(scalars=[])

        await self.service.get_popular_tags(mock_db_session, tag_contains="50%_off")

        assert "ESCAPE '/'" in executed_sql(mock_db_session)
        assert "50/%/_off" in executed_params(mock_db_session).values()

    @pytest.mark.asyncio
    async def test_notes_scanned_oldest_first(self, mock_db_session, query_result):
        """First-seen tie-breaking relies on a deterministic oldest-first scan."""
        mock_db_session.execute.return_value = query_result(scalars=[])

        await self.service.get_popular_tags(mock_db_session)

        assert "ORDER BY notes.created_at, notes.id" in executed_sql(mock_db_session)

    @pytest.mark.asyncio
    async def test_storage_fault(self, mock_db_session):
        mock_db_session.execute = AsyncMock(side_effect=RuntimeError("pool exhausted"))

        with pytest.raises(StorageError) as exc_info:
            await self.service.get_popular_tags(mock_db_session)

        assert exc_info.value.message == "Failed to fetch popular tags"
        assert exc_info.value.details == "pool exhausted"


class TestGetUsageStats:
    """Tests for get_usage_stats."""

    def setup_method(self):
        self.service = AnalyticsService()

    @pytest.mark.asyncio
    async def test_empty(self, mock_db_session, query_result, now):
        mock_db_session.execute.return_value = query_result(rows=[])

        response = await self.service.get_usage_stats(mock_db_session, user_id="u-1", now=now)

        assert response.user_id == "u-1"
        assert response.data.total_notes == 0
        assert response.data.languages_used == {}
        assert response.data.creation_pattern == {}

    @pytest.mark.asyncio
    async def test_stats(self, mock_db_session, query_result, make_note, now):
        notes = [make_note(language="python", days_ago=2), make_note(language=None, days_ago=20)]
        mock_db_session.execute.return_value = query_result(rows=notes)

        response = await self.service.get_usage_stats(mock_db_session, now=now)

        assert response.user_id == "all_users"
        assert response.data.total_notes == 2
        assert response.data.notes_this_week == 1
        assert response.data.notes_this_month == 2
        assert response.data.languages_used == {"python": 1, "plain": 1}
        assert response.data.creation_pattern == {"12": 2}

    @pytest.mark.asyncio
    async def test_storage_fault(self, mock_db_session, now):
        mock_db_session.execute = AsyncMock(side_effect=RuntimeError("timeout"))

        with pytest.raises(StorageError) as exc_info:
            await self.service.get_usage_stats(mock_db_session, now=now)

        assert exc_info.value.message == "Failed to fetch usage statistics"
