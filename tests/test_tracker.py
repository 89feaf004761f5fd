"""Tests for the indexed / in-flight URL state tracker."""

import aiohttp
import pytest

from kb_indexer.core.errors import ApiError
from kb_indexer.core.tracker import IndexStateTracker


class TestRefresh:
    @pytest.mark.asyncio
    async def test_refresh_replaces_set_wholesale(self, service):
        tracker = IndexStateTracker(service)
        tracker.add_indexed(["https://stale.com"])
        service.stored = {"https://a.com", "https://b.com"}

        error = await tracker.refresh()

        assert error is None
        assert tracker.indexed_urls == frozenset({"https://a.com", "https://b.com"})
        assert not tracker.is_indexed("https://stale.com")
        assert tracker.loading is False

    @pytest.mark.asyncio
    async def test_refresh_failure_keeps_last_known_set(self, service):
        tracker = IndexStateTracker(service)
        service.stored = {"https://a.com"}
        await tracker.refresh()

        service.refresh_error = ApiError("Database unavailable", code="INTERNAL_ERROR")
        error = await tracker.refresh()

        assert error == "Database unavailable"
        assert tracker.error == "Database unavailable"
        assert tracker.is_indexed("https://a.com")
        assert tracker.loading is False

    @pytest.mark.asyncio
    async def test_refresh_never_raises_on_network_error(self, service):
        tracker = IndexStateTracker(service)
        service.refresh_error = aiohttp.ClientConnectionError("connection refused")

        error = await tracker.refresh()

        assert "connection refused" in error
        assert tracker.indexed_urls == frozenset()

    @pytest.mark.asyncio
    async def test_successful_refresh_clears_previous_error(self, service):
        tracker = IndexStateTracker(service)
        service.refresh_error = RuntimeError("boom")
        await tracker.refresh()
        service.refresh_error = None

        assert await tracker.refresh() is None
        assert tracker.error is None


class TestMembership:
    def test_direct_membership(self, service):
        tracker = IndexStateTracker(service)
        tracker.add_indexed(["https://a.com"])

        assert tracker.is_indexed("https://a.com")
        assert not tracker.is_indexed("https://b.com")
        assert not tracker.is_indexed("")

    def test_composite_url_indexed_if_any_part_is(self, service):
        tracker = IndexStateTracker(service)
        tracker.add_indexed(["https://b.com"])

        assert tracker.is_indexed("https://a.com and https://b.com")
        assert not tracker.is_indexed("https://a.com and https://c.com")

    def test_in_flight_is_idempotent(self, service):
        tracker = IndexStateTracker(service)
        tracker.mark_in_flight(["https://a.com"])
        tracker.mark_in_flight(["https://a.com"])
        assert tracker.is_indexing("https://a.com")

        tracker.clear_in_flight(["https://a.com"])
        tracker.clear_in_flight(["https://a.com"])
        assert not tracker.is_indexing("https://a.com")
        assert tracker.in_flight_urls == frozenset()

    def test_indexed_view_is_read_only(self, service):
        tracker = IndexStateTracker(service)
        tracker.add_indexed(["https://a.com"])

        with pytest.raises(AttributeError):
            tracker.indexed_urls.add("https://b.com")
