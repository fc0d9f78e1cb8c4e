"""Tests for the application context."""

from unittest.mock import AsyncMock, Mock

import pytest

from mowglians_sdk.application.context import MowgliansApp
from mowglians_sdk.domain.enums import SessionState
from mowglians_sdk.domain.models import Tables
from mowglians_sdk.infrastructure.config import MowgliansConfig, QueryCacheConfig
from tests.builders import seed_adoption_data


class TestMowgliansApp:
    """Wiring and lifecycle."""

    def test_components_share_cache_and_clock(self, app, fixed_clock):
        """Every use case reads through the same cache."""
        assert app.clock is fixed_clock
        assert app.pets._cache is app.cache
        assert app.adoptions._cache is app.cache
        assert app.session._cache is app.cache
        assert app.executor._cache is app.cache
        assert not app.started

    @pytest.mark.asyncio
    async def test_start_resolves_session(self, app):
        """Starting resolves the persisted session."""
        session = await app.start()

        assert app.started
        assert session.state == SessionState.ANONYMOUS

    @pytest.mark.asyncio
    async def test_contexts_are_isolated(self, remote, auth, session_store, notifier):
        """Two contexts never share cached data."""
        first = MowgliansApp(remote, auth, session_store, notifier)
        second = MowgliansApp(remote, auth, session_store, notifier)
        seed_adoption_data(remote)

        await first.pets.list_available()

        assert first.cache.get_entry(("available-pets",)) is not None
        assert second.cache.get_entry(("available-pets",)) is None
        await first.close()
        await second.close()

    @pytest.mark.asyncio
    async def test_cache_configuration_is_applied(self, remote, auth, session_store, notifier):
        """Cache settings come from the application configuration."""
        config = MowgliansConfig(cache=QueryCacheConfig(notify_on_error=False))
        app = MowgliansApp(remote, auth, session_store, notifier, config=config)
        remote.fail_next("select", RuntimeError("boom"), table=Tables.PETS)

        entry = await app.pets.list_available()
        await app.close()

        assert entry.error == "boom"
        assert notifier.notifications == []

    @pytest.mark.asyncio
    async def test_stats_combine_cache_and_metrics(
        self, remote, auth, session_store, notifier, metrics
    ):
        """Cache statistics and collected metrics are reported together."""
        app = MowgliansApp(remote, auth, session_store, notifier, metrics=metrics)
        seed_adoption_data(remote)

        await app.pets.list_available()
        stats = app.get_stats()
        await app.close()

        assert stats["cache"]["fetches"] == 1
        assert stats["metrics"]["counters"]["query_cache.misses"] == 1
        assert stats["metrics"]["timers"]["query_cache.fetch_duration_ms"]["count"] == 1

    @pytest.mark.asyncio
    async def test_stats_without_metrics(self, remote, auth, session_store, notifier):
        """Contexts without a collector report empty metrics."""
        app = MowgliansApp(remote, auth, session_store, notifier)

        assert app.get_stats()["metrics"] == {}
        await app.close()

    @pytest.mark.asyncio
    async def test_close_releases_remote_client(self, auth, session_store, notifier):
        """Remote clients with a close method are closed."""
        remote = Mock()
        remote.close = AsyncMock()

        async with MowgliansApp(remote, auth, session_store, notifier) as app:
            assert app.started

        remote.close.assert_awaited_once()
        assert app.cache.closed
        assert not app.started

    @pytest.mark.asyncio
    async def test_end_to_end_review(self, app, remote, notifier):
        """An admin signs in, sees the console and approves a request."""
        seed_adoption_data(remote)
        remote.seed(Tables.USER_ROLES, [{"id": "r1", "user_id": "u1", "role": "admin"}])
        await app.start()
        await app.session.sign_in("admin@example.com", "secret123")

        decision = await app.routes.resolve("/admin")
        requests = await app.adoptions.list_requests()
        result = await app.adoptions.approve(requests.data[0].id)

        assert decision.view == "admin"
        assert result.ok
        assert remote.get_row(Tables.PETS, "p1")["status"] == "adopted"
        assert notifier.last().title == "Adoption request updated"
