"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime
from unittest.mock import Mock

import pytest
import pytest_asyncio

from mowglians_sdk.application.mutation_executor import MutationExecutor
from mowglians_sdk.application.query_cache import QueryCache
from mowglians_sdk.infrastructure.bootstrap import create_app
from mowglians_sdk.infrastructure.config import MowgliansConfig, QueryCacheConfig
from mowglians_sdk.infrastructure.in_memory_auth import InMemoryAuth
from mowglians_sdk.infrastructure.in_memory_metrics import InMemoryMetrics
from mowglians_sdk.infrastructure.in_memory_remote_data import InMemoryRemoteData
from mowglians_sdk.infrastructure.notifiers import InMemoryNotifier
from mowglians_sdk.infrastructure.session_stores import InMemorySessionStore
from mowglians_sdk.infrastructure.system_clock import FixedClock


@pytest.fixture
def fixed_clock():
    """Create a clock frozen at a known instant."""
    return FixedClock(datetime(2025, 1, 15, 12, 0, tzinfo=UTC))


@pytest.fixture
def mock_logger():
    """Create a mock logger."""
    logger = Mock()
    logger.debug = Mock()
    logger.info = Mock()
    logger.warning = Mock()
    logger.error = Mock()
    logger.exception = Mock()
    return logger


@pytest.fixture
def notifier(fixed_clock):
    """Create an in-memory notification sink."""
    return InMemoryNotifier(clock=fixed_clock)


@pytest.fixture
def metrics():
    """Create an in-memory metrics collector."""
    return InMemoryMetrics()


@pytest.fixture
def remote(fixed_clock):
    """Create an in-memory remote data client."""
    return InMemoryRemoteData(clock=fixed_clock)


@pytest.fixture
def session_store():
    """Create an in-memory session store."""
    return InMemorySessionStore()


@pytest.fixture
def auth():
    """Create an in-memory auth provider with one registered account."""
    provider = InMemoryAuth()
    provider.register("admin@example.com", "secret123", identity_id="u1")
    return provider


@pytest_asyncio.fixture
async def cache(notifier, fixed_clock, metrics, mock_logger):
    """Create a query cache and close it after the test."""
    query_cache = QueryCache(
        config=QueryCacheConfig(),
        notifier=notifier,
        clock=fixed_clock,
        metrics=metrics,
        logger=mock_logger,
    )
    yield query_cache
    await query_cache.close()


@pytest.fixture
def executor(cache, notifier, metrics, mock_logger):
    """Create a mutation executor bound to the cache."""
    return MutationExecutor(cache, notifier, metrics=metrics, logger=mock_logger)


@pytest_asyncio.fixture
async def app(remote, auth, session_store, notifier, fixed_clock, mock_logger):
    """Create an application context wired to in-memory adapters."""
    application = create_app(
        MowgliansConfig(),
        remote=remote,
        auth=auth,
        session_store=session_store,
        notifier=notifier,
        clock=fixed_clock,
        logger=mock_logger,
    )
    yield application
    await application.close()
