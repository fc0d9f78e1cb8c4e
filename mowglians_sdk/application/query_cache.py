"""Keyed cache of read results with invalidation and in-flight deduplication."""

from __future__ import annotations

import asyncio
import copy
import itertools
from collections.abc import Awaitable, Callable, Sequence
from contextlib import AbstractContextManager, nullcontext
from typing import Any

from ..domain.enums import QueryStatus, Severity
from ..domain.models import CacheEntry
from ..domain.value_objects import KeyPart, QueryKey
from ..infrastructure.config import QueryCacheConfig
from ..infrastructure.system_clock import SystemClock
from ..ports.clock import ClockPort
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort
from ..ports.notification import NotificationPort

Fetcher = Callable[[], Awaitable[Any]]
Listener = Callable[[CacheEntry], None]
KeyLike = QueryKey | Sequence[KeyPart] | str


def error_message(error: BaseException) -> str:
    """Best human-readable message for an exception."""
    return getattr(error, "message", None) or str(error) or type(error).__name__


class _QueryState:
    """Mutable bookkeeping for one query key, owned by the cache."""

    def __init__(self, key: QueryKey):
        self.key = key
        self.data: Any = None
        self.status = QueryStatus.PENDING
        self.error: str | None = None
        self.last_fetched_at = None
        self.stale = False
        self.resolved = False
        self.fetcher: Fetcher | None = None
        self.in_flight: asyncio.Task | None = None
        self.fetch_started = False
        self.subscribers: list[Subscription] = []
        self.waiters = 0
        self.last_access = 0

    @property
    def has_consumers(self) -> bool:
        return bool(self.subscribers) or self.waiters > 0

    @property
    def is_idle(self) -> bool:
        return not self.has_consumers and self.in_flight is None

    def snapshot(self) -> CacheEntry:
        data = self.data
        if isinstance(data, list | dict):
            data = copy.copy(data)
        return CacheEntry(
            key=self.key,
            data=data,
            status=self.status,
            error=self.error,
            last_fetched_at=self.last_fetched_at,
            stale=self.stale,
            is_fetching=self.in_flight is not None,
        )


class Subscription:
    """A consumer's registered interest in one query key.

    The listener receives a snapshot after every completed fetch of the key
    until :meth:`unsubscribe` is called. Results that resolve after
    unsubscribing are never delivered.
    """

    def __init__(self, cache: QueryCache, key: QueryKey, listener: Listener):
        self._cache = cache
        self._key = key
        self._listener = listener
        self._active = True

    @property
    def key(self) -> QueryKey:
        """The subscribed key."""
        return self._key

    @property
    def active(self) -> bool:
        """Whether the subscription still receives updates."""
        return self._active

    def current(self) -> CacheEntry | None:
        """Snapshot of the subscribed entry, if any."""
        return self._cache.get_entry(self._key)

    def unsubscribe(self) -> None:
        """Stop receiving updates. Calling it twice is harmless."""
        if not self._active:
            return
        self._active = False
        self._cache._detach(self)

    def _deliver(self, entry: CacheEntry) -> None:
        if self._active:
            self._listener(entry)

    def __enter__(self) -> Subscription:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unsubscribe()


class QueryCache:
    """Process-wide cache of read operations keyed by :class:`QueryKey`.

    Reads of an equal key share one in-flight fetch. Invalidation marks
    entries stale; stale entries with live subscribers are re-fetched in the
    background, and invalidations arriving mid-fetch are coalesced into a
    single follow-up fetch. Failed fetches keep the previous data.
    """

    def __init__(
        self,
        config: QueryCacheConfig | None = None,
        notifier: NotificationPort | None = None,
        clock: ClockPort | None = None,
        metrics: MetricsPort | None = None,
        logger: LoggerPort | None = None,
    ):
        """Initialize the query cache.

        Args:
            config: Cache configuration (defaults used if None)
            notifier: Optional sink for failed-fetch notifications
            clock: Clock stamping fetch times (system UTC clock if None)
            metrics: Optional metrics port for cache statistics
            logger: Optional logger for debugging
        """
        self._config = config or QueryCacheConfig()
        self._notifier = notifier
        self._clock = clock or SystemClock()
        self._metrics = metrics
        self._logger = logger
        self._states: dict[QueryKey, _QueryState] = {}
        self._access_counter = itertools.count(1)
        self._closed = False

        self._total_requests = 0
        self._cache_hits = 0
        self._cache_misses = 0
        self._deduplicated = 0
        self._fetches = 0
        self._invalidations = 0

    # Reads

    async def read(self, key: KeyLike, fetcher: Fetcher, *, force: bool = False) -> CacheEntry:
        """Read a key through the cache.

        Args:
            key: The query key (a QueryKey, a tuple/list of parts, or a name)
            fetcher: Coroutine function producing fresh data
            force: Fetch even if a fresh entry exists

        Returns:
            Snapshot of the entry after any required fetch; fetch failures are
            recorded on the entry rather than raised
        """
        self._ensure_open()
        state = self._get_or_create(QueryKey.coerce(key))
        state.fetcher = fetcher
        self._total_requests += 1

        if state.in_flight is not None:
            self._deduplicated += 1
            self._increment("query_cache.deduplicated")
            return await self._wait(state)

        if state.resolved and not state.stale and not force:
            self._record_hit(state.key)
            return state.snapshot()

        self._record_miss(state.key)
        self._start_fetch(state)
        return await self._wait(state)

    async def refetch(self, key: KeyLike, fetcher: Fetcher) -> CacheEntry:
        """Fetch a key again regardless of freshness (consumer-driven retry)."""
        return await self.read(key, fetcher, force=True)

    def get_entry(self, key: KeyLike) -> CacheEntry | None:
        """Snapshot of a key without fetching, or None if never read."""
        state = self._states.get(QueryKey.coerce(key))
        return state.snapshot() if state is not None else None

    def get_data(self, key: KeyLike) -> Any | None:
        """Cached data of a key without fetching."""
        entry = self.get_entry(key)
        return entry.data if entry is not None else None

    def subscribe(self, key: KeyLike, fetcher: Fetcher, listener: Listener) -> Subscription:
        """Register interest in a key.

        A background fetch starts when the entry is absent or stale. Must be
        called from within a running event loop.

        Args:
            key: The query key
            fetcher: Coroutine function used for this and later background fetches
            listener: Called with a snapshot after every completed fetch

        Returns:
            The subscription; call ``unsubscribe()`` on teardown
        """
        self._ensure_open()
        state = self._get_or_create(QueryKey.coerce(key))
        state.fetcher = fetcher
        subscription = Subscription(self, state.key, listener)
        state.subscribers.append(subscription)

        if state.in_flight is None and (not state.resolved or state.stale):
            self._record_miss(state.key)
            self._start_fetch(state)

        if self._logger:
            self._logger.debug(
                "Query subscribed",
                query_key=str(state.key),
                subscribers=len(state.subscribers),
            )
        return subscription

    # Invalidation

    def invalidate(self, key: KeyLike, *, exact: bool = False) -> int:
        """Mark matching entries stale.

        Args:
            key: The key, or key prefix when ``exact`` is False
            exact: Only match an equal key

        Returns:
            Number of entries matched
        """
        target = QueryKey.coerce(key)
        matched = [state for k, state in self._states.items() if k.matches(target, exact)]
        for state in matched:
            self._invalidate_state(state)

        self._invalidations += 1
        self._increment("query_cache.invalidations")
        if self._logger:
            self._logger.info(
                "Invalidated query cache entries",
                query_key=str(target),
                exact=exact,
                entries_matched=len(matched),
            )
        return len(matched)

    def remove(self, key: KeyLike, *, exact: bool = False) -> int:
        """Drop matching entries.

        Entries that still have consumers or a fetch in flight cannot be
        dropped; they are invalidated instead.

        Returns:
            Number of entries dropped
        """
        target = QueryKey.coerce(key)
        removed = 0
        for k, state in list(self._states.items()):
            if not k.matches(target, exact):
                continue
            if state.is_idle:
                del self._states[k]
                removed += 1
            else:
                self._invalidate_state(state)
        if self._logger:
            self._logger.debug(
                "Removed query cache entries", query_key=str(target), removed=removed
            )
        return removed

    def _invalidate_state(self, state: _QueryState) -> None:
        if state.in_flight is not None:
            # A fetch that has not started yet will see the latest data anyway.
            if state.fetch_started:
                state.stale = True
            return

        state.stale = True
        if state.subscribers and state.fetcher is not None and not self._closed:
            self._start_fetch(state)

    # Fetch lifecycle

    def _start_fetch(self, state: _QueryState) -> None:
        fetcher = state.fetcher
        if fetcher is None:
            raise RuntimeError(f"No fetcher registered for query key '{state.key}'")

        previous = (state.status, state.stale, state.resolved)
        state.status = QueryStatus.PENDING
        state.fetch_started = False
        state.in_flight = asyncio.create_task(self._fetch(state, fetcher, previous))

    async def _fetch(
        self,
        state: _QueryState,
        fetcher: Fetcher,
        previous: tuple[QueryStatus, bool, bool],
    ) -> None:
        state.fetch_started = True
        state.stale = False
        self._fetches += 1
        self._increment("query_cache.fetches")

        failure: Exception | None = None
        data: Any = None
        try:
            with self._timer("query_cache.fetch_duration_ms"):
                data = await fetcher()
        except Exception as e:
            failure = e
        finally:
            state.in_flight = None
            state.fetch_started = False

        if not state.has_consumers:
            self._discard(state, previous)
            return

        if failure is None:
            state.data = data
            state.status = QueryStatus.SUCCESS
            state.error = None
            state.last_fetched_at = self._clock.now()
        else:
            state.status = QueryStatus.ERROR
            state.error = error_message(failure)
            self._report_failure(state, failure)
        state.resolved = True

        snapshot = state.snapshot()
        for subscription in list(state.subscribers):
            try:
                subscription._deliver(snapshot)
            except Exception as e:
                if self._logger:
                    self._logger.exception(
                        "Query listener failed",
                        exc_info=e,
                        query_key=str(state.key),
                    )

        if state.stale and state.subscribers and not self._closed:
            self._start_fetch(state)

        self._enforce_max_entries()

    def _discard(self, state: _QueryState, previous: tuple[QueryStatus, bool, bool]) -> None:
        """Drop the result of a fetch nobody is waiting for anymore."""
        status, stale, resolved = previous
        if not resolved:
            self._states.pop(state.key, None)
        else:
            state.status = status
            state.stale = stale or state.stale
        if self._logger:
            self._logger.debug("Discarded orphaned fetch result", query_key=str(state.key))

    def _report_failure(self, state: _QueryState, failure: Exception) -> None:
        self._increment("query_cache.fetch_errors")
        if self._logger:
            self._logger.error(
                "Query fetch failed",
                query_key=str(state.key),
                error=state.error,
                error_type=type(failure).__name__,
                kept_previous_data=state.data is not None,
            )
        if self._config.notify_on_error and self._notifier:
            self._notifier.notify(Severity.ERROR, self._config.error_title, state.error)

    async def _wait(self, state: _QueryState) -> CacheEntry:
        task = state.in_flight
        state.waiters += 1
        try:
            if task is not None:
                await asyncio.shield(task)
        finally:
            state.waiters -= 1
        return state.snapshot()

    # Bookkeeping

    def _get_or_create(self, key: QueryKey) -> _QueryState:
        state = self._states.get(key)
        if state is None:
            state = _QueryState(key)
            self._states[key] = state
        state.last_access = next(self._access_counter)
        return state

    def _detach(self, subscription: Subscription) -> None:
        state = self._states.get(subscription.key)
        if state is not None and subscription in state.subscribers:
            state.subscribers.remove(subscription)
            if self._logger:
                self._logger.debug(
                    "Query unsubscribed",
                    query_key=str(state.key),
                    subscribers=len(state.subscribers),
                )

    def _enforce_max_entries(self) -> None:
        """Evict least-recently-used idle entries beyond the configured size."""
        limit = self._config.max_entries
        if limit is None or len(self._states) <= limit:
            return

        idle = sorted(
            (state for state in self._states.values() if state.is_idle),
            key=lambda s: s.last_access,
        )
        for state in idle[: len(self._states) - limit]:
            del self._states[state.key]
            if self._logger:
                self._logger.debug("Evicted LRU query cache entry", query_key=str(state.key))
        self._gauge("query_cache.size", len(self._states))

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Query cache is closed")

    def _record_hit(self, key: QueryKey) -> None:
        self._cache_hits += 1
        self._increment("query_cache.hits")
        if self._logger:
            self._logger.debug(
                "Query cache hit", query_key=str(key), hit_rate=self._get_hit_rate()
            )

    def _record_miss(self, key: QueryKey) -> None:
        self._cache_misses += 1
        self._increment("query_cache.misses")
        if self._logger:
            self._logger.debug(
                "Query cache miss", query_key=str(key), hit_rate=self._get_hit_rate()
            )

    def _increment(self, name: str) -> None:
        if self._config.enable_metrics and self._metrics:
            self._metrics.increment(name)

    def _gauge(self, name: str, value: float) -> None:
        if self._config.enable_metrics and self._metrics:
            self._metrics.gauge(name, value)

    def _timer(self, name: str) -> AbstractContextManager[Any]:
        if self._config.enable_metrics and self._metrics:
            return self._metrics.timer(name)
        return nullcontext()

    def _get_hit_rate(self) -> float:
        total = self._cache_hits + self._cache_misses
        if total == 0:
            return 0.0
        return self._cache_hits / total

    # Lifecycle

    def clear(self) -> None:
        """Drop every idle entry. Entries with consumers or fetches in flight are kept."""
        for key in [k for k, state in self._states.items() if state.is_idle]:
            del self._states[key]
        if self._logger:
            self._logger.info("Cleared query cache", remaining=len(self._states))

    async def close(self) -> None:
        """Cancel background fetches and detach all subscribers."""
        self._closed = True
        tasks = [state.in_flight for state in self._states.values() if state.in_flight]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        for state in self._states.values():
            for subscription in list(state.subscribers):
                subscription.unsubscribe()
        if self._logger:
            self._logger.info("Query cache closed", cancelled_fetches=len(tasks))

    @property
    def clock(self) -> ClockPort:
        """Clock stamping fetch times."""
        return self._clock

    @property
    def closed(self) -> bool:
        """Whether :meth:`close` has been called."""
        return self._closed

    def get_cache_stats(self) -> dict[str, Any]:
        """Get cache statistics."""
        return {
            "total_requests": self._total_requests,
            "cache_hits": self._cache_hits,
            "cache_misses": self._cache_misses,
            "deduplicated": self._deduplicated,
            "fetches": self._fetches,
            "invalidations": self._invalidations,
            "hit_rate": self._get_hit_rate(),
            "cache_size": len(self._states),
            "config": {
                "max_entries": self._config.max_entries,
                "notify_on_error": self._config.notify_on_error,
                "enable_metrics": self._config.enable_metrics,
            },
        }
