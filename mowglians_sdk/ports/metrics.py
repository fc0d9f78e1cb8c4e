"""Metrics port - counters, gauges and timings of the data layer.

The query cache and mutation executor report hit rates, fetch counts,
mutation outcomes and durations through this port without depending on a
concrete backend.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from typing import Any


class MetricsPort(ABC):
    """Abstract interface for metrics collection."""

    @abstractmethod
    def increment(self, name: str, value: int = 1) -> None:
        """Increment a counter, e.g. "query_cache.hits"."""
        ...

    @abstractmethod
    def gauge(self, name: str, value: float) -> None:
        """Set a gauge, e.g. "query_cache.size"."""
        ...

    @abstractmethod
    def timer(self, name: str) -> AbstractContextManager[Any]:
        """Time the enclosed block in milliseconds under ``name``.

        The duration is recorded even when the block raises.
        """
        ...

    @abstractmethod
    def snapshot(self) -> dict[str, Any]:
        """Current values as ``{"counters": ..., "gauges": ..., "timers": ...}``."""
        ...
