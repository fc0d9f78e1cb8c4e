"""In-memory metrics for a single application context."""

import time
from collections import defaultdict
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from ..ports.metrics import MetricsPort


class TimingStats:
    """Running totals of one timer, in milliseconds."""

    def __init__(self):
        self.count = 0
        self.total_ms = 0.0
        self.max_ms = 0.0

    def observe(self, duration_ms: float) -> None:
        self.count += 1
        self.total_ms += duration_ms
        self.max_ms = max(self.max_ms, duration_ms)

    def as_dict(self) -> dict[str, float]:
        return {
            "count": self.count,
            "average_ms": round(self.total_ms / self.count, 3) if self.count else 0.0,
            "max_ms": round(self.max_ms, 3),
        }


class InMemoryMetrics(MetricsPort):
    """Keeps counters, gauges and timer totals in process memory.

    Owned by the application context; nothing is exported.
    """

    def __init__(self):
        self._counters: dict[str, int] = defaultdict(int)
        self._gauges: dict[str, float] = {}
        self._timers: dict[str, TimingStats] = defaultdict(TimingStats)

    def increment(self, name: str, value: int = 1) -> None:
        self._counters[name] += value

    def gauge(self, name: str, value: float) -> None:
        self._gauges[name] = value

    @contextmanager
    def timer(self, name: str) -> Iterator[None]:
        start = time.perf_counter()
        try:
            yield
        finally:
            self._timers[name].observe((time.perf_counter() - start) * 1000)

    def snapshot(self) -> dict[str, Any]:
        return {
            "counters": dict(self._counters),
            "gauges": dict(self._gauges),
            "timers": {name: stats.as_dict() for name, stats in self._timers.items()},
        }
