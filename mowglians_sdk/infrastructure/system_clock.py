"""Clock implementations."""

from datetime import UTC, datetime

from ..ports.clock import ClockPort


class SystemClock(ClockPort):
    """Default clock returning the current UTC time."""

    def now(self) -> datetime:
        """Get the current UTC time."""
        return datetime.now(UTC)


class FixedClock(ClockPort):
    """Clock frozen at a given instant, advanced manually.

    Used by tests and by deterministic replays.
    """

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._instant = instant

    def now(self) -> datetime:
        """Return the frozen instant."""
        return self._instant

    def set(self, instant: datetime) -> None:
        """Move the clock to a new instant."""
        if instant.tzinfo is None:
            raise ValueError("FixedClock requires a timezone-aware datetime")
        self._instant = instant
