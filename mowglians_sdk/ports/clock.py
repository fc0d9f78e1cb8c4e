"""Clock port abstraction for time handling."""

from abc import ABC, abstractmethod
from datetime import datetime


class ClockPort(ABC):
    """Abstract clock interface.

    Used to stamp fetch times, notifications and persisted sessions so that
    tests can control time.
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time as a timezone-aware datetime.

        Note:
            Implementations MUST return timezone-aware datetimes.
        """
        ...
