"""Persisted session store port."""

from abc import ABC, abstractmethod

from ..domain.models import SerializedSession


class SessionStorePort(ABC):
    """Abstract interface for storing the signed-in session across restarts.

    Operations are synchronous and local to the running instance.
    """

    @abstractmethod
    def get(self) -> SerializedSession | None:
        """Return the persisted session, or None when nothing is stored."""
        ...

    @abstractmethod
    def set(self, session: SerializedSession) -> None:
        """Persist the session, replacing any previous record."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Remove the persisted session. Clearing an empty store is a no-op."""
        ...
