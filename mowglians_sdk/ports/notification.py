"""Notification port - user-facing message sink."""

from abc import ABC, abstractmethod

from ..domain.enums import Severity


class NotificationPort(ABC):
    """Abstract interface for surfacing messages to the user.

    Implementations must not block or suspend the caller.
    """

    @abstractmethod
    def notify(self, severity: Severity, title: str, description: str | None = None) -> None:
        """Show a dismissible message.

        Args:
            severity: INFO for confirmations, ERROR for failures
            title: Short headline
            description: Optional detail text
        """
        ...
