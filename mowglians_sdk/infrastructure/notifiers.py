"""Notification sink implementations."""

from ..domain.enums import Severity
from ..domain.models import Notification
from ..ports.clock import ClockPort
from ..ports.logger import LoggerPort
from ..ports.notification import NotificationPort


class InMemoryNotifier(NotificationPort):
    """Records notifications so they can be listed and dismissed."""

    def __init__(self, clock: ClockPort | None = None):
        self._clock = clock
        self._notifications: list[Notification] = []

    def notify(self, severity: Severity, title: str, description: str | None = None) -> None:
        """Record a notification."""
        notification = Notification(severity=severity, title=title, description=description)
        if self._clock is not None:
            notification.created_at = self._clock.now()
        self._notifications.append(notification)

    @property
    def notifications(self) -> list[Notification]:
        """All recorded notifications, oldest first."""
        return list(self._notifications)

    @property
    def active(self) -> list[Notification]:
        """Notifications not yet dismissed."""
        return [n for n in self._notifications if not n.dismissed]

    def last(self) -> Notification | None:
        """The most recent notification."""
        return self._notifications[-1] if self._notifications else None

    def of_severity(self, severity: Severity) -> list[Notification]:
        """Notifications with the given severity."""
        return [n for n in self._notifications if n.severity == severity]

    def dismiss(self, notification_id: str) -> bool:
        """Dismiss one notification. Returns False when the id is unknown."""
        for notification in self._notifications:
            if notification.id == notification_id:
                notification.dismissed = True
                return True
        return False

    def dismiss_all(self) -> None:
        """Dismiss every notification."""
        for notification in self._notifications:
            notification.dismissed = True

    def clear(self) -> None:
        """Forget all notifications."""
        self._notifications.clear()


class LoggingNotifier(NotificationPort):
    """Writes notifications to a logger; useful for headless runs."""

    def __init__(self, logger: LoggerPort):
        self._logger = logger

    def notify(self, severity: Severity, title: str, description: str | None = None) -> None:
        """Log the notification at a level matching its severity."""
        if severity == Severity.ERROR:
            self._logger.error(title, description=description)
        else:
            self._logger.info(title, description=description)
