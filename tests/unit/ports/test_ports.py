"""Tests for the port abstractions."""

import pytest

from mowglians_sdk.domain.enums import Severity
from mowglians_sdk.domain.value_objects import Identity
from mowglians_sdk.ports import (
    AuthPort,
    ClockPort,
    LoggerPort,
    MetricsPort,
    NotificationPort,
    RemoteDataPort,
    SessionStorePort,
)


class TestPortsAreAbstract:
    """Ports cannot be instantiated without implementations."""

    @pytest.mark.parametrize(
        "port",
        [
            AuthPort,
            ClockPort,
            LoggerPort,
            MetricsPort,
            NotificationPort,
            RemoteDataPort,
            SessionStorePort,
        ],
    )
    def test_port_is_abstract(self, port):
        """Test that the port cannot be instantiated directly."""
        with pytest.raises(TypeError, match="Can't instantiate abstract class"):
            port()


class TestMinimalImplementations:
    """Subclasses implementing every method are usable."""

    def test_notification_port(self):
        """Test a minimal notification sink."""

        class ListNotifier(NotificationPort):
            def __init__(self):
                self.items = []

            def notify(self, severity, title, description=None):
                self.items.append((severity, title, description))

        notifier = ListNotifier()
        notifier.notify(Severity.ERROR, "Failed to load data", "offline")

        assert notifier.items == [(Severity.ERROR, "Failed to load data", "offline")]

    @pytest.mark.asyncio
    async def test_auth_port(self):
        """Test a minimal authentication provider."""

        class StaticAuth(AuthPort):
            async def sign_in(self, email, password):
                return Identity(id="u1", email=email)

            async def sign_up(self, email, password):
                return Identity(id="u2", email=email)

            async def sign_out(self):
                return None

        auth = StaticAuth()

        assert (await auth.sign_in("a@b.co", "pw")).id == "u1"
        assert (await auth.sign_up("a@b.co", "pw")).id == "u2"
        assert await auth.sign_out() is None
