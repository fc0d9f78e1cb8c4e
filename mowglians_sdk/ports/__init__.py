"""Ports layer - Interfaces for external collaborators."""

from .auth import AuthPort
from .clock import ClockPort
from .logger import LoggerPort
from .metrics import MetricsPort
from .notification import NotificationPort
from .remote_data import RemoteDataPort
from .session_store import SessionStorePort

__all__ = [
    "AuthPort",
    "ClockPort",
    "LoggerPort",
    "MetricsPort",
    "NotificationPort",
    "RemoteDataPort",
    "SessionStorePort",
]
