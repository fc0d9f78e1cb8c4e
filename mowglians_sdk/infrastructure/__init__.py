"""Infrastructure layer - Concrete implementations of ports.

The bootstrap module is not imported here because it depends on the
application layer; import it as ``mowglians_sdk.infrastructure.bootstrap``.
"""

from .config import (
    MowgliansConfig,
    QueryCacheConfig,
    RemoteDataConfig,
    SessionConfig,
    SessionStoreConfig,
)
from .configuration_adapter import EnvironmentConfigurationAdapter
from .http_remote_data import HttpRemoteData
from .in_memory_auth import InMemoryAuth
from .in_memory_metrics import InMemoryMetrics
from .in_memory_remote_data import InMemoryRemoteData
from .notifiers import InMemoryNotifier, LoggingNotifier
from .session_stores import FileSessionStore, InMemorySessionStore
from .simple_logger import SimpleLogger
from .system_clock import FixedClock, SystemClock

__all__ = [
    "EnvironmentConfigurationAdapter",
    "FileSessionStore",
    "FixedClock",
    "HttpRemoteData",
    "InMemoryAuth",
    "InMemoryMetrics",
    "InMemoryNotifier",
    "InMemoryRemoteData",
    "InMemorySessionStore",
    "LoggingNotifier",
    "MowgliansConfig",
    "QueryCacheConfig",
    "RemoteDataConfig",
    "SessionConfig",
    "SessionStoreConfig",
    "SimpleLogger",
    "SystemClock",
]
