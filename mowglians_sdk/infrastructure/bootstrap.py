"""Bootstrap module building an application context from configuration."""

from __future__ import annotations

from ..application.context import MowgliansApp
from ..ports.auth import AuthPort
from ..ports.clock import ClockPort
from ..ports.logger import LoggerPort
from ..ports.notification import NotificationPort
from ..ports.remote_data import RemoteDataPort
from ..ports.session_store import SessionStorePort
from .config import MowgliansConfig
from .configuration_adapter import EnvironmentConfigurationAdapter
from .http_remote_data import HttpRemoteData
from .in_memory_auth import InMemoryAuth
from .in_memory_metrics import InMemoryMetrics
from .in_memory_remote_data import InMemoryRemoteData
from .notifiers import InMemoryNotifier
from .session_stores import FileSessionStore, InMemorySessionStore
from .simple_logger import SimpleLogger
from .system_clock import SystemClock


def create_app(
    config: MowgliansConfig | None = None,
    *,
    remote: RemoteDataPort | None = None,
    auth: AuthPort | None = None,
    session_store: SessionStorePort | None = None,
    notifier: NotificationPort | None = None,
    clock: ClockPort | None = None,
    logger: LoggerPort | None = None,
) -> MowgliansApp:
    """Build an application context with default adapters.

    Any collaborator passed explicitly replaces the default chosen from
    configuration.

    Args:
        config: Application configuration (loaded from the environment if None)
        remote: Remote data client
        auth: Authentication provider
        session_store: Persisted session store
        notifier: Notification sink
        clock: Clock
        logger: Logger

    Returns:
        A wired, not yet started, application context
    """
    config = config or EnvironmentConfigurationAdapter().load_configuration()
    logger = logger or SimpleLogger.from_level_name(config.log_level)
    clock = clock or SystemClock()

    if remote is None:
        if config.backend == "http":
            remote = HttpRemoteData(config.remote, logger=logger)
        else:
            remote = InMemoryRemoteData(clock=clock)

    if session_store is None:
        if config.session_store.path is not None:
            session_store = FileSessionStore(
                config.session_store.path,
                use_msgpack=config.session_store.use_msgpack,
                logger=logger,
            )
        else:
            session_store = InMemorySessionStore()

    app = MowgliansApp(
        remote=remote,
        auth=auth or InMemoryAuth(accept_any=config.environment == "development"),
        session_store=session_store,
        notifier=notifier or InMemoryNotifier(clock=clock),
        config=config,
        clock=clock,
        metrics=InMemoryMetrics(),
        logger=logger,
    )
    logger.debug(
        "Application context created",
        environment=config.environment,
        backend=config.backend,
    )
    return app
