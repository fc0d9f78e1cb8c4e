"""Application context owning the cache, executor, session and use cases."""

from __future__ import annotations

from typing import Any

from ..domain.models import Session
from ..infrastructure.config import MowgliansConfig
from ..ports.auth import AuthPort
from ..ports.clock import ClockPort
from ..ports.logger import LoggerPort
from ..ports.metrics import MetricsPort
from ..ports.notification import NotificationPort
from ..ports.remote_data import RemoteDataPort
from ..ports.session_store import SessionStorePort
from .admin_use_cases import FundsManager, GalleryManager, UsersManager
from .adoption_use_cases import AdoptionsManager, DonationsManager
from .mutation_executor import MutationExecutor
from .query_cache import QueryCache
from .routing import RouteTable
from .session import SessionManager
from .use_cases import PetCatalog, ProfileManager


class MowgliansApp:
    """One running instance of the client data layer.

    All state lives on this object; nothing is kept at module level, so
    several contexts can coexist (one per test, for example). Use
    :func:`mowglians_sdk.infrastructure.bootstrap.create_app` to build one
    from configuration.
    """

    def __init__(
        self,
        remote: RemoteDataPort,
        auth: AuthPort,
        session_store: SessionStorePort,
        notifier: NotificationPort,
        config: MowgliansConfig | None = None,
        clock: ClockPort | None = None,
        metrics: MetricsPort | None = None,
        logger: LoggerPort | None = None,
    ):
        """Wire the application.

        Args:
            remote: Remote data client
            auth: Authentication provider
            session_store: Persisted session store
            notifier: User-facing notification sink
            config: Application configuration (defaults used if None)
            clock: Clock used by the cache, session and use cases
            metrics: Optional metrics port
            logger: Optional logger shared by all components
        """
        self.config = config or MowgliansConfig()
        self.remote = remote
        self.auth = auth
        self.session_store = session_store
        self.notifier = notifier
        self.metrics = metrics
        self.logger = logger

        self.cache = QueryCache(
            config=self.config.cache,
            notifier=notifier,
            clock=clock,
            metrics=metrics,
            logger=logger,
        )
        self.clock = self.cache.clock
        self.executor = MutationExecutor(self.cache, notifier, metrics=metrics, logger=logger)
        self.session = SessionManager(
            auth,
            session_store,
            remote,
            self.cache,
            config=self.config.session,
            clock=self.clock,
            logger=logger,
        )
        self.routes = RouteTable(self.session)

        common: dict[str, Any] = {"clock": self.clock, "logger": logger}
        self.adoptions = AdoptionsManager(remote, self.cache, self.executor, **common)
        self.donations = DonationsManager(remote, self.cache, self.executor, **common)
        self.funds = FundsManager(remote, self.cache, self.executor, **common)
        self.users = UsersManager(remote, self.cache, self.executor, **common)
        self.gallery = GalleryManager(remote, self.cache, self.executor, **common)
        self.pets = PetCatalog(remote, self.cache, self.executor, **common)
        self.profile = ProfileManager(remote, self.cache, self.executor, **common)

        self._started = False

    @property
    def started(self) -> bool:
        """Whether :meth:`start` has completed."""
        return self._started

    async def start(self) -> Session:
        """Resolve the persisted session."""
        session = await self.session.start()
        self._started = True
        if self.logger:
            self.logger.info(
                "Application started",
                environment=self.config.environment,
                session_state=session.state.value,
            )
        return session

    def get_stats(self) -> dict[str, Any]:
        """Cache statistics together with the collected metrics, if any."""
        return {
            "cache": self.cache.get_cache_stats(),
            "metrics": self.metrics.snapshot() if self.metrics else {},
        }

    async def close(self) -> None:
        """Stop background fetches and release the remote client."""
        await self.cache.close()
        close_remote = getattr(self.remote, "close", None)
        if close_remote is not None:
            await close_remote()
        self._started = False
        if self.logger:
            self.logger.info("Application closed")

    async def __aenter__(self) -> MowgliansApp:
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
