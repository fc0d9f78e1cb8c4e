"""Session lifecycle - persisted identity, sign-in/out and role resolution."""

from __future__ import annotations

from collections.abc import Callable

from pydantic import ValidationError as PydanticValidationError

from ..domain.enums import QueryStatus, Role, SessionState
from ..domain.exceptions import (
    AuthorizationError,
    MowgliansError,
    SessionError,
    TransportError,
    ValidationError,
)
from ..domain.models import SerializedSession, Session, Tables
from ..domain.patterns import QueryKeys
from ..domain.queries import SelectQuery
from ..domain.value_objects import Identity
from ..infrastructure.config import SessionConfig
from ..ports.auth import AuthPort
from ..ports.clock import ClockPort
from ..ports.logger import LoggerPort
from ..ports.remote_data import RemoteDataPort
from ..ports.session_store import SessionStorePort
from .query_cache import QueryCache

SessionListener = Callable[[Session], None]


class SessionManager:
    """Owns the single session of an application context.

    The session moves ``uninitialized -> loading -> anonymous | authenticated``
    on :meth:`start`, and between ``anonymous`` and ``authenticated`` on
    sign-in and sign-out. The admin role is never stored on the session; it
    is resolved through the query cache so it can be invalidated on its own.
    """

    def __init__(
        self,
        auth: AuthPort,
        store: SessionStorePort,
        remote: RemoteDataPort,
        cache: QueryCache,
        config: SessionConfig | None = None,
        clock: ClockPort | None = None,
        logger: LoggerPort | None = None,
    ):
        """Initialize the session manager.

        Args:
            auth: Authentication provider
            store: Persisted session store
            remote: Remote data client used for role lookups and revalidation
            cache: Query cache holding role lookups
            config: Session configuration (defaults used if None)
            clock: Clock stamping persisted sessions
            logger: Optional logger for debugging
        """
        self._auth = auth
        self._store = store
        self._remote = remote
        self._cache = cache
        self._config = config or SessionConfig()
        self._clock = clock
        self._logger = logger
        self._session = Session()
        self._listeners: list[SessionListener] = []

    @property
    def session(self) -> Session:
        """Current session snapshot."""
        return self._session

    @property
    def state(self) -> SessionState:
        """Current lifecycle state."""
        return self._session.state

    @property
    def identity(self) -> Identity | None:
        """Signed-in identity, if any."""
        return self._session.identity

    async def start(self) -> Session:
        """Resolve the persisted session.

        Calling it again after the session resolved returns the current
        session unchanged.
        """
        if self._session.state != SessionState.UNINITIALIZED:
            return self._session

        self._publish(Session(state=SessionState.LOADING))

        identity = self._load_persisted()
        if identity is not None and self._config.revalidate_on_start:
            identity = await self._revalidate(identity)

        if identity is None:
            self._publish(Session(state=SessionState.ANONYMOUS))
        else:
            self._publish(Session(identity=identity, state=SessionState.AUTHENTICATED))

        if self._logger:
            self._logger.info(
                "Session started",
                state=self._session.state.value,
                identity_id=identity.id if identity else None,
            )
        return self._session

    def _load_persisted(self) -> Identity | None:
        try:
            record = self._store.get()
        except SessionError as e:
            if self._logger:
                self._logger.warning("Discarding unreadable persisted session", error=e.message)
            self._store.clear()
            return None
        if record is None:
            return None
        try:
            return record.to_identity()
        except PydanticValidationError as e:
            if self._logger:
                self._logger.warning("Discarding malformed persisted session", error=str(e))
            self._store.clear()
            return None

    async def _revalidate(self, identity: Identity) -> Identity | None:
        try:
            confirmed = await self._remote.get_identity()
        except AuthorizationError as e:
            if self._logger:
                self._logger.warning("Persisted session rejected by backend", error=e.message)
            self._store.clear()
            return None
        except TransportError as e:
            if self._logger:
                self._logger.warning(
                    "Backend unreachable, keeping persisted session", error=e.message
                )
            return identity
        except MowgliansError as e:
            if self._logger:
                self._logger.warning("Persisted session check failed", error=e.message)
            self._store.clear()
            return None

        if confirmed is None or confirmed.id != identity.id:
            self._store.clear()
            return None
        return confirmed

    async def sign_in(self, email: str, password: str) -> Session:
        """Sign in an existing account and persist the session.

        Raises:
            ValidationError: If the credentials are malformed
            AuthorizationError: If the provider rejects them
        """
        email = self._validate_credentials(email, password)
        identity = await self._auth.sign_in(email, password)
        return self._authenticate(identity)

    async def sign_up(self, email: str, password: str) -> Session:
        """Register an account, sign it in and persist the session.

        Raises:
            ValidationError: If the credentials are malformed
        """
        email = self._validate_credentials(email, password)
        identity = await self._auth.sign_up(email, password)
        return self._authenticate(identity)

    async def sign_out(self) -> Session:
        """Sign out from any state.

        The persisted record is cleared and cached role lookups of the
        previous identity are dropped even if the provider call fails.
        """
        previous = self._session.identity
        try:
            await self._auth.sign_out()
        except MowgliansError as e:
            if self._logger:
                self._logger.warning("Provider sign-out failed", error=e.message)

        self._store.clear()
        if previous is not None:
            self._cache.remove(QueryKeys.user_role(previous.id), exact=True)
        self._publish(Session(state=SessionState.ANONYMOUS))

        if self._logger:
            self._logger.info("Signed out", identity_id=previous.id if previous else None)
        return self._session

    async def resolve_role(self) -> Role:
        """Resolve the role of the signed-in identity through the query cache.

        Anonymous sessions and failed lookups without earlier data resolve to
        the user role.
        """
        identity = self._session.identity
        if identity is None:
            return Role.USER

        async def fetch_role() -> Role:
            query = SelectQuery().where("user_id", identity.id).where("role", Role.ADMIN.value)
            rows = await self._remote.select(Tables.USER_ROLES, query)
            return Role.ADMIN if rows else Role.USER

        entry = await self._cache.read(QueryKeys.user_role(identity.id), fetch_role)
        if entry.status == QueryStatus.ERROR and entry.data is None:
            return Role.USER
        return entry.data or Role.USER

    async def is_admin(self) -> bool:
        """Whether the signed-in identity holds the admin role."""
        return await self.resolve_role() == Role.ADMIN

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener called with every new session snapshot.

        Returns:
            Function removing the listener; calling it twice is harmless
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _validate_credentials(self, email: str, password: str) -> str:
        email = (email or "").strip()
        local, sep, domain = email.partition("@")
        if not sep or not local or not domain:
            raise ValidationError(
                "Enter a valid email address", field="email", title="Invalid email"
            )
        if len(password or "") < self._config.min_password_length:
            raise ValidationError(
                f"Password must be at least {self._config.min_password_length} characters",
                field="password",
                title="Invalid password",
            )
        return email

    def _authenticate(self, identity: Identity) -> Session:
        saved_at = self._clock.now() if self._clock else None
        self._store.set(SerializedSession.from_identity(identity, saved_at=saved_at))
        self._publish(Session(identity=identity, state=SessionState.AUTHENTICATED))
        if self._logger:
            self._logger.info("Signed in", identity_id=identity.id)
        return self._session

    def _publish(self, session: Session) -> None:
        self._session = session
        for listener in list(self._listeners):
            try:
                listener(session)
            except Exception as e:
                if self._logger:
                    self._logger.exception("Session listener failed", exc_info=e)
