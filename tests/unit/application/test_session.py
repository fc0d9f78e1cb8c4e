"""Tests for the session lifecycle."""

from unittest.mock import AsyncMock, Mock

import pytest

from mowglians_sdk.application.session import SessionManager
from mowglians_sdk.domain.enums import Role, SessionState
from mowglians_sdk.domain.exceptions import (
    AuthorizationError,
    DataAccessError,
    RecordFormatError,
    SessionError,
    TransportError,
    ValidationError,
)
from mowglians_sdk.domain.models import SerializedSession, Tables
from mowglians_sdk.domain.patterns import QueryKeys
from mowglians_sdk.domain.value_objects import Identity
from mowglians_sdk.infrastructure.config import SessionConfig
from mowglians_sdk.infrastructure.session_stores import FileSessionStore, InMemorySessionStore


@pytest.fixture
def identity():
    return Identity(id="u1", email="admin@example.com")


@pytest.fixture
def manager(auth, session_store, remote, cache, fixed_clock, mock_logger):
    return SessionManager(
        auth, session_store, remote, cache, clock=fixed_clock, logger=mock_logger
    )


def _manager_with(store, auth, remote, cache, **config):
    return SessionManager(auth, store, remote, cache, config=SessionConfig(**config))


class TestSessionStart:
    """Resolving the persisted session."""

    def test_initial_state_is_uninitialized(self, manager):
        """Nothing is known before start."""
        assert manager.state == SessionState.UNINITIALIZED
        assert manager.session.loading
        assert manager.identity is None

    @pytest.mark.asyncio
    async def test_start_without_record_is_anonymous(self, manager):
        """No persisted record resolves to anonymous."""
        session = await manager.start()

        assert session.state == SessionState.ANONYMOUS
        assert not session.loading
        assert session.identity is None

    @pytest.mark.asyncio
    async def test_start_restores_persisted_identity(self, auth, remote, cache, identity):
        """A persisted record resolves to authenticated."""
        store = InMemorySessionStore(SerializedSession.from_identity(identity))
        manager = _manager_with(store, auth, remote, cache)

        session = await manager.start()

        assert session.state == SessionState.AUTHENTICATED
        assert session.identity == identity

    @pytest.mark.asyncio
    async def test_start_passes_through_loading(self, manager):
        """Listeners observe loading before the resolved state."""
        states = []
        manager.subscribe(lambda s: states.append(s.state))

        await manager.start()

        assert states == [SessionState.LOADING, SessionState.ANONYMOUS]

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, manager):
        """A second start leaves the session as it is."""
        listener = Mock()
        await manager.start()
        manager.subscribe(listener)

        session = await manager.start()

        assert session.state == SessionState.ANONYMOUS
        listener.assert_not_called()

    @pytest.mark.asyncio
    async def test_unreadable_record_is_cleared(self, auth, remote, cache):
        """A corrupt record resolves to anonymous and is removed."""
        store = Mock()
        store.get.side_effect = SessionError("Invalid session data")
        manager = _manager_with(store, auth, remote, cache)

        session = await manager.start()

        assert session.state == SessionState.ANONYMOUS
        store.clear.assert_called_once()


class TestSessionRevalidation:
    """Confirming a persisted session with the backend."""

    @pytest.mark.asyncio
    async def test_confirmed_identity_stays_signed_in(self, auth, remote, cache, identity):
        """A matching backend identity keeps the session."""
        store = InMemorySessionStore(SerializedSession.from_identity(identity))
        remote.set_identity(identity)
        manager = _manager_with(store, auth, remote, cache, revalidate_on_start=True)

        session = await manager.start()

        assert session.state == SessionState.AUTHENTICATED

    @pytest.mark.asyncio
    async def test_rejected_token_signs_out(self, auth, remote, cache, identity):
        """An authorization failure discards the persisted session."""
        store = InMemorySessionStore(SerializedSession.from_identity(identity))
        remote.fail_next("get_identity", AuthorizationError("JWT expired"))
        manager = _manager_with(store, auth, remote, cache, revalidate_on_start=True)

        session = await manager.start()

        assert session.state == SessionState.ANONYMOUS
        assert store.get() is None

    @pytest.mark.asyncio
    async def test_unreachable_backend_keeps_session(self, auth, remote, cache, identity):
        """Transport failures do not sign the user out."""
        store = InMemorySessionStore(SerializedSession.from_identity(identity))
        remote.fail_next("get_identity", TransportError("offline"))
        manager = _manager_with(store, auth, remote, cache, revalidate_on_start=True)

        session = await manager.start()

        assert session.state == SessionState.AUTHENTICATED
        assert store.get() is not None

    @pytest.mark.asyncio
    async def test_mismatched_identity_signs_out(self, auth, remote, cache, identity):
        """A different backend identity discards the record."""
        store = InMemorySessionStore(SerializedSession.from_identity(identity))
        remote.set_identity(Identity(id="someone-else", email="other@example.com"))
        manager = _manager_with(store, auth, remote, cache, revalidate_on_start=True)

        session = await manager.start()

        assert session.state == SessionState.ANONYMOUS
        assert store.get() is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            DataAccessError("HTTP 404", table="auth", operation="get_identity"),
            RecordFormatError("Invalid identity payload"),
        ],
    )
    async def test_other_backend_failures_sign_out(self, auth, remote, cache, identity, error):
        """Backend failures other than transport problems resolve to anonymous."""
        store = InMemorySessionStore(SerializedSession.from_identity(identity))
        remote.fail_next("get_identity", error)
        manager = _manager_with(store, auth, remote, cache, revalidate_on_start=True)

        session = await manager.start()

        assert session.state == SessionState.ANONYMOUS
        assert not session.loading
        assert store.get() is None


class TestMalformedPersistedSession:
    """Persisted records that no longer form a valid identity."""

    @pytest.mark.asyncio
    async def test_malformed_email_resolves_to_anonymous(self, tmp_path, auth, remote, cache):
        """A stored email without an @ is discarded instead of blocking start."""
        path = tmp_path / "session.json"
        path.write_text('{"identity_id": "u1", "email": "abc"}')
        store = FileSessionStore(path)
        manager = _manager_with(store, auth, remote, cache)

        session = await manager.start()

        assert session.state == SessionState.ANONYMOUS
        assert not session.loading
        assert not path.exists()

    @pytest.mark.asyncio
    async def test_sign_in_works_after_discarded_record(self, auth, remote, cache):
        """The session stays usable once the bad record is gone."""
        store = Mock()
        store.get.return_value = SerializedSession(identity_id="u1", email="abc")
        manager = _manager_with(store, auth, remote, cache)

        await manager.start()
        session = await manager.sign_in("admin@example.com", "secret123")

        store.clear.assert_called_once()
        assert session.state == SessionState.AUTHENTICATED
        store.set.assert_called_once()


class TestSignInOut:
    """Sign-in, sign-up and sign-out."""

    @pytest.mark.asyncio
    async def test_sign_in_persists_session(self, manager, session_store, fixed_clock):
        """Signing in publishes the identity and persists it."""
        await manager.start()

        session = await manager.sign_in("Admin@Example.com", "secret123")

        assert session.state == SessionState.AUTHENTICATED
        assert session.identity.id == "u1"
        record = session_store.get()
        assert record.identity_id == "u1"
        assert record.email == "admin@example.com"
        assert record.saved_at == fixed_clock.now()

    @pytest.mark.asyncio
    async def test_wrong_password_raises(self, manager, session_store):
        """Provider rejections propagate and nothing is persisted."""
        await manager.start()

        with pytest.raises(AuthorizationError, match="Invalid login credentials"):
            await manager.sign_in("admin@example.com", "wrong-password")

        assert manager.state == SessionState.ANONYMOUS
        assert session_store.get() is None

    @pytest.mark.asyncio
    async def test_malformed_credentials_are_rejected_locally(self, manager):
        """Validation happens before the provider is called."""
        with pytest.raises(ValidationError) as exc_info:
            await manager.sign_in("not-an-email", "secret123")
        assert exc_info.value.title == "Invalid email"

        with pytest.raises(ValidationError) as exc_info:
            await manager.sign_up("new@example.com", "123")
        assert exc_info.value.title == "Invalid password"
        assert exc_info.value.field == "password"

    @pytest.mark.asyncio
    async def test_sign_up_registers_and_signs_in(self, manager, auth):
        """Sign-up creates an account and authenticates it."""
        session = await manager.sign_up("new@example.com", "password1")

        assert session.is_authenticated
        assert auth.current == session.identity

    @pytest.mark.asyncio
    async def test_sign_out_then_restart_is_anonymous(
        self, auth, session_store, remote, cache
    ):
        """A new manager over the same store resolves to anonymous after sign-out."""
        first = SessionManager(auth, session_store, remote, cache)
        await first.start()
        await first.sign_in("admin@example.com", "secret123")
        await first.sign_out()

        second = SessionManager(auth, session_store, remote, cache)
        session = await second.start()

        assert session.state == SessionState.ANONYMOUS

    @pytest.mark.asyncio
    async def test_sign_out_survives_provider_failure(self, session_store, remote, cache, identity):
        """Local state is cleared even when the provider call fails."""
        auth = Mock()
        auth.sign_out = AsyncMock(side_effect=TransportError("offline"))
        session_store.set(SerializedSession.from_identity(identity))
        manager = SessionManager(auth, session_store, remote, cache)
        await manager.start()

        session = await manager.sign_out()

        assert session.state == SessionState.ANONYMOUS
        assert session_store.get() is None

    @pytest.mark.asyncio
    async def test_sign_out_drops_cached_role(self, manager, remote, cache):
        """The role lookup of the previous identity does not survive sign-out."""
        remote.seed(Tables.USER_ROLES, [{"id": "r1", "user_id": "u1", "role": "admin"}])
        await manager.start()
        await manager.sign_in("admin@example.com", "secret123")
        assert await manager.is_admin()

        await manager.sign_out()

        assert cache.get_entry(QueryKeys.user_role("u1")) is None

    @pytest.mark.asyncio
    async def test_failing_listener_does_not_break_publishing(self, manager, mock_logger):
        """Listener errors are logged."""
        manager.subscribe(Mock(side_effect=RuntimeError("render")))
        healthy = Mock()
        manager.subscribe(healthy)

        await manager.start()

        assert healthy.call_count == 2
        assert mock_logger.exception.call_count == 2

    @pytest.mark.asyncio
    async def test_unsubscribe_listener(self, manager):
        """Unsubscribed listeners receive nothing; unsubscribing twice is harmless."""
        listener = Mock()
        unsubscribe = manager.subscribe(listener)
        unsubscribe()
        unsubscribe()

        await manager.start()

        listener.assert_not_called()


class TestRoleResolution:
    """Admin role lookups through the cache."""

    @pytest.mark.asyncio
    async def test_anonymous_is_user(self, manager):
        """No identity means the user role."""
        await manager.start()

        assert await manager.resolve_role() == Role.USER

    @pytest.mark.asyncio
    async def test_admin_role_resolved_and_cached(self, manager, remote, cache):
        """The role lookup is read once and cached under the user-role key."""
        remote.seed(Tables.USER_ROLES, [{"id": "r1", "user_id": "u1", "role": "admin"}])
        await manager.start()
        await manager.sign_in("admin@example.com", "secret123")

        assert await manager.is_admin()
        assert await manager.is_admin()

        assert remote.calls.count(("select", Tables.USER_ROLES)) == 1
        assert cache.get_data(("user-role", "u1")) == Role.ADMIN

    @pytest.mark.asyncio
    async def test_role_is_not_stored_on_session(self, manager, remote):
        """Granted roles only live in the cache, never on the session."""
        remote.seed(Tables.USER_ROLES, [{"id": "r1", "user_id": "u1", "role": "admin"}])
        await manager.start()
        await manager.sign_in("admin@example.com", "secret123")
        await manager.resolve_role()

        assert "role" not in manager.session.model_dump()
        assert await manager.is_admin()

    @pytest.mark.asyncio
    async def test_failed_lookup_resolves_to_user(self, manager, remote, notifier):
        """A failed lookup without earlier data is treated as the user role."""
        await manager.start()
        await manager.sign_in("admin@example.com", "secret123")
        remote.fail_next("select", TransportError("offline"), table=Tables.USER_ROLES)

        assert await manager.resolve_role() == Role.USER
        assert notifier.last().title == "Failed to load data"

    @pytest.mark.asyncio
    async def test_invalidated_role_is_reloaded(self, manager, remote, cache):
        """Granting the role and invalidating the key changes the answer."""
        await manager.start()
        await manager.sign_in("admin@example.com", "secret123")
        assert not await manager.is_admin()

        remote.seed(Tables.USER_ROLES, [{"id": "r1", "user_id": "u1", "role": "admin"}])
        cache.invalidate(QueryKeys.user_role("u1"))

        assert await manager.is_admin()
