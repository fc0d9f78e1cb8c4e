"""In-memory authentication provider for development and tests."""

from __future__ import annotations

import uuid

from ..domain.exceptions import AuthorizationError
from ..domain.value_objects import Identity
from ..ports.auth import AuthPort


class InMemoryAuth(AuthPort):
    """Account registry kept in memory.

    With ``accept_any`` enabled, signing in with an unknown email registers
    it on the fly, which mirrors a mock provider used during development.
    """

    def __init__(self, accept_any: bool = False):
        self._accounts: dict[str, tuple[Identity, str]] = {}
        self._accept_any = accept_any
        self._current: Identity | None = None

    @property
    def current(self) -> Identity | None:
        """The signed-in identity, if any."""
        return self._current

    def register(self, email: str, password: str, identity_id: str | None = None) -> Identity:
        """Create an account without signing it in."""
        identity = Identity(id=identity_id or str(uuid.uuid4()), email=email)
        if identity.email in self._accounts:
            raise AuthorizationError(f"User already registered: {identity.email}", table="auth")
        self._accounts[identity.email] = (identity, password)
        return identity

    async def sign_in(self, email: str, password: str) -> Identity:
        """Authenticate an account."""
        account = self._accounts.get(email.strip().lower())
        if account is None:
            if not self._accept_any:
                raise AuthorizationError("Invalid login credentials", table="auth")
            identity = self.register(email, password)
        else:
            identity, expected = account
            if password != expected:
                raise AuthorizationError("Invalid login credentials", table="auth")
        self._current = identity
        return identity

    async def sign_up(self, email: str, password: str) -> Identity:
        """Register an account and sign it in."""
        identity = self.register(email, password)
        self._current = identity
        return identity

    async def sign_out(self) -> None:
        """End the provider session."""
        self._current = None
