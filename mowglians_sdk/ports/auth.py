"""Authentication port - sign-in provider contract."""

from abc import ABC, abstractmethod

from ..domain.value_objects import Identity


class AuthPort(ABC):
    """Abstract interface for the authentication provider."""

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> Identity:
        """Authenticate an existing account.

        Raises:
            AuthorizationError: If the credentials are rejected
        """
        ...

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> Identity:
        """Register a new account and sign it in."""
        ...

    @abstractmethod
    async def sign_out(self) -> None:
        """End the provider session."""
        ...
