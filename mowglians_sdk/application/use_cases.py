"""Application use cases - shared plumbing plus the pet catalogue and profile screens.

Every use case reads through the query cache and writes through the mutation
executor. Rows returned by the remote data client are validated into typed
records here, at the boundary.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..domain.exceptions import DataAccessError, RecordFormatError, ValidationError
from ..domain.models import CacheEntry, MutationResult, Pet, Tables, UserProfile
from ..domain.patterns import QueryKeys
from ..domain.queries import SelectQuery
from ..domain.value_objects import Identity
from ..ports.clock import ClockPort
from ..ports.logger import LoggerPort
from ..ports.remote_data import RemoteDataPort
from .mutation_executor import MutationExecutor, MutationOptions
from .query_cache import Fetcher, KeyLike, QueryCache, Subscription

R = TypeVar("R", bound=BaseModel)


def parse_records(rows: list[dict[str, Any]], model: type[R], table: str) -> list[R]:
    """Validate backend rows into records.

    Raises:
        RecordFormatError: If any row does not match the record type
    """
    try:
        return [model.model_validate(row) for row in rows]
    except PydanticValidationError as e:
        raise RecordFormatError(
            f"Invalid {model.__name__} row from {table}: {e.errors()[0]['msg']}",
            table=table,
            record_type=model.__name__,
        ) from e


def require_text(value: str | None, field: str, message: str, title: str) -> str:
    """Return the stripped value or raise a titled ValidationError when blank."""
    text = (value or "").strip()
    if not text:
        raise ValidationError(message, field=field, title=title)
    return text


class UseCase:
    """Base class holding the collaborators every use case needs."""

    def __init__(
        self,
        remote: RemoteDataPort,
        cache: QueryCache,
        executor: MutationExecutor,
        clock: ClockPort | None = None,
        logger: LoggerPort | None = None,
    ):
        """Initialize the use case.

        Args:
            remote: Remote data client
            cache: Query cache for reads
            executor: Mutation executor for writes
            clock: Clock stamping written timestamps (system UTC clock if None)
            logger: Optional logger for debugging
        """
        self._remote = remote
        self._cache = cache
        self._executor = executor
        self._clock = clock or cache.clock
        self._logger = logger

    async def _read(self, key: KeyLike, fetcher: Fetcher, force: bool = False) -> CacheEntry:
        return await self._cache.read(key, fetcher, force=force)

    def _subscribe(
        self, key: KeyLike, fetcher: Fetcher, listener: Callable[[CacheEntry], None]
    ) -> Subscription:
        return self._cache.subscribe(key, fetcher, listener)

    async def _select(
        self, table: str, model: type[R], query: SelectQuery | None = None
    ) -> list[R]:
        rows = await self._remote.select(table, query)
        return parse_records(rows, model, table)

    def _now_iso(self) -> str:
        return self._clock.now().isoformat()


class PetCatalog(UseCase):
    """Pets open for adoption, as listed on the adopt page."""

    async def fetch_available(self) -> list[Pet]:
        """Load adoptable pets, newest first."""
        pets = await self._select(Tables.PETS, Pet, SelectQuery().ordered_by("created_at", False))
        return [pet for pet in pets if pet.status is None or pet.status.is_adoptable]

    async def list_available(self, force: bool = False) -> CacheEntry:
        """Adoptable pets through the cache."""
        return await self._read(QueryKeys.available_pets(), self.fetch_available, force)

    def subscribe_available(self, listener: Callable[[CacheEntry], None]) -> Subscription:
        """Keep a consumer updated with the adoptable pets."""
        return self._subscribe(QueryKeys.available_pets(), self.fetch_available, listener)

    async def fetch_pet(self, pet_id: str) -> Pet | None:
        """Load one pet."""
        pets = await self._select(Tables.PETS, Pet, SelectQuery().where("id", pet_id))
        return pets[0] if pets else None

    async def get_pet(self, pet_id: str, force: bool = False) -> CacheEntry:
        """One pet through the cache."""
        return await self._read(QueryKeys.pet(pet_id), lambda: self.fetch_pet(pet_id), force)


class ProfileManager(UseCase):
    """The signed-in user's profile page."""

    async def fetch_profile(self, user_id: str) -> UserProfile | None:
        """Load the profile of a user."""
        profiles = await self._select(
            Tables.USERS_PROFILE, UserProfile, SelectQuery().where("user_id", user_id)
        )
        return profiles[0] if profiles else None

    async def get_profile(self, user_id: str, force: bool = False) -> CacheEntry:
        """Profile through the cache."""
        return await self._read(
            QueryKeys.user_profile(user_id), lambda: self.fetch_profile(user_id), force
        )

    def subscribe_profile(
        self, user_id: str, listener: Callable[[CacheEntry], None]
    ) -> Subscription:
        """Keep a consumer updated with a profile."""
        return self._subscribe(
            QueryKeys.user_profile(user_id), lambda: self.fetch_profile(user_id), listener
        )

    async def update(
        self,
        identity: Identity | None,
        full_name: str,
        phone: str | None = None,
        address: str | None = None,
    ) -> MutationResult:
        """Save the profile of the signed-in user, creating it on first save."""
        user_id = identity.id if identity else ""

        async def operation() -> str:
            if identity is None:
                raise ValidationError(
                    "Please login to edit your profile", field="identity", title="Login Required"
                )
            name = require_text(
                full_name, "full_name", "Full name is required", "Missing Information"
            )
            patch = {
                "full_name": name,
                "phone": (phone or "").strip() or None,
                "address": (address or "").strip() or None,
                "updated_at": self._now_iso(),
            }

            existing = await self._remote.select(
                Tables.USERS_PROFILE, SelectQuery(columns=("id",)).where("user_id", identity.id)
            )
            if existing:
                record_id = str(existing[0]["id"])
                await self._remote.update(Tables.USERS_PROFILE, record_id, patch)
                return record_id
            return await self._remote.insert(
                Tables.USERS_PROFILE, {"user_id": identity.id, "email": identity.email, **patch}
            )

        invalidates = [QueryKeys.admin_users()]
        if user_id:
            invalidates.append(QueryKeys.user_profile(user_id))
        return await self._executor.run(
            operation,
            MutationOptions(
                name="update_profile",
                invalidates=invalidates,
                success_title="Profile updated!",
                success_description="Your profile information has been saved.",
            ),
        )


async def find_request_pet_id(
    remote: RemoteDataPort, cache: QueryCache, key: KeyLike, table: str, request_id: str
) -> str | None:
    """Pet id of a request, from cached listing data or from the backend.

    Raises:
        DataAccessError: If no request has that id
    """
    cached = cache.get_data(key)
    if cached:
        for request in cached:
            if request.id == request_id:
                return request.pet_id

    query = SelectQuery(columns=("id", "pet_id")).where("id", request_id)
    rows = await remote.select(table, query)
    if not rows:
        raise DataAccessError(
            f"No request '{request_id}' in {table}", table=table, operation="select"
        )
    return rows[0].get("pet_id")
