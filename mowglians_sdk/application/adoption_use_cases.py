"""Adoption and donation request use cases.

Reviewing a request is a two-step write: the request status is updated
first, then the status of the pet it refers to. The steps are not
transactional; when the pet update fails the request keeps its new status
and the failure is reported as partially applied.
"""

from __future__ import annotations

from collections.abc import Callable

from pydantic import BaseModel, ConfigDict, Field

from ..domain.enums import PetStatus, RequestStatus
from ..domain.exceptions import ConflictError, ValidationError
from ..domain.models import (
    AdoptionRequest,
    CacheEntry,
    DonationRequest,
    MutationResult,
    Tables,
)
from ..domain.patterns import QueryKeys
from ..domain.queries import Relation, SelectQuery
from ..domain.value_objects import Identity, QueryKey
from .mutation_executor import MutationOptions, MutationStep
from .query_cache import Subscription
from .use_cases import UseCase, find_request_pet_id, require_text


def _request_relations(table: str, pet_columns: tuple[str, ...]) -> tuple[Relation, ...]:
    return (
        Relation(
            alias="user",
            table=Tables.USERS_PROFILE,
            local_column="user_id",
            foreign_column="user_id",
            columns=("full_name", "email", "phone"),
            constraint=f"{table}_user_id_fkey",
        ),
        Relation(alias="pet", table=Tables.PETS, local_column="pet_id", columns=pet_columns),
    )


def _login_required(identity: Identity | None, action: str) -> Identity:
    if identity is None:
        raise ValidationError(
            f"Please login to {action}", field="identity", title="Login Required"
        )
    return identity


class _RequestReview(UseCase):
    """Shared listing and review logic of adoption and donation requests."""

    table: str
    record_type: type[AdoptionRequest]
    pet_columns: tuple[str, ...]
    listing_key: QueryKey
    success_title: str
    pet_status_on: dict[RequestStatus, PetStatus]

    async def fetch_requests(self) -> list[AdoptionRequest]:
        """Load all requests with requester and pet details, newest first."""
        query = SelectQuery(relations=_request_relations(self.table, self.pet_columns))
        return await self._select(
            self.table, self.record_type, query.ordered_by("created_at", ascending=False)
        )

    async def list_requests(self, force: bool = False) -> CacheEntry:
        """All requests through the cache."""
        return await self._read(self.listing_key, self.fetch_requests, force)

    def subscribe(self, listener: Callable[[CacheEntry], None]) -> Subscription:
        """Keep a consumer updated with all requests."""
        return self._subscribe(self.listing_key, self.fetch_requests, listener)

    async def approve(self, request_id: str, comment: str | None = None) -> MutationResult:
        """Approve a request and update the pet accordingly."""
        return await self.update_status(request_id, RequestStatus.APPROVED, comment)

    async def reject(self, request_id: str, comment: str | None = None) -> MutationResult:
        """Reject a request."""
        return await self.update_status(request_id, RequestStatus.REJECTED, comment)

    async def update_status(
        self, request_id: str, status: RequestStatus, comment: str | None = None
    ) -> MutationResult:
        """Set the review status of a request.

        Args:
            request_id: The request to review
            status: New request status
            comment: Optional admin comment stored with the request

        Returns:
            The mutation result; a failed pet update yields a
            PartialFailureError while the request keeps its new status
        """
        pet_status = self.pet_status_on.get(status)
        pet_id: str | None = None

        async def update_request() -> None:
            nonlocal pet_id
            if pet_status is not None:
                pet_id = await find_request_pet_id(
                    self._remote, self._cache, self.listing_key, self.table, request_id
                )
            patch: dict[str, str] = {"request_status": status.value}
            if comment:
                patch["admin_comment"] = comment.strip()
            await self._remote.update(self.table, request_id, patch)

        async def update_pet() -> str | None:
            if pet_id is None:
                return None
            await self._remote.update(Tables.PETS, pet_id, {"status": pet_status.value})
            return pet_id

        steps = [MutationStep(name="request status", operation=update_request)]
        if pet_status is not None:
            steps.append(MutationStep(name="pet status", operation=update_pet))

        if self._logger:
            self._logger.info(
                "Reviewing request", table=self.table, request_id=request_id, status=status.value
            )
        return await self._executor.run_steps(
            steps,
            MutationOptions(
                name=f"review_{self.table}",
                invalidates=self._review_invalidates(),
                success_title=self.success_title,
            ),
        )

    def _review_invalidates(self) -> list[QueryKey]:
        return [
            self.listing_key,
            QueryKeys.available_pets(),
            QueryKey.of("pet"),
            QueryKey.of("user-adoptions"),
        ]


class AdoptionsManager(_RequestReview):
    """Adoption requests: admin review and user submission."""

    table = Tables.ADOPTION_REQUESTS
    record_type = AdoptionRequest
    pet_columns = ("name", "breed", "type")
    listing_key = QueryKeys.admin_adoptions()
    success_title = "Adoption request updated"
    pet_status_on = {RequestStatus.APPROVED: PetStatus.ADOPTED}

    async def fetch_user_requests(self, user_id: str) -> list[AdoptionRequest]:
        """Load the adoption requests of one user, newest first."""
        query = SelectQuery(
            relations=(
                Relation(
                    alias="pet",
                    table=Tables.PETS,
                    local_column="pet_id",
                    columns=("name", "breed", "type", "image_url"),
                ),
            )
        )
        query = query.where("user_id", user_id).ordered_by("created_at", ascending=False)
        return await self._select(self.table, AdoptionRequest, query)

    async def list_user_requests(self, user_id: str, force: bool = False) -> CacheEntry:
        """Adoption requests of one user through the cache."""
        return await self._read(
            QueryKeys.user_adoptions(user_id), lambda: self.fetch_user_requests(user_id), force
        )

    def subscribe_user_requests(
        self, user_id: str, listener: Callable[[CacheEntry], None]
    ) -> Subscription:
        """Keep a consumer updated with one user's adoption requests."""
        return self._subscribe(
            QueryKeys.user_adoptions(user_id), lambda: self.fetch_user_requests(user_id), listener
        )

    async def submit(self, pet_id: str, identity: Identity | None) -> MutationResult:
        """Request the adoption of a pet for the signed-in user."""

        async def operation() -> str:
            user = _login_required(identity, "adopt a pet")
            existing = await self._remote.select(
                self.table,
                SelectQuery(columns=("id", "request_status"))
                .where("user_id", user.id)
                .where("pet_id", pet_id),
            )
            if any(row.get("request_status") == RequestStatus.PENDING.value for row in existing):
                raise ConflictError(
                    "You already have a pending request for this pet",
                    table=self.table,
                    title="Request already submitted",
                )
            return await self._remote.insert(
                self.table,
                {
                    "user_id": user.id,
                    "pet_id": pet_id,
                    "request_status": RequestStatus.PENDING.value,
                },
            )

        invalidates = [self.listing_key]
        if identity is not None:
            invalidates.append(QueryKeys.user_adoptions(identity.id))
        return await self._executor.run(
            operation,
            MutationOptions(
                name="submit_adoption",
                invalidates=invalidates,
                success_title="Adoption Request Submitted",
                success_description="Your request has been sent to admin for approval.",
                error_description="Failed to submit adoption request",
            ),
        )


class PetDonationForm(BaseModel):
    """Fields of the pet donation form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = ""
    breed: str | None = None
    type: str | None = None
    age: int | None = Field(default=None, ge=0, le=50)
    disease_reason: str | None = None
    image_url: str | None = None


class DonationsManager(_RequestReview):
    """Pet donation requests: admin review and user submission."""

    table = Tables.DONATION_REQUESTS
    record_type = DonationRequest
    pet_columns = ("name", "breed", "type", "age", "disease_reason")
    listing_key = QueryKeys.admin_donations()
    success_title = "Donation request updated"
    pet_status_on = {
        RequestStatus.APPROVED: PetStatus.APPROVED,
        RequestStatus.REJECTED: PetStatus.REJECTED,
    }

    async def submit(self, identity: Identity | None, form: PetDonationForm) -> MutationResult:
        """Submit a pet for donation: the pet is listed as pending, then the request is filed."""
        pet_id: str | None = None

        async def insert_pet() -> str:
            nonlocal pet_id
            user = _login_required(identity, "donate a pet")
            name = require_text(form.name, "name", "Pet name is required", "Missing Information")
            pet_id = await self._remote.insert(
                Tables.PETS,
                {
                    "name": name,
                    "breed": form.breed or None,
                    "type": form.type or None,
                    "age": form.age,
                    "disease_reason": form.disease_reason or None,
                    "image_url": form.image_url or None,
                    "status": PetStatus.PENDING.value,
                    "donor_id": user.id,
                },
            )
            return pet_id

        async def insert_request() -> str:
            return await self._remote.insert(
                self.table,
                {
                    "user_id": identity.id,
                    "pet_id": pet_id,
                    "request_status": RequestStatus.PENDING.value,
                },
            )

        return await self._executor.run_steps(
            [
                MutationStep(name="pet listing", operation=insert_pet),
                MutationStep(name="donation request", operation=insert_request),
            ],
            MutationOptions(
                name="submit_donation",
                invalidates=[self.listing_key],
                success_title="Pet donation submitted!",
                success_description="Your request will be reviewed by admin.",
            ),
        )
