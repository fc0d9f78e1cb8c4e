"""Domain models using Pydantic for validation.

Record models mirror the rows of the hosted backend tables and are validated
at the remote data boundary. Cache, mutation, session and notification models
describe the state owned by the application layer.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .enums import (
    MutationStatus,
    PetStatus,
    QueryStatus,
    RequestStatus,
    Role,
    SessionState,
    Severity,
)
from .exceptions import MowgliansError
from .value_objects import Identity, QueryKey


class Tables:
    """Backend table and bucket names."""

    ADOPTION_REQUESTS = "adoption_requests"
    DONATION_REQUESTS = "donation_requests"
    FUND_TRANSACTIONS = "fund_transactions"
    GALLERY = "gallery"
    PETS = "pets"
    SITE_METRICS = "site_metrics"
    USER_ROLES = "user_roles"
    USERS_PROFILE = "users_profile"

    GALLERY_BUCKET = "gallery"


class Record(BaseModel):
    """Base class for backend rows.

    Unknown columns are ignored so that backend schema additions do not break
    existing clients.
    """

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, frozen=True)


class PetSummary(Record):
    """Pet columns embedded in request listings."""

    name: str
    breed: str | None = None
    type: str | None = None
    age: int | None = Field(default=None, ge=0)
    disease_reason: str | None = None
    image_url: str | None = None


class ProfileSummary(Record):
    """User profile columns embedded in request listings."""

    full_name: str
    email: str
    phone: str | None = None


class Pet(Record):
    """A pet listed for adoption or submitted for donation."""

    id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    type: str | None = None
    breed: str | None = None
    age: int | None = Field(default=None, ge=0)
    status: PetStatus | None = None
    image_url: str | None = None
    disease_reason: str | None = None
    donor_id: str | None = None
    created_at: datetime | None = None


class AdoptionRequest(Record):
    """A user's request to adopt a pet."""

    id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    pet_id: str = Field(..., min_length=1)
    request_status: RequestStatus | None = RequestStatus.PENDING
    admin_comment: str | None = None
    created_at: datetime | None = None
    user: ProfileSummary | None = None
    pet: PetSummary | None = None


class DonationRequest(AdoptionRequest):
    """A user's request to donate a pet for adoption."""

    pass


class Transaction(Record):
    """A captured fundraising payment."""

    id: str = Field(..., min_length=1)
    donor_name: str = Field(..., min_length=1)
    utr_id: str = Field(..., min_length=1, description="Payment reference number")
    amount: float = Field(..., gt=0)
    transaction_time: datetime | None = None


class GalleryItem(Record):
    """An image shown in the public gallery."""

    id: str = Field(..., min_length=1)
    image_url: str = Field(..., min_length=1)
    description: str | None = None
    uploaded_by: str | None = None
    created_at: datetime | None = None


class UserProfile(Record):
    """Profile of a registered user."""

    id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    full_name: str = Field(..., min_length=1)
    phone: str | None = None
    address: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserRoleRecord(Record):
    """A role granted to a user."""

    id: str = Field(..., min_length=1)
    user_id: str = Field(..., min_length=1)
    role: Role = Role.USER


class SiteMetrics(Record):
    """Aggregated public counters shown on the landing and fundraising pages."""

    id: int
    total_funds: float | None = Field(default=None, ge=0)
    total_pets_adopted: int | None = Field(default=None, ge=0)
    total_pets_donated: int | None = Field(default=None, ge=0)
    last_updated: datetime | None = None


class ManagedUser(BaseModel):
    """A user profile together with its granted roles, as shown in the admin console."""

    model_config = ConfigDict(frozen=True)

    profile: UserProfile
    roles: list[Role] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        """Whether the admin role is granted."""
        return Role.ADMIN in self.roles


class CacheEntry(BaseModel):
    """Read-only snapshot of one cached read."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    key: QueryKey
    data: Any | None = None
    status: QueryStatus = QueryStatus.PENDING
    error: str | None = None
    last_fetched_at: datetime | None = None
    stale: bool = False
    is_fetching: bool = False

    @property
    def has_data(self) -> bool:
        """Whether a successful fetch has populated data at least once."""
        return self.last_fetched_at is not None


class MutationResult(BaseModel):
    """Explicit outcome of a mutation."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    status: MutationStatus
    data: Any | None = None
    error: MowgliansError | None = None

    @model_validator(mode="after")
    def validate_error_consistency(self) -> MutationResult:
        """Ensure error is consistent with the status."""
        if self.status == MutationStatus.ERROR and self.error is None:
            raise ValueError("Error required when status is error")
        if self.status != MutationStatus.ERROR and self.error is not None:
            raise ValueError("Error must be None unless status is error")
        return self

    @property
    def ok(self) -> bool:
        """Whether the mutation succeeded."""
        return self.status == MutationStatus.SUCCESS

    def unwrap(self) -> Any:
        """Return the data or raise the recorded error."""
        if self.error is not None:
            raise self.error
        return self.data


class Session(BaseModel):
    """State of the application session."""

    model_config = ConfigDict(frozen=True)

    identity: Identity | None = None
    state: SessionState = SessionState.UNINITIALIZED

    @model_validator(mode="after")
    def validate_identity_consistency(self) -> Session:
        """An identity is present exactly when the session is authenticated."""
        if (self.state == SessionState.AUTHENTICATED) != (self.identity is not None):
            raise ValueError("Identity must be set if and only if the session is authenticated")
        return self

    @property
    def loading(self) -> bool:
        """Whether the persisted-session check has not resolved yet."""
        return self.state in (SessionState.UNINITIALIZED, SessionState.LOADING)

    @property
    def is_authenticated(self) -> bool:
        """Whether an identity is signed in."""
        return self.state == SessionState.AUTHENTICATED


class SerializedSession(BaseModel):
    """Persisted form of a signed-in session."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    identity_id: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    saved_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def from_identity(
        cls, identity: Identity, saved_at: datetime | None = None
    ) -> SerializedSession:
        """Build the persisted record for an identity."""
        return cls(
            identity_id=identity.id,
            email=identity.email,
            saved_at=saved_at or datetime.now(UTC),
        )

    def to_identity(self) -> Identity:
        """Restore the identity from the persisted record."""
        return Identity(id=self.identity_id, email=self.email)


class Notification(BaseModel):
    """A user-facing, dismissible message."""

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    severity: Severity = Severity.INFO
    title: str = Field(..., min_length=1)
    description: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    dismissed: bool = False

    @field_validator("title", mode="before")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Strip the title and reject blanks."""
        if isinstance(v, str):
            v = v.strip()
            if not v:
                raise ValueError("Notification title cannot be empty")
        return v
