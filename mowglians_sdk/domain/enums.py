"""Domain enums for type safety and consistency.

This module centralizes all enumeration types used across the SDK,
ensuring type safety and preventing string literal errors.
"""

from enum import Enum


class QueryStatus(str, Enum):
    """Status of a cached read.

    Represents where the most recent fetch of a query key stands.
    """

    PENDING = "pending"  # A fetch is in flight or has never completed
    SUCCESS = "success"  # The last fetch completed with data
    ERROR = "error"  # The last fetch failed


class MutationStatus(str, Enum):
    """Lifecycle of a single write operation."""

    IDLE = "idle"  # Created but not yet started
    PENDING = "pending"  # Write is in flight
    SUCCESS = "success"  # Write completed and invalidations were issued
    ERROR = "error"  # Write failed, cache left untouched


class Severity(str, Enum):
    """Severity of a user-facing notification."""

    INFO = "info"
    ERROR = "error"


class Role(str, Enum):
    """Application role of a signed-in identity."""

    USER = "user"
    ADMIN = "admin"


class SessionState(str, Enum):
    """Session lifecycle state enumeration.

    Represents the states the application session goes through from
    process start to sign-out.
    """

    UNINITIALIZED = "uninitialized"  # Application has not started the session yet
    LOADING = "loading"  # Persisted session check in progress
    ANONYMOUS = "anonymous"  # No signed-in identity
    AUTHENTICATED = "authenticated"  # An identity is signed in


class RequestStatus(str, Enum):
    """Review status of adoption and donation requests."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PetStatus(str, Enum):
    """Availability status of a pet record.

    Donated pets start as PENDING until an admin reviews the donation request.
    """

    AVAILABLE = "available"
    PENDING = "pending"
    APPROVED = "approved"  # Donation approved, listed for adoption
    REJECTED = "rejected"  # Donation rejected
    ADOPTED = "adopted"

    @property
    def is_adoptable(self) -> bool:
        """Whether the pet can be listed in the adoption catalogue."""
        return self in (PetStatus.AVAILABLE, PetStatus.APPROVED)


class PetType(str, Enum):
    """Kind of animal."""

    DOG = "dog"
    CAT = "cat"
    OTHER = "other"
