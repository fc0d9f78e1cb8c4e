"""Domain layer - value objects, records, enums and exceptions."""

from .enums import (
    MutationStatus,
    PetStatus,
    PetType,
    QueryStatus,
    RequestStatus,
    Role,
    SessionState,
    Severity,
)
from .exceptions import (
    AuthorizationError,
    ConfigurationError,
    ConflictError,
    DataAccessError,
    MowgliansError,
    PartialFailureError,
    RecordFormatError,
    SessionError,
    TransportError,
    ValidationError,
)
from .models import (
    AdoptionRequest,
    CacheEntry,
    DonationRequest,
    GalleryItem,
    ManagedUser,
    MutationResult,
    Notification,
    Pet,
    SerializedSession,
    Session,
    SiteMetrics,
    Tables,
    Transaction,
    UserProfile,
    UserRoleRecord,
)
from .patterns import QueryKeys
from .queries import ColumnFilter, OrderBy, Relation, SelectQuery
from .value_objects import Identity, QueryKey

__all__ = [
    "AdoptionRequest",
    "AuthorizationError",
    "CacheEntry",
    "ColumnFilter",
    "ConfigurationError",
    "ConflictError",
    "DataAccessError",
    "DonationRequest",
    "GalleryItem",
    "Identity",
    "ManagedUser",
    "MowgliansError",
    "MutationResult",
    "MutationStatus",
    "OrderBy",
    "Notification",
    "PartialFailureError",
    "Pet",
    "PetStatus",
    "PetType",
    "QueryKey",
    "QueryKeys",
    "QueryStatus",
    "RecordFormatError",
    "Relation",
    "RequestStatus",
    "Role",
    "SelectQuery",
    "SerializedSession",
    "Session",
    "SessionError",
    "SessionState",
    "Severity",
    "SiteMetrics",
    "Tables",
    "Transaction",
    "TransportError",
    "UserProfile",
    "UserRoleRecord",
    "ValidationError",
]
