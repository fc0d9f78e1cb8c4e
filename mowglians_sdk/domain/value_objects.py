"""Domain value objects following Domain-Driven Design principles.

These value objects encapsulate domain concepts and provide type safety,
validation, and clear business meaning to what would otherwise be primitive types.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

KeyPart = str | int | None


class QueryKey(BaseModel):
    """Value object identifying a cached read.

    A query key is an ordered, immutable tuple of primitive values such as
    ``("admin-adoptions",)`` or ``("user-role", "u-42")``. Two keys with the
    same parts are the same cached resource.
    """

    model_config = ConfigDict(frozen=True)

    parts: tuple[KeyPart, ...] = Field(..., min_length=1, description="Ordered key parts")

    @field_validator("parts")
    @classmethod
    def validate_parts(cls, v: tuple[KeyPart, ...]) -> tuple[KeyPart, ...]:
        """Validate the leading part names the resource.

        The first part must be a non-empty string so key families can be
        matched by prefix.
        """
        head = v[0]
        if not isinstance(head, str) or not head.strip():
            raise ValueError(f"Query key must start with a non-empty name, got {head!r}")
        return v

    @classmethod
    def of(cls, *parts: KeyPart) -> QueryKey:
        """Build a key from positional parts."""
        return cls(parts=tuple(parts))

    @classmethod
    def coerce(cls, value: QueryKey | Sequence[KeyPart] | str) -> QueryKey:
        """Accept a QueryKey, a tuple/list of parts, or a single name."""
        if isinstance(value, QueryKey):
            return value
        if isinstance(value, str):
            return cls(parts=(value,))
        return cls(parts=tuple(value))

    @property
    def name(self) -> str:
        """The resource name (first part)."""
        return str(self.parts[0])

    def starts_with(self, prefix: QueryKey) -> bool:
        """Check whether ``prefix`` equals the leading parts of this key."""
        size = len(prefix.parts)
        return size <= len(self.parts) and self.parts[:size] == prefix.parts

    def matches(self, target: QueryKey, exact: bool = False) -> bool:
        """Check whether this key is selected by ``target``.

        Args:
            target: The key or key prefix to match against
            exact: Require full equality instead of prefix matching

        Returns:
            True if the key is selected
        """
        if exact:
            return self.parts == target.parts
        return self.starts_with(target)

    def __str__(self) -> str:
        """String representation joins the parts."""
        return ":".join("" if p is None else str(p) for p in self.parts)

    def __eq__(self, other: Any) -> bool:
        """Structural equality, also against plain tuples."""
        if isinstance(other, QueryKey):
            return self.parts == other.parts
        if isinstance(other, tuple):
            return self.parts == other
        return False

    def __hash__(self) -> int:
        """Make hashable for use in sets and dicts."""
        return hash(self.parts)


class Identity(BaseModel):
    """Value object representing the authenticated principal of a session."""

    model_config = ConfigDict(frozen=True, strict=True, str_strip_whitespace=True)

    id: str = Field(..., min_length=1, max_length=128, description="Identity identifier")
    email: str = Field(..., min_length=3, max_length=320, description="Sign-in email")

    @field_validator("email")
    @classmethod
    def validate_email(cls, v: str) -> str:
        """Validate the email has a local part and a domain."""
        local, sep, domain = v.partition("@")
        if not sep or not local or not domain:
            raise ValueError(f"Invalid email address '{v}'")
        return v.lower()

    def __str__(self) -> str:
        """String representation returns the identifier."""
        return self.id
