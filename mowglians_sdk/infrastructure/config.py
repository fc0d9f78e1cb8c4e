"""Configuration objects following DDD principles."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator


class QueryCacheConfig(BaseModel):
    """Configuration for the query cache."""

    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        validate_assignment=True,
    )

    max_entries: int | None = Field(
        default=None,
        gt=0,
        description="Evict least-recently-used idle entries beyond this size (None disables)",
    )
    notify_on_error: bool = Field(
        default=True,
        description="Surface failed fetches as error notifications",
    )
    error_title: str = Field(
        default="Failed to load data",
        min_length=1,
        description="Notification title for failed fetches",
    )
    enable_metrics: bool = Field(default=True)


class SessionConfig(BaseModel):
    """Configuration for the session lifecycle."""

    model_config = ConfigDict(
        extra="forbid",
        strict=True,
        validate_assignment=True,
    )

    revalidate_on_start: bool = Field(
        default=False,
        description="Confirm a persisted session with the backend identity check at start",
    )
    min_password_length: int = Field(default=6, ge=1, le=128)


class RemoteDataConfig(BaseModel):
    """Connection settings for the hosted REST backend."""

    model_config = ConfigDict(
        extra="forbid",
        str_strip_whitespace=True,
        strict=True,
        validate_assignment=True,
    )

    base_url: str = Field(
        default="http://localhost:54321",
        min_length=8,
        description="Backend project URL",
    )
    api_key: str = Field(default="", description="Anonymous/public API key")
    access_token: str | None = Field(
        default=None,
        description="Bearer token of the signed-in user (defaults to the API key)",
    )
    timeout_seconds: float = Field(default=10.0, gt=0, le=300)
    rest_path: str = Field(default="/rest/v1")
    storage_path: str = Field(default="/storage/v1")
    auth_path: str = Field(default="/auth/v1")

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Validate the backend URL scheme and drop any trailing slash."""
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid backend URL: {v}. Must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("rest_path", "storage_path", "auth_path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Paths are absolute and have no trailing slash."""
        if not v.startswith("/"):
            raise ValueError(f"Path must start with '/': {v}")
        return v.rstrip("/")


class SessionStoreConfig(BaseModel):
    """Configuration for the persisted session store."""

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
    )

    path: Path | None = Field(
        default=None,
        description="File holding the persisted session (None keeps it in memory)",
    )
    use_msgpack: bool = Field(
        default=False,
        description="Store the session as MessagePack instead of JSON",
    )


class MowgliansConfig(BaseModel):
    """Aggregated application configuration."""

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    environment: str = Field(default="development", pattern="^(development|staging|production)$")
    log_level: str = Field(default="INFO", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    backend: str = Field(
        default="memory",
        pattern="^(memory|http)$",
        description="Remote data adapter: in-memory store or the HTTP backend",
    )
    cache: QueryCacheConfig = Field(default_factory=QueryCacheConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    remote: RemoteDataConfig = Field(default_factory=RemoteDataConfig)
    session_store: SessionStoreConfig = Field(default_factory=SessionStoreConfig)
