"""Configuration adapter loading settings from environment variables."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path

from pydantic import ValidationError as PydanticValidationError

from ..domain.exceptions import ConfigurationError
from .config import (
    MowgliansConfig,
    QueryCacheConfig,
    RemoteDataConfig,
    SessionConfig,
    SessionStoreConfig,
)

ENV_PREFIX = "MOWGLIANS_"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class EnvironmentConfigurationAdapter:
    """Adapter that loads configuration from ``MOWGLIANS_*`` environment variables."""

    def __init__(self, environ: Mapping[str, str] | None = None):
        """Initialize the adapter.

        Args:
            environ: Variables to read (the process environment if None)
        """
        self._environ = environ if environ is not None else os.environ

    def _get(self, name: str, default: str | None = None) -> str | None:
        value = self._environ.get(f"{ENV_PREFIX}{name}")
        if value is None or not value.strip():
            return default
        return value.strip()

    def _get_bool(self, name: str, default: bool) -> bool:
        value = self._get(name)
        if value is None:
            return default
        lowered = value.lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        raise ValueError(f"Invalid boolean for {ENV_PREFIX}{name}: {value}")

    def _get_int(self, name: str) -> int | None:
        value = self._get(name)
        return int(value) if value is not None else None

    def load_configuration(self) -> MowgliansConfig:
        """Load the application configuration.

        Returns:
            MowgliansConfig: Validated configuration

        Raises:
            ConfigurationError: If a variable is malformed or the result is invalid
        """
        try:
            max_entries = self._get_int("CACHE_MAX_ENTRIES")
            timeout = self._get("TIMEOUT_SECONDS")
            session_file = self._get("SESSION_FILE")

            config = MowgliansConfig(
                environment=(self._get("ENVIRONMENT", "development") or "").lower(),
                log_level=(self._get("LOG_LEVEL", "INFO") or "").upper(),
                backend=(self._get("BACKEND", "memory") or "").lower(),
                cache=QueryCacheConfig(
                    max_entries=max_entries,
                    notify_on_error=self._get_bool("NOTIFY_ON_ERROR", True),
                ),
                session=SessionConfig(
                    revalidate_on_start=self._get_bool("REVALIDATE_SESSION", False),
                ),
                remote=RemoteDataConfig(
                    base_url=self._get("BASE_URL", "http://localhost:54321"),
                    api_key=self._get("API_KEY", ""),
                    access_token=self._get("ACCESS_TOKEN"),
                    timeout_seconds=float(timeout) if timeout is not None else 10.0,
                ),
                session_store=SessionStoreConfig(
                    path=Path(session_file) if session_file else None,
                    use_msgpack=self._get_bool("SESSION_MSGPACK", False),
                ),
            )
        except (ValueError, PydanticValidationError) as e:
            raise ConfigurationError(f"Failed to load configuration: {e}") from e

        issues = self.validate_configuration(config)
        if issues:
            raise ConfigurationError(
                f"Configuration validation failed: {'; '.join(issues)}",
                details={"issues": issues},
            )
        return config

    def validate_configuration(self, config: MowgliansConfig) -> list[str]:
        """Check cross-field rules the models cannot express.

        Returns:
            Problems found; empty when the configuration is usable
        """
        issues: list[str] = []
        if config.backend == "http" and not config.remote.api_key:
            issues.append("The HTTP backend requires MOWGLIANS_API_KEY")
        if config.environment == "production":
            if config.backend != "http":
                issues.append("Production must use the HTTP backend")
            for host in ("localhost", "127.0.0.1"):
                if host in config.remote.base_url:
                    issues.append(f"Production environment should not use {host} in the URL")
        return issues
