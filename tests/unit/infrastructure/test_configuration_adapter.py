"""Tests for the environment configuration adapter."""

from pathlib import Path

import pytest

from mowglians_sdk.domain.exceptions import ConfigurationError
from mowglians_sdk.infrastructure.config import MowgliansConfig, RemoteDataConfig
from mowglians_sdk.infrastructure.configuration_adapter import EnvironmentConfigurationAdapter


class TestEnvironmentConfigurationAdapter:
    """Loading configuration from MOWGLIANS_* variables."""

    def test_defaults(self):
        """An empty environment yields the development defaults."""
        config = EnvironmentConfigurationAdapter({}).load_configuration()

        assert config == MowgliansConfig()
        assert config.backend == "memory"
        assert config.session_store.path is None

    def test_all_variables(self):
        """Every supported variable is applied."""
        environ = {
            "MOWGLIANS_ENVIRONMENT": "Staging",
            "MOWGLIANS_LOG_LEVEL": "debug",
            "MOWGLIANS_BACKEND": "http",
            "MOWGLIANS_CACHE_MAX_ENTRIES": "200",
            "MOWGLIANS_NOTIFY_ON_ERROR": "no",
            "MOWGLIANS_REVALIDATE_SESSION": "yes",
            "MOWGLIANS_BASE_URL": "https://project.example.co",
            "MOWGLIANS_API_KEY": "anon",
            "MOWGLIANS_ACCESS_TOKEN": "token",
            "MOWGLIANS_TIMEOUT_SECONDS": "2.5",
            "MOWGLIANS_SESSION_FILE": "/tmp/mowglians/session",
            "MOWGLIANS_SESSION_MSGPACK": "1",
        }

        config = EnvironmentConfigurationAdapter(environ).load_configuration()

        assert config.environment == "staging"
        assert config.log_level == "DEBUG"
        assert config.backend == "http"
        assert config.cache.max_entries == 200
        assert config.cache.notify_on_error is False
        assert config.session.revalidate_on_start is True
        assert config.remote.base_url == "https://project.example.co"
        assert config.remote.api_key == "anon"
        assert config.remote.access_token == "token"
        assert config.remote.timeout_seconds == 2.5
        assert config.session_store.path == Path("/tmp/mowglians/session")
        assert config.session_store.use_msgpack is True

    def test_blank_values_use_defaults(self):
        """Whitespace-only values are treated as unset."""
        config = EnvironmentConfigurationAdapter(
            {"MOWGLIANS_LOG_LEVEL": "  ", "MOWGLIANS_SESSION_FILE": ""}
        ).load_configuration()

        assert config.log_level == "INFO"
        assert config.session_store.path is None

    @pytest.mark.parametrize(
        "environ",
        [
            {"MOWGLIANS_NOTIFY_ON_ERROR": "maybe"},
            {"MOWGLIANS_CACHE_MAX_ENTRIES": "many"},
            {"MOWGLIANS_CACHE_MAX_ENTRIES": "0"},
            {"MOWGLIANS_ENVIRONMENT": "qa"},
            {"MOWGLIANS_BASE_URL": "ftp://example.com"},
            {"MOWGLIANS_TIMEOUT_SECONDS": "soon"},
        ],
    )
    def test_malformed_values(self, environ):
        """Malformed variables raise ConfigurationError."""
        with pytest.raises(ConfigurationError, match="Failed to load configuration"):
            EnvironmentConfigurationAdapter(environ).load_configuration()

    def test_http_backend_requires_api_key(self):
        """Cross-field rules are enforced after parsing."""
        with pytest.raises(ConfigurationError) as exc_info:
            EnvironmentConfigurationAdapter({"MOWGLIANS_BACKEND": "http"}).load_configuration()

        assert exc_info.value.details["issues"] == [
            "The HTTP backend requires MOWGLIANS_API_KEY"
        ]

    def test_production_rules(self):
        """Production needs the HTTP backend on a non-local URL."""
        adapter = EnvironmentConfigurationAdapter({})
        config = MowgliansConfig(environment="production")

        issues = adapter.validate_configuration(config)

        assert "Production must use the HTTP backend" in issues
        assert "Production environment should not use localhost in the URL" in issues

        config = MowgliansConfig(
            environment="production",
            backend="http",
            remote=RemoteDataConfig(base_url="https://project.example.co", api_key="anon"),
        )
        assert adapter.validate_configuration(config) == []

    def test_reads_process_environment(self, monkeypatch):
        """Without an explicit mapping the process environment is used."""
        monkeypatch.setenv("MOWGLIANS_LOG_LEVEL", "WARNING")

        config = EnvironmentConfigurationAdapter().load_configuration()

        assert config.log_level == "WARNING"
