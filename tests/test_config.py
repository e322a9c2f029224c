"""Tests for configuration loading."""

import logging
import os
from unittest.mock import patch

import pytest

from ecfilters.config import (
    DEFAULT_ENDPOINT,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT_SECONDS,
    Config,
    ConfigurationError,
)


class TestConfig:
    """Tests for Config class."""

    def test_valid_config(self) -> None:
        """Test creating a valid configuration with defaults."""
        config = Config(api_key="secret-key")

        assert config.endpoint == DEFAULT_ENDPOINT
        assert config.request_timeout_seconds == DEFAULT_REQUEST_TIMEOUT_SECONDS
        assert config.max_retries == DEFAULT_MAX_RETRIES
        assert config.insecure is False

    def test_missing_api_key(self) -> None:
        """Test that a missing API key raises error."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config(api_key="")

        assert "EC_API_KEY" in str(exc_info.value)

    def test_api_key_not_in_repr(self) -> None:
        """Test that the API key never shows up in the repr."""
        config = Config(api_key="super-secret-value")

        assert "super-secret-value" not in repr(config)

    def test_plain_http_requires_insecure(self) -> None:
        """Test that an http endpoint is rejected unless insecure is set."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config(api_key="k", endpoint="http://localhost:8080")

        assert "EC_INSECURE" in str(exc_info.value)

        config = Config(api_key="k", endpoint="http://localhost:8080", insecure=True)
        assert config.endpoint == "http://localhost:8080"

    def test_invalid_endpoint_scheme(self) -> None:
        """Test that non-http endpoints are rejected."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config(api_key="k", endpoint="ftp://example.com")

        assert "EC_ENDPOINT" in str(exc_info.value)

    def test_base_url_strips_trailing_slash(self) -> None:
        """Test that trailing slashes are removed from the endpoint."""
        config = Config(api_key="k", endpoint="https://api.example.com/")

        assert config.base_url == "https://api.example.com"

    def test_invalid_timeout(self) -> None:
        """Test that out-of-range timeout raises error."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config(api_key="k", request_timeout_seconds=0)

        assert "EC_TIMEOUT" in str(exc_info.value)

    def test_invalid_max_retries(self) -> None:
        """Test that out-of-range retry count raises error."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config(api_key="k", max_retries=11)

        assert "EC_MAX_RETRIES" in str(exc_info.value)

    def test_invalid_log_settings(self) -> None:
        """Test that all log setting errors are reported together."""
        with pytest.raises(ConfigurationError) as exc_info:
            Config(api_key="k", log_level="LOUD", log_format="xml")

        message = str(exc_info.value)
        assert "LOG_LEVEL" in message
        assert "LOG_FORMAT" in message

    def test_logging_level(self) -> None:
        """Test that the log level name maps to the numeric level."""
        config = Config(api_key="k", log_level="debug")

        assert config.logging_level == logging.DEBUG

    def test_from_env(self) -> None:
        """Test loading configuration from environment."""
        env = {
            "EC_API_KEY": "env-key",
            "EC_ENDPOINT": "https://cloud.example.com",
            "EC_TIMEOUT": "30",
            "EC_MAX_RETRIES": "5",
            "LOG_FORMAT": "text",
        }

        with patch.dict(os.environ, env, clear=True):
            config = Config.from_env()

        assert config.api_key == "env-key"
        assert config.endpoint == "https://cloud.example.com"
        assert config.request_timeout_seconds == 30
        assert config.max_retries == 5
        assert config.log_format == "text"

    def test_from_env_insecure(self) -> None:
        """Test that EC_INSECURE enables plain http endpoints."""
        env = {
            "EC_API_KEY": "env-key",
            "EC_ENDPOINT": "http://localhost:9200",
            "EC_INSECURE": "true",
        }

        with patch.dict(os.environ, env, clear=True):
            config = Config.from_env()

        assert config.insecure is True

    def test_from_env_non_integer(self) -> None:
        """Test that a non-integer timeout raises error."""
        env = {"EC_API_KEY": "env-key", "EC_TIMEOUT": "soon"}

        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError) as exc_info:
                Config.from_env()

        assert "EC_TIMEOUT must be an integer" in str(exc_info.value)

    def test_from_env_missing_key(self) -> None:
        """Test that an empty environment fails validation."""
        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(ConfigurationError):
                Config.from_env()
