"""Configuration management with validation.

The API key is the only secret the controller handles. It is validated at
load time and never included in reprs or log records.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field

# Configuration constants with documented bounds
DEFAULT_ENDPOINT = "https://api.elastic-cloud.com"

DEFAULT_REQUEST_TIMEOUT_SECONDS = 60
MIN_REQUEST_TIMEOUT_SECONDS = 1
MAX_REQUEST_TIMEOUT_SECONDS = 600

DEFAULT_MAX_RETRIES = 3
MAX_RETRIES_LIMIT = 10

# Declaration files are tiny, anything larger is a mistake
MAX_DECLARATION_FILE_SIZE_BYTES = 1024 * 1024

VALID_LOG_FORMATS = ("json", "text")
VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigurationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass(frozen=True)
class Config:
    """Controller configuration loaded from environment variables.

    All fields are validated at construction time. Invalid configurations
    raise ConfigurationError immediately rather than failing on the first
    API call.
    """

    # Required
    api_key: str = field(repr=False)

    # Transport
    endpoint: str = DEFAULT_ENDPOINT
    request_timeout_seconds: int = DEFAULT_REQUEST_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    insecure: bool = False

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        errors: list[str] = []

        if not self.api_key:
            errors.append("EC_API_KEY is required")

        if not self.endpoint:
            errors.append("EC_ENDPOINT is required")
        elif self.endpoint.startswith("http://"):
            if not self.insecure:
                errors.append("EC_ENDPOINT uses plain http, set EC_INSECURE=true to allow it")
        elif not self.endpoint.startswith("https://"):
            errors.append(f"EC_ENDPOINT must be an http(s) URL: {self.endpoint}")

        if not (
            MIN_REQUEST_TIMEOUT_SECONDS
            <= self.request_timeout_seconds
            <= MAX_REQUEST_TIMEOUT_SECONDS
        ):
            errors.append(
                f"EC_TIMEOUT must be between {MIN_REQUEST_TIMEOUT_SECONDS} "
                f"and {MAX_REQUEST_TIMEOUT_SECONDS} seconds"
            )

        if not (0 <= self.max_retries <= MAX_RETRIES_LIMIT):
            errors.append(f"EC_MAX_RETRIES must be between 0 and {MAX_RETRIES_LIMIT}")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            errors.append(f"LOG_LEVEL must be one of {list(VALID_LOG_LEVELS)}: {self.log_level}")

        if self.log_format not in VALID_LOG_FORMATS:
            errors.append(
                f"LOG_FORMAT must be one of {list(VALID_LOG_FORMATS)}: {self.log_format}"
            )

        if errors:
            error_msg = "Configuration validation failed:\n  - " + "\n  - ".join(errors)
            raise ConfigurationError(error_msg)

    @property
    def logging_level(self) -> int:
        """Numeric logging level for the configured LOG_LEVEL."""
        return logging.getLevelName(self.log_level.upper())

    @property
    def base_url(self) -> str:
        """Endpoint without a trailing slash."""
        return self.endpoint.rstrip("/")

    @classmethod
    def from_env(cls) -> Config:
        """Load configuration from environment variables.

        Environment Variables:
            EC_API_KEY: Elastic Cloud API key (required)
            EC_ENDPOINT: API endpoint (default: https://api.elastic-cloud.com)
            EC_TIMEOUT: Per-request timeout in seconds (default: 60)
            EC_MAX_RETRIES: Transport retries for retryable failures (default: 3)
            EC_INSECURE: If "true", allow plain http endpoints (default: false)
            LOG_LEVEL: Logging level name (default: INFO)
            LOG_FORMAT: "json" or "text" (default: json)
        """

        def get_int(key: str, default: int) -> int:
            value = os.environ.get(key)
            if value is None:
                return default
            try:
                return int(value)
            except ValueError as e:
                raise ConfigurationError(f"{key} must be an integer: {value}") from e

        def get_bool(key: str, default: bool) -> bool:
            value = os.environ.get(key, "").lower()
            if not value:
                return default
            return value in ("true", "1", "yes")

        return cls(
            api_key=os.environ.get("EC_API_KEY", ""),
            endpoint=os.environ.get("EC_ENDPOINT", DEFAULT_ENDPOINT),
            request_timeout_seconds=get_int("EC_TIMEOUT", DEFAULT_REQUEST_TIMEOUT_SECONDS),
            max_retries=get_int("EC_MAX_RETRIES", DEFAULT_MAX_RETRIES),
            insecure=get_bool("EC_INSECURE", False),
            log_level=os.environ.get("LOG_LEVEL", "INFO"),
            log_format=os.environ.get("LOG_FORMAT", "json"),
        )
