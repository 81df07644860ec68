"""Configuration management for pgsandbox.

This module provides a unified Settings class with flat fields that can be
set from the environment, plus grouped views for each concern.

Usage:
    from pgsandbox.config import settings

    # Access grouped settings
    settings.readiness.wait_timeout_seconds
    settings.healthcheck.healthcheck_retries

    # Or the flat fields
    settings.image_repository
    settings.stop_timeout_seconds
"""

from typing import Dict, Optional

from pydantic import Field, validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Import grouped configurations
from .healthcheck import HealthcheckConfig
from .instance import LOOPBACK_HOST, POSTGRES_PORT, InstanceConfig
from .logging import LoggingConfig
from .readiness import ReadinessConfig


class Settings(BaseSettings):
    """Process-wide settings with environment variable support.

    Every field may be overridden with a ``PGSANDBOX_`` prefixed environment
    variable, e.g. ``PGSANDBOX_WAIT_TIMEOUT_SECONDS=30``.
    """

    model_config = SettingsConfigDict(
        env_prefix="PGSANDBOX_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Image
    image_repository: str = Field(default="postgres", min_length=1)

    # Readiness polling
    wait_interval_seconds: float = Field(default=0.1, gt=0, le=10)
    wait_timeout_seconds: float = Field(default=10.0, gt=0, le=600)
    connect_timeout_seconds: float = Field(default=2.0, gt=0, le=60)

    # Container health check declared at creation time
    healthcheck_interval_seconds: float = Field(default=1.0, gt=0)
    healthcheck_timeout_seconds: float = Field(default=1.0, gt=0)
    healthcheck_retries: int = Field(default=10, ge=1, le=100)

    # Teardown
    stop_timeout_seconds: int = Field(default=10, ge=0, le=300)

    # Labels attached to every managed container
    label_prefix: str = Field(default="com.pgsandbox")

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="console")

    @validator("image_repository")
    def validate_image_repository(cls, v):
        """The version tag is appended at start time, so none may be given here."""
        if ":" in v.rsplit("/", 1)[-1]:
            raise ValueError(
                "image_repository must not include a tag (pass the version instead)"
            )
        return v

    @validator("log_format")
    def validate_log_format(cls, v):
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v

    # ========================================================================
    # GROUPED CONFIG ACCESS
    # ========================================================================

    @property
    def readiness(self) -> ReadinessConfig:
        """Access readiness polling configuration group."""
        return ReadinessConfig(
            wait_interval_seconds=self.wait_interval_seconds,
            wait_timeout_seconds=self.wait_timeout_seconds,
            connect_timeout_seconds=self.connect_timeout_seconds,
        )

    @property
    def healthcheck(self) -> HealthcheckConfig:
        """Access container health check configuration group."""
        return HealthcheckConfig(
            healthcheck_interval_seconds=self.healthcheck_interval_seconds,
            healthcheck_timeout_seconds=self.healthcheck_timeout_seconds,
            healthcheck_retries=self.healthcheck_retries,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(log_level=self.log_level, log_format=self.log_format)

    def image_reference(self, version: str) -> str:
        """Get the full image reference for a Postgres version tag."""
        return f"{self.image_repository}:{version}"

    def container_labels(self, extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        """Get the labels attached to a managed container."""
        labels = {f"{self.label_prefix}.managed": "true"}
        for key, value in (extra or {}).items():
            labels[f"{self.label_prefix}.{key}"] = value
        return labels


# Global settings instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    # Grouped configs
    "HealthcheckConfig",
    "LoggingConfig",
    "ReadinessConfig",
    # Instance configuration
    "InstanceConfig",
    "LOOPBACK_HOST",
    "POSTGRES_PORT",
]
