"""Container health check configuration."""

from typing import Any, Dict

from pydantic import Field
from pydantic_settings import BaseSettings

_NANOSECONDS = 1_000_000_000


class HealthcheckConfig(BaseSettings):
    """Health check declared on the container at creation time."""

    healthcheck_interval_seconds: float = Field(default=1.0, gt=0)
    healthcheck_timeout_seconds: float = Field(default=1.0, gt=0)
    healthcheck_retries: int = Field(default=10, ge=1, le=100)

    def to_docker(self, user: str, dbname: str) -> Dict[str, Any]:
        """Build the docker SDK healthcheck mapping for a pg_isready probe.

        The exec form passes names to pg_isready verbatim, without a shell.
        Docker expects durations in nanoseconds.
        """
        return {
            "test": ["CMD", "pg_isready", "-U", user, "-d", dbname],
            "interval": int(self.healthcheck_interval_seconds * _NANOSECONDS),
            "timeout": int(self.healthcheck_timeout_seconds * _NANOSECONDS),
            "retries": self.healthcheck_retries,
        }

    class Config:
        env_prefix = "PGSANDBOX_"
        extra = "ignore"
