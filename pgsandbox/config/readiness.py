"""Readiness polling configuration."""

from pydantic import Field
from pydantic_settings import BaseSettings


class ReadinessConfig(BaseSettings):
    """Interval and deadline shared by the health and connectivity phases."""

    wait_interval_seconds: float = Field(default=0.1, gt=0, le=10)
    wait_timeout_seconds: float = Field(default=10.0, gt=0, le=600)
    connect_timeout_seconds: float = Field(default=2.0, gt=0, le=60)

    class Config:
        env_prefix = "PGSANDBOX_"
        extra = "ignore"
