"""Data models for pgsandbox."""

from .errors import (
    StartupPhase,
    PgSandboxException,
    ImageResolutionError,
    AllocationError,
    ContainerCreateError,
    ContainerStartError,
    ContainerUnhealthyError,
    ContainerInspectError,
    StartupTimeoutError,
    StartupCancelledError,
    TeardownError,
    MigrationError,
    ScenarioError,
)
from .health import HealthStatus

__all__ = [
    "HealthStatus",
    "StartupPhase",
    "PgSandboxException",
    "ImageResolutionError",
    "AllocationError",
    "ContainerCreateError",
    "ContainerStartError",
    "ContainerUnhealthyError",
    "ContainerInspectError",
    "StartupTimeoutError",
    "StartupCancelledError",
    "TeardownError",
    "MigrationError",
    "ScenarioError",
]
