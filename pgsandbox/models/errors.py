"""Error models and exception classes for pgsandbox."""

from enum import Enum
from typing import Any, Dict, Optional


class StartupPhase(str, Enum):
    """Phase of the instance lifecycle in which an error occurred."""

    RESOLUTION = "resolution"
    ALLOCATION = "allocation"
    CREATION = "creation"
    START = "start"
    HEALTH = "health"
    CONNECTIVITY = "connectivity"
    TEARDOWN = "teardown"
    MIGRATION = "migration"
    SCENARIO = "scenario"


# Custom Exception Classes


class PgSandboxException(Exception):
    """Base exception for pgsandbox."""

    def __init__(
        self,
        message: str,
        phase: StartupPhase,
        container_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.phase = phase
        self.container_id = container_id
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.__cause__ is not None:
            return f"{self.phase.value}: {self.message}: {self.__cause__}"
        return f"{self.phase.value}: {self.message}"


class ImageResolutionError(PgSandboxException):
    """The image could not be inspected or pulled."""

    def __init__(self, image: str, message: Optional[str] = None, **kwargs):
        self.image = image
        super().__init__(
            message=message or f"failed to resolve image {image}",
            phase=StartupPhase.RESOLUTION,
            **kwargs,
        )


class AllocationError(PgSandboxException):
    """A host port or credential could not be allocated."""

    def __init__(self, message: str = "failed to allocate port or credentials", **kwargs):
        super().__init__(message=message, phase=StartupPhase.ALLOCATION, **kwargs)


class ContainerCreateError(PgSandboxException):
    """The container runtime rejected the create request."""

    def __init__(self, image: str, **kwargs):
        super().__init__(
            message=f"failed to create container from {image}",
            phase=StartupPhase.CREATION,
            **kwargs,
        )


class ContainerStartError(PgSandboxException):
    """The created container could not be started."""

    def __init__(self, container_id: str, **kwargs):
        super().__init__(
            message=f"failed to start container {container_id[:12]}",
            phase=StartupPhase.START,
            container_id=container_id,
            **kwargs,
        )


class ContainerUnhealthyError(PgSandboxException):
    """The container's health check reported a definitive failure."""

    def __init__(self, container_id: str, **kwargs):
        super().__init__(
            message=f"container {container_id[:12]} unhealthy",
            phase=StartupPhase.HEALTH,
            container_id=container_id,
            **kwargs,
        )


class ContainerInspectError(PgSandboxException):
    """Inspecting the container's state failed."""

    def __init__(self, container_id: str, **kwargs):
        super().__init__(
            message=f"failed to inspect container {container_id[:12]}",
            phase=StartupPhase.HEALTH,
            container_id=container_id,
            **kwargs,
        )


class StartupTimeoutError(PgSandboxException):
    """The readiness deadline elapsed before the instance became ready."""

    def __init__(self, phase: StartupPhase, timeout: float, **kwargs):
        self.timeout = timeout
        super().__init__(
            message=f"instance not ready after {timeout:g}s",
            phase=phase,
            **kwargs,
        )


class StartupCancelledError(PgSandboxException):
    """The caller cancelled startup while readiness was being polled."""

    def __init__(self, phase: StartupPhase, **kwargs):
        super().__init__(message="startup cancelled", phase=phase, **kwargs)


class TeardownError(PgSandboxException):
    """Stopping or removing the container failed.

    The container's true state is unknown afterwards and it should be
    treated as leaked.
    """

    def __init__(self, container_id: str, step: str, **kwargs):
        self.step = step
        super().__init__(
            message=f"failed to {step} container {container_id[:12]}",
            phase=StartupPhase.TEARDOWN,
            container_id=container_id,
            **kwargs,
        )


class MigrationError(PgSandboxException):
    """A migration file could not be read or executed."""

    def __init__(self, message: str, filename: Optional[str] = None, **kwargs):
        self.filename = filename
        super().__init__(message=message, phase=StartupPhase.MIGRATION, **kwargs)


class ScenarioError(PgSandboxException):
    """A scenario file could not be read, parsed or inserted."""

    def __init__(self, message: str, filename: Optional[str] = None, **kwargs):
        self.filename = filename
        super().__init__(message=message, phase=StartupPhase.SCENARIO, **kwargs)
