"""Readiness probing for freshly started Postgres containers.

A container that is running is not necessarily usable. Readiness is
established in two strictly sequential phases that share one deadline:

1. Health polling: inspect the container until its health check reports
   ``healthy``. ``unhealthy`` fails immediately, anything else keeps polling.
2. Connectivity polling: open a connection and run ``SELECT 1`` until it
   succeeds.

Cancellation and the deadline are checked at the top of every iteration.
"""

import asyncio
from enum import Enum
from typing import Awaitable, Callable, Optional

import asyncpg
import structlog

from ...config import settings
from ...models.errors import (
    ContainerUnhealthyError,
    StartupCancelledError,
    StartupPhase,
    StartupTimeoutError,
)
from ...models.health import HealthStatus
from .manager import ContainerManager
from .utils import short_id

logger = structlog.get_logger(__name__)

Pinger = Callable[[str, float], Awaitable[None]]


class ProbeState(str, Enum):
    """Where the prober is in the readiness sequence."""

    POLLING_HEALTH = "polling_health"
    POLLING_CONNECTIVITY = "polling_connectivity"
    DONE = "done"

    @property
    def phase(self) -> StartupPhase:
        if self is ProbeState.POLLING_HEALTH:
            return StartupPhase.HEALTH
        return StartupPhase.CONNECTIVITY


async def ping_postgres(dsn: str, timeout: float) -> None:
    """Open a connection to ``dsn`` and run a trivial query.

    Raises whatever the driver raises when the server is not reachable.
    """
    conn = await asyncpg.connect(dsn, timeout=timeout)
    try:
        await conn.fetchval("SELECT 1", timeout=timeout)
    finally:
        await conn.close(timeout=timeout)


class ReadinessProber:
    """Waits until a container is healthy and accepting connections."""

    def __init__(
        self,
        manager: ContainerManager,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        connect_timeout: Optional[float] = None,
        pinger: Optional[Pinger] = None,
    ):
        """Initialize the prober.

        Args:
            manager: Container manager used to inspect health
            interval: Seconds between poll iterations
            timeout: Overall deadline for both phases, in seconds
            connect_timeout: Upper bound for a single connection attempt
            pinger: Coroutine function performing one connectivity check
        """
        readiness = settings.readiness
        self._manager = manager
        self._interval = readiness.wait_interval_seconds if interval is None else interval
        self._timeout = readiness.wait_timeout_seconds if timeout is None else timeout
        self._connect_timeout = (
            readiness.connect_timeout_seconds if connect_timeout is None else connect_timeout
        )
        self._pinger = pinger or ping_postgres

    @property
    def timeout(self) -> float:
        return self._timeout

    async def wait_until_ready(
        self,
        container_id: str,
        dsn: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> None:
        """Block until the instance is ready, or raise.

        Raises:
            ContainerUnhealthyError: the health check reported ``unhealthy``
            ContainerInspectError: inspecting the container failed
            StartupTimeoutError: the deadline elapsed first
            StartupCancelledError: ``cancel_event`` was set
        """
        loop = asyncio.get_running_loop()
        started = loop.time()
        deadline = started + self._timeout
        state = ProbeState.POLLING_HEALTH
        attempts = 0

        while state is not ProbeState.DONE:
            self._check_abort(state, container_id, deadline, cancel_event)
            attempts += 1

            if state is ProbeState.POLLING_HEALTH:
                status = HealthStatus.from_inspect(await self._manager.inspect(container_id))
                if status is HealthStatus.UNHEALTHY:
                    logger.error("Container unhealthy", container_id=short_id(container_id))
                    raise ContainerUnhealthyError(container_id)
                if status is HealthStatus.HEALTHY:
                    logger.debug(
                        "Container healthy",
                        container_id=short_id(container_id),
                        attempts=attempts,
                    )
                    state = ProbeState.POLLING_CONNECTIVITY
                    continue
            elif await self._ping(dsn, deadline - loop.time()):
                state = ProbeState.DONE
                continue

            remaining = deadline - loop.time()
            await asyncio.sleep(max(0.0, min(self._interval, remaining)))

        logger.info(
            "Instance ready",
            container_id=short_id(container_id),
            attempts=attempts,
            elapsed_ms=f"{(loop.time() - started) * 1000:.1f}",
        )

    def _check_abort(
        self,
        state: ProbeState,
        container_id: str,
        deadline: float,
        cancel_event: Optional[asyncio.Event],
    ) -> None:
        if cancel_event is not None and cancel_event.is_set():
            logger.warning(
                "Readiness polling cancelled",
                container_id=short_id(container_id),
                state=state.value,
            )
            raise StartupCancelledError(state.phase, container_id=container_id)
        if asyncio.get_running_loop().time() >= deadline:
            logger.error(
                "Readiness deadline exceeded",
                container_id=short_id(container_id),
                state=state.value,
                timeout=self._timeout,
            )
            raise StartupTimeoutError(state.phase, self._timeout, container_id=container_id)

    async def _ping(self, dsn: str, remaining: float) -> bool:
        timeout = max(0.001, min(self._connect_timeout, remaining))
        try:
            await self._pinger(dsn, timeout)
        except Exception as e:
            logger.debug("Ping failed", error_type=type(e).__name__, error=str(e))
            return False
        return True
