"""Container lifecycle management.

Creates, starts, inspects and tears down the single container backing one
Postgres instance. Rollback of partially started containers is driven by
the caller through the ``discard_*`` methods, which never raise.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

import docker
import structlog

from ...config import POSTGRES_PORT, LOOPBACK_HOST, InstanceConfig, settings
from ...models.errors import (
    ContainerCreateError,
    ContainerInspectError,
    ContainerStartError,
    TeardownError,
)
from .utils import RUNTIME_ERRORS, run_in_executor, short_id

logger = structlog.get_logger(__name__)


class ContainerManager:
    """Manages the lifecycle of Postgres containers through the docker API.

    The docker client is injected so one connection to the daemon serves
    every instance in the process.
    """

    def __init__(self, client: docker.DockerClient, stop_timeout: Optional[int] = None):
        """Initialize the container manager.

        Args:
            client: Docker client shared by the process
            stop_timeout: Seconds to wait for a graceful stop before killing
        """
        self._client = client
        self._stop_timeout = (
            settings.stop_timeout_seconds if stop_timeout is None else stop_timeout
        )

    async def create(self, image: str, config: InstanceConfig, host_port: int) -> str:
        """Create (but do not start) a Postgres container.

        Args:
            image: Image reference, e.g. ``postgres:16``
            config: Instance configuration with the password resolved
            host_port: Loopback port to publish the database port on

        Returns:
            The runtime-assigned container id

        Raises:
            ContainerCreateError: if the runtime rejects the request
        """
        labels = settings.container_labels(
            {
                "created-at": datetime.now(timezone.utc).isoformat(),
                "dbname": config.dbname,
            }
        )
        try:
            container = await run_in_executor(
                self._client.containers.create,
                image,
                environment=config.environment(),
                healthcheck=settings.healthcheck.to_docker(config.user, config.dbname),
                ports={f"{POSTGRES_PORT}/tcp": (LOOPBACK_HOST, host_port)},
                labels=labels,
            )
        except RUNTIME_ERRORS as e:
            logger.error("Container create failed", image=image, error=str(e))
            raise ContainerCreateError(image) from e

        logger.info(
            "Created container",
            container_id=short_id(container.id),
            image=image,
            host_port=host_port,
        )
        return container.id

    async def start(self, container_id: str) -> None:
        """Start a created container.

        Raises:
            ContainerStartError: if the runtime fails to start it
        """
        try:
            await run_in_executor(self._client.api.start, container_id)
        except RUNTIME_ERRORS as e:
            logger.error(
                "Container start failed",
                container_id=short_id(container_id),
                error=str(e),
            )
            raise ContainerStartError(container_id) from e
        logger.info("Started container", container_id=short_id(container_id))

    async def inspect(self, container_id: str) -> Dict[str, Any]:
        """Get the raw inspect payload for a container.

        Raises:
            ContainerInspectError: if the runtime call fails
        """
        try:
            return await run_in_executor(self._client.api.inspect_container, container_id)
        except RUNTIME_ERRORS as e:
            raise ContainerInspectError(container_id) from e

    async def stop(self, container_id: str) -> None:
        """Stop a running container, killing it after the stop timeout."""
        await run_in_executor(
            self._client.api.stop, container_id, timeout=self._stop_timeout
        )
        logger.debug("Stopped container", container_id=short_id(container_id))

    async def remove(self, container_id: str) -> None:
        """Remove a container and its anonymous volumes."""
        await run_in_executor(self._client.api.remove_container, container_id, v=True)
        logger.debug("Removed container", container_id=short_id(container_id))

    async def shutdown(self, container_id: str) -> None:
        """Stop, then remove a container.

        The first failing step aborts the sequence: if stop fails, remove
        is not attempted.

        Raises:
            TeardownError: naming the step that failed
        """
        for step, action in (("stop", self.stop), ("remove", self.remove)):
            try:
                await action(container_id)
            except RUNTIME_ERRORS as e:
                logger.error(
                    "Container teardown failed",
                    container_id=short_id(container_id),
                    step=step,
                    error=str(e),
                )
                raise TeardownError(container_id, step) from e
        logger.info("Shut down container", container_id=short_id(container_id))

    async def discard_stop(self, container_id: str) -> None:
        """Best-effort stop used when rolling back a failed startup."""
        await self._discard("stop", self.stop, container_id)

    async def discard_remove(self, container_id: str) -> None:
        """Best-effort remove used when rolling back a failed startup."""
        await self._discard("remove", self.remove, container_id)

    async def _discard(self, step: str, action, container_id: str) -> None:
        # The startup error already dominates the result; rollback failures
        # are only logged.
        try:
            await action(container_id)
        except Exception as e:
            logger.error(
                "Rollback step failed, container may be leaked",
                container_id=short_id(container_id),
                step=step,
                error=str(e),
            )
        else:
            logger.info(
                "Rolled back container",
                container_id=short_id(container_id),
                step=step,
            )
