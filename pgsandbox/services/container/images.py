"""Image resolution: make sure an image is in the local store before use."""

from typing import Any, Dict, Iterable

import docker
import structlog
from docker.errors import ImageNotFound
from docker.utils import parse_repository_tag

from ...models.errors import ImageResolutionError
from .utils import RUNTIME_ERRORS, run_in_executor

logger = structlog.get_logger(__name__)


class ImageResolver:
    """Inspects the local image store and pulls on a cache miss.

    A single pull attempt is made; there is no retry.
    """

    def __init__(self, client: docker.DockerClient):
        """Initialize the resolver.

        Args:
            client: Docker client shared by the process
        """
        self._client = client

    async def ensure(self, image: str) -> None:
        """Ensure ``image`` (``name:tag``) is present locally.

        Raises:
            ImageResolutionError: if inspection fails for any reason other
                than the image being absent, or if the pull fails
        """
        if await self._is_present(image):
            logger.debug("Image present locally", image=image)
            return

        logger.info("Pulling image", image=image)
        try:
            await run_in_executor(self._pull, image)
        except ImageResolutionError:
            raise
        except RUNTIME_ERRORS as e:
            logger.error("Image pull failed", image=image, error=str(e))
            raise ImageResolutionError(image, message=f"failed to pull image {image}") from e
        logger.info("Pulled image", image=image)

    async def _is_present(self, image: str) -> bool:
        try:
            await run_in_executor(self._client.images.get, image)
            return True
        except ImageNotFound:
            return False
        except RUNTIME_ERRORS as e:
            logger.error("Image inspect failed", image=image, error=str(e))
            raise ImageResolutionError(image, message=f"failed to inspect image {image}") from e

    def _pull(self, image: str) -> None:
        """Pull and fully drain the progress stream.

        The daemon reports some failures inside the stream rather than as
        an HTTP error, so every message is checked.
        """
        repository, tag = parse_repository_tag(image)
        stream: Iterable[Dict[str, Any]] = self._client.api.pull(
            repository, tag=tag or "latest", stream=True, decode=True
        )
        for message in stream:
            if "error" in message:
                raise ImageResolutionError(
                    image,
                    message=f"failed to pull image {image}: {message['error']}",
                    details=message.get("errorDetail") or {},
                )
            if "status" in message:
                logger.debug(
                    "Pull progress",
                    image=image,
                    status=message["status"],
                    layer=message.get("id"),
                )
