"""Docker client factory.

One client is built per process and handed to the services that need it,
instead of each call opening its own connection to the daemon.
"""

import threading
from typing import Optional

import docker
import structlog
from docker.errors import DockerException

logger = structlog.get_logger(__name__)


class DockerClientFactory:
    """Lazily creates and caches a process-wide docker client.

    Usage:
        client = docker_client_factory.get_client()
        manager = ContainerManager(client)
    """

    def __init__(self):
        self._client: Optional[docker.DockerClient] = None
        self._lock = threading.Lock()

    def get_client(self) -> docker.DockerClient:
        """Get the shared client, connecting from the environment on first use.

        Honors DOCKER_HOST, DOCKER_TLS_VERIFY and DOCKER_CERT_PATH.

        Raises:
            docker.errors.DockerException: if the daemon cannot be reached
        """
        if self._client is None:
            with self._lock:
                if self._client is None:
                    try:
                        self._client = docker.from_env()
                    except DockerException as e:
                        logger.error("Failed to create docker client", error=str(e))
                        raise
                    logger.debug("Docker client initialized")
        return self._client

    def set_client(self, client: docker.DockerClient) -> None:
        """Install an existing client, e.g. one configured by the caller."""
        with self._lock:
            self._client = client

    def close(self) -> None:
        """Close the cached client if one was created."""
        with self._lock:
            if self._client is not None:
                self._client.close()
                logger.debug("Docker client closed")
            self._client = None


# Global client factory instance
docker_client_factory = DockerClientFactory()
