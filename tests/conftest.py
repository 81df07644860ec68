"""Pytest configuration and shared fixtures."""

import re
from unittest.mock import AsyncMock, MagicMock

import pytest

from pgsandbox.config import InstanceConfig
from pgsandbox.services.container.manager import ContainerManager

TEST_CONTAINER_ID = "3f0c6a1b9d2e4f5a6b7c8d9e0f1a2b3c4d5e6f7a8b9c0d1e2f3a4b5c6d7e8f9a"

CONNECTION_STRING_RE = re.compile(
    r"^postgres://pgtest:(?P<password>[A-Za-z]{32})@127\.0\.0\.1:(?P<port>\d{1,5})"
    r"/pgtest\?sslmode=disable$"
)


def inspect_payload(status: str) -> dict:
    """Build a minimal docker inspect payload with the given health status."""
    return {"Id": TEST_CONTAINER_ID, "State": {"Status": "running", "Health": {"Status": status}}}


@pytest.fixture
def mock_docker_client():
    """Mock docker client whose calls all succeed and report a healthy container."""
    client = MagicMock()

    # Image store
    client.images.get.return_value = MagicMock()
    client.api.pull.return_value = iter(
        [
            {"status": "Pulling from library/postgres", "id": "16"},
            {"status": "Download complete", "id": "a1b2c3"},
            {"status": "Status: Downloaded newer image for postgres:16"},
        ]
    )

    # Container lifecycle
    container = MagicMock()
    container.id = TEST_CONTAINER_ID
    client.containers.create.return_value = container
    client.api.start.return_value = None
    client.api.inspect_container.return_value = inspect_payload("healthy")
    client.api.stop.return_value = None
    client.api.remove_container.return_value = None

    return client


@pytest.fixture
def container_manager(mock_docker_client):
    """ContainerManager backed by the mock docker client."""
    return ContainerManager(mock_docker_client, stop_timeout=1)


@pytest.fixture
def mock_pinger():
    """Connectivity check that always succeeds."""
    return AsyncMock(return_value=None)


@pytest.fixture
def instance_config():
    """Instance configuration with a fixed password."""
    return InstanceConfig(password="abcdefghijklmnopqrstuvwxyzABCDEF")
