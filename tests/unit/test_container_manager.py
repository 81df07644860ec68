"""Unit tests for ContainerManager and ImageResolver."""

from unittest.mock import MagicMock, call

import pytest
from docker.errors import APIError, ImageNotFound, NotFound
from requests.exceptions import ConnectionError as RequestsConnectionError, ReadTimeout

from pgsandbox.models.errors import (
    ContainerCreateError,
    ContainerInspectError,
    ContainerStartError,
    ImageResolutionError,
    StartupPhase,
    TeardownError,
)
from pgsandbox.services.container.images import ImageResolver

from conftest import TEST_CONTAINER_ID


class TestImageResolver:
    """Test inspect-first image resolution."""

    @pytest.mark.asyncio
    async def test_present_image_is_not_pulled(self, mock_docker_client):
        """Test a locally cached image skips the pull."""
        await ImageResolver(mock_docker_client).ensure("postgres:16")

        mock_docker_client.images.get.assert_called_once_with("postgres:16")
        mock_docker_client.api.pull.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_image_is_pulled_and_drained(self, mock_docker_client):
        """Test a cache miss pulls the image and consumes the whole stream."""
        mock_docker_client.images.get.side_effect = ImageNotFound("no such image")
        consumed = []

        def stream():
            for message in ({"status": "Pulling"}, {"status": "Extracting"}, {"status": "Done"}):
                consumed.append(message)
                yield message

        mock_docker_client.api.pull.return_value = stream()

        await ImageResolver(mock_docker_client).ensure("postgres:16")

        mock_docker_client.api.pull.assert_called_once_with(
            "postgres", tag="16", stream=True, decode=True
        )
        assert len(consumed) == 3

    @pytest.mark.asyncio
    async def test_registry_with_port_is_parsed(self, mock_docker_client):
        """Test a registry host:port is kept in the repository name."""
        mock_docker_client.images.get.side_effect = ImageNotFound("no such image")
        mock_docker_client.api.pull.return_value = iter([])

        await ImageResolver(mock_docker_client).ensure("localhost:5000/postgres:15")

        mock_docker_client.api.pull.assert_called_once_with(
            "localhost:5000/postgres", tag="15", stream=True, decode=True
        )

    @pytest.mark.asyncio
    async def test_inspect_error_is_not_treated_as_missing(self, mock_docker_client):
        """Test non-not-found inspection errors propagate without a pull."""
        mock_docker_client.images.get.side_effect = APIError("daemon unavailable")

        with pytest.raises(ImageResolutionError) as exc_info:
            await ImageResolver(mock_docker_client).ensure("postgres:16")

        assert exc_info.value.phase is StartupPhase.RESOLUTION
        assert isinstance(exc_info.value.__cause__, APIError)
        mock_docker_client.api.pull.assert_not_called()

    @pytest.mark.asyncio
    async def test_pull_error_propagates(self, mock_docker_client):
        """Test a failed pull is not retried."""
        mock_docker_client.images.get.side_effect = ImageNotFound("no such image")
        mock_docker_client.api.pull.side_effect = NotFound("manifest unknown")

        with pytest.raises(ImageResolutionError):
            await ImageResolver(mock_docker_client).ensure("postgres:does-not-exist")

        assert mock_docker_client.api.pull.call_count == 1

    @pytest.mark.asyncio
    async def test_pull_transport_error(self, mock_docker_client):
        """Test a registry read timeout during pull is an ImageResolutionError."""
        mock_docker_client.images.get.side_effect = ImageNotFound("no such image")
        mock_docker_client.api.pull.side_effect = ReadTimeout("Read timed out.")

        with pytest.raises(ImageResolutionError) as exc_info:
            await ImageResolver(mock_docker_client).ensure("postgres:16")

        assert isinstance(exc_info.value.__cause__, ReadTimeout)

    @pytest.mark.asyncio
    async def test_error_inside_pull_stream(self, mock_docker_client):
        """Test errors reported inside the progress stream fail the pull."""
        mock_docker_client.images.get.side_effect = ImageNotFound("no such image")
        mock_docker_client.api.pull.return_value = iter(
            [
                {"status": "Pulling"},
                {"error": "unauthorized", "errorDetail": {"message": "unauthorized"}},
            ]
        )

        with pytest.raises(ImageResolutionError) as exc_info:
            await ImageResolver(mock_docker_client).ensure("private/postgres:16")

        assert "unauthorized" in str(exc_info.value)
        assert exc_info.value.details == {"message": "unauthorized"}


class TestContainerCreate:
    """Test container creation."""

    @pytest.mark.asyncio
    async def test_create_passes_configuration(
        self, container_manager, mock_docker_client, instance_config
    ):
        """Test env, health check, port binding and labels reach the runtime."""
        container_id = await container_manager.create("postgres:16", instance_config, 55432)

        assert container_id == TEST_CONTAINER_ID
        args, kwargs = mock_docker_client.containers.create.call_args
        assert args == ("postgres:16",)
        assert kwargs["environment"]["POSTGRES_PASSWORD"] == instance_config.password
        assert kwargs["environment"]["TZ"] == "UTC"
        assert kwargs["ports"] == {"5432/tcp": ("127.0.0.1", 55432)}
        assert kwargs["healthcheck"]["test"] == [
            "CMD-SHELL",
            "pg_isready -U pgtest -d pgtest",
        ]
        assert kwargs["healthcheck"]["retries"] == 10
        assert kwargs["labels"]["com.pgsandbox.managed"] == "true"
        assert "com.pgsandbox.created-at" in kwargs["labels"]

    @pytest.mark.asyncio
    async def test_create_error(self, container_manager, mock_docker_client, instance_config):
        """Test runtime rejection surfaces as ContainerCreateError."""
        mock_docker_client.containers.create.side_effect = APIError("port is already allocated")

        with pytest.raises(ContainerCreateError) as exc_info:
            await container_manager.create("postgres:16", instance_config, 55432)

        assert exc_info.value.phase is StartupPhase.CREATION
        assert "port is already allocated" in str(exc_info.value)


class TestContainerStartAndInspect:
    """Test start and inspect."""

    @pytest.mark.asyncio
    async def test_start(self, container_manager, mock_docker_client):
        """Test start is forwarded to the runtime."""
        await container_manager.start(TEST_CONTAINER_ID)
        mock_docker_client.api.start.assert_called_once_with(TEST_CONTAINER_ID)

    @pytest.mark.asyncio
    async def test_start_error(self, container_manager, mock_docker_client):
        """Test start failures surface as ContainerStartError."""
        mock_docker_client.api.start.side_effect = APIError("cannot start")

        with pytest.raises(ContainerStartError) as exc_info:
            await container_manager.start(TEST_CONTAINER_ID)

        assert exc_info.value.container_id == TEST_CONTAINER_ID

    @pytest.mark.asyncio
    async def test_inspect_error(self, container_manager, mock_docker_client):
        """Test inspect failures surface as ContainerInspectError."""
        mock_docker_client.api.inspect_container.side_effect = NotFound("gone")

        with pytest.raises(ContainerInspectError):
            await container_manager.inspect(TEST_CONTAINER_ID)

    @pytest.mark.asyncio
    async def test_inspect_transport_error(self, container_manager, mock_docker_client):
        """Test a dropped daemon connection surfaces as ContainerInspectError."""
        mock_docker_client.api.inspect_container.side_effect = RequestsConnectionError(
            "Connection aborted."
        )

        with pytest.raises(ContainerInspectError) as exc_info:
            await container_manager.inspect(TEST_CONTAINER_ID)

        assert isinstance(exc_info.value.__cause__, RequestsConnectionError)

    @pytest.mark.asyncio
    async def test_start_transport_error(self, container_manager, mock_docker_client):
        """Test a daemon read timeout on start surfaces as ContainerStartError."""
        mock_docker_client.api.start.side_effect = ReadTimeout("Read timed out.")

        with pytest.raises(ContainerStartError):
            await container_manager.start(TEST_CONTAINER_ID)


class TestContainerShutdown:
    """Test ordered teardown."""

    @pytest.mark.asyncio
    async def test_stop_before_remove(self, container_manager, mock_docker_client):
        """Test stop is attempted before remove."""
        calls = MagicMock()
        mock_docker_client.api.stop.side_effect = lambda *a, **kw: calls.stop(*a, **kw)
        mock_docker_client.api.remove_container.side_effect = (
            lambda *a, **kw: calls.remove(*a, **kw)
        )

        await container_manager.shutdown(TEST_CONTAINER_ID)

        assert calls.mock_calls == [
            call.stop(TEST_CONTAINER_ID, timeout=1),
            call.remove(TEST_CONTAINER_ID, v=True),
        ]

    @pytest.mark.asyncio
    async def test_stop_failure_skips_remove(self, container_manager, mock_docker_client):
        """Test a failed stop returns the stop error and does not remove."""
        mock_docker_client.api.stop.side_effect = APIError("stop failed")

        with pytest.raises(TeardownError) as exc_info:
            await container_manager.shutdown(TEST_CONTAINER_ID)

        assert exc_info.value.step == "stop"
        assert exc_info.value.phase is StartupPhase.TEARDOWN
        mock_docker_client.api.remove_container.assert_not_called()

    @pytest.mark.asyncio
    async def test_remove_failure(self, container_manager, mock_docker_client):
        """Test a failed remove is reported as-is."""
        mock_docker_client.api.remove_container.side_effect = APIError("removal in progress")

        with pytest.raises(TeardownError) as exc_info:
            await container_manager.shutdown(TEST_CONTAINER_ID)

        assert exc_info.value.step == "remove"
        mock_docker_client.api.stop.assert_called_once()

    @pytest.mark.asyncio
    async def test_stop_read_timeout(self, container_manager, mock_docker_client):
        """Test a slow stop that times out on the client side is a TeardownError."""
        mock_docker_client.api.stop.side_effect = ReadTimeout("Read timed out. (read timeout=70)")

        with pytest.raises(TeardownError) as exc_info:
            await container_manager.shutdown(TEST_CONTAINER_ID)

        assert exc_info.value.step == "stop"
        mock_docker_client.api.remove_container.assert_not_called()


class TestRollback:
    """Test best-effort compensating actions."""

    @pytest.mark.asyncio
    async def test_discard_swallows_errors(self, container_manager, mock_docker_client):
        """Test rollback failures are logged, not raised."""
        mock_docker_client.api.stop.side_effect = APIError("stop failed")
        mock_docker_client.api.remove_container.side_effect = RuntimeError("socket closed")

        await container_manager.discard_stop(TEST_CONTAINER_ID)
        await container_manager.discard_remove(TEST_CONTAINER_ID)

        mock_docker_client.api.stop.assert_called_once()
        mock_docker_client.api.remove_container.assert_called_once()
