"""Shared utilities for container operations."""

import asyncio
import functools
from typing import Any, Callable, Optional

from docker.errors import DockerException
from requests.exceptions import RequestException

# Transport failures escape the docker SDK as raw requests errors.
RUNTIME_ERRORS = (DockerException, RequestException)


async def run_in_executor(func: Callable[..., Any], *args, **kwargs) -> Any:
    """
    Run a blocking function in the default thread pool executor.

    The docker SDK is synchronous, so every runtime call goes through here
    to keep the event loop free while it waits on the daemon.

    Args:
        func: Blocking function to run
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        Result of the function
    """
    loop = asyncio.get_running_loop()
    if kwargs:
        func = functools.partial(func, **kwargs)
    return await loop.run_in_executor(None, func, *args)


def short_id(container_id: Optional[str]) -> str:
    """Truncate a container id for log output."""
    return container_id[:12] if container_id else "none"
