"""Host port and credential allocation for new instances.

Port allocation binds an ephemeral loopback listener, reads the assigned
port back and releases it straight away. Nothing stops another process
from claiming the port before the container binds it; callers starting
many instances at once may see the occasional bind conflict.
"""

import secrets
import socket
import string

import structlog

from ...config import LOOPBACK_HOST
from ...models.errors import AllocationError

logger = structlog.get_logger(__name__)

PASSWORD_LENGTH = 32
PASSWORD_ALPHABET = string.ascii_letters


def allocate_port(host: str = LOOPBACK_HOST) -> int:
    """Ask the OS for a free TCP port on ``host``.

    Raises:
        AllocationError: if the listener cannot be bound
    """
    try:
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
            sock.bind((host, 0))
            port = sock.getsockname()[1]
    except OSError as e:
        logger.error("Port allocation failed", host=host, error=str(e))
        raise AllocationError("failed to allocate host port") from e
    logger.debug("Allocated host port", port=port)
    return port


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    """Generate a random password of upper and lowercase Latin letters.

    Raises:
        AllocationError: if the system entropy source is unavailable
    """
    try:
        return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))
    except (OSError, NotImplementedError) as e:
        raise AllocationError("failed to generate password") from e
