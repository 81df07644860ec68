"""Container management services.

This package provides Docker container management functionality split into:
- client.py: Docker client factory and initialization
- images.py: Image inspection and pulling
- allocator.py: Host port and password allocation
- manager.py: Container lifecycle management
- readiness.py: Health and connectivity polling
- utils.py: Shared utilities for container operations
"""

from .allocator import allocate_port, generate_password
from .client import DockerClientFactory, docker_client_factory
from .images import ImageResolver
from .manager import ContainerManager
from .readiness import ProbeState, ReadinessProber, ping_postgres
from .utils import run_in_executor

__all__ = [
    "ContainerManager",
    "DockerClientFactory",
    "docker_client_factory",
    "ImageResolver",
    "ProbeState",
    "ReadinessProber",
    "allocate_port",
    "generate_password",
    "ping_postgres",
    "run_in_executor",
]
