"""Throwaway Postgres containers for test suites.

Usage:
    from pgsandbox import postgres_container, run_migrations, load_scenario

    async with postgres_container("16") as pg:
        conn = await pg.connect()
        await run_migrations(conn, "migrations")
        await load_scenario(conn, "testdata/scenario.yml")
"""

from .config import InstanceConfig, Settings, settings
from .models.errors import (
    StartupPhase,
    PgSandboxException,
    ImageResolutionError,
    AllocationError,
    ContainerCreateError,
    ContainerStartError,
    ContainerUnhealthyError,
    ContainerInspectError,
    StartupTimeoutError,
    StartupCancelledError,
    TeardownError,
    MigrationError,
    ScenarioError,
)
from .services import (
    PostgresContainer,
    PostgresLauncher,
    load_scenario,
    postgres_container,
    run_migrations,
    start_postgres_container,
)

__version__ = "0.1.0"

__all__ = [
    "InstanceConfig",
    "Settings",
    "settings",
    "PostgresContainer",
    "PostgresLauncher",
    "postgres_container",
    "start_postgres_container",
    "run_migrations",
    "load_scenario",
    "StartupPhase",
    "PgSandboxException",
    "ImageResolutionError",
    "AllocationError",
    "ContainerCreateError",
    "ContainerStartError",
    "ContainerUnhealthyError",
    "ContainerInspectError",
    "StartupTimeoutError",
    "StartupCancelledError",
    "TeardownError",
    "MigrationError",
    "ScenarioError",
]
