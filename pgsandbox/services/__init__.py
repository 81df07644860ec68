"""Services for starting and seeding disposable Postgres instances."""

from .migrations import run_migrations
from .postgres import (
    PostgresContainer,
    PostgresLauncher,
    postgres_container,
    start_postgres_container,
)
from .scenario import load_scenario

__all__ = [
    "PostgresContainer",
    "PostgresLauncher",
    "postgres_container",
    "start_postgres_container",
    "run_migrations",
    "load_scenario",
]
