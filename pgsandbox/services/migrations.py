"""Schema setup from plain SQL migration files."""

from pathlib import Path
from typing import Any, List, Protocol, Union

import structlog

from ..models.errors import MigrationError

logger = structlog.get_logger(__name__)

MIGRATION_PATTERN = "*.up.sql"


class Executor(Protocol):
    """Anything that can execute SQL, e.g. an asyncpg connection or pool."""

    async def execute(self, query: str, *args: Any) -> Any:
        ...


async def run_migrations(db: Executor, migration_dir: Union[str, Path]) -> List[Path]:
    """Execute every ``*.up.sql`` file in ``migration_dir`` in lexicographical order.

    Name files with a numeric prefix so they sort correctly::

        001_create_users.up.sql
        002_create_posts.up.sql
        003_create_comments.up.sql

    There is no record of which migrations already ran; this is meant for
    initializing a fresh test database, not for upgrading one.

    Returns:
        The files that were executed, in order

    Raises:
        MigrationError: if a file cannot be read or fails to execute
    """
    filenames = sorted(Path(migration_dir).glob(MIGRATION_PATTERN), key=lambda p: p.name)
    applied: List[Path] = []

    for filename in filenames:
        try:
            sql = filename.read_text(encoding="utf-8")
        except OSError as e:
            raise MigrationError("read file error", filename=str(filename)) from e

        try:
            await db.execute(sql)
        except Exception as e:
            logger.error("Migration failed", filename=filename.name, error=str(e))
            raise MigrationError(
                f"exec file error in {filename.name}", filename=str(filename)
            ) from e

        logger.debug("Applied migration", filename=filename.name)
        applied.append(filename)

    logger.info("Migrations applied", count=len(applied), migration_dir=str(migration_dir))
    return applied
