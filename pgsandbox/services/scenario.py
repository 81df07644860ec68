"""Fixture data loading from YAML scenario files.

Top-level keys are table names, each holding a list of rows whose keys are
column names:

    users:
      - id: 1
        name: Alice
        email: alice@example.com
      - id: 2
        name: Bob
        email: bob@example.com

    posts:
      - user_id: 1
        title: Hello, world!
      - user_id: 2
        title: Goodbye, world!
        is_draft: true

Columns missing from a row are left out of its INSERT so the column default
applies. Tables and rows are inserted in file order, so list parent tables
before the tables that reference them.
"""

from pathlib import Path
from typing import Any, Dict, List, Tuple, Union

import structlog
import yaml

from ..models.errors import ScenarioError
from .migrations import Executor

logger = structlog.get_logger(__name__)


def quote_identifier(name: str) -> str:
    """Quote a table or column name for use in SQL."""
    return '"' + name.replace('"', '""') + '"'


def build_insert(table: str, row: Dict[str, Any]) -> Tuple[str, List[Any]]:
    """Build a parameterized INSERT for one scenario row."""
    if not row:
        return f"INSERT INTO {quote_identifier(table)} DEFAULT VALUES", []

    columns = list(row)
    placeholders = [f"${i}" for i in range(1, len(columns) + 1)]
    query = "INSERT INTO {} ({}) VALUES ({})".format(
        quote_identifier(table),
        ", ".join(quote_identifier(column) for column in columns),
        ", ".join(placeholders),
    )
    return query, [row[column] for column in columns]


def parse_scenario(text: str) -> Dict[str, List[Dict[str, Any]]]:
    """Parse and validate a scenario document.

    Raises:
        ScenarioError: if the document is not a mapping of tables to row lists
    """
    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ScenarioError("invalid YAML") from e

    if document is None:
        return {}
    if not isinstance(document, dict):
        raise ScenarioError("scenario must be a mapping of table names to rows")

    for table, rows in document.items():
        if not isinstance(table, str):
            raise ScenarioError(f"table name must be a string, got {table!r}")
        if rows is None:
            document[table] = []
            continue
        if not isinstance(rows, list) or not all(isinstance(row, dict) for row in rows):
            raise ScenarioError(f"table {table!r} must hold a list of rows")
        for row in rows:
            if not all(isinstance(column, str) for column in row):
                raise ScenarioError(f"table {table!r} has a non-string column name")
    return document


async def load_scenario(db: Executor, filename: Union[str, Path]) -> int:
    """Populate ``db`` with the rows described in a YAML scenario file.

    Returns:
        Number of rows inserted

    Raises:
        ScenarioError: if the file cannot be read or parsed, or an insert fails
    """
    try:
        text = Path(filename).read_text(encoding="utf-8")
    except OSError as e:
        raise ScenarioError("read file error", filename=str(filename)) from e

    try:
        scenario = parse_scenario(text)
    except ScenarioError as e:
        e.filename = str(filename)
        raise

    inserted = 0
    for table, rows in scenario.items():
        for row in rows:
            query, values = build_insert(table, row)
            try:
                await db.execute(query, *values)
            except Exception as e:
                logger.error("Scenario insert failed", table=table, error=str(e))
                raise ScenarioError(
                    f"insert into {table} failed", filename=str(filename)
                ) from e
            inserted += 1

    logger.info("Scenario loaded", filename=str(filename), rows=inserted)
    return inserted
