"""Applies the transcript store's SQL schema files."""

import logging
import sqlite3
from collections.abc import Iterator
from pathlib import Path

logger = logging.getLogger(__name__)

# Applied in order; indexes reference the tables before them.
SCHEMA_FILES: tuple[str, ...] = ("debate_messages.sql", "indexes.sql")

# Stored in PRAGMA user_version once the schema files have been applied
SCHEMA_VERSION = 1


def iter_statements(sql: str) -> Iterator[str]:
    """Split a schema file into individual statements."""
    for statement in sql.split(";"):
        statement = statement.strip()
        if statement:
            yield statement


class SchemaManager:
    """Loads `tables/*.sql` next to this module and applies them to a connection."""

    def __init__(self, schema_dir: Path | None = None, schema_files: tuple[str, ...] = SCHEMA_FILES):
        self.tables_dir = (schema_dir or Path(__file__).parent) / "tables"
        self.schema_files = schema_files

    def load_schema_file(self, filename: str) -> str:
        file_path = self.tables_dir / filename
        if not file_path.exists():
            raise FileNotFoundError(f"Schema file not found: {file_path}")
        return file_path.read_text(encoding="utf-8")

    def missing_files(self) -> list[str]:
        return [name for name in self.schema_files if not (self.tables_dir / name).exists()]

    def validate_schema_files(self) -> bool:
        missing = self.missing_files()
        if missing:
            logger.error(f"Missing schema files: {missing}")
            return False
        return True

    def apply(self, cursor: sqlite3.Cursor) -> None:
        """Create every table and index. Statements are idempotent."""
        for filename in self.schema_files:
            try:
                for statement in iter_statements(self.load_schema_file(filename)):
                    cursor.execute(statement)
            except sqlite3.Error as e:
                logger.error(f"Failed to apply schema file {filename}: {e}")
                raise
            logger.debug(f"Applied schema file: {filename}")

        cursor.execute(f"PRAGMA user_version = {SCHEMA_VERSION}")
        logger.info(f"Database schema at version {SCHEMA_VERSION}")

    @staticmethod
    def current_version(cursor: sqlite3.Cursor) -> int:
        return int(cursor.execute("PRAGMA user_version").fetchone()[0])
