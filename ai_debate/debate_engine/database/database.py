"""SQLite database manager for debate transcripts."""

import logging
import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TypedDict

from ai_debate.exceptions import PersistenceError

from ..types import DebatePhase, Position
from .schema import SchemaManager

logger = logging.getLogger(__name__)


class HistoryMessage(TypedDict):
    """One persisted turn, as returned by history queries."""

    role: str
    phase: str
    provider: str | None
    content: str


class DatabaseManager:
    """Manages SQLite connections and the append-only debate message log."""

    def __init__(self, db_path: str = "debate.db"):
        self.db_path = Path(db_path)
        self.schema_manager = SchemaManager()
        self._init_database()

    def _init_database(self) -> None:
        """Initialize the database with required tables using schema manager."""
        if not self.schema_manager.validate_schema_files():
            raise RuntimeError("Database schema validation failed - missing schema files")

        if self.db_path.parent != Path("."):
            self.db_path.parent.mkdir(parents=True, exist_ok=True)

        with self._get_connection() as conn:
            cursor = conn.cursor()
            self.schema_manager.apply(cursor)
            conn.commit()
            logger.info(f"Database initialized at {self.db_path}")

    @contextmanager
    def _get_connection(self) -> Iterator[sqlite3.Connection]:
        """Get a database connection with proper error handling."""
        conn = None
        try:
            conn = sqlite3.connect(self.db_path)
            conn.row_factory = sqlite3.Row
            yield conn
        except sqlite3.Error as e:
            if conn:
                conn.rollback()
            logger.error(f"Database error: {e}")
            raise
        finally:
            if conn:
                conn.close()

    def save_message(
        self,
        user_id: str,
        session_id: str,
        role: Position,
        phase: DebatePhase,
        provider: str | None,
        content: str,
    ) -> int:
        """Append one completed turn and return its row id."""
        try:
            with self._get_connection() as conn:
                cursor = conn.cursor()
                cursor.execute(
                    """
                    INSERT INTO debate_messages (user_id, session_id, role, phase, provider, content)
                    VALUES (?, ?, ?, ?, ?, ?)
                """,
                    (user_id, session_id, role.value, phase.value, provider, content),
                )
                conn.commit()
                message_id = cursor.lastrowid
        except sqlite3.Error as e:
            raise PersistenceError(f"Failed to save {role.value}/{phase.value} turn: {e}") from e

        if message_id is None:
            raise PersistenceError("Failed to get message ID from database")
        return message_id

    def fetch_history(
        self, user_id: str, session_id: str, limit: int = 50
    ) -> list[HistoryMessage]:
        """Return the most recent `limit` turns of a session, oldest first."""
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT role, phase, provider, content FROM debate_messages
                WHERE user_id = ? AND session_id = ?
                ORDER BY id DESC LIMIT ?
            """,
                (user_id, session_id, limit),
            )
            rows = cursor.fetchall()

        history: list[HistoryMessage] = [
            {
                "role": row["role"],
                "phase": row["phase"],
                "provider": row["provider"],
                "content": row["content"],
            }
            for row in rows
        ]
        history.reverse()
        return history

    def count_messages(self, user_id: str, session_id: str) -> int:
        with self._get_connection() as conn:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) FROM debate_messages WHERE user_id = ? AND session_id = ?",
                (user_id, session_id),
            )
            return int(cursor.fetchone()[0])
