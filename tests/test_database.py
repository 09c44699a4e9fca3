"""Tests for the SQLite transcript store."""

import sqlite3
from pathlib import Path

import pytest

from ai_debate.debate_engine.database import DatabaseManager
from ai_debate.debate_engine.database.schema import SCHEMA_VERSION, SchemaManager
from ai_debate.debate_engine.types import DebatePhase, Position


def test_saved_turns_come_back_oldest_first(database: DatabaseManager) -> None:
    database.save_message("alice", "s1", Position.PRO, DebatePhase.OPENING, "deepseek", "first")
    database.save_message("alice", "s1", Position.CON, DebatePhase.OPENING, "zhipu", "second")

    history = database.fetch_history("alice", "s1")

    assert history == [
        {"role": "pro", "phase": "opening", "provider": "deepseek", "content": "first"},
        {"role": "con", "phase": "opening", "provider": "zhipu", "content": "second"},
    ]


def test_history_returns_newest_fifty(database: DatabaseManager) -> None:
    for i in range(60):
        database.save_message("alice", "s1", Position.PRO, DebatePhase.OPENING, "fake", f"turn {i}")

    history = database.fetch_history("alice", "s1")

    assert len(history) == 50
    assert history[0]["content"] == "turn 10"
    assert history[-1]["content"] == "turn 59"
    assert database.count_messages("alice", "s1") == 60


def test_history_is_scoped_to_user_and_session(database: DatabaseManager) -> None:
    database.save_message("alice", "s1", Position.PRO, DebatePhase.OPENING, "fake", "alice s1")
    database.save_message("alice", "s2", Position.PRO, DebatePhase.OPENING, "fake", "alice s2")
    database.save_message("bob", "s1", Position.PRO, DebatePhase.OPENING, "fake", "bob s1")

    assert [h["content"] for h in database.fetch_history("alice", "s1")] == ["alice s1"]
    assert database.fetch_history("carol", "s1") == []


def test_provider_may_be_null(database: DatabaseManager) -> None:
    row_id = database.save_message("alice", "s1", Position.JUDGE, DebatePhase.JUDGEMENT, None, "Winner: Pro")

    assert row_id > 0
    assert database.fetch_history("alice", "s1")[0]["provider"] is None


def test_store_survives_reopening(tmp_path: Path) -> None:
    db_path = str(tmp_path / "nested" / "debate.db")
    DatabaseManager(db_path).save_message("alice", "s1", Position.PRO, DebatePhase.OPENING, "fake", "kept")

    assert DatabaseManager(db_path).fetch_history("alice", "s1")[0]["content"] == "kept"


def test_missing_schema_files_are_reported(tmp_path: Path) -> None:
    manager = SchemaManager(schema_dir=tmp_path)

    assert manager.validate_schema_files() is False
    with pytest.raises(FileNotFoundError):
        manager.load_schema_file("debate_messages.sql")


def test_schema_version_is_recorded(tmp_path: Path) -> None:
    db_path = tmp_path / "debate.db"
    DatabaseManager(str(db_path))

    with sqlite3.connect(db_path) as conn:
        assert SchemaManager.current_version(conn.cursor()) == SCHEMA_VERSION
