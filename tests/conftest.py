"""
Shared test configuration and fixtures.

Builds real on-disk SQLite databases with the opencode history schema
(project / session / message / part) so queries run against SQLite's own
JSON and LIKE semantics.
"""

from __future__ import annotations

import itertools
import json
import time
from pathlib import Path
from typing import Any

import aiosqlite
import pytest

from opencode_session_history.config import HistoryConfig
from opencode_session_history.store import resolve_store_path

SCHEMA = (
    """
    CREATE TABLE project (
        id TEXT PRIMARY KEY,
        worktree TEXT NOT NULL,
        name TEXT,
        time_created INTEGER NOT NULL,
        time_updated INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE session (
        id TEXT PRIMARY KEY,
        project_id TEXT REFERENCES project(id),
        slug TEXT,
        directory TEXT,
        title TEXT,
        time_created INTEGER NOT NULL,
        time_updated INTEGER NOT NULL
    )
    """,
    """
    CREATE TABLE message (
        id TEXT PRIMARY KEY,
        session_id TEXT NOT NULL REFERENCES session(id),
        time_created INTEGER NOT NULL,
        data TEXT NOT NULL
    )
    """,
    """
    CREATE TABLE part (
        id TEXT PRIMARY KEY,
        message_id TEXT NOT NULL REFERENCES message(id),
        session_id TEXT NOT NULL REFERENCES session(id),
        time_created INTEGER NOT NULL,
        data TEXT NOT NULL
    )
    """,
)

# Recent enough for the default 180-day lookback
NOW_MS = int(time.time() * 1000)
HOUR_MS = 60 * 60 * 1000


class HistoryDatabase:
    """Collects projects, sessions and text parts, then writes them to disk."""

    def __init__(self, path: Path):
        self.path = path
        self._ids = itertools.count(1)
        self.projects: list[tuple[Any, ...]] = []
        self.sessions: list[tuple[Any, ...]] = []
        self.messages: list[tuple[Any, ...]] = []
        self.parts: list[tuple[Any, ...]] = []

    def add_project(self, project_id: str, worktree: str, name: str | None = None) -> str:
        self.projects.append((project_id, worktree, name, NOW_MS, NOW_MS))
        return project_id

    def add_session(
        self,
        session_id: str,
        title: str | None = None,
        directory: str | None = None,
        slug: str | None = None,
        project_id: str | None = None,
        time_created: int = NOW_MS - 10 * HOUR_MS,
        time_updated: int = NOW_MS - HOUR_MS,
    ) -> str:
        self.sessions.append(
            (session_id, project_id, slug, directory, title, time_created, time_updated)
        )
        return session_id

    def add_text(
        self,
        session_id: str,
        role: str,
        text: str | None,
        time_ms: int,
        part_type: str = "text",
    ) -> str:
        """Add a message with one part; ``text=None`` omits the text field."""
        n = next(self._ids)
        message_id = f"msg_{n:04d}"
        part_id = f"prt_{n:04d}"
        payload: dict[str, Any] = {"type": part_type}
        if text is not None:
            payload["text"] = text

        self.messages.append((message_id, session_id, time_ms, json.dumps({"role": role})))
        self.parts.append((part_id, message_id, session_id, time_ms, json.dumps(payload)))
        return part_id

    async def write(self) -> Path:
        async with aiosqlite.connect(self.path) as conn:
            for statement in SCHEMA:
                await conn.execute(statement)
            await conn.executemany("INSERT INTO project VALUES (?, ?, ?, ?, ?)", self.projects)
            await conn.executemany(
                "INSERT INTO session VALUES (?, ?, ?, ?, ?, ?, ?)", self.sessions
            )
            await conn.executemany("INSERT INTO message VALUES (?, ?, ?, ?)", self.messages)
            await conn.executemany("INSERT INTO part VALUES (?, ?, ?, ?, ?)", self.parts)
            await conn.commit()
        return self.path


@pytest.fixture
def history_db(tmp_path):
    """Empty history database builder backed by a temp file."""
    return HistoryDatabase(tmp_path / "opencode.db")


@pytest.fixture
def history_config(history_db):
    """Config pointing straight at the fixture database."""
    return HistoryConfig(db_path=history_db.path)


@pytest.fixture
def missing_db_config(tmp_path):
    """Config pointing at a database file that does not exist."""
    return HistoryConfig(db_path=tmp_path / "nowhere" / "opencode.db")


@pytest.fixture(autouse=True)
def _reset_store_path_cache(monkeypatch):
    """Every test starts with an unresolved store path and no override."""
    monkeypatch.delenv("OPENCODE_DB_PATH", raising=False)
    resolve_store_path.cache_clear()
    yield
    resolve_store_path.cache_clear()
