"""
Typed records decoded from store rows.

Rows are decoded here, at the store boundary, so response construction only
ever sees these records and never raw driver rows.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


def _opt_str(value: Any) -> str | None:
    return None if value is None else str(value)


def _int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass
class SessionMatchRow:
    """One session from the aggregate match query."""

    session_id: str
    title: str | None
    directory: str | None
    match_count: int
    last_match_ms: int

    @classmethod
    def from_row(cls, row: Any) -> SessionMatchRow:
        return cls(
            session_id=str(row["session_id"]),
            title=_opt_str(row["title"]),
            directory=_opt_str(row["directory"]),
            match_count=_int(row["match_count"]),
            last_match_ms=_int(row["last_match_ms"]),
        )


@dataclass
class SnippetRow:
    """A truncated matching part."""

    session_id: str
    time_created: int
    role: str | None
    snippet: str | None

    @classmethod
    def from_row(cls, row: Any) -> SnippetRow:
        return cls(
            session_id=str(row["session_id"]),
            time_created=_int(row["time_created"]),
            role=_opt_str(row["role"]),
            snippet=_opt_str(row["snippet"]),
        )


@dataclass
class SessionMetaRow:
    """Session metadata joined with its optional project."""

    id: str
    title: str | None
    directory: str | None
    slug: str | None
    time_created: int
    time_updated: int
    worktree: str | None
    project_name: str | None

    @classmethod
    def from_row(cls, row: Any) -> SessionMetaRow:
        return cls(
            id=str(row["id"]),
            title=_opt_str(row["title"]),
            directory=_opt_str(row["directory"]),
            slug=_opt_str(row["slug"]),
            time_created=_int(row["time_created"]),
            time_updated=_int(row["time_updated"]),
            worktree=_opt_str(row["worktree"]),
            project_name=_opt_str(row["project_name"]),
        )


@dataclass
class TranscriptEntryRow:
    """One text part of a transcript."""

    part_id: str
    message_id: str
    time_created: int
    role: str | None
    text: str | None

    @classmethod
    def from_row(cls, row: Any) -> TranscriptEntryRow:
        return cls(
            part_id=str(row["part_id"]),
            message_id=str(row["message_id"]),
            time_created=_int(row["time_created"]),
            role=_opt_str(row["role"]),
            text=_opt_str(row["text"]),
        )
