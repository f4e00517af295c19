"""
Response envelopes returned by session search and transcript reconstruction.

Both operations always return one of these; failures are carried in the
``error`` field (or ``found: false`` for an unknown transcript session)
rather than raised. ``to_dict()`` produces the JSON shape the host sees.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .exceptions import SessionHistoryError, StoreOpenError

SESSION_NOT_FOUND = "Session not found"


@dataclass
class ErrorInfo:
    """Machine-readable error carried in a response."""

    code: str
    message: str
    details: str | None = None
    db_path: str | None = None

    @classmethod
    def from_exception(cls, exc: SessionHistoryError) -> ErrorInfo:
        if isinstance(exc, StoreOpenError):
            return cls(
                code=exc.code,
                message=exc.message,
                details=str(exc.cause) if exc.cause else None,
                db_path=exc.db_path,
            )
        return cls(code=exc.code, message=exc.message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.details is not None:
            result["details"] = self.details
        if self.db_path is not None:
            result["dbPath"] = self.db_path
        return result


# =============================================================================
# Session search
# =============================================================================


@dataclass
class Snippet:
    """Truncated excerpt of a matching part."""

    time: str | None
    role: str | None
    text: str | None

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "role": self.role, "text": self.text}


@dataclass
class SessionHit:
    """A session that matched a search, with its snippets."""

    session_id: str
    title: str | None
    directory: str | None
    match_count: int
    last_match: str | None
    snippets: list[Snippet] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "sessionId": self.session_id,
            "title": self.title,
            "directory": self.directory,
            "matchCount": self.match_count,
            "lastMatch": self.last_match,
            "snippets": [s.to_dict() for s in self.snippets],
        }


@dataclass
class SearchStats:
    """Counts over the returned sessions only."""

    total_sessions: int = 0
    total_matches: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {"totalSessions": self.total_sessions, "totalMatches": self.total_matches}


@dataclass
class SearchResponse:
    """Result of a session search."""

    query: str
    sessions: list[SessionHit] = field(default_factory=list)
    stats: SearchStats = field(default_factory=SearchStats)
    filters: dict[str, Any] | None = None
    next_step: dict[str, Any] | None = None
    error: ErrorInfo | None = None

    @classmethod
    def failed(cls, query: str, exc: SessionHistoryError) -> SearchResponse:
        """Empty result carrying an error."""
        return cls(query=query, error=ErrorInfo.from_exception(exc))

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"query": self.query}
        if self.filters is not None:
            result["filters"] = self.filters
        result["stats"] = self.stats.to_dict()
        result["sessions"] = [s.to_dict() for s in self.sessions]
        if self.next_step is not None:
            result["nextStep"] = self.next_step
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result


# =============================================================================
# Session transcript
# =============================================================================


@dataclass
class TranscriptEntry:
    """One replayed text part."""

    part_id: str
    message_id: str
    time_ms: int
    time: str | None
    role: str | None
    text: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "partId": self.part_id,
            "messageId": self.message_id,
            "timeMs": self.time_ms,
            "time": self.time,
            "role": self.role,
            "text": self.text,
        }


@dataclass
class SessionDetails:
    """Session metadata shown alongside a transcript."""

    title: str | None
    slug: str | None
    directory: str | None
    project_name: str | None
    project_worktree: str | None
    time_created: str | None
    time_updated: str | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title": self.title,
            "slug": self.slug,
            "directory": self.directory,
            "projectName": self.project_name,
            "projectWorktree": self.project_worktree,
            "timeCreated": self.time_created,
            "timeUpdated": self.time_updated,
        }


@dataclass
class TranscriptResponse:
    """Result of a transcript reconstruction."""

    session_id: str
    found: bool = False
    entries: list[TranscriptEntry] = field(default_factory=list)
    session: SessionDetails | None = None
    filters: dict[str, Any] | None = None
    stats: dict[str, Any] | None = None
    message: str | None = None
    error: ErrorInfo | None = None

    @classmethod
    def failed(cls, session_id: str, exc: SessionHistoryError) -> TranscriptResponse:
        """Empty result carrying an error."""
        return cls(session_id=session_id, error=ErrorInfo.from_exception(exc))

    @classmethod
    def not_found(cls, session_id: str) -> TranscriptResponse:
        """Empty result for a session id the store does not know."""
        return cls(session_id=session_id, message=SESSION_NOT_FOUND)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"sessionId": self.session_id, "found": self.found}
        if self.session is not None:
            result["session"] = self.session.to_dict()
        if self.filters is not None:
            result["filters"] = self.filters
        if self.stats is not None:
            result["stats"] = self.stats
        if self.message is not None:
            result["message"] = self.message
        if self.error is not None:
            result["error"] = self.error.to_dict()
        result["entries"] = [e.to_dict() for e in self.entries]
        return result
