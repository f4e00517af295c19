"""
OpenCode Session History

Read-only search and transcript reconstruction over the local opencode
chat-history database.

Provides:
- Session search: sessions ranked by matching text parts, with snippets
- Session transcript: ordered, truncated replay of one session
- Host tools wrapping both (`session-search`, `session-transcript`)

Usage:

    >>> from opencode_session_history import run_session_search, run_session_transcript
    >>> result = await run_session_search("rollback migration", limit_sessions=3)
    >>> for session in result.sessions:
    ...     print(session.session_id, session.match_count)
    ...
    >>> transcript = await run_session_transcript(result.sessions[0].session_id)

Both operations return a response envelope; check ``error`` (and ``found``
for transcripts) instead of catching exceptions.
"""

from .config import HistoryConfig, SearchConfig, TranscriptConfig
from .envelope import (
    ErrorInfo,
    SearchResponse,
    SessionDetails,
    SessionHit,
    Snippet,
    TranscriptEntry,
    TranscriptResponse,
)
from .exceptions import ArgumentError, InvalidQueryError, SessionHistoryError, StoreOpenError
from .query_builder import PartQueryBuilder, SQLQuery, escape_like, tokenize_query
from .search import build_next_step, run_session_search
from .store import open_history_store, resolve_store_path
from .tool_module import SessionSearchTool, SessionTranscriptTool, ToolResult
from .transcript import run_session_transcript

__all__ = [
    # Operations
    "run_session_search",
    "run_session_transcript",
    "build_next_step",
    # Configuration
    "HistoryConfig",
    "SearchConfig",
    "TranscriptConfig",
    # Responses
    "ErrorInfo",
    "SearchResponse",
    "SessionHit",
    "Snippet",
    "TranscriptResponse",
    "TranscriptEntry",
    "SessionDetails",
    # Query building
    "PartQueryBuilder",
    "SQLQuery",
    "escape_like",
    "tokenize_query",
    # Store
    "open_history_store",
    "resolve_store_path",
    # Tools
    "SessionSearchTool",
    "SessionTranscriptTool",
    "ToolResult",
    # Exceptions
    "SessionHistoryError",
    "InvalidQueryError",
    "StoreOpenError",
    "ArgumentError",
]

__version__ = "0.1.0"
