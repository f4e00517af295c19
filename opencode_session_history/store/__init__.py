"""
Read-only access to the opencode history database.

Provides path resolution, a scoped read-only handle and the typed records
rows are decoded into.
"""

from .connector import (
    FALLBACK_DB_PATH,
    HistoryStore,
    connect_readonly,
    open_history_store,
    query_host_cli,
    resolve_store_path,
    store_path_for,
)
from .rows import SessionMatchRow, SessionMetaRow, SnippetRow, TranscriptEntryRow

__all__ = [
    # Connector
    "FALLBACK_DB_PATH",
    "HistoryStore",
    "connect_readonly",
    "open_history_store",
    "query_host_cli",
    "resolve_store_path",
    "store_path_for",
    # Rows
    "SessionMatchRow",
    "SessionMetaRow",
    "SnippetRow",
    "TranscriptEntryRow",
]
