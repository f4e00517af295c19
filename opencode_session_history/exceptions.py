"""
Custom exceptions for session history access.

Only anticipated failures get a typed exception here. Each carries a
machine-readable code that ends up in the response envelope, so callers
branch on the code rather than on the exception class.
"""

from __future__ import annotations

from typing import Any


class SessionHistoryError(Exception):
    """Base exception for all session history errors."""

    code = "HISTORY_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class InvalidQueryError(SessionHistoryError):
    """Raised when a search query has no searchable content."""

    code = "INVALID_QUERY"

    def __init__(self, message: str = "query must contain at least one non-whitespace character"):
        super().__init__(message, {"field": "query"})


class StoreOpenError(SessionHistoryError):
    """Raised when the history database cannot be opened read-only.

    Note: covers a missing file, a corrupt file and permission problems alike.
    """

    code = "DB_OPEN_FAILED"

    def __init__(self, db_path: str, cause: Exception | None = None):
        details: dict[str, Any] = {"db_path": db_path}
        if cause:
            details["cause"] = str(cause)
        super().__init__("Unable to open OpenCode history database", details)
        self.db_path = db_path
        self.cause = cause


class ArgumentError(SessionHistoryError):
    """Raised by the tool surface when an argument is outside its bounds."""

    code = "INVALID_ARGUMENT"

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid {field}: {reason}", {"field": field, "reason": reason})
        self.field = field
        self.reason = reason
