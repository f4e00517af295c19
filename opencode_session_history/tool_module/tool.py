"""
Tool module implementation for session history operations.

Provides the `session-search` and `session-transcript` tools a host agent
runtime can register for read-only access to local chat history.

Implements the tool protocol:
- name: str property
- description: str property
- schema: dict property (JSON Schema of the arguments)
- async execute(input: dict[str, Any]) -> ToolResult

``execute`` never raises: argument problems, anticipated store failures and
unexpected exceptions all come back as a ToolResult.
"""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any

from ..config import HistoryConfig
from ..exceptions import ArgumentError
from ..logging_utils import get_history_logger
from ..search import run_session_search
from ..transcript import run_session_transcript

logger = get_history_logger("tool")

MAX_QUERY_LENGTH = 200
MIN_SESSION_ID_LENGTH = 5


@dataclass
class ToolResult:
    """Result from tool execution, matching the host's ToolResult contract."""

    success: bool
    output: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result: dict[str, Any] = {"success": self.success}
        if self.output:
            result["output"] = self.output
        if self.error:
            result["error"] = self.error
        return result

    def to_json(self) -> str:
        """The response body as the host receives it."""
        return json.dumps(self.output if self.output else self.to_dict())


class HistoryTool(ABC):
    """Shared execute() wrapper for the history tools."""

    def __init__(self, config: HistoryConfig | None = None):
        self.config = config or HistoryConfig()

    @property
    @abstractmethod
    def name(self) -> str: ...

    @property
    @abstractmethod
    def description(self) -> str: ...

    @property
    @abstractmethod
    def schema(self) -> dict[str, Any]: ...

    @abstractmethod
    async def _run(self, input: dict[str, Any]) -> dict[str, Any]:
        """Validate arguments and run the operation, returning the response body."""

    async def execute(self, input: dict[str, Any]) -> ToolResult:
        """Execute the tool.

        Args:
            input: Arguments from the tool call.

        Returns:
            ToolResult with success status and output/error.
        """
        try:
            output = await self._run(input or {})
        except ArgumentError as e:
            return ToolResult(
                success=False,
                error=e.message,
                output={"error": {"code": e.code, "message": e.message, "field": e.field}},
            )
        except Exception as e:
            logger.exception(f"{self.name} failed")
            return ToolResult(success=False, error=str(e))

        error = output.get("error")
        if error:
            return ToolResult(success=False, error=error.get("message"), output=output)
        return ToolResult(success=True, output=output)


class SessionSearchTool(HistoryTool):
    """Read-only search over local chat history."""

    @property
    def name(self) -> str:
        return "session-search"

    @property
    def description(self) -> str:
        return (
            "Read-only search over local opencode chat history. Returns matching "
            "sessions and snippets. Use the session-transcript tool to fetch the "
            "full conversation context."
        )

    @property
    def schema(self) -> dict[str, Any]:
        search = self.config.search
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "minLength": 1,
                    "maxLength": MAX_QUERY_LENGTH,
                    "description": "Text to search for in chat history.",
                },
                "limitSessions": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": search.max_sessions,
                    "default": search.default_sessions,
                    "description": "Maximum number of matching sessions to return.",
                },
            },
            "required": ["query"],
        }

    async def _run(self, input: dict[str, Any]) -> dict[str, Any]:
        query = str(input.get("query") or "").strip()
        if len(query) > MAX_QUERY_LENGTH:
            raise ArgumentError("query", f"must be at most {MAX_QUERY_LENGTH} characters")

        response = await run_session_search(
            query,
            limit_sessions=input.get("limitSessions"),
            config=self.config,
        )
        return response.to_dict()


class SessionTranscriptTool(HistoryTool):
    """Read-only transcript reconstruction for one session."""

    @property
    def name(self) -> str:
        return "session-transcript"

    @property
    def description(self) -> str:
        return (
            "Read-only transcript reconstruction for a specific opencode session. "
            "Use after session-search to fetch full conversational context."
        )

    @property
    def schema(self) -> dict[str, Any]:
        transcript = self.config.transcript
        return {
            "type": "object",
            "properties": {
                "sessionId": {
                    "type": "string",
                    "minLength": MIN_SESSION_ID_LENGTH,
                    "description": (
                        "Session ID to reconstruct transcript from (for example, ses_xxx)."
                    ),
                },
                "limit": {
                    "type": "integer",
                    "minimum": 1,
                    "maximum": transcript.max_limit,
                    "default": transcript.default_limit,
                    "description": "Maximum transcript entries returned.",
                },
                "order": {
                    "type": "string",
                    "enum": ["asc", "desc"],
                    "default": "asc",
                    "description": "Chronological or reverse-chronological ordering.",
                },
            },
            "required": ["sessionId"],
        }

    async def _run(self, input: dict[str, Any]) -> dict[str, Any]:
        session_id = input.get("sessionId")
        if not isinstance(session_id, str) or len(session_id) < MIN_SESSION_ID_LENGTH:
            raise ArgumentError(
                "sessionId", f"must be a string of at least {MIN_SESSION_ID_LENGTH} characters"
            )

        order = input.get("order") or "asc"
        if order not in ("asc", "desc"):
            raise ArgumentError("order", "must be 'asc' or 'desc'")

        response = await run_session_transcript(
            session_id,
            limit=input.get("limit"),
            order=order,
            config=self.config,
        )
        return response.to_dict()


def create_tools(**config: Any) -> list[HistoryTool]:
    """Factory function for creating the history tools.

    Args:
        **config: Settings mapping (same keys as the YAML settings file).
            When empty, settings are loaded from the file and environment.

    Returns:
        The search and transcript tools sharing one configuration.
    """
    history_config = HistoryConfig.from_dict(config) if config else HistoryConfig.load()
    return [SessionSearchTool(history_config), SessionTranscriptTool(history_config)]


def mount(coordinator: Any = None, config: dict[str, Any] | None = None) -> list[HistoryTool]:
    """Standard module entry point.

    Args:
        coordinator: Host coordinator instance (unused, for protocol compliance).
        config: Tool configuration dictionary.

    Returns:
        Configured history tools.
    """
    config = config or {}
    return create_tools(**config)
