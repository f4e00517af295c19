"""
Tool module for session history operations.

This module provides the `session-search` and `session-transcript` tools
that agents can use for read-only access to local opencode chat history.

Usage in a host configuration:

```yaml
tools:
  - module: tool-session-history
    source: opencode-session-history
```
"""

from .tool import (
    HistoryTool,
    SessionSearchTool,
    SessionTranscriptTool,
    ToolResult,
    create_tools,
    mount,
)

__all__ = [
    "HistoryTool",
    "SessionSearchTool",
    "SessionTranscriptTool",
    "ToolResult",
    "create_tools",
    "mount",
]
