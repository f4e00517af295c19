"""Tests for the host tool module wrapper."""

from __future__ import annotations

import json

import aiosqlite
import pytest

from opencode_session_history.config import HistoryConfig
from opencode_session_history.tool_module import (
    SessionSearchTool,
    SessionTranscriptTool,
    ToolResult,
    create_tools,
    mount,
)

from conftest import HOUR_MS, NOW_MS


@pytest.fixture
async def populated_config(history_db, history_config):
    """Config over a store with one matching session."""
    history_db.add_session("ses_abc123", title="Rollback plan")
    history_db.add_text("ses_abc123", "user", "rollback the release", NOW_MS - 2 * HOUR_MS)
    history_db.add_text("ses_abc123", "assistant", "rollback done", NOW_MS - HOUR_MS)
    await history_db.write()
    return history_config


class TestToolInterface:
    """Tests for the tool interface (what the host expects)."""

    @pytest.mark.parametrize(
        "tool_cls,name",
        [(SessionSearchTool, "session-search"), (SessionTranscriptTool, "session-transcript")],
    )
    def test_has_name_and_description(self, tool_cls, name):
        tool = tool_cls()

        assert tool.name == name
        assert isinstance(tool.description, str)
        assert len(tool.description) > 0

    def test_search_schema(self):
        schema = SessionSearchTool().schema

        assert schema["type"] == "object"
        assert schema["required"] == ["query"]
        assert schema["properties"]["query"]["maxLength"] == 200
        assert schema["properties"]["limitSessions"]["maximum"] == 12
        assert schema["properties"]["limitSessions"]["default"] == 6

    def test_transcript_schema(self):
        schema = SessionTranscriptTool().schema

        assert schema["required"] == ["sessionId"]
        assert schema["properties"]["sessionId"]["minLength"] == 5
        assert schema["properties"]["limit"]["maximum"] == 120
        assert schema["properties"]["limit"]["default"] == 80
        assert schema["properties"]["order"]["enum"] == ["asc", "desc"]

    def test_create_tools_from_settings(self, tmp_path):
        tools = create_tools(db_path=str(tmp_path / "x.db"), search={"max_sessions": 4})

        assert [t.name for t in tools] == ["session-search", "session-transcript"]
        assert tools[0].config is tools[1].config
        assert tools[0].config.db_path == tmp_path / "x.db"
        assert tools[0].schema["properties"]["limitSessions"]["maximum"] == 4

    def test_mount_without_config(self, monkeypatch, tmp_path):
        monkeypatch.setenv("OPENCODE_HISTORY_CONFIG", str(tmp_path / "absent.yaml"))

        tools = mount()

        assert {t.name for t in tools} == {"session-search", "session-transcript"}


class TestSearchTool:
    """Tests for session-search via execute()."""

    @pytest.mark.asyncio
    async def test_search_success(self, populated_config):
        result = await SessionSearchTool(populated_config).execute(
            {"query": "rollback", "limitSessions": 3}
        )

        assert result.success is True
        assert result.error is None
        assert result.output["stats"] == {"totalSessions": 1, "totalMatches": 2}
        assert result.output["sessions"][0]["sessionId"] == "ses_abc123"

    @pytest.mark.asyncio
    async def test_empty_query_reports_invalid_query(self, populated_config):
        result = await SessionSearchTool(populated_config).execute({"query": "   "})

        assert result.success is False
        assert result.output["error"]["code"] == "INVALID_QUERY"

    @pytest.mark.asyncio
    async def test_missing_query(self, populated_config):
        result = await SessionSearchTool(populated_config).execute({})

        assert result.success is False
        assert result.output["error"]["code"] == "INVALID_QUERY"

    @pytest.mark.asyncio
    async def test_overlong_query_rejected(self, populated_config):
        result = await SessionSearchTool(populated_config).execute({"query": "x" * 201})

        assert result.success is False
        assert result.output["error"]["code"] == "INVALID_ARGUMENT"
        assert result.output["error"]["field"] == "query"

    @pytest.mark.asyncio
    async def test_query_length_counted_after_trim(self, populated_config):
        result = await SessionSearchTool(populated_config).execute(
            {"query": "  " + "rollback" + " " * 250}
        )

        assert result.success is True

    @pytest.mark.asyncio
    async def test_db_open_failed(self, missing_db_config):
        result = await SessionSearchTool(missing_db_config).execute({"query": "rollback"})

        assert result.success is False
        assert result.error == "Unable to open OpenCode history database"
        assert result.output["error"]["code"] == "DB_OPEN_FAILED"
        assert result.output["sessions"] == []

    @pytest.mark.asyncio
    async def test_unexpected_failure_never_raises(self, populated_config, monkeypatch):
        async def explode(*args, **kwargs):
            raise RuntimeError("disk on fire")

        monkeypatch.setattr(
            "opencode_session_history.tool_module.tool.run_session_search", explode
        )

        result = await SessionSearchTool(populated_config).execute({"query": "rollback"})

        assert result.success is False
        assert result.error == "disk on fire"

    @pytest.mark.asyncio
    async def test_output_is_json_serializable(self, populated_config):
        result = await SessionSearchTool(populated_config).execute({"query": "rollback"})

        body = json.loads(result.to_json())
        assert body["query"] == "rollback"
        assert body["nextStep"]["suggestedQuestionCall"]["tool"] == "question"


class TestTranscriptTool:
    """Tests for session-transcript via execute()."""

    @pytest.mark.asyncio
    async def test_transcript_success(self, populated_config):
        result = await SessionTranscriptTool(populated_config).execute(
            {"sessionId": "ses_abc123", "order": "desc", "limit": 1}
        )

        assert result.success is True
        assert result.output["found"] is True
        assert [e["text"] for e in result.output["entries"]] == ["rollback done"]

    @pytest.mark.asyncio
    async def test_not_found_is_not_a_failure(self, populated_config):
        result = await SessionTranscriptTool(populated_config).execute({"sessionId": "ses_nope1"})

        assert result.success is True
        assert result.output["found"] is False
        assert result.output["entries"] == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("session_id", [None, "", "ses_", 12345])
    async def test_session_id_too_short(self, populated_config, session_id):
        result = await SessionTranscriptTool(populated_config).execute({"sessionId": session_id})

        assert result.success is False
        assert result.output["error"]["field"] == "sessionId"

    @pytest.mark.asyncio
    async def test_bad_order_rejected(self, populated_config):
        result = await SessionTranscriptTool(populated_config).execute(
            {"sessionId": "ses_abc123", "order": "random"}
        )

        assert result.success is False
        assert result.output["error"]["field"] == "order"

    @pytest.mark.asyncio
    async def test_db_open_failed(self, missing_db_config):
        result = await SessionTranscriptTool(missing_db_config).execute(
            {"sessionId": "ses_abc123"}
        )

        assert result.success is False
        assert result.output["found"] is False
        assert result.output["error"]["code"] == "DB_OPEN_FAILED"

    @pytest.mark.asyncio
    async def test_query_failure_becomes_result(self, history_db):
        # Opens fine but lacks the history tables
        async with aiosqlite.connect(history_db.path) as conn:
            await conn.execute("CREATE TABLE unrelated (id INTEGER)")
            await conn.commit()

        result = await SessionTranscriptTool(HistoryConfig(db_path=history_db.path)).execute(
            {"sessionId": "ses_abc123"}
        )

        assert result.success is False
        assert "no such table" in result.error


class TestToolResult:
    """Tests for ToolResult serialization."""

    def test_to_dict_success(self):
        result = ToolResult(success=True, output={"a": 1})

        assert result.to_dict() == {"success": True, "output": {"a": 1}}

    def test_to_dict_failure_without_output(self):
        result = ToolResult(success=False, error="boom")

        assert result.to_dict() == {"success": False, "error": "boom"}
        assert json.loads(result.to_json()) == {"success": False, "error": "boom"}
