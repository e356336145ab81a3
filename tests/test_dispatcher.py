"""
Tests for the dispatcher: tool-call wrapping and activity tracing.
"""

import asyncio
import json

import pytest

from atproto_mcp.catalog import ToolCatalog, ToolDescriptor
from atproto_mcp.dispatcher import Dispatcher, redact
from atproto_mcp.errors import ValidationError
from atproto_mcp.tools import build_catalog


def _catalog(handler, name="probe"):
    return ToolCatalog([[ToolDescriptor(name, "probe tool", {"type": "object", "properties": {}}, handler)]])


def _text(result):
    return result["content"][0]["text"]


# ═══════════════════════════════════════════════════════════════════════════
# tools/list
# ═══════════════════════════════════════════════════════════════════════════


class TestListTools:

    def test_lists_catalog_in_order(self, dispatcher):
        listed = dispatcher.list_tools()["tools"]
        assert [t["name"] for t in listed] == build_catalog().names()
        assert set(listed[0]) == {"name", "description", "inputSchema"}


# ═══════════════════════════════════════════════════════════════════════════
# tools/call
# ═══════════════════════════════════════════════════════════════════════════


class TestCallTool:

    @pytest.mark.asyncio
    async def test_unknown_tool_is_error_result(self, dispatcher, fake_runner):
        result = await dispatcher.call_tool("does_not_exist", {})
        assert result["isError"] is True
        assert _text(result) == "Error: Unknown tool: does_not_exist"
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_success_is_pretty_json(self, fake_runner, activity):
        payload = {"a": 1, "nested": {"b": [1, 2]}}

        async def handler(ctx, args):
            return payload

        result = await Dispatcher(_catalog(handler), fake_runner, activity).call_tool("probe", {})
        assert result["isError"] is False
        assert json.loads(_text(result)) == payload
        assert _text(result) == json.dumps(payload, indent=2)

    @pytest.mark.asyncio
    async def test_handler_exception_becomes_error_text(self, fake_runner, activity):
        async def handler(ctx, args):
            raise ValidationError("'text' is required")

        result = await Dispatcher(_catalog(handler), fake_runner, activity).call_tool("probe", {})
        assert result["isError"] is True
        assert _text(result) == "Error: 'text' is required"

    @pytest.mark.asyncio
    async def test_arguments_passed_through(self, fake_runner, activity):
        seen = {}

        async def handler(ctx, args):
            seen.update(args)
            return None

        args = {"text": "hi", "limit": 3}
        await Dispatcher(_catalog(handler), fake_runner, activity).call_tool("probe", args)
        assert seen == args

    @pytest.mark.asyncio
    async def test_missing_arguments_default_to_empty(self, fake_runner, activity):
        seen = []

        async def handler(ctx, args):
            seen.append(args)
            return "ok"

        await Dispatcher(_catalog(handler), fake_runner, activity).call_tool("probe")
        assert seen == [{}]

    @pytest.mark.asyncio
    async def test_non_object_arguments_rejected(self, dispatcher):
        result = await dispatcher.call_tool("feed_read", ["not", "a", "dict"])
        assert result["isError"] is True
        assert "must be an object" in _text(result)

    @pytest.mark.asyncio
    async def test_cli_failure_surfaces_stderr(self, make_runner, activity):
        runner = make_runner(fail={"follow": "Profile not found"})
        dispatcher = Dispatcher(build_catalog(), runner, activity)
        result = await dispatcher.call_tool("follow_user", {"handle": "ghost.bsky.social"})
        assert result["isError"] is True
        assert _text(result) == "Error: Command failed: Profile not found"

    @pytest.mark.asyncio
    async def test_cancelled_error_propagates(self, fake_runner, activity):
        async def handler(ctx, args):
            raise asyncio.CancelledError()

        with pytest.raises(asyncio.CancelledError):
            await Dispatcher(_catalog(handler), fake_runner, activity).call_tool("probe", {})

    @pytest.mark.asyncio
    async def test_cancel_event_reaches_handler(self, fake_runner, activity):
        event = asyncio.Event()
        seen = []

        async def handler(ctx, args):
            seen.append(ctx.cancel)
            return None

        await Dispatcher(_catalog(handler), fake_runner, activity).call_tool("probe", {}, cancel=event)
        assert seen == [event]


# ═══════════════════════════════════════════════════════════════════════════
# Activity tracing
# ═══════════════════════════════════════════════════════════════════════════


class TestActivity:

    @pytest.mark.asyncio
    async def test_success_logs_call_and_timing(self, dispatcher, activity):
        await dispatcher.call_tool("feed_read", {"limit": 5})
        messages = [e.message for e in activity.get_recent()]
        assert "Tool call: feed_read" in messages
        done = [e for e in activity.get_recent() if e.message == "Tool feed_read succeeded"]
        assert done and "elapsed_ms" in done[0].data

    @pytest.mark.asyncio
    async def test_failure_logged_at_error(self, make_runner, activity):
        dispatcher = Dispatcher(build_catalog(), make_runner(fail={"feed": "not logged in"}), activity)
        await dispatcher.call_tool("feed_read", {})
        errors = [e for e in activity.get_recent() if e.level == "ERROR"]
        assert errors[-1].message == "Tool feed_read failed"
        assert errors[-1].data["type"] == "CommandFailure"

    @pytest.mark.asyncio
    async def test_password_never_logged(self, dispatcher, activity):
        await dispatcher.call_tool("auth_login", {"handle": "me.bsky.social", "password": "hunter2"})
        for entry in activity.get_recent():
            assert "hunter2" not in entry.format()

    def test_redact(self):
        assert redact({"handle": "h", "password": "p", "token": "t"}) == {
            "handle": "h", "password": "***", "token": "***",
        }
