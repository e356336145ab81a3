"""
Tests for the batch engine and the batch tools.

Covers:
- Outcome bookkeeping (successful + failed == total == len(results))
- Input order and continue-on-failure
- Cancellation between items
- batch_from_file loading and shape checks
"""

import asyncio
import json

import pytest

from atproto_mcp.batch import CANCELLED_MESSAGE, BatchEngine, BatchReport
from atproto_mcp.dispatcher import Dispatcher
from atproto_mcp.errors import IOFailure
from atproto_mcp.tools import build_catalog
from atproto_mcp.tools.batch_tools import load_bundle


def _payload(result):
    assert result["isError"] is False, result["content"][0]["text"]
    return json.loads(result["content"][0]["text"])


def _check_counts(report):
    assert report["successful"] + report["failed"] == report["total"] == len(report["results"])


# ═══════════════════════════════════════════════════════════════════════════
# BatchEngine
# ═══════════════════════════════════════════════════════════════════════════


class TestBatchEngine:

    @pytest.mark.asyncio
    async def test_empty_batch(self):
        report = await BatchEngine().run([], "handle", _echo)
        assert (report.total, report.successful, report.failed) == (0, 0, 0)
        assert report.results == []
        assert report.summary == "0/0"

    @pytest.mark.asyncio
    async def test_results_follow_input_order(self):
        report = await BatchEngine().run(["c", "a", "b"], "handle", _echo)
        assert [r.value for r in report.results] == ["c", "a", "b"]
        assert [r.output for r in report.results] == ["done c", "done a", "done b"]

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_batch(self):
        attempted = []

        async def op(item):
            attempted.append(item)
            if item == "bad":
                raise RuntimeError("no such user")
            return "ok"

        report = await BatchEngine().run(["x", "bad", "y"], "handle", op)
        assert attempted == ["x", "bad", "y"]
        assert [r.success for r in report.results] == [True, False, True]
        assert report.results[1].error == "no such user"
        assert (report.successful, report.failed) == (2, 1)

    @pytest.mark.asyncio
    async def test_rerun_gives_same_outcome(self):
        engine = BatchEngine()
        first = await engine.run(["a", "b"], "uri", _echo)
        second = await engine.run(["a", "b"], "uri", _echo)
        assert first.to_dict() == second.to_dict()

    @pytest.mark.asyncio
    async def test_rerun_all_failing_keeps_failure_count(self):
        async def op(item):
            raise RuntimeError(f"cannot like {item}")

        engine = BatchEngine()
        runs = [await engine.run(["u1", "u2", "u3"], "uri", op) for _ in range(3)]
        assert [(r.successful, r.failed) for r in runs] == [(0, 3)] * 3

    @pytest.mark.asyncio
    async def test_cancel_marks_remaining_items(self):
        cancel = asyncio.Event()

        async def op(item):
            if item == "second":
                cancel.set()
            return "ok"

        report = await BatchEngine().run(
            ["first", "second", "third", "fourth"], "handle", op, cancel=cancel
        )
        assert [r.success for r in report.results] == [True, True, False, False]
        assert report.results[2].error == CANCELLED_MESSAGE
        assert report.total == 4

    @pytest.mark.asyncio
    async def test_label_controls_reported_value(self):
        report = await BatchEngine().run(
            [{"text": "one"}], "text", lambda item: _echo(item["text"]), label=lambda i: i["text"]
        )
        assert report.results[0].to_dict() == {"success": True, "text": "one", "output": "done one"}

    @pytest.mark.asyncio
    async def test_failures_traced_to_activity(self, activity):
        async def op(item):
            raise RuntimeError("nope")

        await BatchEngine(activity).run(["a"], "handle", op)
        levels = [(e.level, e.message) for e in activity.get_recent()]
        assert ("WARN", "Batch item 1/1 failed") in levels
        assert ("INFO", "Batch handle complete: 0/1") in levels

    def test_report_dict_shape(self):
        assert BatchReport().to_dict() == {"total": 0, "successful": 0, "failed": 0, "results": []}


async def _echo(item):
    return f"done {item}"


# ═══════════════════════════════════════════════════════════════════════════
# Batch tools
# ═══════════════════════════════════════════════════════════════════════════


class TestBatchTools:

    @pytest.mark.asyncio
    async def test_batch_follow_partial_failure(self, make_runner, activity):
        runner = make_runner(fail={"follow b.bsky.social": "Profile not found"})
        dispatcher = Dispatcher(build_catalog(), runner, activity)

        report = _payload(await dispatcher.call_tool(
            "batch_follow", {"handles": ["a.bsky.social", "b.bsky.social"]}
        ))

        assert report["total"] == 2
        assert report["successful"] == 1
        assert report["failed"] == 1
        assert report["results"][0] == {
            "success": True, "handle": "a.bsky.social", "output": "ok: atproto follow a.bsky.social",
        }
        assert report["results"][1]["handle"] == "b.bsky.social"
        assert report["results"][1]["success"] is False
        assert "Profile not found" in report["results"][1]["error"]
        assert runner.calls == ["atproto follow a.bsky.social", "atproto follow b.bsky.social"]

    @pytest.mark.asyncio
    async def test_batch_unfollow_and_like(self, dispatcher, fake_runner):
        unfollow = _payload(await dispatcher.call_tool("batch_unfollow", {"handles": ["x.bsky.social"]}))
        like = _payload(await dispatcher.call_tool("batch_like", {"uris": ["at://did:plc:1/post/1"]}))
        _check_counts(unfollow)
        _check_counts(like)
        assert like["results"][0]["uri"] == "at://did:plc:1/post/1"
        assert fake_runner.calls == [
            "atproto unfollow x.bsky.social",
            "atproto like at://did:plc:1/post/1",
        ]

    @pytest.mark.asyncio
    async def test_batch_post_item_without_text_fails_alone(self, dispatcher, fake_runner):
        report = _payload(await dispatcher.call_tool(
            "batch_post", {"posts": [{"text": "hello"}, {"image": "a.png"}, {"text": "bye", "image": "b.png"}]}
        ))
        _check_counts(report)
        assert [r["success"] for r in report["results"]] == [True, False, True]
        assert report["results"][1]["text"] is None
        assert "'text' is required" in report["results"][1]["error"]
        assert fake_runner.calls == ["atproto post hello", "atproto post --image b.png bye"]

    @pytest.mark.asyncio
    async def test_batch_post_quotes_text(self, dispatcher, fake_runner):
        await dispatcher.call_tool("batch_post", {"posts": [{"text": "it's live"}]})
        assert fake_runner.calls == ["atproto post 'it'\"'\"'s live'"]

    @pytest.mark.asyncio
    async def test_batch_requires_array(self, dispatcher, fake_runner):
        result = await dispatcher.call_tool("batch_follow", {"handles": "a,b"})
        assert result["isError"] is True
        assert "'handles' is required and must be an array" in result["content"][0]["text"]
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_empty_handles(self, dispatcher):
        report = _payload(await dispatcher.call_tool("batch_follow", {"handles": []}))
        assert report == {"total": 0, "successful": 0, "failed": 0, "results": []}


# ═══════════════════════════════════════════════════════════════════════════
# batch_from_file
# ═══════════════════════════════════════════════════════════════════════════


class TestBatchFromFile:

    @pytest.mark.asyncio
    async def test_runs_each_category(self, tmp_path, make_runner, activity):
        bundle = tmp_path / "ops.json"
        bundle.write_text(json.dumps({
            "posts": [{"text": "gm"}],
            "follows": ["a.bsky.social", "b.bsky.social"],
            "likes": ["at://x/1"],
        }))
        runner = make_runner(fail={"follow b.bsky.social": "blocked"})
        dispatcher = Dispatcher(build_catalog(), runner, activity)

        result = _payload(await dispatcher.call_tool("batch_from_file", {"filepath": str(bundle)}))

        assert result["success"] is True
        assert result["filepath"] == str(bundle)
        assert result["summary"] == {"posts": "1/1", "follows": "1/2", "likes": "1/1"}
        for report in result["details"].values():
            _check_counts(report)
        assert runner.calls == [
            "atproto post gm",
            "atproto follow a.bsky.social",
            "atproto follow b.bsky.social",
            "atproto like at://x/1",
        ]

    @pytest.mark.asyncio
    async def test_only_present_categories_reported(self, tmp_path, dispatcher):
        bundle = tmp_path / "likes.json"
        bundle.write_text(json.dumps({"likes": ["at://x/1"], "comment": "ignored"}))
        result = _payload(await dispatcher.call_tool("batch_from_file", {"filepath": str(bundle)}))
        assert result["summary"] == {"likes": "1/1"}
        assert list(result["details"]) == ["likes"]

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path, dispatcher, fake_runner):
        result = await dispatcher.call_tool("batch_from_file", {"filepath": str(tmp_path / "nope.json")})
        assert result["isError"] is True
        assert "Cannot read batch file" in result["content"][0]["text"]
        assert fake_runner.calls == []

    @pytest.mark.asyncio
    async def test_invalid_json(self, tmp_path, dispatcher, fake_runner):
        bundle = tmp_path / "bad.json"
        bundle.write_text("{posts: [")
        result = await dispatcher.call_tool("batch_from_file", {"filepath": str(bundle)})
        assert result["isError"] is True
        assert "Invalid JSON" in result["content"][0]["text"]
        assert fake_runner.calls == []

    def test_rejects_non_object(self, tmp_path):
        bundle = tmp_path / "list.json"
        bundle.write_text("[]")
        with pytest.raises(IOFailure, match="must contain a JSON object"):
            load_bundle(str(bundle))

    def test_rejects_wrong_item_type(self, tmp_path):
        bundle = tmp_path / "shape.json"
        bundle.write_text(json.dumps({"follows": [{"handle": "a"}]}))
        with pytest.raises(IOFailure, match="'follows'.*array of strings"):
            load_bundle(str(bundle))

    def test_rejects_posts_as_strings(self, tmp_path):
        bundle = tmp_path / "posts.json"
        bundle.write_text(json.dumps({"posts": ["hello"]}))
        with pytest.raises(IOFailure, match="array of objects"):
            load_bundle(str(bundle))

    def test_empty_object_is_empty_bundle(self, tmp_path):
        bundle = tmp_path / "empty.json"
        bundle.write_text("{}")
        assert load_bundle(str(bundle)) == {}
