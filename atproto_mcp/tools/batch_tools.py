"""
Batch Tools — bulk operations with per-item outcomes.

Tools:
  batch_post       — create many posts
  batch_follow     — follow many handles
  batch_unfollow   — unfollow many handles
  batch_like       — like many post URIs
  batch_from_file  — run posts/follows/likes from a JSON bundle

Items run one at a time in input order; a failing item never stops the
rest. Every result is {total, successful, failed, results}.
"""

import json
from pathlib import Path
from typing import Any, Dict, List

from atproto_mcp.batch import BatchReport
from atproto_mcp.catalog import ToolDescriptor
from atproto_mcp.errors import IOFailure
from atproto_mcp.logger import get_logger
from atproto_mcp.tools import actions
from atproto_mcp.tools.validation import optional_str, require_list, require_str

log = get_logger("tools.batch")

# Bundle keys, in execution order
CATEGORIES = ("posts", "follows", "likes")


# ── Category runners (shared with batch_from_file) ───────────────────────────

async def run_posts(ctx, posts: List[Dict[str, Any]]) -> BatchReport:
    async def post(item: Dict[str, Any]) -> str:
        return await actions.create_post(
            ctx.runner, require_str(item, "text"), optional_str(item, "image")
        )

    return await ctx.batch.run(
        posts, "text", post, label=lambda item: item.get("text"), cancel=ctx.cancel
    )


async def run_follows(ctx, handles: List[str]) -> BatchReport:
    return await ctx.batch.run(
        handles, "handle", lambda h: actions.follow(ctx.runner, h), cancel=ctx.cancel
    )


async def run_unfollows(ctx, handles: List[str]) -> BatchReport:
    return await ctx.batch.run(
        handles, "handle", lambda h: actions.unfollow(ctx.runner, h), cancel=ctx.cancel
    )


async def run_likes(ctx, uris: List[str]) -> BatchReport:
    return await ctx.batch.run(
        uris, "uri", lambda u: actions.like(ctx.runner, u), cancel=ctx.cancel
    )


# ── Handlers ─────────────────────────────────────────────────────────────────

async def _batch_post(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    report = await run_posts(ctx, require_list(args, "posts", dict))
    return report.to_dict()


async def _batch_follow(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    report = await run_follows(ctx, require_list(args, "handles"))
    return report.to_dict()


async def _batch_unfollow(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    report = await run_unfollows(ctx, require_list(args, "handles"))
    return report.to_dict()


async def _batch_like(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    report = await run_likes(ctx, require_list(args, "uris"))
    return report.to_dict()


def load_bundle(filepath: str) -> Dict[str, List[Any]]:
    """
    Read and shape-check a batch file.

    Returns only the categories present. Any read, decode, or shape
    problem raises IOFailure; nothing is partially accepted.
    """
    path = Path(filepath).expanduser()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise IOFailure(f"Cannot read batch file {filepath}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise IOFailure(f"Invalid JSON in batch file {filepath}: {exc}") from exc

    if not isinstance(data, dict):
        raise IOFailure(f"Batch file {filepath} must contain a JSON object")

    item_types = {"posts": dict, "follows": str, "likes": str}
    bundle: Dict[str, List[Any]] = {}
    for category in CATEGORIES:
        if category not in data:
            continue
        items = data[category]
        if not isinstance(items, list) or not all(isinstance(i, item_types[category]) for i in items):
            expected = "objects" if item_types[category] is dict else "strings"
            raise IOFailure(f"'{category}' in {filepath} must be an array of {expected}")
        bundle[category] = items
    return bundle


async def _batch_from_file(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    filepath = require_str(args, "filepath")
    bundle = load_bundle(filepath)
    counts = {category: len(items) for category, items in bundle.items()}
    log.info(f"Batch file {filepath}: {counts}")

    runners = {"posts": run_posts, "follows": run_follows, "likes": run_likes}
    details: Dict[str, BatchReport] = {}
    for category, items in bundle.items():
        details[category] = await runners[category](ctx, items)

    return {
        "success": True,
        "filepath": filepath,
        "summary": {category: report.summary for category, report in details.items()},
        "details": {category: report.to_dict() for category, report in details.items()},
    }


# ── Tool definitions ─────────────────────────────────────────────────────────

def _string_array_schema(field: str, description: str, item_description: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            field: {
                "type": "array",
                "description": description,
                "items": {"type": "string", "description": item_description},
            },
        },
        "required": [field],
    }


TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="batch_post",
        description="Create multiple posts in batch. Useful for scheduling content or bulk posting.",
        input_schema={
            "type": "object",
            "properties": {
                "posts": {
                    "type": "array",
                    "description": "Array of posts to create",
                    "items": {
                        "type": "object",
                        "properties": {
                            "text": {"type": "string", "description": "Post text content"},
                            "image": {"type": "string", "description": "Optional path to image file"},
                        },
                        "required": ["text"],
                    },
                },
            },
            "required": ["posts"],
        },
        handler=_batch_post,
    ),
    ToolDescriptor(
        name="batch_follow",
        description="Follow multiple users in batch. Useful for bulk relationship management.",
        input_schema=_string_array_schema(
            "handles", "Array of user handles to follow", "User handle (e.g., user.bsky.social)"
        ),
        handler=_batch_follow,
    ),
    ToolDescriptor(
        name="batch_unfollow",
        description="Unfollow multiple users in batch.",
        input_schema=_string_array_schema(
            "handles", "Array of user handles to unfollow", "User handle (e.g., user.bsky.social)"
        ),
        handler=_batch_unfollow,
    ),
    ToolDescriptor(
        name="batch_like",
        description="Like multiple posts in batch.",
        input_schema=_string_array_schema(
            "uris", "Array of post URIs to like", "Post URI (at://... format)"
        ),
        handler=_batch_like,
    ),
    ToolDescriptor(
        name="batch_from_file",
        description=(
            "Execute batch operations from a JSON file. File should contain posts, "
            "follows, and/or likes arrays."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "filepath": {
                    "type": "string",
                    "description": "Path to JSON file containing batch operations",
                },
            },
            "required": ["filepath"],
        },
        handler=_batch_from_file,
    ),
]
