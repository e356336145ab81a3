"""
Search Tools — discovery.

Tools:
  search_posts  — full-text post search
  read_feed     — timeline with a bounded limit
  search_users  — not backed by the CLI yet; answers with a note
"""

from typing import Any, Dict, List

from atproto_mcp.catalog import ToolDescriptor
from atproto_mcp.tools.validation import clamp_int, require_str


async def _search_posts(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    query = require_str(args, "query")
    limit = clamp_int(args.get("limit"), default=20, lo=1, hi=100)
    output = await ctx.runner.run_cli("search", query, limit)
    return {"success": True, "results": output}


async def _read_feed(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    limit = clamp_int(args.get("limit"), default=10, lo=1, hi=100)
    output = await ctx.runner.run_cli("feed", limit)
    return {"success": True, "feed": output}


async def _search_users(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    query = require_str(args, "query")
    return {
        "success": True,
        "message": f"Searching for users matching: {query}",
        "note": "User search is not supported by the atproto CLI yet; no lookup was performed.",
    }


TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="search_posts",
        description="Search for posts on Bluesky matching a query",
        input_schema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query string",
                },
                "limit": {
                    "type": "number",
                    "description": "Number of results to retrieve (default: 20, max: 100)",
                    "default": 20,
                },
            },
            "required": ["query"],
        },
        handler=_search_posts,
    ),
    ToolDescriptor(
        name="read_feed",
        description="Read the user timeline/feed with optional limit",
        input_schema={
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": "Number of posts to retrieve (default: 10, max: 100)",
                },
            },
        },
        handler=_read_feed,
    ),
    ToolDescriptor(
        name="search_users",
        description="Search for users on Bluesky (not yet backed by the CLI)",
        input_schema={
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "The search query string (handle or display name)",
                },
            },
            "required": ["query"],
        },
        handler=_search_users,
    ),
]
