"""
Engagement Tools — interact with existing posts by AT URI.

Tools:
  post_like, post_repost, post_reply, post_delete
"""

from typing import Any, Dict, List

from atproto_mcp.catalog import ToolDescriptor
from atproto_mcp.tools import actions
from atproto_mcp.tools.validation import require_str


async def _post_like(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await actions.like(ctx.runner, require_str(args, "uri"))
    return {"success": True, "message": output}


async def _post_repost(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await ctx.runner.run_cli("repost", require_str(args, "uri"))
    return {"success": True, "message": output}


async def _post_reply(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    uri = require_str(args, "uri")
    text = require_str(args, "text")
    output = await ctx.runner.run_cli("reply", uri, text)
    return {"success": True, "message": output}


async def _post_delete(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await ctx.runner.run_cli("delete", require_str(args, "uri"))
    return {"success": True, "message": output}


def _uri_schema(description: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "uri": {"type": "string", "description": description},
        },
        "required": ["uri"],
    }


TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="post_like",
        description="Like a post on Bluesky",
        input_schema=_uri_schema("The post URI (at://... format)"),
        handler=_post_like,
    ),
    ToolDescriptor(
        name="post_repost",
        description="Repost a post on Bluesky",
        input_schema=_uri_schema("The post URI (at://... format)"),
        handler=_post_repost,
    ),
    ToolDescriptor(
        name="post_reply",
        description="Reply to a post on Bluesky",
        input_schema={
            "type": "object",
            "properties": {
                "uri": {
                    "type": "string",
                    "description": "The post URI to reply to (at://... format)",
                },
                "text": {
                    "type": "string",
                    "description": "The reply text content",
                },
            },
            "required": ["uri", "text"],
        },
        handler=_post_reply,
    ),
    ToolDescriptor(
        name="post_delete",
        description="Delete a post from Bluesky (must be your own post)",
        input_schema=_uri_schema("The post URI to delete (at://... format)"),
        handler=_post_delete,
    ),
]
