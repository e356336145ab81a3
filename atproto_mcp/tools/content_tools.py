"""
Content Tools — posting and basic follow management.

Tools:
  post_create    — create a post, optionally with one image
  user_follow    — follow a handle or DID
  user_unfollow  — unfollow a handle or DID
"""

from typing import Any, Dict, List

from atproto_mcp.catalog import ToolDescriptor
from atproto_mcp.tools import actions
from atproto_mcp.tools.validation import optional_str, require_str


async def _post_create(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    text = require_str(args, "text")
    image = optional_str(args, "image")
    output = await actions.create_post(ctx.runner, text, image)
    return {"success": True, "message": output}


async def _user_follow(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await actions.follow(ctx.runner, require_str(args, "handle"))
    return {"success": True, "message": output}


async def _user_unfollow(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await actions.unfollow(ctx.runner, require_str(args, "handle"))
    return {"success": True, "message": output}


TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="post_create",
        description="Create a new post on Bluesky",
        input_schema={
            "type": "object",
            "properties": {
                "text": {
                    "type": "string",
                    "description": "The text content of the post",
                },
                "image": {
                    "type": "string",
                    "description": "Optional path to image file to attach",
                },
            },
            "required": ["text"],
        },
        handler=_post_create,
    ),
    ToolDescriptor(
        name="user_follow",
        description="Follow a user on Bluesky",
        input_schema={
            "type": "object",
            "properties": {
                "handle": {
                    "type": "string",
                    "description": "The handle or DID of the user to follow (e.g., user.bsky.social)",
                },
            },
            "required": ["handle"],
        },
        handler=_user_follow,
    ),
    ToolDescriptor(
        name="user_unfollow",
        description="Unfollow a user on Bluesky",
        input_schema={
            "type": "object",
            "properties": {
                "handle": {
                    "type": "string",
                    "description": "The handle or DID of the user to unfollow (e.g., user.bsky.social)",
                },
            },
            "required": ["handle"],
        },
        handler=_user_unfollow,
    ),
]
