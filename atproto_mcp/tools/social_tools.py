"""
Social Tools — manage connections.

Tools:
  follow_user, unfollow_user   — follow graph edits
  get_followers, get_following — list connections (default: current user)
  block_user, unblock_user     — block list edits
"""

from typing import Any, Dict, List

from atproto_mcp.catalog import ToolDescriptor
from atproto_mcp.tools import actions
from atproto_mcp.tools.validation import clamp_int, optional_str, require_str


async def _follow_user(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await actions.follow(ctx.runner, require_str(args, "handle"))
    return {"success": True, "message": output}


async def _unfollow_user(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await actions.unfollow(ctx.runner, require_str(args, "handle"))
    return {"success": True, "message": output}


def _connection_args(args: Dict[str, Any]) -> List[Any]:
    cmd_args: List[Any] = []
    handle = optional_str(args, "handle")
    if handle:
        cmd_args.append(handle)
    if args.get("limit") is not None:
        cmd_args.append(clamp_int(args["limit"], default=50, lo=1, hi=100))
    return cmd_args


async def _get_followers(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await ctx.runner.run_cli("followers", *_connection_args(args))
    return {"success": True, "followers": output}


async def _get_following(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await ctx.runner.run_cli("following", *_connection_args(args))
    return {"success": True, "following": output}


async def _block_user(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await ctx.runner.run_cli("block", require_str(args, "handle"))
    return {"success": True, "message": output}


async def _unblock_user(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await ctx.runner.run_cli("unblock", require_str(args, "handle"))
    return {"success": True, "message": output}


def _handle_schema(description: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "handle": {"type": "string", "description": description},
        },
        "required": ["handle"],
    }


def _connections_schema(noun: str) -> Dict[str, Any]:
    return {
        "type": "object",
        "properties": {
            "handle": {
                "type": "string",
                "description": "The user handle (optional, defaults to current user)",
            },
            "limit": {
                "type": "number",
                "description": f"Number of {noun} to retrieve (default: 50, max: 100)",
            },
        },
    }


TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="follow_user",
        description="Follow a user on Bluesky",
        input_schema=_handle_schema("The user handle to follow (e.g., user.bsky.social)"),
        handler=_follow_user,
    ),
    ToolDescriptor(
        name="unfollow_user",
        description="Unfollow a user on Bluesky",
        input_schema=_handle_schema("The user handle to unfollow (e.g., user.bsky.social)"),
        handler=_unfollow_user,
    ),
    ToolDescriptor(
        name="get_followers",
        description="Get the list of followers for a user",
        input_schema=_connections_schema("followers"),
        handler=_get_followers,
    ),
    ToolDescriptor(
        name="get_following",
        description="Get the list of users that a user is following",
        input_schema=_connections_schema("following"),
        handler=_get_following,
    ),
    ToolDescriptor(
        name="block_user",
        description="Block a user on Bluesky",
        input_schema=_handle_schema("The user handle to block (e.g., user.bsky.social)"),
        handler=_block_user,
    ),
    ToolDescriptor(
        name="unblock_user",
        description="Unblock a user on Bluesky",
        input_schema=_handle_schema("The user handle to unblock (e.g., user.bsky.social)"),
        handler=_unblock_user,
    ),
]
