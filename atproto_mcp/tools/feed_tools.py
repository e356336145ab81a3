"""Feed Tools — feed_read: the authenticated user's timeline."""

from typing import Any, Dict, List

from atproto_mcp.catalog import ToolDescriptor
from atproto_mcp.tools.validation import clamp_int


async def _feed_read(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    limit = clamp_int(args.get("limit"), default=10, lo=1, hi=100)
    output = await ctx.runner.run_cli("feed", limit)
    return {"success": True, "feed": output}


TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="feed_read",
        description="Read the user timeline/feed",
        input_schema={
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": "Number of posts to retrieve (default: 10)",
                    "default": 10,
                },
            },
        },
        handler=_feed_read,
    ),
]
