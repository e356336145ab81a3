"""Diagnostic Tools — server_logs: recent activity log entries."""

from typing import Any, Dict, List

from atproto_mcp.catalog import ToolDescriptor
from atproto_mcp.logger import LEVELS, normalize_level
from atproto_mcp.tools.validation import clamp_int, optional_str


async def _server_logs(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    limit = clamp_int(args.get("limit"), default=50, lo=1, hi=ctx.activity.capacity)
    level = optional_str(args, "level")
    entries = ctx.activity.get_recent(ctx.activity.capacity)
    if level:
        floor = LEVELS[normalize_level(level)]
        entries = [e for e in entries if LEVELS[e.level] >= floor]
    entries = entries[-limit:]
    return {"count": len(entries), "entries": [e.to_dict() for e in entries]}


TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="server_logs",
        description="Return recent server activity log entries (tool calls, timings, failures)",
        input_schema={
            "type": "object",
            "properties": {
                "limit": {
                    "type": "number",
                    "description": "Maximum entries to return (default: 50)",
                    "default": 50,
                },
                "level": {
                    "type": "string",
                    "enum": ["DEBUG", "INFO", "WARN", "ERROR"],
                    "description": "Minimum level to include",
                },
            },
        },
        handler=_server_logs,
    ),
]
