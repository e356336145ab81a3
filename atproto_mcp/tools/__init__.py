"""
atproto MCP Tools

Groups, in registration order:
  auth         — login / logout / whoami
  content      — posting and follow management
  feed         — timeline
  engagement   — like / repost / reply / delete
  social       — follow graph and block list
  search       — post search, feed, user search
  media        — image, gallery and video posts
  batch        — bulk operations with per-item outcomes
  diagnostics  — recent server activity
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from atproto_mcp.catalog import ToolCatalog, ToolDescriptor

from . import (
    auth_tools,
    batch_tools,
    content_tools,
    diagnostic_tools,
    engagement_tools,
    feed_tools,
    media_tools,
    search_tools,
    social_tools,
)

TOOL_GROUPS: Sequence[Tuple[str, List[ToolDescriptor]]] = (
    ("auth", auth_tools.TOOLS),
    ("content", content_tools.TOOLS),
    ("feed", feed_tools.TOOLS),
    ("engagement", engagement_tools.TOOLS),
    ("social", social_tools.TOOLS),
    ("search", search_tools.TOOLS),
    ("media", media_tools.TOOLS),
    ("batch", batch_tools.TOOLS),
    ("diagnostics", diagnostic_tools.TOOLS),
)


def build_catalog(groups: Optional[Iterable[Iterable[ToolDescriptor]]] = None) -> ToolCatalog:
    """Assemble the catalog. Raises DuplicateToolError on a name collision."""
    if groups is None:
        groups = [tools for _, tools in TOOL_GROUPS]
    return ToolCatalog(groups)
