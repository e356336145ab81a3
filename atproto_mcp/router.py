"""
Method Router — Dispatch MCP methods to handlers

Routes:
  initialize                 → server capabilities handshake
  notifications/initialized  → notification (no response)
  tools/list                 → catalog listing
  tools/call                 → Dispatcher.call_tool
  notifications/cancelled    → signal an in-flight call (handled by server)
  ping                       → {}
"""

import asyncio
from typing import Any, Dict, Optional

from .config import Config
from .dispatcher import Dispatcher
from .logger import get_logger
from .protocol import (
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    ProtocolError,
    initialize_result,
    tools_list_result,
)

log = get_logger("router")

NOTIFICATIONS = frozenset({
    "initialized",
    "notifications/initialized",
    "notifications/cancelled",
})


class Router:
    """MCP method dispatcher."""

    def __init__(self, dispatcher: Dispatcher):
        self.dispatcher = dispatcher
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def route(
        self,
        msg: Dict[str, Any],
        cancel: Optional[asyncio.Event] = None,
    ) -> Optional[Dict[str, Any]]:
        """
        Route a validated message to the appropriate handler.

        Returns the result payload (to be wrapped in a JSON-RPC response),
        or None for notifications that need no response.
        """
        method = msg.get("method", "")
        params = msg.get("params") or {}

        if method == "initialize":
            return self._handle_initialize(params if isinstance(params, dict) else {})

        if method in NOTIFICATIONS:
            if method != "notifications/cancelled":
                self._initialized = True
            return None

        if method == "ping":
            return {}

        if method == "tools/list":
            return tools_list_result(self.dispatcher.list_tools()["tools"])

        if method == "tools/call":
            return await self._handle_tools_call(params, cancel)

        raise ProtocolError(METHOD_NOT_FOUND, f"Unknown method: {method}")

    # ── handlers ─────────────────────────────────────────────────

    def _handle_initialize(self, params: Dict) -> Dict[str, Any]:
        log.info(
            f"Client initialize: {params.get('clientInfo', {}).get('name', '?')} "
            f"protocol={params.get('protocolVersion', '?')}"
        )
        return initialize_result(
            server_name=Config.SERVER_NAME,
            server_version=Config.SERVER_VERSION,
            protocol_version=Config.PROTOCOL_VERSION,
        )

    async def _handle_tools_call(self, params: Dict, cancel: Optional[asyncio.Event]) -> Dict[str, Any]:
        if not isinstance(params, dict):
            raise ProtocolError(INVALID_PARAMS, "tools/call params must be an object")

        name = params.get("name", "")
        args = params.get("arguments")
        if args is None:
            args = {}

        if not name or not isinstance(name, str):
            raise ProtocolError(INVALID_PARAMS, "Missing tool name")
        if not isinstance(args, dict):
            raise ProtocolError(INVALID_PARAMS, "Tool arguments must be an object")

        return await self.dispatcher.call_tool(name, args, cancel=cancel)
