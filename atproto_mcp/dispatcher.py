"""
Dispatcher — serves tools/list and tools/call against the catalog.

Every handler failure is converted to an error-flagged tool result here;
nothing a tool raises reaches the transport.
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .batch import BatchEngine
from .catalog import ToolCatalog
from .errors import UnknownToolError
from .logger import ActivityLog, get_logger
from .protocol import text_content, tool_result_content
from .runner import CommandRunner

log = get_logger("dispatcher")

_SECRET_FIELDS = frozenset({"password", "app_password", "token"})


@dataclass
class ToolContext:
    """What a tool handler may use during one call."""

    runner: CommandRunner
    batch: BatchEngine
    activity: ActivityLog
    cancel: asyncio.Event = field(default_factory=asyncio.Event)


def redact(arguments: Dict[str, Any]) -> Dict[str, Any]:
    return {k: ("***" if k in _SECRET_FIELDS else v) for k, v in arguments.items()}


class Dispatcher:
    def __init__(
        self,
        catalog: ToolCatalog,
        runner: CommandRunner,
        activity: ActivityLog,
        batch: Optional[BatchEngine] = None,
    ):
        self.catalog = catalog
        self.runner = runner
        self.activity = activity
        self.batch = batch or BatchEngine(activity)

    def list_tools(self) -> Dict[str, Any]:
        return {"tools": [tool.to_dict() for tool in self.catalog.list()]}

    def context(self, cancel: Optional[asyncio.Event] = None) -> ToolContext:
        return ToolContext(
            runner=self.runner,
            batch=self.batch,
            activity=self.activity,
            cancel=cancel or asyncio.Event(),
        )

    async def call_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]] = None,
        cancel: Optional[asyncio.Event] = None,
    ) -> Dict[str, Any]:
        """
        Invoke a tool and wrap the outcome as an MCP tool result.

        Success: the handler's return value as pretty-printed JSON text.
        Failure (unknown tool or any exception from the handler): the
        message as text with isError set.
        """
        arguments = arguments if arguments is not None else {}
        self.activity.info(
            f"Tool call: {name}",
            {"arguments": redact(arguments) if isinstance(arguments, dict) else arguments},
        )
        start = time.monotonic()

        try:
            tool = self.catalog.lookup(name)
        except UnknownToolError as exc:
            self.activity.error(f"Unknown tool: {name}")
            return self._error_result(exc)

        try:
            if not isinstance(arguments, dict):
                raise TypeError(f"arguments must be an object, got {type(arguments).__name__}")
            value = await tool.handler(self.context(cancel), arguments)
            text = json.dumps(value, indent=2, default=str)
        except asyncio.CancelledError:
            self.activity.warn(f"Tool {name} cancelled", {"elapsed_ms": self._elapsed(start)})
            raise
        except Exception as exc:
            log.error(f"Tool {name} error: {exc}")
            self.activity.error(
                f"Tool {name} failed",
                {"error": str(exc), "type": type(exc).__name__, "elapsed_ms": self._elapsed(start)},
            )
            return self._error_result(exc)

        self.activity.info(f"Tool {name} succeeded", {"elapsed_ms": self._elapsed(start)})
        return tool_result_content([text_content(text)])

    @staticmethod
    def _error_result(exc: Exception) -> Dict[str, Any]:
        return tool_result_content([text_content(f"Error: {exc}")], is_error=True)

    @staticmethod
    def _elapsed(start: float) -> int:
        return int((time.monotonic() - start) * 1000)
