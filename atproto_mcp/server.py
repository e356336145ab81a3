"""
atproto MCP Server — Main Orchestrator

Ties together:
  Transport → Protocol → Router → Dispatcher → Command Runner

Flow:
  1. Transport reads one JSON line from stdin
  2. Protocol validates JSON-RPC 2.0
  3. Router dispatches to the correct handler
  4. tools/call runs as its own task so ping, tools/list and cancellation
     notifications are answered while the CLI runs
  5. Transport writes the response to stdout

On EOF in-flight calls are allowed to finish; on SIGINT/SIGTERM they are
cancelled.
"""

import asyncio
import signal
from typing import Any, Dict, Optional, Tuple

from .catalog import ToolCatalog
from .config import Config
from .dispatcher import Dispatcher
from .logger import ActivityLog, get_logger
from .protocol import (
    INTERNAL_ERROR,
    INVALID_REQUEST,
    ProtocolError,
    make_error,
    make_response,
    validate_message,
)
from .router import Router
from .runner import CommandRunner
from .tools import build_catalog
from .transport import StdioTransport

log = get_logger("server")


class AtprotoMCPServer:
    """
    Main server orchestrator.

    Usage:
        server = AtprotoMCPServer()
        await server.run()
    """

    def __init__(
        self,
        catalog: Optional[ToolCatalog] = None,
        runner: Optional[CommandRunner] = None,
        activity: Optional[ActivityLog] = None,
        transport: Optional[StdioTransport] = None,
    ):
        if catalog is None:
            catalog = build_catalog()

        self.activity = activity or ActivityLog.from_env()
        self.catalog = catalog
        self.runner = runner or CommandRunner()
        self.dispatcher = Dispatcher(self.catalog, self.runner, self.activity)
        self._transport = transport or StdioTransport()
        self._router = Router(self.dispatcher)
        self._running = False
        self._main_task: Optional[asyncio.Task] = None
        self._inflight: Dict[Any, Tuple[asyncio.Task, asyncio.Event]] = {}

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    # ── main loop ────────────────────────────────────────────────

    async def run(self, handle_signals: bool = True):
        """Start the server and process messages until EOF or signal."""
        log.info(f"Starting {Config.SERVER_NAME} v{Config.SERVER_VERSION} (cli={self.runner.program})")

        await self._transport.start()
        self._main_task = asyncio.current_task()

        loop = asyncio.get_running_loop()
        installed = []
        for sig in (signal.SIGINT, signal.SIGTERM) if handle_signals else ():
            try:
                loop.add_signal_handler(sig, self._on_signal)
                installed.append(sig)
            except (NotImplementedError, RuntimeError):
                pass  # Windows, or not the main thread

        self._running = True
        self.activity.info(
            f"{Config.SERVER_NAME} started",
            {"tools": len(self.catalog), "cli": self.runner.program},
        )

        try:
            while self._running:
                try:
                    msg = await self._transport.read_message()
                except ProtocolError as exc:
                    await self._send_error(None, exc.code, exc.message)
                    continue

                if msg is None:
                    log.info("EOF on stdin, draining in-flight calls")
                    await self._drain()
                    break

                await self._handle_message(msg)

        except asyncio.CancelledError:
            log.info("Server cancelled")
        except Exception as exc:
            log.error(f"Server error: {exc}", exc_info=True)
        finally:
            for sig in installed:
                loop.remove_signal_handler(sig)
            await self.shutdown()

    def _on_signal(self):
        if self._main_task and not self._main_task.done():
            self._main_task.cancel()

    async def _handle_message(self, msg: Any):
        """Validate one message and route it (tools/call in the background)."""
        request_id = msg.get("id") if isinstance(msg, dict) else None

        try:
            msg_type = validate_message(msg)
        except ProtocolError as exc:
            log.warning(f"Protocol error: {exc.message} (code={exc.code})")
            safe_id = request_id if isinstance(request_id, (str, int, float)) else None
            await self._send_error(safe_id, exc.code, exc.message)
            return

        if msg_type in ("response", "error"):
            log.debug(f"Ignoring client {msg_type} id={request_id}")
            return

        method = msg["method"]
        if method == "notifications/cancelled":
            params = msg.get("params") or {}
            self.cancel_request(params.get("requestId") if isinstance(params, dict) else None)
            return

        if method == "tools/call" and msg_type == "request":
            if request_id in self._inflight:
                log.warning(f"Rejecting tools/call with in-flight id={request_id}")
                await self._send_error(request_id, INVALID_REQUEST, "Request id already in use")
                return
            cancel = asyncio.Event()
            task = asyncio.create_task(self._respond(msg, cancel))
            self._inflight[request_id] = (task, cancel)
            task.add_done_callback(lambda t, rid=request_id: self._forget(rid, t))
            return

        await self._respond(msg)

    def _forget(self, request_id: Any, task: asyncio.Task):
        entry = self._inflight.get(request_id)
        if entry is not None and entry[0] is task:
            del self._inflight[request_id]

    async def _respond(self, msg: Dict[str, Any], cancel: Optional[asyncio.Event] = None):
        is_request = "id" in msg
        request_id = msg.get("id")

        try:
            result = await self._router.route(msg, cancel=cancel)
        except ProtocolError as exc:
            log.warning(f"Protocol error: {exc.message} (code={exc.code})")
            if is_request:
                await self._send_error(request_id, exc.code, exc.message, exc.data)
            return
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            log.error(f"Unhandled error: {exc}", exc_info=True)
            if is_request:
                await self._send_error(request_id, INTERNAL_ERROR, str(exc))
            return

        # Notifications get no response
        if result is None or not is_request:
            return
        await self._transport.write_message(make_response(request_id, result))

    async def _send_error(self, request_id: Any, code: int, message: str, data: Any = None):
        await self._transport.write_message(make_error(request_id, code, message, data))

    def cancel_request(self, request_id: Any) -> bool:
        """Signal an in-flight tools/call; batches stop before their next item."""
        try:
            entry = self._inflight.get(request_id)
        except TypeError:
            return False
        if entry is None:
            return False
        entry[1].set()
        self.activity.warn("Cancellation requested", {"requestId": request_id})
        return True

    async def _drain(self):
        tasks = [task for task, _ in self._inflight.values()]
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def shutdown(self):
        """Cancel in-flight calls and close the transport."""
        if not self._running:
            return
        self._running = False

        pending = [task for task, _ in self._inflight.values() if not task.done()]
        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        await self._transport.close()
        self.activity.info("Server stopped")
        log.info("Server stopped")
