"""
STDIO Transport — one JSON-RPC message per line.

Reads from stdin, writes to stdout.
NEVER pollutes stdout with logs.
"""

import asyncio
import json
import sys
from typing import Any, BinaryIO, Dict, Optional

from .logger import get_logger
from .protocol import INVALID_REQUEST, PARSE_ERROR, ProtocolError

log = get_logger("transport")

# Batch payloads can be large; one message must fit in one line
READ_LIMIT = 16 * 1024 * 1024


class StdioTransport:
    """Line-delimited JSON transport over stdin/stdout."""

    def __init__(
        self,
        reader: Optional[asyncio.StreamReader] = None,
        writer: Optional[BinaryIO] = None,
    ):
        self.running = False
        self._reader = reader
        self._stdout = writer

    async def start(self):
        """Initialize async stdin reader and direct stdout writer"""
        if self._reader is None:
            loop = asyncio.get_running_loop()
            self._reader = asyncio.StreamReader(limit=READ_LIMIT)
            protocol = asyncio.StreamReaderProtocol(self._reader)
            await loop.connect_read_pipe(lambda: protocol, sys.stdin.buffer)

        # Plain synchronous writes: connect_write_pipe fails when stdout
        # is a file or a pty rather than a pipe
        if self._stdout is None:
            self._stdout = sys.stdout.buffer
        self.running = True
        log.info("Transport initialized")

    async def read_message(self) -> Optional[Dict[str, Any]]:
        """
        Read one JSON-RPC message from stdin.

        Returns the parsed message, or None on EOF. Blank lines are
        skipped. A line that is not valid JSON raises
        ProtocolError(PARSE_ERROR); the stream stays usable.
        """
        if not self._reader:
            raise RuntimeError("Transport not started")

        while True:
            try:
                raw_bytes = await self._reader.readline()
            except ValueError as exc:
                log.error(f"Oversized message dropped: {exc}")
                raise ProtocolError(PARSE_ERROR, "Message exceeds size limit")

            if not raw_bytes:
                return None  # EOF
            if raw_bytes.strip():
                break

        try:
            parsed = json.loads(raw_bytes)
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            log.error(f"JSON parse error: {exc}")
            raise ProtocolError(PARSE_ERROR, f"Parse error: {exc}")

        # None is reserved for EOF
        if parsed is None:
            raise ProtocolError(INVALID_REQUEST, "Message must be a JSON object")
        return parsed

    async def write_message(self, message: Dict[str, Any]):
        """Write a JSON-RPC message to stdout"""
        if self._stdout is None:
            raise RuntimeError("Transport not started")

        raw_text = json.dumps(message, separators=(",", ":")) + "\n"
        self._stdout.write(raw_text.encode("utf-8"))
        self._stdout.flush()

    async def close(self):
        self.running = False
        log.info("Transport closed")
