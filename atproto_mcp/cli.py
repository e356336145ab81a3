"""
Command line for the atproto MCP server.

Usage:
    atproto-mcp                      # serve MCP over stdio (default)
    atproto-mcp serve
    atproto-mcp tools                # list the tool catalog
    atproto-mcp call post_create --args '{"text": "hello"}'

`tools` and `call` print to the terminal and are meant for local
debugging; only `serve` speaks the protocol.
"""

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from .config import Config
from .dispatcher import Dispatcher
from .errors import AtprotoMCPError
from .logger import ActivityLog
from .runner import CommandRunner
from .server import AtprotoMCPServer
from .tools import TOOL_GROUPS, build_catalog


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="atproto-mcp",
        description="Bluesky (AT Protocol) tools over the Model Context Protocol",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {Config.SERVER_VERSION}")
    parser.add_argument("--cli", help="Path to the atproto CLI (default: auto-detect)")
    parser.add_argument("--timeout", type=float, help="Per-command timeout in seconds")

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("serve", help="Run the MCP server on stdio")
    sub.add_parser("tools", help="List available tools")

    call = sub.add_parser("call", help="Invoke one tool and print the result")
    call.add_argument("name", help="Tool name")
    source = call.add_mutually_exclusive_group()
    source.add_argument("--args", dest="arguments", default="{}", help="Tool arguments as JSON")
    source.add_argument("--args-file", type=Path, help="Read tool arguments from a JSON file")
    return parser


def _parse_arguments(ns: argparse.Namespace) -> Dict[str, Any]:
    raw = ns.args_file.read_text(encoding="utf-8") if ns.args_file else ns.arguments
    try:
        arguments = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise AtprotoMCPError(f"Tool arguments are not valid JSON: {exc}") from exc
    if not isinstance(arguments, dict):
        raise AtprotoMCPError("Tool arguments must be a JSON object")
    return arguments


def show_tools(console: Console):
    table = Table(title=f"{Config.SERVER_NAME} tools")
    table.add_column("Group", style="cyan")
    table.add_column("Tool", style="bold")
    table.add_column("Required")
    table.add_column("Description")

    count = 0
    for group, tools in TOOL_GROUPS:
        for tool in tools:
            count += 1
            required = ", ".join(tool.input_schema.get("required", []))
            table.add_row(group, tool.name, required or "-", tool.description)

    console.print(table)
    console.print(f"{count} tools")


async def call_tool(runner: CommandRunner, name: str, arguments: Dict[str, Any], console: Console) -> int:
    # Activity goes to stderr so stdout carries only the result
    activity = ActivityLog.from_env()
    dispatcher = Dispatcher(build_catalog(), runner, activity)
    result = await dispatcher.call_tool(name, arguments)

    text = result["content"][0]["text"]
    if result.get("isError"):
        Console(stderr=True).print(text, style="red", markup=False)
        return 1
    console.print_json(text)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    ns = build_parser().parse_args(argv)
    runner = CommandRunner(program=ns.cli, timeout=ns.timeout)
    console = Console()

    if ns.command == "tools":
        show_tools(console)
        return 0

    if ns.command == "call":
        try:
            arguments = _parse_arguments(ns)
        except (AtprotoMCPError, OSError) as exc:
            Console(stderr=True).print(str(exc), style="red", markup=False)
            return 2
        return asyncio.run(call_tool(runner, ns.name, arguments, console))

    try:
        asyncio.run(AtprotoMCPServer(runner=runner).run())
    except KeyboardInterrupt:
        pass
    return 0
