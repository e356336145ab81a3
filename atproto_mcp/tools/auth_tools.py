"""
Auth Tools — Bluesky session management through the atproto CLI.

Tools:
  auth_login             — log in with handle + app password
  auth_logout            — clear the stored session
  auth_whoami            — show the authenticated account
  auth_is_authenticated  — true/false session check
"""

from typing import Any, Dict, List

from atproto_mcp.catalog import ToolDescriptor
from atproto_mcp.config import Config
from atproto_mcp.errors import CommandFailure
from atproto_mcp.logger import get_logger
from atproto_mcp.tools.validation import require_str

log = get_logger("tools.auth")


# ── Handlers ─────────────────────────────────────────────────────────────────

async def _auth_login(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    handle = require_str(args, "handle")
    password = require_str(args, "password")

    # Credentials reach the child process only, never os.environ
    output = await ctx.runner.run_cli(
        "login",
        extra_env={Config.HANDLE_ENV: handle, Config.PASSWORD_ENV: password},
    )
    log.info(f"Logged in as {handle}")
    return {"success": True, "message": output}


async def _auth_logout(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await ctx.runner.run_cli("logout")
    return {"success": True, "message": output}


async def _auth_whoami(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    output = await ctx.runner.run_cli("whoami")
    return {"success": True, "user": output}


async def _auth_is_authenticated(ctx, args: Dict[str, Any]) -> Dict[str, Any]:
    try:
        await ctx.runner.run_cli("whoami")
    except CommandFailure as exc:
        log.debug(f"Not authenticated: {exc}")
        return {"authenticated": False}
    return {"authenticated": True}


# ── Tool definitions ─────────────────────────────────────────────────────────

TOOLS: List[ToolDescriptor] = [
    ToolDescriptor(
        name="auth_login",
        description=(
            "Login to Bluesky using credentials. Requires handle and password "
            "(app password recommended)."
        ),
        input_schema={
            "type": "object",
            "properties": {
                "handle": {
                    "type": "string",
                    "description": "Bluesky handle (e.g., user.bsky.social)",
                },
                "password": {
                    "type": "string",
                    "description": "Bluesky app password",
                },
            },
            "required": ["handle", "password"],
        },
        handler=_auth_login,
    ),
    ToolDescriptor(
        name="auth_logout",
        description="Logout from Bluesky and clear session",
        input_schema={"type": "object", "properties": {}},
        handler=_auth_logout,
    ),
    ToolDescriptor(
        name="auth_whoami",
        description="Get information about the currently authenticated user",
        input_schema={"type": "object", "properties": {}},
        handler=_auth_whoami,
    ),
    ToolDescriptor(
        name="auth_is_authenticated",
        description="Check if currently authenticated to Bluesky",
        input_schema={"type": "object", "properties": {}},
        handler=_auth_is_authenticated,
    ),
]
