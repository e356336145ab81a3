"""Configuration for the atproto MCP server"""

import os
from pathlib import Path


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.environ.get(name, default))
    except ValueError:
        return default


class Config:
    # Server identity
    SERVER_NAME = "atproto-mcp-server"
    SERVER_VERSION = "0.1.0"
    PROTOCOL_VERSION = "2024-11-05"

    # External CLI
    CLI_NAME = "atproto"
    CLI_BIN = os.environ.get("ATPROTO_BIN", "")
    CLI_LOCATIONS = (
        Path("/usr/local/bin/atproto"),
        Path("/usr/bin/atproto"),
        Path.home() / ".local" / "bin" / "atproto",
    )
    COMMAND_TIMEOUT = _env_float("ATPROTO_COMMAND_TIMEOUT", 60.0)
    NONINTERACTIVE_ENV = {"NONINTERACTIVE": "1"}

    # Transient credential variables read by `atproto login`
    HANDLE_ENV = "BLUESKY_HANDLE"
    PASSWORD_ENV = "BLUESKY_PASSWORD"

    # Activity log
    LOG_LEVEL = os.environ.get("MCP_LOG_LEVEL", "INFO")
    LOG_CONSOLE = os.environ.get("MCP_LOG_CONSOLE", "true").lower() != "false"
    ACTIVITY_CAPACITY = 1000

    # File logs (NEVER to stdout)
    LOG_DIR = Path(os.environ.get(
        "ATPROTO_MCP_LOG_DIR", str(Path.home() / ".atproto" / "logs")
    ))
    LOG_FILE = LOG_DIR / "mcp-server.log"
    ERROR_LOG = LOG_DIR / "mcp-errors.log"

    # Media limits enforced by upload_media
    MAX_IMAGE_BYTES = 1 * 1024 * 1024
    MAX_VIDEO_BYTES = 50 * 1024 * 1024
    MAX_GALLERY_IMAGES = 4

    @classmethod
    def ensure_dirs(cls):
        """Create required directories"""
        cls.LOG_DIR.mkdir(parents=True, exist_ok=True)
