"""
Logging — NEVER writes to stdout (would corrupt MCP protocol)

Two channels:
  get_logger(name)  — rotating file logs for module internals
  ActivityLog       — bounded in-memory trace of dispatch activity,
                      optionally mirrored to stderr
"""

import json
import logging
import os
import sys
import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, TextIO

from .config import Config


def _secure_handler(log_path: Path, level: int, fmt: str) -> RotatingFileHandler:
    """Create a rotating file handler with restricted permissions."""
    handler = RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10 MB
        backupCount=3,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S"))

    # Log files may contain handles and post text
    try:
        os.chmod(log_path, 0o600)
    except OSError:
        pass  # file may not exist yet on first call

    return handler


def get_logger(name: str) -> logging.Logger:
    """Get a logger that writes to file only"""
    Config.ensure_dirs()

    logger = logging.getLogger(f"atproto_mcp.{name}")
    if logger.handlers:
        return logger

    logger.setLevel(logging.DEBUG)

    fh = _secure_handler(
        Config.LOG_FILE,
        logging.DEBUG,
        "%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
    )
    logger.addHandler(fh)

    # Separate error log
    eh = _secure_handler(
        Config.ERROR_LOG,
        logging.ERROR,
        "%(asctime)s %(levelname)-5s [%(name)s] %(message)s\n%(exc_info)s",
    )
    logger.addHandler(eh)

    # Never propagate to root (which might have stdout handlers)
    logger.propagate = False

    return logger


# ── Activity log ─────────────────────────────────────────────────────────────

LEVELS = {"DEBUG": 0, "INFO": 1, "WARN": 2, "ERROR": 3}
_ALIASES = {"WARNING": "WARN"}


def normalize_level(level: str, default: str = "INFO") -> str:
    """Map a user-supplied level name onto DEBUG/INFO/WARN/ERROR."""
    name = (level or "").strip().upper()
    name = _ALIASES.get(name, name)
    return name if name in LEVELS else default


@dataclass
class LogEntry:
    timestamp: str
    level: str
    message: str
    data: Optional[Any] = None

    def to_dict(self) -> Dict[str, Any]:
        entry = {"timestamp": self.timestamp, "level": self.level, "message": self.message}
        if self.data is not None:
            entry["data"] = self.data
        return entry

    def format(self) -> str:
        line = f"[{self.timestamp}] {self.level}: {self.message}"
        if self.data is not None:
            line += " " + json.dumps(self.data, default=str)
        return line


@dataclass
class ActivityLog:
    """
    Bounded, leveled record of server activity.

    Entries below `level` are dropped. The buffer keeps the most recent
    `capacity` entries; the oldest are evicted first. When `console` is on
    every kept entry is also written as one line to `stream` (stderr when
    unset).
    """

    level: str = "INFO"
    console: bool = True
    capacity: int = Config.ACTIVITY_CAPACITY
    stream: Optional[TextIO] = None
    _entries: deque = field(init=False, repr=False, compare=False)
    _lock: threading.Lock = field(
        init=False, repr=False, compare=False, default_factory=threading.Lock
    )

    def __post_init__(self):
        self.level = normalize_level(self.level)
        self._entries = deque(maxlen=self.capacity)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> "ActivityLog":
        """Build from MCP_LOG_LEVEL / MCP_LOG_CONSOLE."""
        if environ is None:
            return cls(level=Config.LOG_LEVEL, console=Config.LOG_CONSOLE, **kwargs)
        return cls(
            level=environ.get("MCP_LOG_LEVEL", "INFO"),
            console=environ.get("MCP_LOG_CONSOLE", "true").lower() != "false",
            **kwargs,
        )

    def enabled_for(self, level: str) -> bool:
        return LEVELS[normalize_level(level)] >= LEVELS[self.level]

    def log(self, level: str, message: str, data: Optional[Any] = None) -> Optional[LogEntry]:
        level = normalize_level(level)
        if not self.enabled_for(level):
            return None

        entry = LogEntry(
            timestamp=datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            level=level,
            message=message,
            data=data,
        )
        with self._lock:
            self._entries.append(entry)
            if self.console:
                out = self.stream or sys.stderr
                out.write(entry.format() + "\n")
                out.flush()
        return entry

    def debug(self, message: str, data: Optional[Any] = None):
        return self.log("DEBUG", message, data)

    def info(self, message: str, data: Optional[Any] = None):
        return self.log("INFO", message, data)

    def warn(self, message: str, data: Optional[Any] = None):
        return self.log("WARN", message, data)

    def error(self, message: str, data: Optional[Any] = None):
        return self.log("ERROR", message, data)

    def get_recent(self, count: int = 100) -> List[LogEntry]:
        """Last `count` entries, oldest first."""
        if count <= 0:
            return []
        with self._lock:
            entries = list(self._entries)
        return entries[-count:]

    def clear(self):
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
