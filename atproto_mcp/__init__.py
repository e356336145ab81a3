"""
atproto MCP Server — Bluesky tools over the Model Context Protocol

Every tool call shells out to the atproto CLI.
"""

__version__ = "0.1.0"

from .batch import BatchEngine, BatchReport
from .catalog import ToolCatalog, ToolDescriptor
from .config import Config
from .dispatcher import Dispatcher, ToolContext
from .logger import ActivityLog
from .runner import CommandRunner
from .server import AtprotoMCPServer
