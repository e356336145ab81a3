#!/usr/bin/env python3
"""
Entry point: python -m atproto_mcp

With no arguments, runs the MCP server on stdio.
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
