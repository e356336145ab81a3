"""Shared fixtures for the atproto MCP server tests."""

import asyncio
import os
import stat
import tempfile

import pytest

# File logs go to a scratch dir; must be set before atproto_mcp.config loads
os.environ.setdefault("ATPROTO_MCP_LOG_DIR", tempfile.mkdtemp(prefix="atproto-mcp-logs-"))

from atproto_mcp.batch import BatchEngine  # noqa: E402
from atproto_mcp.dispatcher import Dispatcher  # noqa: E402
from atproto_mcp.errors import CommandFailure  # noqa: E402
from atproto_mcp.logger import ActivityLog  # noqa: E402
from atproto_mcp.runner import CommandRunner  # noqa: E402
from atproto_mcp.tools import build_catalog  # noqa: E402


def pytest_configure(config):
    config.addinivalue_line("markers", "asyncio: mark test as async")


class FakeRunner(CommandRunner):
    """
    Records command lines instead of spawning processes.

    `fail` maps a substring of the command line to the error the CLI
    would print; matching commands raise CommandFailure.
    """

    def __init__(self, fail=None, delay: float = 0.0):
        super().__init__(program="atproto", timeout=5)
        self.fail = dict(fail or {})
        self.delay = delay
        self.calls = []
        self.envs = []

    async def run(self, command_line, extra_env=None):
        self.calls.append(command_line)
        self.envs.append(dict(extra_env or {}))
        if self.delay:
            await asyncio.sleep(self.delay)
        for needle, message in self.fail.items():
            if needle in command_line:
                raise CommandFailure(message)
        return f"ok: {command_line}"


FAKE_CLI = """#!/bin/sh
case "$1" in
  echo) shift; printf '%s\\n' "$@" ;;
  env) printf '%s\\n' "NONINTERACTIVE=$NONINTERACTIVE" "BLUESKY_HANDLE=$BLUESKY_HANDLE" ;;
  fail) echo "boom: $2" >&2; exit 3 ;;
  warn) echo "warning only" >&2 ;;
  both) echo "posted"; echo "deprecated flag" >&2 ;;
  sleep) exec sleep 5 ;;
  hang) sleep 5; echo late ;;
  *) echo "ok $*" ;;
esac
"""


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def make_runner():
    return FakeRunner


@pytest.fixture
def activity():
    return ActivityLog(level="DEBUG", console=False)


@pytest.fixture
def dispatcher(fake_runner, activity):
    return Dispatcher(build_catalog(), fake_runner, activity, BatchEngine(activity))


@pytest.fixture
def fake_cli(tmp_path):
    """Path to a shell script standing in for the atproto binary."""
    script = tmp_path / "atproto"
    script.write_text(FAKE_CLI)
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script
