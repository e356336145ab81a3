"""
Command Runner — executes the atproto CLI and normalizes its result.

Every invocation is one shell process:
  <program> <subcommand> <args...>

The child inherits the server's environment plus NONINTERACTIVE=1 so the
CLI never blocks on a terminal prompt. Stdout (trimmed) is the result.
A non-zero exit, a timeout, or output on stderr with nothing on stdout
raises CommandFailure carrying the diagnostic text verbatim. Each command
runs in its own session so a timeout or cancellation can kill the whole
process group, including anything the CLI itself spawned.

Known limitation: a CLI that succeeds but writes only warnings to stderr
is reported as a failure.
"""

import asyncio
import os
import shlex
import shutil
import signal
from typing import Mapping, Optional

from .config import Config
from .errors import CommandFailure
from .logger import get_logger

log = get_logger("runner")

# Seconds to wait for the killed process group to be reaped
KILL_GRACE = 2.0


def resolve_program() -> str:
    """
    Locate the atproto binary.

    ATPROTO_BIN wins; then the standard install locations; then PATH.
    Falls back to the bare name and lets the shell resolve it.
    """
    if Config.CLI_BIN:
        return Config.CLI_BIN
    for location in Config.CLI_LOCATIONS:
        if location.exists():
            return str(location)
    return shutil.which(Config.CLI_NAME) or Config.CLI_NAME


class CommandRunner:
    """Runs CLI commands as asyncio subprocesses with a bounded timeout."""

    def __init__(
        self,
        program: Optional[str] = None,
        timeout: Optional[float] = None,
        env: Optional[Mapping[str, str]] = None,
    ):
        self.program = program or resolve_program()
        self.timeout = Config.COMMAND_TIMEOUT if timeout is None else timeout
        self._base_env = env

    def build_command(self, subcommand: str, *args) -> str:
        """Join program, subcommand and shell-quoted args with single spaces."""
        parts = [shlex.quote(self.program), subcommand]
        parts.extend(shlex.quote(str(arg)) for arg in args)
        return " ".join(parts)

    async def run_cli(self, subcommand: str, *args, extra_env: Optional[Mapping[str, str]] = None) -> str:
        return await self.run(self.build_command(subcommand, *args), extra_env=extra_env)

    async def run(self, command_line: str, extra_env: Optional[Mapping[str, str]] = None) -> str:
        """
        Execute `command_line` in a shell and return trimmed stdout.

        `extra_env` is visible to this child process only; it is never
        written to the server's own environment.
        """
        env = dict(os.environ if self._base_env is None else self._base_env)
        env.update(Config.NONINTERACTIVE_ENV)
        if extra_env:
            env.update(extra_env)

        log.debug(f"exec: {command_line}")
        try:
            proc = await asyncio.create_subprocess_shell(
                command_line,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
                start_new_session=True,
            )
        except OSError as exc:
            raise CommandFailure(str(exc)) from exc

        timeout = self.timeout if self.timeout and self.timeout > 0 else None
        try:
            out, err = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except asyncio.TimeoutError:
            await self._kill(proc)
            log.warning(f"timeout after {timeout}s: {command_line}")
            raise CommandFailure(f"timed out after {timeout:g}s: {command_line}")
        except asyncio.CancelledError:
            await self._kill(proc)
            raise

        stdout = out.decode("utf-8", errors="replace").strip()
        stderr = err.decode("utf-8", errors="replace").strip()

        if proc.returncode != 0:
            log.info(f"exit {proc.returncode}: {command_line}")
            raise CommandFailure(
                stderr or stdout or f"exit code {proc.returncode}",
                exit_code=proc.returncode,
            )
        if stderr and not stdout:
            raise CommandFailure(stderr, exit_code=proc.returncode)

        return stdout

    @staticmethod
    async def _kill(proc: asyncio.subprocess.Process):
        """Kill the shell and every process it started."""
        # The shell leads its own process group; grandchildren (curl, sleep)
        # hold the output pipes open until the whole group is gone
        try:
            os.killpg(proc.pid, signal.SIGKILL)
        except ProcessLookupError:
            return
        try:
            await asyncio.wait_for(proc.wait(), timeout=KILL_GRACE)
        except asyncio.TimeoutError:
            log.warning(f"pid {proc.pid} still running {KILL_GRACE:g}s after SIGKILL")
