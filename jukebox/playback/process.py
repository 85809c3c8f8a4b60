"""
Subprocess helpers shared by the process-based playback adapters.

Adapters spawn external programs (mpv, osascript, the platform opener)
through asyncio so a slow backend never blocks the event loop that also
serves the control socket.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import shutil
from dataclasses import dataclass

from jukebox.core import AdapterError

logger = logging.getLogger(__name__)

# How long to wait for a graceful subprocess termination before SIGKILL
TERMINATE_TIMEOUT_SECONDS = 2.0

# How long to wait for SIGKILL to take effect
KILL_TIMEOUT_SECONDS = 1.0

# Default upper bound for one-shot helper commands (osascript etc.)
COMMAND_TIMEOUT_SECONDS = 10.0


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a one-shot helper command."""

    returncode: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def find_binary(name: str) -> str | None:
    """Return the absolute path of `name` on PATH, or None."""
    return shutil.which(name)


async def run_command(
    *argv: str,
    timeout: float = COMMAND_TIMEOUT_SECONDS,
) -> CommandResult:
    """
    Run a helper command to completion and capture its output.

    Raises:
        AdapterError: If the command cannot be spawned or times out.
    """
    logger.debug("Running %s", argv)
    try:
        process = await asyncio.create_subprocess_exec(
            *argv,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise AdapterError(f"failed to run {argv[0]}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        await terminate_subprocess_safely(process)
        raise AdapterError(f"{argv[0]} timed out after {timeout:.0f}s") from None

    return CommandResult(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace").strip(),
        stderr=stderr.decode("utf-8", errors="replace").strip(),
    )


async def spawn_detached(*argv: str) -> asyncio.subprocess.Process:
    """
    Start a long-running helper whose output we do not care about.

    Raises:
        AdapterError: If the process cannot be spawned.
    """
    logger.debug("Spawning %s", argv)
    try:
        return await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.DEVNULL,
            stderr=asyncio.subprocess.DEVNULL,
        )
    except OSError as e:
        raise AdapterError(f"failed to spawn {argv[0]}: {e}") from e


async def terminate_subprocess_safely(
    process: asyncio.subprocess.Process,
    timeout: float = TERMINATE_TIMEOUT_SECONDS,
    kill_timeout: float = KILL_TIMEOUT_SECONDS,
) -> None:
    """
    Terminate a subprocess gracefully with escalation to SIGKILL.

    1. Return at once if the process already exited
    2. Send SIGTERM and wait
    3. If it is still alive after `timeout`, send SIGKILL and wait
    """
    if process.returncode is not None:
        return

    if process.stdin:
        with contextlib.suppress(OSError, RuntimeError, ValueError):
            process.stdin.close()

    with contextlib.suppress(ProcessLookupError, OSError):
        process.terminate()

    try:
        await asyncio.wait_for(process.wait(), timeout=timeout)
        return
    except TimeoutError:
        pass

    if process.returncode is None:
        with contextlib.suppress(ProcessLookupError, OSError):
            process.kill()

        try:
            await asyncio.wait_for(process.wait(), timeout=kill_timeout)
        except TimeoutError:
            logger.warning("Subprocess PID %s did not die after SIGKILL", process.pid)
