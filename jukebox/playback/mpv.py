"""
mpv playback adapter.

Runs a private, idle mpv process and controls it through mpv's JSON IPC
socket (https://mpv.io/manual/stable/#json-ipc). Each IPC request opens a
short-lived connection, writes one JSON command line and reads lines
until the reply carrying the matching `request_id` arrives; property
change events and other chatter on the socket are skipped.

This adapter is POSIX only: mpv's IPC server is a Unix domain socket there.
"""

from __future__ import annotations

import asyncio
import itertools
import json
import logging
import os
import socket
import tempfile
import time
from pathlib import Path
from typing import Any

from jukebox.core import AdapterError
from jukebox.playback.base import PlaybackAdapter, clamp_volume
from jukebox.playback.process import find_binary, terminate_subprocess_safely

logger = logging.getLogger(__name__)

# mpv needs a moment to create its IPC socket after launch
IPC_STARTUP_ATTEMPTS = 100
IPC_FALLBACK_ATTEMPTS = 30
IPC_POLL_INTERVAL_SECONDS = 0.1

# Upper bound for a single IPC round trip
IPC_REQUEST_TIMEOUT_SECONDS = 5.0

PRIMARY_ARGS = (
    "--no-config",
    "--no-video",
    "--idle",
    "--ao=null",
)
FALLBACK_ARGS = ("--idle",)


class MpvCommandError(AdapterError):
    """mpv answered a command with an error reply."""

    def __init__(self, command: str, reason: str) -> None:
        super().__init__(f"mpv {command} failed: {reason}")
        self.command = command
        self.reason = reason


def default_ipc_path() -> Path:
    """Build a unique IPC socket path in the temp directory."""
    name = f"jukebox-mpv-{os.getpid()}-{int(time.time() * 1000)}.sock"
    return Path(tempfile.gettempdir()) / name


class MpvAdapter(PlaybackAdapter):
    """Drives a dedicated mpv process over JSON IPC."""

    name = "mpv"

    def __init__(
        self,
        ipc_path: Path,
        process: asyncio.subprocess.Process | None = None,
    ) -> None:
        self.ipc_path = ipc_path
        self._process = process
        self._request_ids = itertools.count(1)

    @classmethod
    async def try_new(cls, binary: str | None = None) -> MpvAdapter:
        """
        Spawn mpv and wait for its IPC socket to accept connections.

        A first launch uses flags suited to headless hosts; if the socket
        never comes up, mpv is relaunched with a minimal command line.

        Raises:
            AdapterError: If mpv is missing or never becomes reachable.
        """
        if not hasattr(socket, "AF_UNIX"):
            raise AdapterError("mpv IPC requires Unix domain sockets")

        mpv = binary or find_binary("mpv")
        if mpv is None:
            raise AdapterError("mpv not found on PATH")

        ipc_path = default_ipc_path()
        logger.debug("mpv ipc_path = %s", ipc_path)

        for args, attempts in (
            (PRIMARY_ARGS, IPC_STARTUP_ATTEMPTS),
            (FALLBACK_ARGS, IPC_FALLBACK_ATTEMPTS),
        ):
            try:
                process = await asyncio.create_subprocess_exec(
                    mpv,
                    *args,
                    f"--input-ipc-server={ipc_path}",
                    stdin=asyncio.subprocess.DEVNULL,
                    stdout=asyncio.subprocess.DEVNULL,
                    stderr=asyncio.subprocess.DEVNULL,
                )
            except OSError as e:
                raise AdapterError(f"failed to spawn mpv: {e}") from e

            if await cls._wait_for_ipc(ipc_path, process, attempts):
                logger.info("mpv started (pid %s, ipc %s)", process.pid, ipc_path)
                return cls(ipc_path, process)

            logger.warning("mpv IPC did not come up with args %s; retrying", args)
            await terminate_subprocess_safely(process)

        raise AdapterError("mpv failed to start (both attempts)")

    @staticmethod
    async def _wait_for_ipc(
        ipc_path: Path,
        process: asyncio.subprocess.Process,
        attempts: int,
    ) -> bool:
        for _ in range(attempts):
            if process.returncode is not None:
                logger.warning("mpv exited early (status=%s)", process.returncode)
                return False

            if ipc_path.exists():
                try:
                    _, writer = await asyncio.open_unix_connection(str(ipc_path))
                except OSError:
                    pass
                else:
                    writer.close()
                    await writer.wait_closed()
                    return True

            await asyncio.sleep(IPC_POLL_INTERVAL_SECONDS)
        return False

    async def _request(self, *command: Any) -> Any:
        """
        Send one IPC command and return its `data` field.

        Raises:
            MpvCommandError: If mpv answered with an error reply.
            AdapterError: On connection failure or timeout.
        """
        request_id = next(self._request_ids)
        payload = json.dumps({"command": list(command), "request_id": request_id}) + "\n"

        try:
            reader, writer = await asyncio.open_unix_connection(str(self.ipc_path))
        except OSError as e:
            raise AdapterError(f"failed to connect to mpv ipc: {e}") from e

        try:
            writer.write(payload.encode("utf-8"))
            await writer.drain()
            reply = await asyncio.wait_for(
                self._read_reply(reader, request_id),
                timeout=IPC_REQUEST_TIMEOUT_SECONDS,
            )
        except TimeoutError:
            raise AdapterError(f"mpv did not answer {command[0]!r}") from None
        except OSError as e:
            raise AdapterError(f"mpv ipc error: {e}") from e
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

        error = reply.get("error", "success")
        if error != "success":
            raise MpvCommandError(str(command[0]), str(error))
        return reply.get("data")

    @staticmethod
    async def _read_reply(reader: asyncio.StreamReader, request_id: int) -> dict[str, Any]:
        while True:
            line = await reader.readline()
            if not line:
                raise AdapterError("mpv closed the ipc connection")
            try:
                message = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(message, dict) and message.get("request_id") == request_id:
                return message

    async def _get_property(self, name: str) -> Any:
        return await self._request("get_property", name)

    async def _set_property(self, name: str, value: Any) -> None:
        await self._request("set_property", name, value)

    # -------------------------------------------------------------------------
    # Required capabilities
    # -------------------------------------------------------------------------

    async def search(self, query: str) -> str:
        return "mpv: search not implemented"

    async def play(self, item: str | None = None) -> None:
        if item is None:
            await self._set_property("pause", False)
        else:
            await self._request("loadfile", item, "replace")

    async def pause(self) -> None:
        await self._request("cycle", "pause")

    async def next(self) -> None:
        await self._request("playlist-next", "weak")

    async def prev(self) -> None:
        await self._request("playlist-prev", "weak")

    async def status(self) -> str:
        try:
            path = await self._get_property("path")
        except MpvCommandError as e:
            # mpv reports "property unavailable" while idle
            if e.reason != "property unavailable":
                raise
            return "mpv: idle"
        paused = await self._get_property("pause")
        state = "paused" if paused else "playing"
        return f"mpv: {state} {path}"

    # -------------------------------------------------------------------------
    # Volume
    # -------------------------------------------------------------------------

    async def get_volume(self) -> int:
        return int(round(float(await self._get_property("volume"))))

    async def set_volume(self, level: int) -> int:
        level = clamp_volume(level)
        await self._set_property("volume", level)
        return level

    async def volume_up(self, step: int = 5) -> int:
        return await self.set_volume(await self.get_volume() + step)

    async def volume_down(self, step: int = 5) -> int:
        return await self.set_volume(await self.get_volume() - step)

    async def mute(self) -> None:
        await self._set_property("mute", True)

    async def unmute(self) -> None:
        await self._set_property("mute", False)

    # -------------------------------------------------------------------------
    # Seek
    # -------------------------------------------------------------------------

    async def seek_forward(self, seconds: float) -> None:
        await self._request("seek", seconds, "relative")

    async def seek_backward(self, seconds: float) -> None:
        await self._request("seek", -seconds, "relative")

    async def seek_to(self, seconds: float) -> None:
        await self._request("seek", seconds, "absolute")

    async def get_position(self) -> float:
        return float(await self._get_property("time-pos") or 0.0)

    async def get_duration(self) -> float:
        return float(await self._get_property("duration") or 0.0)

    async def aclose(self) -> None:
        if self._process is not None:
            await terminate_subprocess_safely(self._process)
            self._process = None
        try:
            self.ipc_path.unlink()
        except FileNotFoundError:
            pass
