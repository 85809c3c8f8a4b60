"""
Control socket server for the jukebox daemon.

This module implements the accept loop and the per-connection
read/dispatch/respond loop of the line-delimited JSON control protocol.

Transport:
    A Unix domain socket where the platform supports it (default path
    `<tmpdir>/jukebox-daemon-<pid>.sock`), otherwise TCP on 127.0.0.1 with
    an ephemeral port. An address of the form `host:port` always selects TCP.

Connection state machine:
    Reading -> Decoding -> Authenticating -> Validating (play/enqueue)
    -> Dispatching -> Responding -> Reading ... until Closed.

    End-of-stream, an I/O error, an over-long line or 30 seconds without a
    complete line close the connection without a response. A line that
    does not decode is answered with `parse error` and skips
    authentication. Every other line gets exactly one response, in order.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import socket
import stat
import sys
import tempfile
from dataclasses import dataclass
from pathlib import Path

from jukebox.config import DEFAULT_IDLE_TIMEOUT_SECONDS, DEFAULT_SHUTDOWN_GRACE_SECONDS
from jukebox.core import ProtocolError, StartupError
from jukebox.player.state import Player
from jukebox.protocol.codec import PARSE_ERROR, Response, decode_command, encode_response
from jukebox.protocol.handlers import CommandContext, dispatch
from jukebox.security.auth import AuthGate
from jukebox.security.urls import UrlValidator
from jukebox.shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)

INTERNAL_ERROR = Response.failure("internal error")

# Longest accepted request line; longer lines close the connection
MAX_LINE_BYTES = 64 * 1024

_TCP_ADDRESS = re.compile(r"^(?P<host>[\w.\-]+|\[[0-9a-fA-F:]+\]):(?P<port>\d+)$")


def unix_sockets_supported() -> bool:
    return sys.platform != "win32" and hasattr(socket, "AF_UNIX")


def default_socket_path() -> Path:
    return Path(tempfile.gettempdir()) / f"jukebox-daemon-{os.getpid()}.sock"


@dataclass(frozen=True, slots=True)
class ListenAddress:
    """Where the control server listens: a socket path or a TCP host/port."""

    path: Path | None = None
    host: str = "127.0.0.1"
    port: int = 0

    @property
    def is_unix(self) -> bool:
        return self.path is not None

    @classmethod
    def parse(cls, address: str | None) -> ListenAddress:
        """
        Interpret a configured address.

        `host:port` selects TCP; anything else is a socket path. Without
        an address the platform default is used.
        """
        if address:
            match = _TCP_ADDRESS.match(address)
            if match:
                return cls(host=match["host"].strip("[]"), port=int(match["port"]))
            if unix_sockets_supported():
                return cls(path=Path(address))
            raise StartupError(f"unix sockets are not supported here; use host:port, not {address!r}")

        if unix_sockets_supported():
            return cls(path=default_socket_path())
        return cls()

    def __str__(self) -> str:
        if self.path is not None:
            return str(self.path)
        return f"{self.host}:{self.port}"


class ControlServer:
    """
    Accepts control connections and runs one handler task per connection.

    All handlers share one Player (through its lock), one AuthGate, one
    UrlValidator and one ShutdownCoordinator. Handlers never talk to each
    other directly.

    Attributes:
        player: The shared playback session.
        address: Configured listen address (resolved after start()).
    """

    def __init__(
        self,
        player: Player,
        *,
        address: ListenAddress | str | None = None,
        auth_gate: AuthGate | None = None,
        validator: UrlValidator | None = None,
        shutdown: ShutdownCoordinator | None = None,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT_SECONDS,
        shutdown_grace: float = DEFAULT_SHUTDOWN_GRACE_SECONDS,
    ) -> None:
        self.player = player
        self.address = address if isinstance(address, ListenAddress) else ListenAddress.parse(address)
        self.auth_gate = auth_gate if auth_gate is not None else AuthGate()
        self.validator = validator if validator is not None else UrlValidator()
        self.shutdown = shutdown if shutdown is not None else ShutdownCoordinator()
        self.idle_timeout = idle_timeout
        self.shutdown_grace = shutdown_grace

        self._server: asyncio.AbstractServer | None = None
        self._running = False
        self._connections: set[asyncio.Task[None]] = set()
        # Connections between reading a request line and flushing its response
        self._busy: set[asyncio.Task[None]] = set()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def connection_count(self) -> int:
        return len(self._connections)

    async def start(self) -> None:
        """
        Bind the listening endpoint and begin accepting connections.

        Raises:
            StartupError: If the endpoint cannot be bound.
        """
        if self._running:
            logger.warning("Control server already running")
            return

        try:
            if self.address.is_unix:
                path = self.address.path
                self._remove_stale_socket(path)
                self._server = await asyncio.start_unix_server(
                    self._handle_connection,
                    path=str(path),
                    limit=MAX_LINE_BYTES,
                )
                os.chmod(path, 0o600)
            else:
                self._server = await asyncio.start_server(
                    self._handle_connection,
                    host=self.address.host,
                    port=self.address.port,
                    limit=MAX_LINE_BYTES,
                )
                sockname = self._server.sockets[0].getsockname()
                self.address = ListenAddress(host=self.address.host, port=sockname[1])
        except OSError as e:
            raise StartupError(f"cannot listen on {self.address}: {e}") from e

        self._running = True
        logger.info("Control server listening on %s", self.address)

    @staticmethod
    def _remove_stale_socket(path: Path) -> None:
        try:
            mode = path.lstat().st_mode
        except FileNotFoundError:
            return
        if not stat.S_ISSOCK(mode):
            raise StartupError(f"{path} exists and is not a socket")
        logger.debug("Removing stale socket %s", path)
        path.unlink()

    async def serve_until_shutdown(self) -> None:
        """Wait for the shutdown signal, then stop accepting and clean up."""
        await self.shutdown.wait()
        await self.stop()

    async def stop(self) -> None:
        """
        Stop accepting, remove the socket path and wind down connections.

        Connections get `shutdown_grace` seconds to wind down on their own.
        After that, handlers still waiting for a request line are cancelled;
        handlers in the middle of a command run it to completion and send
        the response before closing.
        """
        if not self._running:
            return

        logger.info("Stopping control server...")
        self._running = False
        self.shutdown.request("server stopping")

        if self._server is not None:
            self._server.close()

        if self.address.is_unix:
            try:
                self.address.path.unlink()
            except FileNotFoundError:
                pass

        if self._connections:
            _, pending = await asyncio.wait(set(self._connections), timeout=self.shutdown_grace)
            idle = [task for task in pending if task not in self._busy]
            for task in idle:
                task.cancel()
            if idle:
                logger.info("Cancelled %d idle connection(s) after grace period", len(idle))
            if len(idle) < len(pending):
                logger.info(
                    "Waiting for %d connection(s) to finish their command",
                    len(pending) - len(idle),
                )
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        if self._server is not None:
            await self._server.wait_closed()
            self._server = None

        logger.info("Control server stopped")

    @staticmethod
    def _describe_peer(writer: asyncio.StreamWriter) -> str:
        peername = writer.get_extra_info("peername")
        if isinstance(peername, tuple) and len(peername) >= 2:
            return f"{peername[0]}:{peername[1]}"
        return f"unix:{id(writer):x}"

    async def _handle_connection(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
    ) -> None:
        """
        Serve one client connection.

        This is called by asyncio for each new client connection. Commands
        on the connection are handled strictly one after the other.
        """
        peer = self._describe_peer(writer)
        task = asyncio.current_task()
        if task is not None:
            self._connections.add(task)

        ctx = CommandContext(player=self.player, validator=self.validator, peer=peer)
        logger.info("New connection from %s", peer)

        try:
            while not self.shutdown.is_set:
                try:
                    line = await asyncio.wait_for(reader.readline(), timeout=self.idle_timeout)
                except TimeoutError:
                    logger.info("Connection %s idle for %.0fs; closing", peer, self.idle_timeout)
                    break
                except ValueError:
                    logger.warning("Line from %s exceeds %d bytes; closing", peer, MAX_LINE_BYTES)
                    break

                if not line:
                    logger.debug("Client %s disconnected", peer)
                    break

                if task is not None:
                    self._busy.add(task)
                response = await self.handle_line(ctx, line)
                writer.write(encode_response(response))
                await writer.drain()
                self._busy.discard(task)
        except asyncio.CancelledError:
            logger.debug("Connection handler cancelled for %s", peer)
        except ConnectionResetError:
            logger.info("Connection reset by %s", peer)
        except OSError as e:
            logger.info("I/O error on connection %s: %s", peer, e)
        finally:
            if task is not None:
                self._connections.discard(task)
                self._busy.discard(task)
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass
            logger.info("Connection closed: %s", peer)

    async def handle_line(self, ctx: CommandContext, line: bytes | str) -> Response:
        """
        Turn one request line into its response.

        Decoding errors bypass authentication; everything that decodes is
        authenticated before it is dispatched.
        """
        try:
            command = decode_command(line)
        except ProtocolError as e:
            logger.debug("Parse error from %s: %s", ctx.peer, e)
            return PARSE_ERROR

        rejection = self.auth_gate.check(command)
        if rejection is not None:
            return rejection

        try:
            return await dispatch(ctx, command)
        except Exception as e:
            logger.exception("Error handling %r from %s: %s", command.cmd, ctx.peer, e)
            return INTERNAL_ERROR
