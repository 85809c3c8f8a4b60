"""
Control protocol client.

Opens one connection per command: write one request line, read one
response line, close. Used by the `jukeboxctl` command line tool and by
the end-to-end tests.
"""

from __future__ import annotations

import asyncio
import logging

from jukebox.core import ProtocolError
from jukebox.protocol.codec import Command, Response, decode_response, encode_command
from jukebox.protocol.control import MAX_LINE_BYTES, ListenAddress

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_TIMEOUT_SECONDS = 30.0


class ControlClient:
    """
    Talks to a running daemon.

    Args:
        address: Socket path, or `host:port` for TCP.
        token: Shared secret sent with every command (None if unset).
        timeout: Bound on connect plus the full round trip.
    """

    def __init__(
        self,
        address: str | ListenAddress,
        token: str | None = None,
        timeout: float = DEFAULT_CLIENT_TIMEOUT_SECONDS,
    ) -> None:
        self.address = address if isinstance(address, ListenAddress) else ListenAddress.parse(address)
        self.token = token or None
        self.timeout = timeout

    async def _open(self) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
        if self.address.is_unix:
            return await asyncio.open_unix_connection(str(self.address.path), limit=MAX_LINE_BYTES)
        return await asyncio.open_connection(self.address.host, self.address.port, limit=MAX_LINE_BYTES)

    async def _roundtrip(self, command: Command) -> Response:
        reader, writer = await self._open()
        try:
            writer.write(encode_command(command))
            await writer.drain()
            line = await reader.readline()
        finally:
            writer.close()
            try:
                await writer.wait_closed()
            except OSError:
                pass

        if not line:
            raise ProtocolError("connection closed without a response")
        return decode_response(line)

    async def send(self, cmd: str, arg: str | None = None) -> Response:
        """
        Send one command and return the daemon's response.

        Raises:
            OSError: If the daemon cannot be reached.
            TimeoutError: If no response arrives within the timeout.
            ProtocolError: If the response line is malformed.
        """
        command = Command(cmd=cmd, arg=arg, token=self.token)
        logger.debug("Sending %s to %s", cmd, self.address)
        return await asyncio.wait_for(self._roundtrip(command), timeout=self.timeout)
