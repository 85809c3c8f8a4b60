"""
Shared fixtures for the jukebox test suite.

- RecordingAdapter: an in-memory PlaybackAdapter that records every call
- probe transports: httpx.MockTransport instances for the URL validator
- control_server: a real ControlServer on a temporary socket
"""

from __future__ import annotations

import shutil
import tempfile
from collections.abc import AsyncIterator, Iterator
from pathlib import Path

import httpx
import pytest

from jukebox.core import AdapterError
from jukebox.playback.base import PlaybackAdapter
from jukebox.player.state import Player
from jukebox.protocol.control import ControlServer, unix_sockets_supported
from jukebox.security.auth import AuthGate
from jukebox.security.urls import UrlValidator
from jukebox.shutdown import ShutdownCoordinator


class RecordingAdapter(PlaybackAdapter):
    """Adapter double: records calls, optionally fails on chosen methods."""

    name = "recording"

    def __init__(self, fail: set[str] | None = None) -> None:
        self.calls: list[tuple[str, tuple[object, ...]]] = []
        self.fail = fail or set()
        self.closed = False

    def _record(self, method: str, *args: object) -> None:
        self.calls.append((method, args))
        if method in self.fail:
            raise AdapterError(f"{method} exploded")

    def called(self, method: str) -> list[tuple[object, ...]]:
        return [args for name, args in self.calls if name == method]

    async def search(self, query: str) -> str:
        self._record("search", query)
        return f"first hit for {query}\nsecond hit for {query}"

    async def play(self, item: str | None = None) -> None:
        self._record("play", item)

    async def pause(self) -> None:
        self._record("pause")

    async def next(self) -> None:
        self._record("next")

    async def prev(self) -> None:
        self._record("prev")

    async def status(self) -> str:
        self._record("status")
        return "recording: idle"

    async def aclose(self) -> None:
        self.closed = True


def ok_transport() -> httpx.MockTransport:
    """Every request succeeds."""
    return httpx.MockTransport(lambda request: httpx.Response(200))


def status_transport(status_code: int) -> httpx.MockTransport:
    return httpx.MockTransport(lambda request: httpx.Response(status_code))


@pytest.fixture
def adapter() -> RecordingAdapter:
    return RecordingAdapter()


@pytest.fixture
def player(adapter: RecordingAdapter) -> Player:
    return Player(adapter)


@pytest.fixture
def validator() -> UrlValidator:
    """Validator whose https probes always succeed."""
    return UrlValidator(transport=ok_transport())


@pytest.fixture
def listen_address() -> Iterator[str]:
    """A short socket path (AF_UNIX paths are length limited), or TCP on Windows."""
    if not unix_sockets_supported():
        yield "127.0.0.1:0"
        return
    directory = tempfile.mkdtemp(prefix="jbx-")
    try:
        yield str(Path(directory) / "ctl.sock")
    finally:
        shutil.rmtree(directory, ignore_errors=True)


@pytest.fixture
async def control_server(
    player: Player,
    validator: UrlValidator,
    listen_address: str,
) -> AsyncIterator[ControlServer]:
    server = ControlServer(
        player,
        address=listen_address,
        auth_gate=AuthGate(),
        validator=validator,
        shutdown=ShutdownCoordinator(),
        idle_timeout=5.0,
        shutdown_grace=1.0,
    )
    await server.start()
    try:
        yield server
    finally:
        await server.stop()
