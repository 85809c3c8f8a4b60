"""
Tests for ControlClient and the jukeboxctl command line.

Tests cover:
- Round trips against a real ControlServer
- Local refusal of insecure URLs
- Exit codes and output formatting
"""

import asyncio

import pytest

from jukebox.cli import build_parser, format_response, main
from jukebox.client import ControlClient
from jukebox.core import ProtocolError
from jukebox.protocol.codec import Response
from jukebox.protocol.control import ControlServer
from jukebox.security.urls import INSECURE_URL_MESSAGE


class TestControlClient:
    """Tests for ControlClient.send()."""

    async def test_round_trip(self, control_server: ControlServer) -> None:
        client = ControlClient(str(control_server.address))

        assert await client.send("enqueue", "/music/a.mp3") == Response.success("enqueued")
        assert await client.send("list") == Response.success("ok", ["/music/a.mp3"])
        assert await client.send("next") == Response.success("playing /music/a.mp3")

    async def test_connection_refused(self, listen_address: str) -> None:
        client = ControlClient(listen_address, timeout=1.0)
        with pytest.raises(OSError):
            await client.send("status")

    async def test_connection_closed_without_response(self, listen_address: str) -> None:
        async def hang_up(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
            await reader.readline()
            writer.close()

        if listen_address.endswith(":0"):
            server = await asyncio.start_server(hang_up, "127.0.0.1", 0)
            port = server.sockets[0].getsockname()[1]
            address = f"127.0.0.1:{port}"
        else:
            server = await asyncio.start_unix_server(hang_up, path=listen_address)
            address = listen_address

        async with server:
            with pytest.raises(ProtocolError):
                await ControlClient(address, timeout=2.0).send("status")


class TestCommandLine:
    """Tests for jukeboxctl."""

    def test_every_subcommand_parses(self) -> None:
        parser = build_parser()
        assert parser.parse_args(["play", "/a.mp3"]).uri == "/a.mp3"
        assert parser.parse_args(["artist-info", "42"]).artist_id == "42"
        assert parser.parse_args(["volume"]).level is None
        assert parser.parse_args(["seek", "-5"]).position == "-5"
        assert parser.parse_args(["--socket", "/tmp/x.sock", "status"]).socket == "/tmp/x.sock"

    def test_insecure_url_refused_locally(self, capsys: pytest.CaptureFixture[str]) -> None:
        code = main(
            ["--socket", "/nonexistent.sock", "enqueue", "http://example.com/a.mp3"],
            env={},
        )
        assert code == 1
        assert INSECURE_URL_MESSAGE in capsys.readouterr().err

    def test_missing_socket(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["status"], env={}) == 1
        assert "daemon socket required" in capsys.readouterr().err

    def test_unreachable_daemon(
        self, listen_address: str, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["status"], env={"JUKEBOX_DAEMON_SOCKET": listen_address}) == 1
        assert capsys.readouterr().err.startswith("jukeboxctl: ")

    def test_format_list(self) -> None:
        assert format_response("list", Response.success("ok", ["a", "b"])) == ["- a", "- b"]
        assert format_response("list", Response.success("ok", [])) == ["no items"]

    def test_format_artist_info(self) -> None:
        response = Response.success("artist info", ["Band", "Genres: Rock"])
        assert format_response("artist_info", response) == ["Band", "Genres: Rock"]

    def test_format_discography(self) -> None:
        response = Response.success("discography", ["First (2001)"])
        assert format_response("artist_discography", response) == ["- First (2001)"]

    def test_format_plain_message(self) -> None:
        assert format_response("enqueue", Response.success("enqueued")) == ["enqueued"]
        assert format_response("next", Response.failure("queue empty")) == ["queue empty"]
