"""
jukeboxctl - command line client for the jukebox daemon.

Run with: python -m jukebox.cli <command> [arg]

The socket and token default to JUKEBOX_DAEMON_SOCKET and
JUKEBOX_DAEMON_TOKEN; --socket and --token override them.
"""

from __future__ import annotations

import argparse
import asyncio
import os
import sys
from collections.abc import Mapping

from jukebox import __version__
from jukebox.client import ControlClient
from jukebox.config import parse_bool
from jukebox.core import JukeboxError
from jukebox.protocol.codec import ITEM_COMMANDS, CommandKind, Response
from jukebox.security.urls import INSECURE_URL_MESSAGE

# subcommand -> (wire command, argument name or None, argument optional)
SUBCOMMANDS: dict[str, tuple[str, str | None, bool]] = {
    "play": ("play", "uri", False),
    "pause": ("pause", None, False),
    "enqueue": ("enqueue", "uri", False),
    "next": ("next", None, False),
    "prev": ("prev", None, False),
    "skip": ("skip", None, False),
    "status": ("status", None, False),
    "list": ("list", None, False),
    "clear": ("clear", None, False),
    "search": ("search", "query", False),
    "volume": ("volume", "level", True),
    "seek": ("seek", "position", True),
    "artist-info": ("artist_info", "artist_id", False),
    "artist-discography": ("artist_discography", "artist_id", False),
    "ping": ("ping", None, False),
}

# Commands whose items are printed as a bulleted list
_BULLETED = frozenset({"list", "artist_discography"})


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="jukeboxctl",
        description="Send one command to a running jukebox daemon",
    )
    parser.add_argument(
        "--socket",
        default=None,
        help="Daemon socket path or host:port (overrides JUKEBOX_DAEMON_SOCKET)",
    )
    parser.add_argument(
        "--token",
        default=None,
        help="Auth token (overrides JUKEBOX_DAEMON_TOKEN)",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True, metavar="COMMAND")
    for name, (_, arg_name, optional) in SUBCOMMANDS.items():
        sub = subparsers.add_parser(name)
        if arg_name is not None:
            sub.add_argument(arg_name, nargs="?" if optional else None, default=None)
    return parser


def format_response(cmd: str, response: Response) -> list[str]:
    """Render a response for the terminal."""
    if not response.ok:
        return [response.msg]
    if cmd == "list" and not response.items:
        return ["no items"]
    if response.items is None or cmd not in _BULLETED | {"artist_info", "search"}:
        return [response.msg]
    if cmd in _BULLETED:
        return [f"- {item}" for item in response.items]
    return list(response.items)


def main(argv: list[str] | None = None, env: Mapping[str, str] | None = None) -> int:
    """Entry point. Returns 0 when the daemon answered ok:true, else 1."""
    if env is None:
        env = os.environ

    args = build_parser().parse_args(argv)
    cmd, arg_name, _ = SUBCOMMANDS[args.command]
    arg = getattr(args, arg_name) if arg_name else None

    if CommandKind.lookup(cmd) in ITEM_COMMANDS and arg and arg.startswith("http://"):
        if not parse_bool(env.get("JUKEBOX_ALLOW_INSECURE", "")):
            print(INSECURE_URL_MESSAGE, file=sys.stderr)
            return 1

    socket = args.socket or env.get("JUKEBOX_DAEMON_SOCKET")
    if not socket:
        print("daemon socket required (set JUKEBOX_DAEMON_SOCKET or --socket)", file=sys.stderr)
        return 1
    token = args.token or env.get("JUKEBOX_DAEMON_TOKEN")

    try:
        response = asyncio.run(ControlClient(socket, token).send(cmd, arg))
    except (OSError, TimeoutError, JukeboxError) as e:
        print(f"jukeboxctl: {e}", file=sys.stderr)
        return 1

    stream = sys.stdout if response.ok else sys.stderr
    for line in format_response(cmd, response):
        print(line, file=stream)
    return 0 if response.ok else 1


if __name__ == "__main__":
    sys.exit(main())
