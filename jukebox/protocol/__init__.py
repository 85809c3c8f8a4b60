"""
Control protocol for the jukebox daemon.

This package contains the socket-facing side of the daemon:
- codec: one JSON object per line, in each direction
- handlers: one coroutine per command kind
- control: the accept loop and per-connection read/dispatch/respond loop
"""

from jukebox.protocol.codec import Command, CommandKind, Response

__all__ = ["Command", "CommandKind", "Response"]
