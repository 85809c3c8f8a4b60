"""
Core domain package.

This package contains the pieces of the daemon that are independent of
any transport: the exception hierarchy shared by every layer and the
play queue itself.

We intentionally keep exports minimal; consumers should usually import from
the specific module they need (e.g. `jukebox.core.queue`).
"""

from __future__ import annotations

__all__: list[str] = [
    "AdapterError",
    "AuthError",
    "JukeboxError",
    "NotSupportedError",
    "ProtocolError",
    "StartupError",
    "ValidationError",
]


class JukeboxError(Exception):
    """Base class for all daemon exceptions."""


class ProtocolError(JukeboxError):
    """A request line could not be decoded into a command."""


class AuthError(JukeboxError):
    """A command carried a token that does not match the shared secret."""


class ValidationError(JukeboxError):
    """A play/enqueue argument was refused by the URL safety policy."""


class AdapterError(JukeboxError):
    """The playback backend failed to carry out a request."""


class NotSupportedError(AdapterError):
    """The playback backend does not implement an optional capability."""

    def __init__(self, capability: str) -> None:
        super().__init__(f"{capability} not supported by this adapter")
        self.capability = capability


class StartupError(JukeboxError):
    """The daemon could not bind its listening endpoint."""
