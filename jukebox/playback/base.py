"""
Playback adapter contract.

Every backend the daemon can drive (an mpv process, the platform opener,
Music.app via AppleScript, a catalog API, or nothing at all) implements
`PlaybackAdapter`. The daemon only ever talks to this interface; which
concrete adapter is in use is decided once at startup by
`jukebox.playback.select_adapter`.

Capabilities come in three groups:
- Required: search, play, pause, next, prev, status
- Optional control: volume and seek. The defaults raise
  `NotSupportedError` so a caller can never mistake a missing feature
  for a successful no-op.
- Optional lookups: artist info and discography. The defaults return a
  fixed "not supported" text, which is what clients display verbatim.
"""

from __future__ import annotations

import abc

from jukebox.core import NotSupportedError

ARTIST_INFO_NOT_SUPPORTED = "artist info not supported by this adapter"
ARTIST_DISCOGRAPHY_NOT_SUPPORTED = "artist discography not supported by this adapter"


class PlaybackAdapter(abc.ABC):
    """Abstract playback backend."""

    #: Short name used in logs and by the JUKEBOX_ADAPTER override.
    name: str = "adapter"

    # -------------------------------------------------------------------------
    # Required capabilities
    # -------------------------------------------------------------------------

    @abc.abstractmethod
    async def search(self, query: str) -> str:
        """Search the backend and return a human-readable result text."""

    @abc.abstractmethod
    async def play(self, item: str | None = None) -> None:
        """Start playing `item`, or resume the current item if None."""

    @abc.abstractmethod
    async def pause(self) -> None:
        """Pause (or toggle pause on) the current item."""

    @abc.abstractmethod
    async def next(self) -> None:
        """Skip to the backend's next item."""

    @abc.abstractmethod
    async def prev(self) -> None:
        """Go back to the backend's previous item."""

    @abc.abstractmethod
    async def status(self) -> str:
        """Return a one-line description of the playback state."""

    # -------------------------------------------------------------------------
    # Optional: volume
    # -------------------------------------------------------------------------

    async def volume_up(self, step: int = 5) -> int:
        raise NotSupportedError("volume")

    async def volume_down(self, step: int = 5) -> int:
        raise NotSupportedError("volume")

    async def set_volume(self, level: int) -> int:
        raise NotSupportedError("volume")

    async def get_volume(self) -> int:
        raise NotSupportedError("volume")

    async def mute(self) -> None:
        raise NotSupportedError("mute")

    async def unmute(self) -> None:
        raise NotSupportedError("mute")

    # -------------------------------------------------------------------------
    # Optional: seek
    # -------------------------------------------------------------------------

    async def seek_forward(self, seconds: float) -> None:
        raise NotSupportedError("seek")

    async def seek_backward(self, seconds: float) -> None:
        raise NotSupportedError("seek")

    async def seek_to(self, seconds: float) -> None:
        raise NotSupportedError("seek")

    async def get_position(self) -> float:
        raise NotSupportedError("seek")

    async def get_duration(self) -> float:
        raise NotSupportedError("seek")

    # -------------------------------------------------------------------------
    # Optional: artist lookups
    # -------------------------------------------------------------------------

    async def artist_info(self, artist_id: str) -> str:
        """Return general artist information, one fact per line."""
        return ARTIST_INFO_NOT_SUPPORTED

    async def artist_discography(self, artist_id: str) -> str:
        """Return the artist's albums, one per line."""
        return ARTIST_DISCOGRAPHY_NOT_SUPPORTED

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def aclose(self) -> None:
        """Release backend resources (processes, connections)."""


def clamp_volume(level: int) -> int:
    """Clamp a volume level to the 0-100 range used on the wire."""
    return max(0, min(100, int(level)))
