"""
System adapter: hand items to whatever the host can play them with.

If mpv is on PATH each item is played by a fresh `mpv --no-video <item>`
process; otherwise the platform's default opener is used (`xdg-open`,
`open`, or `cmd /c start`). There is no control channel back into the
spawned player, so pause/next/prev succeed without effect and status is
a fixed text.
"""

from __future__ import annotations

import logging
import sys

from jukebox.core import AdapterError
from jukebox.playback.base import PlaybackAdapter
from jukebox.playback.process import find_binary, spawn_detached

logger = logging.getLogger(__name__)


def opener_command() -> tuple[str, ...] | None:
    """Return the argv prefix of the platform opener, or None if unavailable."""
    if sys.platform == "win32":
        return ("cmd", "/c", "start", "")
    name = "open" if sys.platform == "darwin" else "xdg-open"
    path = find_binary(name)
    return (path,) if path else None


class SystemAdapter(PlaybackAdapter):
    """Plays items by spawning an external player process per item."""

    name = "system"

    def __init__(self, player_cmd: str | None, opener: tuple[str, ...] | None) -> None:
        self.player_cmd = player_cmd
        self.opener = opener

    @classmethod
    def try_new(cls) -> SystemAdapter:
        """
        Probe for mpv, then for the platform opener.

        Raises:
            AdapterError: If neither is available.
        """
        player_cmd = find_binary("mpv")
        opener = opener_command()
        if player_cmd is None and opener is None:
            raise AdapterError("neither mpv nor a platform opener is available")
        return cls(player_cmd, opener)

    async def search(self, query: str) -> str:
        return f"system: search '{query}' (no remote search implemented)"

    async def play(self, item: str | None = None) -> None:
        if item is None:
            # Nothing to resume: spawned players are not under our control
            return
        if self.player_cmd:
            await spawn_detached(self.player_cmd, "--no-video", item)
        elif self.opener:
            await spawn_detached(*self.opener, item)
        else:
            raise AdapterError("no player available")
        logger.info("system: handed %s to %s", item, self.player_cmd or self.opener[0])

    async def pause(self) -> None:
        pass

    async def next(self) -> None:
        pass

    async def prev(self) -> None:
        pass

    async def status(self) -> str:
        return "system: no status"
