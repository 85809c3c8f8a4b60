"""
macOS adapter: drive Music.app through AppleScript.

Every call runs one `osascript -e <script>` and treats a non-zero exit
as an adapter failure carrying osascript's stderr.
"""

from __future__ import annotations

import logging
import sys

from jukebox.core import AdapterError
from jukebox.playback.base import PlaybackAdapter, clamp_volume
from jukebox.playback.process import find_binary, run_command

logger = logging.getLogger(__name__)

STATUS_SCRIPT = """tell application "Music"
set t to current track
return (name of t) & " - " & (artist of t) & " (" & (player state as text) & ")"
end tell"""


def _quote(value: str) -> str:
    """Escape a value for use inside an AppleScript string literal."""
    return value.replace("\\", "\\\\").replace('"', '\\"')


class MacOsAdapter(PlaybackAdapter):
    """Controls the Music app with osascript."""

    name = "macos"

    def __init__(self, osascript: str = "osascript") -> None:
        self.osascript = osascript

    @classmethod
    def try_new(cls) -> MacOsAdapter:
        """
        Raises:
            AdapterError: When not running on macOS or osascript is missing.
        """
        if sys.platform != "darwin":
            raise AdapterError("Music.app automation is only available on macOS")
        osascript = find_binary("osascript")
        if osascript is None:
            raise AdapterError("osascript not found")
        return cls(osascript)

    async def _run(self, script: str) -> str:
        result = await run_command(self.osascript, "-e", script)
        if not result.ok:
            raise AdapterError(f"osascript failed: {result.stderr}")
        return result.stdout

    async def _tell(self, command: str) -> str:
        return await self._run(f'tell application "Music" to {command}')

    async def search(self, query: str) -> str:
        return await self._tell(f'search (library playlist 1) for "{_quote(query)}"')

    async def play(self, item: str | None = None) -> None:
        if item is None:
            await self._tell("play")
        else:
            await self._tell(
                "play (every track of library playlist 1 whose persistent ID is "
                f'"{_quote(item)}")'
            )

    async def pause(self) -> None:
        await self._tell("pause")

    async def next(self) -> None:
        await self._tell("next track")

    async def prev(self) -> None:
        await self._tell("previous track")

    async def status(self) -> str:
        return await self._run(STATUS_SCRIPT)

    async def get_volume(self) -> int:
        return int(await self._tell("get sound volume"))

    async def set_volume(self, level: int) -> int:
        level = clamp_volume(level)
        await self._tell(f"set sound volume to {level}")
        return level

    async def volume_up(self, step: int = 5) -> int:
        return await self.set_volume(await self.get_volume() + step)

    async def volume_down(self, step: int = 5) -> int:
        return await self.set_volume(await self.get_volume() - step)

    async def mute(self) -> None:
        await self._tell("set mute to true")

    async def unmute(self) -> None:
        await self._tell("set mute to false")

    async def get_position(self) -> float:
        return float(await self._tell("get player position"))

    async def get_duration(self) -> float:
        return float(await self._tell("get duration of current track"))

    async def seek_to(self, seconds: float) -> None:
        await self._tell(f"set player position to {max(0.0, seconds)}")

    async def seek_forward(self, seconds: float) -> None:
        await self.seek_to(await self.get_position() + seconds)

    async def seek_backward(self, seconds: float) -> None:
        await self.seek_to(await self.get_position() - seconds)
