"""
Player State - the one piece of mutable state shared by all connections.

A Player owns the play queue and the playback adapter. Connection
handlers never touch either directly: they enter `Player.locked()` and
call the operations below while holding the lock, so at most one command
runs against the player at any instant and queue updates from different
connections can never interleave.

Lock fairness: `asyncio.Lock` hands the lock to waiters in the order
they called `acquire()`. A connection cannot starve, but the winner is
the first to reach the lock, which is not necessarily the first whose
request arrived on the wire.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from jukebox.core import AdapterError
from jukebox.core.queue import PlayQueue
from jukebox.playback.base import PlaybackAdapter

logger = logging.getLogger(__name__)


class Player:
    """
    Shared playback session: a FIFO queue plus one adapter.

    Every method except `locked()` expects the caller to hold the lock.
    Adapter exceptions are normalised to AdapterError so handlers deal
    with a single failure type.
    """

    def __init__(self, adapter: PlaybackAdapter) -> None:
        self.adapter = adapter
        self.queue = PlayQueue()
        self._lock = asyncio.Lock()

    @contextlib.asynccontextmanager
    async def locked(self) -> AsyncIterator[Player]:
        """Hold exclusive access to the player for the duration of the block."""
        async with self._lock:
            yield self

    @property
    def is_locked(self) -> bool:
        return self._lock.locked()

    # -------------------------------------------------------------------------
    # Queue
    # -------------------------------------------------------------------------

    def enqueue(self, item: str) -> int:
        return self.queue.append(item)

    def next_item(self) -> str | None:
        return self.queue.pop_next()

    def peek_next(self) -> str | None:
        return self.queue.peek()

    def list(self) -> list[str]:
        return self.queue.snapshot()

    def clear(self) -> int:
        return self.queue.clear()

    # -------------------------------------------------------------------------
    # Adapter pass-through
    # -------------------------------------------------------------------------

    async def play_item(self, item: str) -> None:
        """Ask the adapter to play `item`. The queue is not touched."""
        await self._call("play", item)

    async def pause(self) -> None:
        await self._call("pause")

    async def skip(self) -> None:
        await self._call("next")

    async def previous(self) -> None:
        await self._call("prev")

    async def status(self) -> str:
        return await self._call("status")

    async def search(self, query: str) -> str:
        return await self._call("search", query)

    async def artist_info(self, artist_id: str) -> str:
        return await self._call("artist_info", artist_id)

    async def artist_discography(self, artist_id: str) -> str:
        return await self._call("artist_discography", artist_id)

    async def volume_up(self) -> int:
        return await self._call("volume_up")

    async def volume_down(self) -> int:
        return await self._call("volume_down")

    async def set_volume(self, level: int) -> int:
        return await self._call("set_volume", level)

    async def get_volume(self) -> int:
        return await self._call("get_volume")

    async def mute(self) -> None:
        await self._call("mute")

    async def unmute(self) -> None:
        await self._call("unmute")

    async def seek_forward(self, seconds: float) -> None:
        await self._call("seek_forward", seconds)

    async def seek_backward(self, seconds: float) -> None:
        await self._call("seek_backward", seconds)

    async def seek_to(self, seconds: float) -> None:
        await self._call("seek_to", seconds)

    async def get_position(self) -> float:
        return await self._call("get_position")

    async def get_duration(self) -> float:
        return await self._call("get_duration")

    async def aclose(self) -> None:
        """Release the adapter's resources (called once at daemon exit)."""
        try:
            await self.adapter.aclose()
        except Exception as e:
            logger.warning("Error closing adapter %s: %s", self.adapter.name, e)

    async def _call(self, method: str, *args: object):
        logger.debug("adapter.%s%r", method, args)
        try:
            return await getattr(self.adapter, method)(*args)
        except AdapterError:
            raise
        except Exception as e:
            raise AdapterError(str(e) or type(e).__name__) from e
