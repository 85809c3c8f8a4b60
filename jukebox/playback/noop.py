"""Fallback adapter used when no real playback backend is available."""

from __future__ import annotations

import logging

from jukebox.playback.base import PlaybackAdapter

logger = logging.getLogger(__name__)


class NoopAdapter(PlaybackAdapter):
    """Accepts every command, plays nothing, and logs what it was asked to do."""

    name = "noop"

    async def search(self, query: str) -> str:
        return f"noop: search '{query}': no results (no playback backend)"

    async def play(self, item: str | None = None) -> None:
        logger.info("noop: play %r", item)

    async def pause(self) -> None:
        logger.info("noop: pause")

    async def next(self) -> None:
        logger.info("noop: next")

    async def prev(self) -> None:
        logger.info("noop: prev")

    async def status(self) -> str:
        return "noop: no status"
