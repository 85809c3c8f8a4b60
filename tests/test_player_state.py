"""
Tests for Player.

Tests cover:
- Queue operations through the player
- Adapter pass-through and error normalisation
- Lock exclusivity and FIFO hand-off
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from conftest import RecordingAdapter

from jukebox.core import AdapterError, NotSupportedError
from jukebox.player.state import Player


class TestPlayerQueue:
    """Queue operations."""

    def test_enqueue_and_list(self, player: Player) -> None:
        player.enqueue("a")
        player.enqueue("b")
        assert player.list() == ["a", "b"]

    def test_next_item_pops_head(self, player: Player) -> None:
        player.enqueue("a")
        player.enqueue("b")
        assert player.peek_next() == "a"
        assert player.next_item() == "a"
        assert player.list() == ["b"]

    def test_next_item_on_empty_queue(self, player: Player) -> None:
        assert player.next_item() is None

    def test_clear(self, player: Player) -> None:
        player.enqueue("a")
        assert player.clear() == 1
        assert player.list() == []


class TestPlayerAdapter:
    """Adapter pass-through."""

    async def test_play_item_does_not_touch_queue(
        self, player: Player, adapter: RecordingAdapter
    ) -> None:
        player.enqueue("queued")
        await player.play_item("direct")
        assert adapter.called("play") == [("direct",)]
        assert player.list() == ["queued"]

    async def test_skip_maps_to_adapter_next(
        self, player: Player, adapter: RecordingAdapter
    ) -> None:
        await player.skip()
        assert adapter.called("next") == [()]

    async def test_status(self, player: Player) -> None:
        assert await player.status() == "recording: idle"

    async def test_adapter_error_propagates(self) -> None:
        player = Player(RecordingAdapter(fail={"pause"}))
        with pytest.raises(AdapterError, match="pause exploded"):
            await player.pause()

    async def test_foreign_exceptions_become_adapter_errors(self) -> None:
        adapter = RecordingAdapter()
        adapter.status = AsyncMock(side_effect=RuntimeError("backend crashed"))
        player = Player(adapter)

        with pytest.raises(AdapterError, match="backend crashed"):
            await player.status()

    async def test_unsupported_capability(self, player: Player) -> None:
        with pytest.raises(NotSupportedError) as exc_info:
            await player.get_volume()
        assert exc_info.value.capability == "volume"

    async def test_aclose_swallows_adapter_errors(self) -> None:
        adapter = RecordingAdapter()
        adapter.aclose = AsyncMock(side_effect=OSError("already gone"))
        player = Player(adapter)

        await player.aclose()
        adapter.aclose.assert_awaited_once()


class TestPlayerLock:
    """Tests for exclusive access."""

    async def test_locked_is_exclusive(self, player: Player) -> None:
        entered = asyncio.Event()
        release = asyncio.Event()
        order: list[str] = []

        async def holder() -> None:
            async with player.locked():
                order.append("holder")
                entered.set()
                await release.wait()

        async def waiter() -> None:
            async with player.locked():
                order.append("waiter")

        holder_task = asyncio.create_task(holder())
        await entered.wait()
        waiter_task = asyncio.create_task(waiter())
        await asyncio.sleep(0.01)

        assert player.is_locked
        assert order == ["holder"]

        release.set()
        await asyncio.gather(holder_task, waiter_task)
        assert order == ["holder", "waiter"]
        assert not player.is_locked

    async def test_waiters_are_served_in_acquire_order(self, player: Player) -> None:
        release = asyncio.Event()
        order: list[int] = []

        async def holder() -> None:
            async with player.locked():
                await release.wait()

        async def waiter(n: int) -> None:
            async with player.locked():
                order.append(n)

        holder_task = asyncio.create_task(holder())
        await asyncio.sleep(0)
        waiters = []
        for n in range(5):
            waiters.append(asyncio.create_task(waiter(n)))
            await asyncio.sleep(0)

        release.set()
        await asyncio.gather(holder_task, *waiters)
        assert order == [0, 1, 2, 3, 4]
