"""Tests for ShutdownCoordinator."""

import asyncio
import signal
from unittest.mock import MagicMock

from jukebox.shutdown import ShutdownCoordinator


class TestShutdownCoordinator:
    """Tests for the cooperative shutdown flag."""

    async def test_initially_clear(self) -> None:
        coordinator = ShutdownCoordinator()
        assert not coordinator.is_set
        assert coordinator.reason is None

    async def test_request_sets_flag_and_wakes_waiters(self) -> None:
        coordinator = ShutdownCoordinator()
        waiter = asyncio.create_task(coordinator.wait())
        await asyncio.sleep(0)
        assert not waiter.done()

        coordinator.request("SIGTERM")
        await asyncio.wait_for(waiter, timeout=1.0)
        assert coordinator.is_set
        assert coordinator.reason == "SIGTERM"

    async def test_first_reason_wins(self) -> None:
        coordinator = ShutdownCoordinator()
        coordinator.request("SIGINT")
        coordinator.request("SIGTERM")
        assert coordinator.reason == "SIGINT"

    async def test_install_registers_both_signals(self) -> None:
        coordinator = ShutdownCoordinator()
        loop = MagicMock()

        coordinator.install_signal_handlers(loop)

        registered = [call.args[0] for call in loop.add_signal_handler.call_args_list]
        assert registered == [signal.SIGINT, signal.SIGTERM]

        # The registered callback is request() with the signal name
        callback, name = loop.add_signal_handler.call_args_list[1].args[1:]
        callback(name)
        assert coordinator.reason == "SIGTERM"

        coordinator.remove_signal_handlers(loop)
        assert loop.remove_signal_handler.call_count == 2

    async def test_install_tolerates_unsupported_platform(self) -> None:
        coordinator = ShutdownCoordinator()
        loop = MagicMock()
        loop.add_signal_handler.side_effect = NotImplementedError

        coordinator.install_signal_handlers(loop)
        coordinator.remove_signal_handlers(loop)
        loop.remove_signal_handler.assert_not_called()
