"""
Shutdown coordination for the jukebox daemon.

One `ShutdownCoordinator` is shared by the accept loop and every
connection handler. Signal handlers (SIGINT, SIGTERM) only call
`request()`; everything else observes the flag cooperatively:

- the accept loop awaits `wait()` and then stops accepting
- connection handlers check `is_set` once per read cycle, so a handler
  blocked in a read may run on until that read returns or idles out

The flag is set once and never cleared.
"""

from __future__ import annotations

import asyncio
import logging
import signal

logger = logging.getLogger(__name__)


class ShutdownCoordinator:
    """Process-wide cooperative cancellation signal."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self.reason: str | None = None
        self._installed: list[signal.Signals] = []

    @property
    def is_set(self) -> bool:
        return self._event.is_set()

    def request(self, reason: str = "requested") -> None:
        """Set the shutdown flag. Later calls are ignored."""
        if self._event.is_set():
            return
        self.reason = reason
        logger.info("Shutdown requested (%s)", reason)
        self._event.set()

    async def wait(self) -> None:
        """Block until shutdown has been requested."""
        await self._event.wait()

    def install_signal_handlers(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        """
        Route SIGINT and SIGTERM into `request()`.

        Where the loop cannot install signal handlers (Windows), Ctrl-C
        still arrives as KeyboardInterrupt in the caller of asyncio.run().
        """
        loop = loop or asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, self.request, sig.name)
            except (NotImplementedError, RuntimeError):
                # Signal handlers not supported on this platform / thread
                continue
            self._installed.append(sig)

    def remove_signal_handlers(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        loop = loop or asyncio.get_running_loop()
        for sig in self._installed:
            loop.remove_signal_handler(sig)
        self._installed.clear()
