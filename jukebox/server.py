"""
Jukebox Daemon - Main Server Module

This module contains the JukeboxDaemon class that wires the daemon's
components together and manages the application lifecycle.
"""

from __future__ import annotations

import asyncio
import logging

from jukebox.config import DaemonConfig, load_config
from jukebox.player.state import Player
from jukebox.playback import PlaybackAdapter, select_adapter
from jukebox.protocol.control import ControlServer
from jukebox.security.auth import AuthGate
from jukebox.security.urls import UrlValidator
from jukebox.shutdown import ShutdownCoordinator

logger = logging.getLogger(__name__)


class JukeboxDaemon:
    """
    Main daemon that coordinates all components.

    The daemon manages:
    - The playback adapter, chosen once at startup
    - The shared Player (queue + adapter behind one lock)
    - The control socket server and its connection handlers
    - The shutdown coordinator fed by SIGINT/SIGTERM
    """

    def __init__(
        self,
        config: DaemonConfig | None = None,
        *,
        adapter: PlaybackAdapter | None = None,
    ) -> None:
        """
        Initialize the daemon.

        Args:
            config: Resolved settings (loaded from the environment if omitted).
            adapter: Optional adapter to use instead of running the selection policy.
        """
        self.config = config if config is not None else load_config()
        self._adapter = adapter

        self.shutdown = ShutdownCoordinator()
        self.player: Player | None = None
        self.control_server: ControlServer | None = None
        self._running = False

    async def start(self) -> None:
        """
        Select the adapter, build the player and bind the control socket.

        Raises:
            StartupError: If the control socket cannot be bound.
        """
        adapter = self._adapter or await select_adapter(self.config)
        self.player = Player(adapter)

        self.control_server = ControlServer(
            self.player,
            address=self.config.socket,
            auth_gate=AuthGate(self.config.token),
            validator=UrlValidator(
                allow_insecure=self.config.allow_insecure,
                timeout=self.config.probe_timeout,
            ),
            shutdown=self.shutdown,
            idle_timeout=self.config.idle_timeout,
            shutdown_grace=self.config.shutdown_grace,
        )

        try:
            await self.control_server.start()
        except BaseException:
            await self.player.aclose()
            raise

        if self.config.sources:
            logger.info(
                "Configuration sources: %s",
                ", ".join(f"{key}={source}" for key, source in sorted(self.config.sources.items())),
            )

        self._running = True
        logger.info(
            "Jukebox daemon started (adapter=%s, auth=%s, insecure_urls=%s)",
            adapter.name,
            "on" if self.config.auth_required else "off",
            "allowed" if self.config.allow_insecure else "refused",
        )

    async def stop(self) -> None:
        """Stop accepting, drain connections and release the adapter."""
        if not self._running:
            return

        logger.info("Stopping jukebox daemon...")
        self._running = False

        if self.control_server is not None:
            await self.control_server.stop()

        if self.player is not None:
            await self.player.aclose()

        logger.info("Jukebox daemon stopped")

    async def run(self) -> None:
        """
        Run the daemon until shutdown is requested.

        This method starts all components and waits for a shutdown signal
        (SIGINT or SIGTERM).
        """
        await self.start()

        loop = asyncio.get_running_loop()
        self.shutdown.install_signal_handlers(loop)
        try:
            await self.control_server.serve_until_shutdown()
        finally:
            self.shutdown.remove_signal_handlers(loop)
            await self.stop()

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def address(self) -> str | None:
        """Where clients should connect, once started."""
        if self.control_server is None:
            return None
        return str(self.control_server.address)
