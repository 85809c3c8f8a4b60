"""
Playback backends for the jukebox daemon.

This package contains the adapter contract and its implementations:
- base: the PlaybackAdapter interface
- mpv: a private mpv process controlled over JSON IPC
- system: one external player process (or the platform opener) per item
- macos: Music.app via AppleScript
- catalog: Apple Music catalog lookups
- noop: the fallback that does nothing

`select_adapter` picks exactly one adapter at startup. The choice is never
revisited while the daemon runs.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from jukebox.core import AdapterError
from jukebox.playback.base import PlaybackAdapter
from jukebox.playback.catalog import CatalogAdapter
from jukebox.playback.macos import MacOsAdapter
from jukebox.playback.mpv import MpvAdapter
from jukebox.playback.noop import NoopAdapter
from jukebox.playback.system import SystemAdapter

if TYPE_CHECKING:
    from jukebox.config import DaemonConfig

logger = logging.getLogger(__name__)

AdapterFactory = Callable[["DaemonConfig"], Awaitable[PlaybackAdapter]]


async def _make_mpv(config: DaemonConfig) -> PlaybackAdapter:
    return await MpvAdapter.try_new()


async def _make_system(config: DaemonConfig) -> PlaybackAdapter:
    return SystemAdapter.try_new()


async def _make_macos(config: DaemonConfig) -> PlaybackAdapter:
    return MacOsAdapter.try_new()


async def _make_catalog(config: DaemonConfig) -> PlaybackAdapter:
    return CatalogAdapter(
        enabled=config.catalog_enabled,
        developer_token=config.catalog_token,
        user_token=config.catalog_user_token,
        storefront=config.catalog_storefront,
    )


async def _make_noop(config: DaemonConfig) -> PlaybackAdapter:
    return NoopAdapter()


ADAPTER_FACTORIES: dict[str, AdapterFactory] = {
    "mpv": _make_mpv,
    "system": _make_system,
    "macos": _make_macos,
    "catalog": _make_catalog,
    "noop": _make_noop,
}

# Probe order when no adapter is forced. The last entry must never fail.
PROBE_ORDER: tuple[str, ...] = ("mpv", "system", "macos", "noop")


async def select_adapter(
    config: DaemonConfig,
    factories: dict[str, AdapterFactory] | None = None,
) -> PlaybackAdapter:
    """
    Choose the playback adapter for this daemon run.

    A forced adapter (`config.adapter`) is constructed directly and any
    failure propagates. Otherwise the probe order is tried until one
    constructor succeeds.

    Raises:
        AdapterError: If a forced adapter cannot be created.
    """
    factories = factories or ADAPTER_FACTORIES

    if config.adapter:
        adapter = await factories[config.adapter](config)
        logger.info("Using playback adapter %s (forced)", adapter.name)
        return adapter

    for name in PROBE_ORDER:
        try:
            adapter = await factories[name](config)
        except AdapterError as e:
            logger.debug("Adapter %s unavailable: %s", name, e)
            continue
        logger.info("Using playback adapter %s", adapter.name)
        return adapter

    raise AdapterError("no playback adapter available")


__all__ = [
    "ADAPTER_FACTORIES",
    "CatalogAdapter",
    "MacOsAdapter",
    "MpvAdapter",
    "NoopAdapter",
    "PROBE_ORDER",
    "PlaybackAdapter",
    "SystemAdapter",
    "select_adapter",
]
