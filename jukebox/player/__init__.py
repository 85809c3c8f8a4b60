"""
Player state for the jukebox daemon.

This package holds the single shared playback session that every
control connection drives.
"""

from jukebox.player.state import Player

__all__ = [
    "Player",
]
