"""
Jukebox - a local control daemon for a shared playback session.

One long-running process owns a play queue and a playback adapter; any
number of local clients drive it over a line-delimited JSON socket.
"""

__version__ = "0.1.0"

from jukebox.server import JukeboxDaemon

__all__ = ["JukeboxDaemon", "__version__"]
