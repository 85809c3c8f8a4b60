"""
Request admission checks for the control protocol.

- auth: shared-secret token comparison, run before every command
- urls: transport-security policy for play/enqueue items
"""

from jukebox.security.auth import AuthGate
from jukebox.security.urls import UrlValidator

__all__ = ["AuthGate", "UrlValidator"]
