"""Shared-secret check applied to every incoming command."""

from __future__ import annotations

import hmac
import logging

from jukebox.core import AuthError
from jukebox.protocol.codec import Command, Response

logger = logging.getLogger(__name__)

UNAUTHORIZED = Response.failure("unauthorized")


class AuthGate:
    """
    Compares each command's token with the configured secret.

    With no secret configured every command passes. Comparison is exact
    string equality (no trimming or case folding), done in constant time.
    """

    def __init__(self, secret: str | None = None) -> None:
        self._secret = secret.encode("utf-8") if secret else None

    @property
    def enabled(self) -> bool:
        return self._secret is not None

    def is_authorized(self, token: str | None) -> bool:
        if self._secret is None:
            return True
        if token is None:
            return False
        return hmac.compare_digest(token.encode("utf-8"), self._secret)

    def authenticate(self, command: Command) -> None:
        """
        Raises:
            AuthError: If the command's token does not match the secret.
        """
        if not self.is_authorized(command.token):
            logger.warning("Rejected %r: bad or missing token", command.cmd)
            raise AuthError(UNAUTHORIZED.msg)

    def check(self, command: Command) -> Response | None:
        """Return the rejection response for an unauthorized command, else None."""
        try:
            self.authenticate(command)
        except AuthError:
            return UNAUTHORIZED
        return None
