"""
URL safety policy for items handed to `play` and `enqueue`.

- http://   refused unless insecure URLs are explicitly allowed, in which
            case the URL passes without any network check
- https://  must answer a reachability probe: HEAD first, then GET if the
            HEAD fails or returns a non-success status, both bounded by
            the probe timeout
- anything else (local paths, file://, backend track ids) passes as-is

A refused or unreachable URL raises ValidationError; callers must not
touch the queue or the adapter in that case.
"""

from __future__ import annotations

import logging

import httpx

from jukebox.config import DEFAULT_PROBE_TIMEOUT_SECONDS
from jukebox.core import ValidationError

logger = logging.getLogger(__name__)

INSECURE_URL_MESSAGE = "Refusing insecure http URL; set JUKEBOX_ALLOW_INSECURE=1 to allow"


def _scheme(item: str) -> str:
    head, sep, _ = item.strip().partition("://")
    return head.lower() if sep else ""


class UrlValidator:
    """Applies the transport-security policy to play/enqueue arguments."""

    def __init__(
        self,
        allow_insecure: bool = False,
        timeout: float = DEFAULT_PROBE_TIMEOUT_SECONDS,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            allow_insecure: Admit http:// URLs without checking them.
            timeout: Bound for each probe request, in seconds.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.allow_insecure = allow_insecure
        self.timeout = timeout
        self._transport = transport

    async def validate(self, item: str) -> None:
        """
        Check `item` against the policy.

        Raises:
            ValidationError: With the client-facing message as its text.
        """
        scheme = _scheme(item)

        if scheme == "http":
            if self.allow_insecure:
                logger.debug("Admitting insecure URL %s (override set)", item)
                return
            raise ValidationError(INSECURE_URL_MESSAGE)

        if scheme == "https":
            reason = await self.probe(item)
            if reason is not None:
                logger.warning("URL validation failed for %s: %s", item, reason)
                raise ValidationError(f"url validation failed: {reason}")

    async def probe(self, url: str) -> str | None:
        """
        Check that an https URL is reachable.

        Returns:
            None if reachable, otherwise a short failure reason.
        """
        try:
            target = httpx.URL(url.strip())
        except (httpx.InvalidURL, ValueError) as e:
            return str(e) or "invalid URL"
        if not target.host:
            return "missing host"

        async with httpx.AsyncClient(
            timeout=self.timeout,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            try:
                response = await client.head(target)
                if response.is_success:
                    return None
                logger.debug("HEAD %s returned %d; retrying with GET", url, response.status_code)
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                logger.debug("HEAD %s failed (%s); retrying with GET", url, e)

            try:
                # Stream so a large media file is not downloaded just to read the status
                async with client.stream("GET", target) as response:
                    if response.is_success:
                        return None
                    return f"non-success status {response.status_code}"
            except (httpx.HTTPError, httpx.InvalidURL, ValueError) as e:
                return str(e) or type(e).__name__
