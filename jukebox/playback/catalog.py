"""
Catalog adapter: Apple Music catalog lookups over HTTPS.

Playback itself cannot be driven through the catalog API (that happens
in MusicKit on a client device), so this adapter only keeps a local
notion of "playing" and "last item". Its value is in `search`,
`artist_info` and `artist_discography`, which query
https://api.music.apple.com when enabled with a developer token.

When disabled (no `JUKEBOX_CATALOG_ENABLED`, or no token) every lookup
returns a clearly labelled stub text instead of failing.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from jukebox.core import AdapterError
from jukebox.playback.base import PlaybackAdapter

logger = logging.getLogger(__name__)

CATALOG_API_BASE = "https://api.music.apple.com/v1/catalog"
CATALOG_TIMEOUT_SECONDS = 10.0
DISCOGRAPHY_LIMIT = 25


class CatalogAdapter(PlaybackAdapter):
    """Apple Music catalog client with locally tracked playback state."""

    name = "catalog"

    def __init__(
        self,
        *,
        enabled: bool = False,
        developer_token: str | None = None,
        user_token: str | None = None,
        storefront: str = "us",
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.enabled = enabled
        self.developer_token = developer_token
        self.user_token = user_token
        self.storefront = storefront
        self._transport = transport

        self.playing = False
        self.last_item: str | None = None

    @property
    def is_live(self) -> bool:
        """True when lookups go to the real catalog API."""
        return self.enabled and bool(self.developer_token)

    def _headers(self) -> dict[str, str]:
        headers = {"Authorization": f"Bearer {self.developer_token}"}
        if self.user_token:
            headers["Music-User-Token"] = self.user_token
        return headers

    async def _get(self, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        url = f"{CATALOG_API_BASE}/{self.storefront}/{path}"
        try:
            async with httpx.AsyncClient(
                timeout=CATALOG_TIMEOUT_SECONDS,
                transport=self._transport,
            ) as client:
                response = await client.get(url, params=params, headers=self._headers())
        except httpx.HTTPError as e:
            raise AdapterError(f"catalog: request failed: {e}") from e

        if not response.is_success:
            raise AdapterError(
                f"catalog: API returned {response.status_code}: {response.text}"
            )
        try:
            return response.json()
        except ValueError as e:
            raise AdapterError("catalog: invalid json") from e

    async def search(self, query: str) -> str:
        if not self.is_live:
            return f"catalog-stub: simulated results for '{query}'"

        data = await self._get(
            "search",
            {"term": query, "types": "songs", "limit": "1"},
        )
        songs = data.get("results", {}).get("songs", {}).get("data", [])
        if not songs:
            return f"catalog: no results for '{query}'"
        song = songs[0]
        attributes = song.get("attributes", {})
        return (
            f"{attributes.get('artistName', '')} - {attributes.get('name', '')} "
            f"(id={song.get('id', '')})"
        )

    async def play(self, item: str | None = None) -> None:
        self.playing = True
        if item is not None:
            self.last_item = item

    async def pause(self) -> None:
        self.playing = False

    async def next(self) -> None:
        pass

    async def prev(self) -> None:
        pass

    async def status(self) -> str:
        return (
            f"catalog enabled={str(self.enabled).lower()} "
            f"playing={str(self.playing).lower()} last_item={self.last_item or ''}"
        )

    async def artist_info(self, artist_id: str) -> str:
        if not self.is_live:
            return f"catalog-stub: artist info not available for '{artist_id}'"

        data = await self._get(f"artists/{artist_id}")
        artists = data.get("data", [])
        if not artists:
            return f"catalog: no artist info for '{artist_id}'"
        attributes = artists[0].get("attributes", {})
        genres = ", ".join(attributes.get("genreNames", []))
        return "\n".join(
            [
                attributes.get("name", ""),
                f"Genres: {genres}",
                f"URL: {attributes.get('url', '')}",
            ]
        )

    async def artist_discography(self, artist_id: str) -> str:
        if not self.is_live:
            return f"catalog-stub: discography not available for '{artist_id}'"

        data = await self._get(
            f"artists/{artist_id}/albums",
            {"limit": str(DISCOGRAPHY_LIMIT)},
        )
        albums = []
        for album in data.get("data", []):
            attributes = album.get("attributes", {})
            albums.append(f"{attributes.get('name', '')} ({attributes.get('releaseDate', '')})")
        return "\n".join(albums)
