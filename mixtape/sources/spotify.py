"""Spotify Web API media source."""

from typing import Any
from urllib.parse import quote

from mixtape.models import (
    FetchOptions,
    MediaCollection,
    MediaContentType,
    MediaItem,
    MediaSourceType,
    PaginatedResult,
)
from mixtape.timeutil import is_newer, parse_timestamp

from .base import ApiSource
from .pagination import decode_offset, encode_offset, resolve_limit


def pick_thumbnail(images: list[dict[str, Any]] | None) -> str | None:
    """Prefer a medium (200-400px) image, falling back to the first one."""
    if not images:
        return None
    for image in images:
        width = image.get("width") or 0
        if 200 <= width <= 400:
            return image.get("url")
    return images[0].get("url")


class SpotifySource(ApiSource):
    """The user's Spotify playlists and tracks.

    Listings are offset-paginated: the cursor is the decimal offset of the
    next page, present only while Spotify reports a ``next`` page. Spotify
    is not polled for updates.
    """

    BASE = "https://api.spotify.com/v1"
    DEFAULT_LIMIT = 20

    source_type = MediaSourceType.SPOTIFY
    display_name = "Spotify"
    is_update_source = False
    default_update_interval_minutes = 0
    requires_auth = True
    available_media_types = (MediaContentType.TRACK, MediaContentType.PLAYLIST)

    async def get_available_media(
        self, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaCollection]:
        limit = resolve_limit(options, self.DEFAULT_LIMIT)
        offset = decode_offset(options.cursor if options else None)

        data = await self._get_json("/me/playlists", {"limit": limit, "offset": offset})

        return PaginatedResult(
            items=[self._map_playlist(p) for p in data.get("items", []) if p],
            next_cursor=encode_offset(offset + limit) if data.get("next") else None,
            total=data.get("total"),
        )

    async def get_collection_items(
        self, collection_id: str, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        limit = resolve_limit(options, self.DEFAULT_LIMIT)
        offset = decode_offset(options.cursor if options else None)

        data = await self._get_json(
            f"/playlists/{quote(collection_id, safe='')}/tracks",
            {"limit": limit, "offset": offset},
        )

        items = [
            self._map_track(entry["track"], published_at=entry.get("added_at"))
            for entry in data.get("items", [])
            # Removed or unavailable tracks come back as null
            if entry.get("track") and entry["track"].get("id")
        ]

        return PaginatedResult(
            items=items,
            next_cursor=encode_offset(offset + limit) if data.get("next") else None,
            total=data.get("total"),
        )

    async def get_recent_media(
        self, since: str | None = None, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        """Recently played tracks, newest-first.

        The cursor is Spotify's own ``before`` marker. Spotify accepts either
        ``before`` or ``after``, so ``since`` is only sent on the first page
        and is applied again locally on every page.
        """
        limit = resolve_limit(options, self.DEFAULT_LIMIT)
        since_dt = parse_timestamp(since) if since else None

        params: dict[str, Any] = {"limit": limit}
        if options and options.cursor:
            params["before"] = options.cursor
        elif since_dt is not None:
            params["after"] = int(since_dt.timestamp() * 1000)

        data = await self._get_json("/me/player/recently-played", params)

        items = [
            self._map_track(entry["track"], published_at=entry.get("played_at"))
            for entry in data.get("items", [])
            if entry.get("track") and entry["track"].get("id")
        ]
        items = [item for item in items if is_newer(item.published_at, since_dt)]

        cursors = data.get("cursors") or {}
        next_cursor = cursors.get("before") if data.get("next") else None

        return PaginatedResult(items=items, next_cursor=next_cursor)

    async def search(
        self, query: str, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        limit = resolve_limit(options, self.DEFAULT_LIMIT)
        offset = decode_offset(options.cursor if options else None)

        data = await self._get_json(
            "/search", {"q": query, "type": "track", "limit": limit, "offset": offset}
        )
        tracks = data.get("tracks") or {}

        return PaginatedResult(
            items=[
                self._map_track(track)
                for track in tracks.get("items", [])
                if track and track.get("id")
            ],
            next_cursor=encode_offset(offset + limit) if tracks.get("next") else None,
            total=tracks.get("total"),
        )

    def _map_playlist(self, playlist: dict[str, Any]) -> MediaCollection:
        return MediaCollection(
            id=playlist["id"],
            source=MediaSourceType.SPOTIFY,
            title=playlist.get("name") or "",
            description=playlist.get("description") or None,
            thumbnail=pick_thumbnail(playlist.get("images")),
            content_type=MediaContentType.PLAYLIST,
            item_count=(playlist.get("tracks") or {}).get("total"),
        )

    def _map_track(
        self, track: dict[str, Any], published_at: str | None = None
    ) -> MediaItem:
        duration_ms = track.get("duration_ms")
        return MediaItem(
            id=track["id"],
            source=MediaSourceType.SPOTIFY,
            title=track.get("name") or "",
            source_id=track["uri"],
            thumbnail=pick_thumbnail((track.get("album") or {}).get("images")),
            duration=round(duration_ms / 1000) if duration_ms is not None else None,
            artist=", ".join(a["name"] for a in track.get("artists", []) if a.get("name"))
            or None,
            published_at=published_at,
        )
