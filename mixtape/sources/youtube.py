"""YouTube Data API v3 media source."""

import asyncio
import logging
from typing import Any

from mixtape.errors import NotFound
from mixtape.models import (
    FetchOptions,
    MediaCollection,
    MediaContentType,
    MediaItem,
    MediaSourceType,
    PaginatedResult,
)

from .base import ApiSource
from .pagination import resolve_limit

logger = logging.getLogger(__name__)


def pick_thumbnail(thumbnails: dict[str, Any] | None) -> str | None:
    """Prefer the medium thumbnail, then high, then default."""
    if not thumbnails:
        return None
    for size in ("medium", "high", "default"):
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return None


class YouTubeSource(ApiSource):
    """The user's YouTube subscriptions and their uploads.

    Channels cannot be listed directly: each channel ID is first resolved
    to its uploads playlist, and that mapping is cached for the lifetime of
    the source. Cursors are YouTube page tokens, passed through verbatim.
    """

    BASE = "https://www.googleapis.com/youtube/v3"
    DEFAULT_LIMIT = 20
    MAX_RESULTS = 50  # API maximum for maxResults

    source_type = MediaSourceType.YOUTUBE
    display_name = "YouTube"
    is_update_source = True
    default_update_interval_minutes = 30
    requires_auth = True
    available_media_types = (MediaContentType.VIDEO, MediaContentType.CHANNEL)

    def __init__(self, access_token: str | None = None, timeout: float | None = None):
        super().__init__(access_token=access_token, timeout=timeout)
        # channel ID -> uploads playlist ID
        self._uploads_playlists: dict[str, str] = {}
        self._resolve_lock = asyncio.Lock()

    def _page_params(self, options: FetchOptions | None, **params: Any) -> dict[str, Any]:
        params["maxResults"] = min(resolve_limit(options, self.DEFAULT_LIMIT), self.MAX_RESULTS)
        if options and options.cursor:
            params["pageToken"] = options.cursor
        return params

    async def get_available_media(
        self, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaCollection]:
        data = await self._get_json(
            "/subscriptions", self._page_params(options, part="snippet", mine="true")
        )

        return PaginatedResult(
            items=[self._map_subscription(sub) for sub in data.get("items", [])],
            next_cursor=data.get("nextPageToken") or None,
            total=(data.get("pageInfo") or {}).get("totalResults"),
        )

    async def get_collection_items(
        self, collection_id: str, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        """List a channel's uploads, newest-first."""
        playlist_id = await self.get_uploads_playlist_id(collection_id)

        data = await self._get_json(
            "/playlistItems",
            self._page_params(
                options, part="snippet,contentDetails", playlistId=playlist_id
            ),
        )

        return PaginatedResult(
            items=[self._map_playlist_item(item) for item in data.get("items", [])],
            next_cursor=data.get("nextPageToken") or None,
            total=(data.get("pageInfo") or {}).get("totalResults"),
        )

    async def get_recent_media(
        self, since: str | None = None, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        params = self._page_params(
            options, part="snippet", type="video", order="date", forMine="true"
        )
        if since:
            params["publishedAfter"] = since

        data = await self._get_json("/search", params)
        return self._search_page(data)

    async def search(
        self, query: str, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        data = await self._get_json(
            "/search", self._page_params(options, part="snippet", type="video", q=query)
        )
        return self._search_page(data)

    async def get_uploads_playlist_id(self, channel_id: str) -> str:
        """Resolve a channel ID to its uploads playlist ID.

        Raises:
            NotFound: If YouTube knows no such channel
        """
        if cached := self._uploads_playlists.get(channel_id):
            return cached

        async with self._resolve_lock:
            # Another caller may have resolved it while we waited
            if cached := self._uploads_playlists.get(channel_id):
                return cached

            data = await self._get_json(
                "/channels", {"part": "contentDetails", "id": channel_id}
            )
            items = data.get("items") or []
            if not items:
                raise NotFound(self.display_name, f"channel not found: {channel_id}")

            uploads = items[0]["contentDetails"]["relatedPlaylists"]["uploads"]
            self._uploads_playlists[channel_id] = uploads
            logger.debug(f"Resolved channel {channel_id} to uploads playlist {uploads}")
            return uploads

    def _search_page(self, data: dict[str, Any]) -> PaginatedResult[MediaItem]:
        return PaginatedResult(
            items=[
                self._map_search_result(item)
                for item in data.get("items", [])
                if (item.get("id") or {}).get("videoId")
            ],
            next_cursor=data.get("nextPageToken") or None,
            total=(data.get("pageInfo") or {}).get("totalResults"),
        )

    def _map_subscription(self, sub: dict[str, Any]) -> MediaCollection:
        snippet = sub.get("snippet", {})
        return MediaCollection(
            id=snippet["resourceId"]["channelId"],
            source=MediaSourceType.YOUTUBE,
            title=snippet.get("title") or "",
            description=snippet.get("description") or None,
            thumbnail=pick_thumbnail(snippet.get("thumbnails")),
            content_type=MediaContentType.CHANNEL,
        )

    def _map_playlist_item(self, item: dict[str, Any]) -> MediaItem:
        snippet = item.get("snippet", {})
        details = item.get("contentDetails") or {}
        video_id = details.get("videoId") or snippet["resourceId"]["videoId"]
        return MediaItem(
            id=video_id,
            source=MediaSourceType.YOUTUBE,
            title=snippet.get("title") or "",
            source_id=video_id,
            thumbnail=pick_thumbnail(snippet.get("thumbnails")),
            artist=snippet.get("channelTitle"),
            published_at=details.get("videoPublishedAt") or snippet.get("publishedAt"),
        )

    def _map_search_result(self, item: dict[str, Any]) -> MediaItem:
        snippet = item.get("snippet", {})
        video_id = item["id"]["videoId"]
        return MediaItem(
            id=video_id,
            source=MediaSourceType.YOUTUBE,
            title=snippet.get("title") or "",
            source_id=video_id,
            thumbnail=pick_thumbnail(snippet.get("thumbnails")),
            artist=snippet.get("channelTitle"),
            published_at=snippet.get("publishedAt"),
        )
