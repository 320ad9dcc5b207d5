"""RSS podcast media source."""

import logging
from urllib.parse import quote

import httpx

from mixtape.errors import NotFound, TransientError, UpstreamError
from mixtape.models import (
    FetchOptions,
    MediaCollection,
    MediaContentType,
    MediaItem,
    MediaSourceType,
    PaginatedResult,
)
from mixtape.rss.models import PodcastEpisode, PodcastFeed
from mixtape.rss.parser import parse_feed
from mixtape.rss.store import FeedStore
from mixtape.timeutil import is_newer, parse_timestamp
from mixtape.updates.detection import UpdateScan

from .base import MediaSource
from .pagination import paginate

logger = logging.getLogger(__name__)


class PodcastSource(MediaSource):
    """User-added RSS podcast feeds, parsed and held in memory.

    Feeds are keyed by their original URL. Listings read the in-memory copy
    and only touch the network for a feed that is not known yet, or when a
    refresh is requested. An optional CORS proxy prefix is applied at fetch
    time only; it never becomes part of a feed's identity.
    """

    DEFAULT_LIMIT = 20
    DEFAULT_TIMEOUT = 15.0

    source_type = MediaSourceType.PODCAST
    display_name = "Podcasts"
    is_update_source = True
    default_update_interval_minutes = 30
    requires_auth = False
    available_media_types = (MediaContentType.EPISODE, MediaContentType.FEED)

    def __init__(
        self,
        cors_proxy_url: str | None = None,
        store: FeedStore | None = None,
        timeout: float | None = None,
    ):
        self._feeds: dict[str, PodcastFeed] = {}
        self._cors_proxy_url = cors_proxy_url or None
        self._store = store
        self._timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT

    def set_cors_proxy_url(self, url: str | None) -> None:
        self._cors_proxy_url = url or None

    async def add_feed(self, feed_url: str) -> PodcastFeed:
        """Fetch, parse and remember a feed."""
        return await self.refresh_feed(feed_url)

    async def refresh_feed(self, feed_url: str) -> PodcastFeed:
        """Re-fetch a feed from the network, replacing the in-memory copy."""
        feed = await self._fetch_feed(feed_url)
        self._feeds[feed_url] = feed
        if self._store is not None:
            await self._store.save(feed)
        return feed

    async def remove_feed(self, feed_url: str) -> bool:
        """Forget a feed. Returns False if it was never added."""
        if self._feeds.pop(feed_url, None) is None:
            return False
        if self._store is not None:
            await self._store.delete(feed_url)
        return True

    def restore_feeds(self, feeds: list[PodcastFeed]) -> None:
        """Restore previously parsed feeds without re-fetching them."""
        for feed in feeds:
            self._feeds[feed.url] = feed

    def get_feeds(self) -> list[PodcastFeed]:
        return list(self._feeds.values())

    def get_feed(self, feed_url: str) -> PodcastFeed | None:
        return self._feeds.get(feed_url)

    async def get_available_media(
        self, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaCollection]:
        feeds = self.get_feeds()
        return paginate(feeds, options, len(feeds), self._map_feed)

    async def get_collection_items(
        self, collection_id: str, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        """List a feed's episodes in feed order; collection_id is the feed URL."""
        feed = self._feeds.get(collection_id)
        if feed is None:
            feed = await self.refresh_feed(collection_id)

        return paginate(
            feed.episodes,
            options,
            self.DEFAULT_LIMIT,
            lambda episode: self._map_episode(episode, feed),
        )

    async def get_recent_media(
        self, since: str | None = None, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        """Episodes across every feed, newest-first."""
        since_dt = parse_timestamp(since) if since else None

        recent = [
            (episode, feed)
            for feed in self._feeds.values()
            for episode in feed.episodes
            if is_newer(episode.published_at, since_dt)
        ]
        # Normalized ISO timestamps sort lexically; undated episodes go last
        recent.sort(key=lambda pair: pair[0].published_at or "", reverse=True)

        return paginate(
            recent,
            options,
            self.DEFAULT_LIMIT,
            lambda pair: self._map_episode(*pair),
        )

    async def search(
        self, query: str, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        """Match episode and show titles of the added feeds, case-insensitively."""
        needle = query.strip().lower()
        if not needle:
            return PaginatedResult()

        matches = [
            (episode, feed)
            for feed in self._feeds.values()
            for episode in feed.episodes
            if needle in episode.title.lower() or needle in feed.title.lower()
        ]

        return paginate(
            matches,
            options,
            self.DEFAULT_LIMIT,
            lambda pair: self._map_episode(*pair),
        )

    async def _scan_updates_since(
        self, collection_id: str, last_seen_item_id: str | None
    ) -> UpdateScan:
        # A stale in-memory copy must not hide new episodes
        await self.refresh_feed(collection_id)
        return await super()._scan_updates_since(collection_id, last_seen_item_id)

    def _fetch_url(self, feed_url: str) -> str:
        if self._cors_proxy_url:
            return f"{self._cors_proxy_url}{quote(feed_url, safe='')}"
        return feed_url

    async def _fetch_feed(self, feed_url: str) -> PodcastFeed:
        """Download and parse a feed.

        Raises:
            NotFound: If the feed URL answers 404
            UpstreamError: For any other non-2xx response
            TransientError: For network failures and timeouts
            MalformedSource: If the document is not a valid RSS feed
        """
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, follow_redirects=True
            ) as client:
                r = await client.get(self._fetch_url(feed_url))
        except httpx.TransportError as e:
            raise TransientError(self.display_name, f"failed to fetch {feed_url}: {e}") from e

        if r.status_code == 404:
            raise NotFound(self.display_name, f"feed not found: {feed_url}")
        if r.status_code >= 400:
            raise UpstreamError(self.display_name, r.status_code, r.reason_phrase)

        feed = parse_feed(r.content, feed_url)
        logger.info(f"Parsed podcast feed {feed_url} ({len(feed.episodes)} episodes)")
        return feed

    def _map_feed(self, feed: PodcastFeed) -> MediaCollection:
        return MediaCollection(
            id=feed.url,
            source=MediaSourceType.PODCAST,
            title=feed.title,
            description=feed.description,
            thumbnail=feed.image_url,
            content_type=MediaContentType.FEED,
            item_count=len(feed.episodes),
        )

    def _map_episode(self, episode: PodcastEpisode, feed: PodcastFeed) -> MediaItem:
        return MediaItem(
            id=episode.guid,
            source=MediaSourceType.PODCAST,
            title=episode.title,
            source_id=episode.audio_url,
            thumbnail=episode.image_url or feed.image_url,
            duration=episode.duration,
            artist=feed.title,
            published_at=episode.published_at,
        )
