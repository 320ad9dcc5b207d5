"""Redis-backed persistence for parsed podcast feeds."""

import logging
import time

from pydantic import ValidationError
from redis.asyncio import Redis
from redis.exceptions import RedisError

from .models import PodcastFeed

logger = logging.getLogger(__name__)

# Sorted by first-added time so feeds restore in the order the user added them
INDEX_KEY = "mixtape:feeds"


def _key(feed_url: str) -> str:
    """Generate Redis key for a parsed feed."""
    return f"mixtape:feed:{feed_url}"


class FeedStore:
    """Keeps parsed feeds across restarts.

    Writes are best-effort: a Redis outage is logged and the in-memory copy
    held by the podcast source stays authoritative.
    """

    def __init__(self, redis: Redis):
        self._redis = redis

    async def save(self, feed: PodcastFeed) -> bool:
        """Persist a parsed feed. Returns False if Redis rejected the write."""
        try:
            await self._redis.set(_key(feed.url), feed.model_dump_json())
            await self._redis.zadd(INDEX_KEY, {feed.url: time.time()}, nx=True)
        except RedisError:
            logger.exception(f"Failed to persist podcast feed {feed.url}")
            return False
        return True

    async def delete(self, feed_url: str) -> bool:
        """Forget a persisted feed. Returns False if Redis rejected the write."""
        try:
            await self._redis.delete(_key(feed_url))
            await self._redis.zrem(INDEX_KEY, feed_url)
        except RedisError:
            logger.exception(f"Failed to delete persisted podcast feed {feed_url}")
            return False
        return True

    async def load_all(self) -> list[PodcastFeed]:
        """Load every persisted feed, oldest-added first.

        An unreachable store or a corrupt record degrades to fewer feeds,
        never to an error.
        """
        try:
            urls = await self._redis.zrange(INDEX_KEY, 0, -1)
        except RedisError:
            logger.exception("Failed to list persisted podcast feeds")
            return []

        feeds: list[PodcastFeed] = []
        for raw_url in urls:
            url = raw_url.decode("utf-8") if isinstance(raw_url, bytes) else raw_url
            try:
                raw = await self._redis.get(_key(url))
            except RedisError:
                logger.exception(f"Failed to load persisted podcast feed {url}")
                continue
            if raw is None:
                continue
            try:
                feeds.append(PodcastFeed.model_validate_json(raw))
            except ValidationError:
                logger.warning(f"Discarding corrupt persisted feed {url}")
        return feeds
