"""Tests for Redis persistence of parsed podcast feeds."""

from unittest.mock import AsyncMock

import pytest
from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError

from mixtape.rss.models import PodcastEpisode, PodcastFeed
from mixtape.rss.store import INDEX_KEY, FeedStore


def sample_feed(url="https://example.com/feed.xml"):
    return PodcastFeed(
        url=url,
        title="Example Show",
        episodes=[
            PodcastEpisode(
                guid="ep-1",
                title="First",
                audio_url="https://example.com/ep-1.mp3",
                duration=1800,
            )
        ],
    )


@pytest.fixture
def mock_redis():
    """Create a mock Redis client."""
    redis = AsyncMock(spec=Redis)
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.zadd = AsyncMock()
    redis.zrange = AsyncMock(return_value=[])
    redis.delete = AsyncMock()
    redis.zrem = AsyncMock()
    return redis


@pytest.mark.asyncio
async def test_save_writes_feed_and_index(mock_redis):
    feed = sample_feed()

    assert await FeedStore(mock_redis).save(feed) is True

    mock_redis.set.assert_awaited_once()
    key, payload = mock_redis.set.call_args[0]
    assert key == "mixtape:feed:https://example.com/feed.xml"
    assert PodcastFeed.model_validate_json(payload) == feed

    index_args = mock_redis.zadd.call_args
    assert index_args[0][0] == INDEX_KEY
    assert feed.url in index_args[0][1]
    # Re-saving keeps the original position
    assert index_args[1]["nx"] is True


@pytest.mark.asyncio
async def test_save_tolerates_redis_outage(mock_redis):
    mock_redis.set.side_effect = RedisConnectionError("connection refused")

    assert await FeedStore(mock_redis).save(sample_feed()) is False


@pytest.mark.asyncio
async def test_delete_removes_feed_and_index(mock_redis):
    assert await FeedStore(mock_redis).delete("https://example.com/feed.xml") is True

    mock_redis.delete.assert_awaited_once_with("mixtape:feed:https://example.com/feed.xml")
    mock_redis.zrem.assert_awaited_once_with(INDEX_KEY, "https://example.com/feed.xml")


@pytest.mark.asyncio
async def test_load_all_in_index_order(mock_redis):
    first = sample_feed("https://a.example/rss")
    second = sample_feed("https://b.example/rss")
    stored = {
        "mixtape:feed:https://a.example/rss": first.model_dump_json().encode(),
        "mixtape:feed:https://b.example/rss": second.model_dump_json().encode(),
    }
    mock_redis.zrange.return_value = [b"https://a.example/rss", b"https://b.example/rss"]
    mock_redis.get.side_effect = lambda key: stored.get(key)

    feeds = await FeedStore(mock_redis).load_all()

    assert feeds == [first, second]


@pytest.mark.asyncio
async def test_load_all_skips_missing_and_corrupt_records(mock_redis):
    good = sample_feed("https://good.example/rss")
    stored = {
        "mixtape:feed:https://good.example/rss": good.model_dump_json().encode(),
        "mixtape:feed:https://corrupt.example/rss": b'{"url": 1',
    }
    mock_redis.zrange.return_value = [
        b"https://gone.example/rss",
        b"https://corrupt.example/rss",
        b"https://good.example/rss",
    ]
    mock_redis.get.side_effect = lambda key: stored.get(key)

    feeds = await FeedStore(mock_redis).load_all()

    assert [f.url for f in feeds] == ["https://good.example/rss"]


@pytest.mark.asyncio
async def test_load_all_with_redis_down(mock_redis):
    mock_redis.zrange.side_effect = RedisConnectionError("connection refused")

    assert await FeedStore(mock_redis).load_all() == []
