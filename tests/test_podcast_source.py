"""Tests for the RSS podcast media source."""

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from mixtape.errors import MalformedSource, NotFound, TransientError, UpstreamError
from mixtape.models import FetchOptions, MediaContentType, MediaSourceType
from mixtape.rss.store import FeedStore
from mixtape.sources.podcast import PodcastSource

from helpers import create_mock_response, mock_http_client

FEED_URL = "https://example.com/feed.xml"


def rss(*episodes, title="Example Show"):
    """Build a feed document from (guid, title, pubDate) tuples, newest first."""
    items = "".join(
        f"""
        <item>
          <title>{ep_title}</title>
          <guid>{guid}</guid>
          <pubDate>{pub_date}</pubDate>
          <enclosure url="https://example.com/{guid}.mp3" type="audio/mpeg"/>
          <itunes:duration>30:00</itunes:duration>
        </item>"""
        for guid, ep_title, pub_date in episodes
    )
    return f"""<?xml version="1.0"?>
<rss version="2.0" xmlns:itunes="http://www.itunes.com/dtds/podcast-1.0.dtd">
  <channel>
    <title>{title}</title>
    <image><url>https://example.com/show.jpg</url></image>
    {items}
  </channel>
</rss>""".encode()


THREE_EPISODES = rss(
    ("ep-3", "Third", "Wed, 03 Jan 2024 08:00:00 +0000"),
    ("ep-2", "Second", "Tue, 02 Jan 2024 08:00:00 +0000"),
    ("ep-1", "First", "Mon, 01 Jan 2024 08:00:00 +0000"),
)


@pytest.fixture
def podcasts():
    return PodcastSource()


@pytest.mark.asyncio
async def test_add_feed_parses_and_remembers(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http_client(
            mock_client_class, create_mock_response(200, content=THREE_EPISODES)
        )

        feed = await podcasts.add_feed(FEED_URL)

        assert feed.title == "Example Show"
        assert [e.guid for e in feed.episodes] == ["ep-3", "ep-2", "ep-1"]
        assert podcasts.get_feed(FEED_URL) is feed
        assert mock_client.get.call_args[0][0] == FEED_URL
        assert mock_client_class.call_args[1]["follow_redirects"] is True


@pytest.mark.asyncio
async def test_collection_items_map_episodes(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(mock_client_class, create_mock_response(200, content=THREE_EPISODES))

        result = await podcasts.get_collection_items(FEED_URL)

        assert [i.id for i in result.items] == ["ep-3", "ep-2", "ep-1"]
        item = result.items[0]
        assert item.source == MediaSourceType.PODCAST
        assert item.source_id == "https://example.com/ep-3.mp3"
        assert item.artist == "Example Show"
        assert item.thumbnail == "https://example.com/show.jpg"
        assert item.duration == 1800
        assert item.published_at == "2024-01-03T08:00:00Z"
        assert result.total == 3


@pytest.mark.asyncio
async def test_known_feed_is_not_refetched(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http_client(
            mock_client_class, create_mock_response(200, content=THREE_EPISODES)
        )

        await podcasts.add_feed(FEED_URL)
        await podcasts.get_collection_items(FEED_URL)

        assert mock_client.get.call_count == 1


@pytest.mark.asyncio
async def test_pages_concatenate_to_full_feed(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(mock_client_class, create_mock_response(200, content=THREE_EPISODES))

        first = await podcasts.get_collection_items(FEED_URL, FetchOptions(limit=2))
        second = await podcasts.get_collection_items(
            FEED_URL, FetchOptions(limit=2, cursor=first.next_cursor)
        )

        assert [i.id for i in first.items + second.items] == ["ep-3", "ep-2", "ep-1"]
        assert second.next_cursor is None


@pytest.mark.asyncio
async def test_check_for_updates_scenarios(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(mock_client_class, create_mock_response(200, content=THREE_EPISODES))

        assert [i.id for i in await podcasts.check_for_updates(FEED_URL, "ep-2")] == ["ep-3"]

        newer = await podcasts.check_for_updates(FEED_URL, "ep-1")
        assert [i.id for i in newer] == ["ep-2", "ep-3"]
        # Oldest-first by publication time
        assert newer[0].published_at <= newer[1].published_at

        assert await podcasts.check_for_updates(FEED_URL, "ep-3") == []
        assert await podcasts.check_for_updates(FEED_URL, "nonexistent-id") == []


@pytest.mark.asyncio
async def test_check_for_updates_on_oldest_first_feed(podcasts):
    ascending = rss(
        ("ep-1", "First", "Mon, 01 Jan 2024 08:00:00 +0000"),
        ("ep-2", "Second", "Tue, 02 Jan 2024 08:00:00 +0000"),
        ("ep-3", "Third", "Wed, 03 Jan 2024 08:00:00 +0000"),
        ("ep-4", "Fourth", "Thu, 04 Jan 2024 08:00:00 +0000"),
    )

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(mock_client_class, create_mock_response(200, content=ascending))

        assert [i.id for i in await podcasts.check_for_updates(FEED_URL, "ep-3")] == ["ep-4"]
        assert [i.id for i in await podcasts.check_for_updates(FEED_URL, "ep-1")] == [
            "ep-2",
            "ep-3",
            "ep-4",
        ]

        listing = await podcasts.get_collection_items(FEED_URL)
        assert [i.id for i in listing.items] == ["ep-4", "ep-3", "ep-2", "ep-1"]


@pytest.mark.asyncio
async def test_check_for_updates_refetches_feed(podcasts):
    older = rss(("ep-1", "First", "Mon, 01 Jan 2024 08:00:00 +0000"))

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(
            mock_client_class,
            [
                create_mock_response(200, content=older),
                create_mock_response(200, content=THREE_EPISODES),
            ],
        )

        await podcasts.add_feed(FEED_URL)
        new_items = await podcasts.check_for_updates(FEED_URL, "ep-1")

        assert [i.id for i in new_items] == ["ep-2", "ep-3"]


@pytest.mark.asyncio
async def test_cors_proxy_does_not_change_identity():
    podcasts = PodcastSource(cors_proxy_url="https://proxy.example/?url=")

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http_client(
            mock_client_class, create_mock_response(200, content=THREE_EPISODES)
        )

        feed = await podcasts.add_feed(FEED_URL)

        assert (
            mock_client.get.call_args[0][0]
            == "https://proxy.example/?url=https%3A%2F%2Fexample.com%2Ffeed.xml"
        )
        assert feed.url == FEED_URL
        collections = await podcasts.get_available_media()
        assert collections.items[0].id == FEED_URL
        assert collections.items[0].content_type == MediaContentType.FEED


@pytest.mark.asyncio
async def test_get_recent_media_newest_first_across_feeds(podcasts):
    other = rss(
        ("x-1", "Other", "Tue, 02 Jan 2024 12:00:00 +0000"),
        title="Other Show",
    )

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(
            mock_client_class,
            [
                create_mock_response(200, content=THREE_EPISODES),
                create_mock_response(200, content=other),
            ],
        )

        await podcasts.add_feed(FEED_URL)
        await podcasts.add_feed("https://other.example/rss")

        result = await podcasts.get_recent_media(since="2024-01-01T12:00:00Z")

        assert [i.id for i in result.items] == ["ep-3", "x-1", "ep-2"]


@pytest.mark.asyncio
async def test_search_matches_titles(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(mock_client_class, create_mock_response(200, content=THREE_EPISODES))
        await podcasts.add_feed(FEED_URL)

    result = await podcasts.search("SECOND")
    assert [i.id for i in result.items] == ["ep-2"]

    result = await podcasts.search("example show")
    assert len(result.items) == 3


@pytest.mark.asyncio
async def test_remove_feed(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(mock_client_class, create_mock_response(200, content=THREE_EPISODES))
        await podcasts.add_feed(FEED_URL)

    assert await podcasts.remove_feed(FEED_URL) is True
    assert await podcasts.remove_feed(FEED_URL) is False
    assert podcasts.get_feeds() == []


@pytest.mark.asyncio
async def test_feed_changes_are_persisted():
    store = MagicMock(spec=FeedStore)
    store.save = AsyncMock(return_value=True)
    store.delete = AsyncMock(return_value=True)
    podcasts = PodcastSource(store=store)

    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(mock_client_class, create_mock_response(200, content=THREE_EPISODES))
        feed = await podcasts.add_feed(FEED_URL)

    await podcasts.remove_feed(FEED_URL)

    store.save.assert_awaited_once_with(feed)
    store.delete.assert_awaited_once_with(FEED_URL)


@pytest.mark.asyncio
async def test_missing_feed_raises_not_found(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(mock_client_class, create_mock_response(404))

        with pytest.raises(NotFound):
            await podcasts.add_feed(FEED_URL)

        assert podcasts.get_feeds() == []


@pytest.mark.asyncio
async def test_server_error_raises_upstream_error(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(mock_client_class, create_mock_response(500))

        with pytest.raises(UpstreamError):
            await podcasts.add_feed(FEED_URL)


@pytest.mark.asyncio
async def test_timeout_raises_transient_error(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = mock_http_client(mock_client_class, create_mock_response(200))
        mock_client.get.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(TransientError):
            await podcasts.add_feed(FEED_URL)


@pytest.mark.asyncio
async def test_not_a_feed_raises_malformed_source(podcasts):
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_http_client(
            mock_client_class, create_mock_response(200, content=b"<html><body></body></html>")
        )

        with pytest.raises(MalformedSource):
            await podcasts.add_feed(FEED_URL)
