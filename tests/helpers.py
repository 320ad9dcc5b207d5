"""Builders shared by the test modules."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

from mixtape.models import (
    FetchOptions,
    MediaCollection,
    MediaItem,
    MediaSourceType,
    PaginatedResult,
)
from mixtape.sources.base import MediaSource
from mixtape.sources.pagination import paginate

REASONS = {401: "Unauthorized", 403: "Forbidden", 404: "Not Found", 500: "Internal Server Error"}


def make_item(item_id: str, source: MediaSourceType = MediaSourceType.YOUTUBE, **kwargs) -> MediaItem:
    """Build a MediaItem with sensible defaults."""
    return MediaItem(
        id=item_id,
        source=source,
        title=kwargs.pop("title", f"Item {item_id}"),
        source_id=kwargs.pop("source_id", item_id),
        **kwargs,
    )


def create_mock_response(status_code: int, json_data: dict | None = None, content: bytes = b""):
    """Helper to create a mock httpx Response."""
    mock_resp = MagicMock()
    mock_resp.status_code = status_code
    mock_resp.reason_phrase = REASONS.get(status_code, "OK")
    mock_resp.json = MagicMock(return_value=json_data or {})
    mock_resp.content = content
    return mock_resp


def mock_http_client(mock_client_class, responses):
    """Wire a patched httpx.AsyncClient class to answer with the given response(s)."""
    mock_client = AsyncMock()
    if isinstance(responses, list):
        mock_client.get = AsyncMock(side_effect=responses)
    else:
        mock_client.get = AsyncMock(return_value=responses)
    mock_client.__aenter__.return_value = mock_client
    mock_client.__aexit__.return_value = None
    mock_client_class.return_value = mock_client
    return mock_client


class ListingSource(MediaSource):
    """In-memory update source serving one newest-first collection per ID.

    ``gate`` (when set) holds every collection listing until released, and
    ``error`` is raised instead of answering.
    """

    source_type = MediaSourceType.YOUTUBE
    display_name = "Listing"
    is_update_source = True
    default_update_interval_minutes = 5

    def __init__(self, ids=(), collections=None):
        self.collections = collections or {"collection": list(ids)}
        self.requests: list[FetchOptions] = []
        self.gate: asyncio.Event | None = None
        self.error: Exception | None = None
        self.started = asyncio.Event()

    @property
    def items(self):
        return self.collections["collection"]

    async def get_available_media(self, options=None) -> PaginatedResult[MediaCollection]:
        return PaginatedResult()

    async def get_collection_items(self, collection_id, options=None) -> PaginatedResult[MediaItem]:
        self.requests.append(options)
        self.started.set()
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        ids = self.collections[collection_id]
        return paginate([make_item(i) for i in ids], options, 20, lambda item: item)

    async def get_recent_media(self, since=None, options=None) -> PaginatedResult[MediaItem]:
        return PaginatedResult()


class StaticSource(ListingSource):
    source_type = MediaSourceType.SPOTIFY
    display_name = "Static"
    is_update_source = False
