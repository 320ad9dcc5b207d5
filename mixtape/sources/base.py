"""Abstract media source contract shared by every provider adapter."""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

import httpx

from mixtape.errors import (
    TransientError,
    Unauthenticated,
    UnsupportedOperation,
    UpstreamError,
)
from mixtape.models import (
    FetchOptions,
    MediaCollection,
    MediaContentType,
    MediaItem,
    MediaSourceType,
    PaginatedResult,
)
from mixtape.updates.detection import (
    DEFAULT_UPDATE_PAGE_SIZE,
    MAX_UPDATE_PAGES,
    UpdateScan,
    detect_new_items,
)


class MediaSource(ABC):
    """Uniform interface over one media provider.

    Capability flags are class-level constants so callers can branch on
    them without any I/O.
    """

    source_type: ClassVar[MediaSourceType]
    display_name: ClassVar[str]
    is_update_source: ClassVar[bool] = False
    default_update_interval_minutes: ClassVar[int] = 0
    requires_auth: ClassVar[bool] = False
    available_media_types: ClassVar[tuple[MediaContentType, ...]] = ()

    update_page_size: int = DEFAULT_UPDATE_PAGE_SIZE
    update_max_pages: int = MAX_UPDATE_PAGES

    def is_authenticated(self) -> bool:
        """Whether calls can be made; always True for sources without auth."""
        return not self.requires_auth

    @abstractmethod
    async def get_available_media(
        self, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaCollection]:
        """List browsable collections (playlists, subscriptions, feeds)."""

    @abstractmethod
    async def get_collection_items(
        self, collection_id: str, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        """List the items of one collection, newest-first where the provider orders them so."""

    @abstractmethod
    async def get_recent_media(
        self, since: str | None = None, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        """List recent items across collections, excluding those not newer than ``since``."""

    async def search(
        self, query: str, options: FetchOptions | None = None
    ) -> PaginatedResult[MediaItem]:
        """Search the source. Sources without search return an empty result."""
        return PaginatedResult()

    async def check_for_updates(
        self, collection_id: str, last_seen_item_id: str | None
    ) -> list[MediaItem]:
        """Return items newer than ``last_seen_item_id``, oldest-first.

        Raises:
            UnsupportedOperation: If this source is not an update source
        """
        scan = await self.scan_for_updates(collection_id, last_seen_item_id)
        return scan.items

    async def scan_for_updates(
        self, collection_id: str, last_seen_item_id: str | None
    ) -> UpdateScan:
        """Like check_for_updates, but also report whether the marker was seen."""
        if not self.is_update_source:
            raise UnsupportedOperation(
                self.display_name, "does not support update polling"
            )
        return await self._scan_updates_since(collection_id, last_seen_item_id)

    async def _scan_updates_since(
        self, collection_id: str, last_seen_item_id: str | None
    ) -> UpdateScan:
        async def fetch_page(options: FetchOptions) -> PaginatedResult[MediaItem]:
            return await self.get_collection_items(collection_id, options)

        return await detect_new_items(
            fetch_page,
            last_seen_item_id,
            page_size=self.update_page_size,
            max_pages=self.update_max_pages,
        )


class ApiSource(MediaSource):
    """Base for REST providers authenticated with an OAuth bearer token.

    Token acquisition and refresh happen elsewhere; the current token is
    handed in through set_access_token.
    """

    BASE: ClassVar[str]
    DEFAULT_TIMEOUT: ClassVar[float] = 15.0

    requires_auth = True

    def __init__(self, access_token: str | None = None, timeout: float | None = None):
        self._access_token = access_token
        self._timeout = timeout if timeout is not None else self.DEFAULT_TIMEOUT

    def set_access_token(self, token: str | None) -> None:
        """Replace the bearer token (None signs the source out)."""
        self._access_token = token

    def is_authenticated(self) -> bool:
        return bool(self._access_token)

    async def _get_json(
        self, path: str, params: dict[str, Any] | None = None
    ) -> dict[str, Any]:
        """Issue an authenticated GET against the provider API.

        Raises:
            Unauthenticated: If no token is set (no request is made) or on 401
            UpstreamError: For any other non-2xx response
            TransientError: For network failures and timeouts
        """
        if not self._access_token:
            raise Unauthenticated(self.display_name, "not authenticated")

        headers = {"Authorization": f"Bearer {self._access_token}"}

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                r = await client.get(f"{self.BASE}{path}", headers=headers, params=params)
        except httpx.TransportError as e:
            raise TransientError(self.display_name, f"request failed: {e}") from e

        if r.status_code == 401:
            raise Unauthenticated(self.display_name, "access token expired")
        if r.status_code >= 400:
            raise UpstreamError(self.display_name, r.status_code, r.reason_phrase)

        return r.json()
