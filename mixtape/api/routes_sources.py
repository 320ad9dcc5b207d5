"""Media source browsing endpoints for the Mixtape API."""

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel
from slowapi import Limiter
from slowapi.util import get_remote_address

from mixtape.api.dependencies import get_sources, lookup_source
from mixtape.config import get_settings
from mixtape.models import (
    FetchOptions,
    MediaCollection,
    MediaContentType,
    MediaItem,
    MediaSourceType,
    PaginatedResult,
)
from mixtape.sources import ApiSource, SourceRegistry
from mixtape.timeutil import parse_timestamp

router = APIRouter(prefix="/api/sources", tags=["sources"])
limiter = Limiter(key_func=get_remote_address)


class SourceInfo(BaseModel):
    source: MediaSourceType
    display_name: str
    is_update_source: bool
    default_update_interval_minutes: int
    requires_auth: bool
    authenticated: bool
    available_media_types: list[MediaContentType]


class TokenUpdate(BaseModel):
    access_token: str | None = None


def _options(limit: int | None, cursor: str | None) -> FetchOptions:
    settings = get_settings()
    if limit is not None and limit > settings.page_size_max:
        raise HTTPException(
            status_code=400,
            detail=f"limit must not exceed {settings.page_size_max}",
        )
    return FetchOptions(limit=limit or settings.page_size_default, cursor=cursor)


@router.get("", response_model=list[SourceInfo])
async def list_sources(sources: SourceRegistry = Depends(get_sources)):
    """Capability flags of every configured source."""
    return [
        SourceInfo(
            source=s.source_type,
            display_name=s.display_name,
            is_update_source=s.is_update_source,
            default_update_interval_minutes=s.default_update_interval_minutes,
            requires_auth=s.requires_auth,
            authenticated=s.is_authenticated(),
            available_media_types=list(s.available_media_types),
        )
        for s in sources.values()
    ]


@router.put("/{source}/token", status_code=204)
async def set_token(
    source: MediaSourceType,
    body: TokenUpdate,
    sources: SourceRegistry = Depends(get_sources),
):
    """
    Hand the current OAuth access token to a source.

    Tokens are obtained and refreshed by the client; sending null signs the
    source out.
    """
    adapter = lookup_source(sources, source)
    if not isinstance(adapter, ApiSource):
        raise HTTPException(
            status_code=400,
            detail=f"{adapter.display_name} does not use access tokens",
        )
    adapter.set_access_token(body.access_token)


@router.get("/{source}/collections", response_model=PaginatedResult[MediaCollection])
async def list_collections(
    source: MediaSourceType,
    limit: int | None = Query(default=None, ge=1),
    cursor: str | None = Query(default=None, description="Pagination cursor"),
    sources: SourceRegistry = Depends(get_sources),
):
    """Browsable collections: playlists, subscribed channels or podcast feeds."""
    adapter = lookup_source(sources, source)
    return await adapter.get_available_media(_options(limit, cursor))


@router.get("/{source}/items", response_model=PaginatedResult[MediaItem])
async def list_collection_items(
    source: MediaSourceType,
    collection_id: str = Query(min_length=1),
    limit: int | None = Query(default=None, ge=1),
    cursor: str | None = Query(default=None, description="Pagination cursor"),
    sources: SourceRegistry = Depends(get_sources),
):
    """Items of one collection (playlist ID, channel ID or feed URL)."""
    adapter = lookup_source(sources, source)
    return await adapter.get_collection_items(collection_id, _options(limit, cursor))


@router.get("/{source}/recent", response_model=PaginatedResult[MediaItem])
async def list_recent(
    source: MediaSourceType,
    since: str | None = Query(default=None, description="ISO-8601 timestamp"),
    limit: int | None = Query(default=None, ge=1),
    cursor: str | None = Query(default=None, description="Pagination cursor"),
    sources: SourceRegistry = Depends(get_sources),
):
    """Recently published or played items across a source's collections."""
    if since:
        try:
            parse_timestamp(since)
        except ValueError:
            raise HTTPException(status_code=400, detail="Invalid since timestamp")

    adapter = lookup_source(sources, source)
    return await adapter.get_recent_media(since, _options(limit, cursor))


@router.get("/{source}/search", response_model=PaginatedResult[MediaItem])
@limiter.limit("60/minute")
async def search(
    request: Request,
    source: MediaSourceType,
    q: str = Query(min_length=1, max_length=200),
    limit: int | None = Query(default=None, ge=1),
    cursor: str | None = Query(default=None, description="Pagination cursor"),
    sources: SourceRegistry = Depends(get_sources),
):
    """Search a source; sources without search answer with no items."""
    adapter = lookup_source(sources, source)
    return await adapter.search(q, _options(limit, cursor))
