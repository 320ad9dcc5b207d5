"""Podcast feed management endpoints for the Mixtape API."""

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from mixtape.api.dependencies import get_podcast_source
from mixtape.models import MediaCollection, PaginatedResult
from mixtape.rss.models import PodcastFeed
from mixtape.sources import PodcastSource

router = APIRouter(prefix="/api/podcasts", tags=["podcasts"])


class FeedRequest(BaseModel):
    # Kept as a plain string: URL normalization would change the feed's identity
    url: str = Field(min_length=1, pattern=r"^https?://")


@router.get("/feeds", response_model=PaginatedResult[MediaCollection])
async def list_feeds(podcasts: PodcastSource = Depends(get_podcast_source)):
    """All added feeds, in the order they were added."""
    return await podcasts.get_available_media()


@router.post("/feeds", response_model=PodcastFeed, status_code=201)
async def add_feed(
    body: FeedRequest, podcasts: PodcastSource = Depends(get_podcast_source)
):
    """Fetch, parse and remember a feed."""
    return await podcasts.add_feed(body.url)


@router.post("/feeds/refresh", response_model=PodcastFeed)
async def refresh_feed(
    body: FeedRequest, podcasts: PodcastSource = Depends(get_podcast_source)
):
    """Re-fetch a feed from the network."""
    return await podcasts.refresh_feed(body.url)


@router.delete("/feeds", status_code=204)
async def remove_feed(
    url: str = Query(min_length=1),
    podcasts: PodcastSource = Depends(get_podcast_source),
):
    """Forget a feed."""
    if not await podcasts.remove_feed(url):
        raise HTTPException(status_code=404, detail="Feed not found")
