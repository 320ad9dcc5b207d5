"""FastAPI dependencies for API routers."""

from fastapi import HTTPException, Request

from mixtape.models import MediaSourceType
from mixtape.playback.queue import PlaybackQueue
from mixtape.sources import MediaSource, PodcastSource, SourceRegistry
from mixtape.updates.scheduler import UpdateScheduler


def get_sources(request: Request) -> SourceRegistry:
    return request.app.state.sources


def get_queue(request: Request) -> PlaybackQueue:
    return request.app.state.queue


def get_scheduler(request: Request) -> UpdateScheduler:
    return request.app.state.scheduler


def get_podcast_source(request: Request) -> PodcastSource:
    return request.app.state.sources[MediaSourceType.PODCAST]


def lookup_source(sources: SourceRegistry, source: MediaSourceType) -> MediaSource:
    """Return the adapter for a source type, or 404 if none is configured."""
    adapter = sources.get(source)
    if adapter is None:
        raise HTTPException(status_code=404, detail=f"Unknown source: {source.value}")
    return adapter
