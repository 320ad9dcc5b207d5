"""Media source adapters for Mixtape."""

from mixtape.config import Settings
from mixtape.models import MediaSourceType
from mixtape.rss.store import FeedStore

from .base import ApiSource, MediaSource
from .podcast import PodcastSource
from .spotify import SpotifySource
from .youtube import YouTubeSource

SourceRegistry = dict[MediaSourceType, MediaSource]


def build_sources(settings: Settings, feed_store: FeedStore | None = None) -> SourceRegistry:
    """Create one adapter per supported provider, configured from settings."""
    sources: SourceRegistry = {
        MediaSourceType.SPOTIFY: SpotifySource(timeout=settings.http_timeout_seconds),
        MediaSourceType.YOUTUBE: YouTubeSource(timeout=settings.http_timeout_seconds),
        MediaSourceType.PODCAST: PodcastSource(
            cors_proxy_url=settings.podcast_cors_proxy_url,
            store=feed_store,
            timeout=settings.http_timeout_seconds,
        ),
    }
    for source in sources.values():
        source.update_page_size = settings.update_page_size
        source.update_max_pages = settings.update_max_pages
    return sources


__all__ = [
    "ApiSource",
    "MediaSource",
    "PodcastSource",
    "SourceRegistry",
    "SpotifySource",
    "YouTubeSource",
    "build_sources",
]
