"""RSS podcast feed module for Mixtape."""

from .models import PodcastEpisode, PodcastFeed
from .parser import parse_duration, parse_feed, parse_published
from .store import FeedStore

__all__ = [
    "FeedStore",
    "PodcastEpisode",
    "PodcastFeed",
    "parse_duration",
    "parse_feed",
    "parse_published",
]
