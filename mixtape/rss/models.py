"""Pydantic models for parsed podcast feeds."""

from pydantic import BaseModel, Field


class PodcastEpisode(BaseModel):
    """A single playable episode parsed from an RSS feed."""

    guid: str
    title: str
    description: str | None = None
    audio_url: str
    image_url: str | None = None
    published_at: str | None = None
    duration: int | None = None  # seconds


class PodcastFeed(BaseModel):
    """A parsed podcast feed, identified by its original URL."""

    url: str
    title: str
    description: str | None = None
    image_url: str | None = None
    episodes: list[PodcastEpisode] = Field(default_factory=list)
