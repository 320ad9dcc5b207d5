"""Pydantic models shared by every media source."""

from datetime import datetime, timezone
from enum import Enum
from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")


class MediaSourceType(str, Enum):
    """The supported media source types."""

    SPOTIFY = "spotify"
    YOUTUBE = "youtube"
    PODCAST = "podcast"


class MediaContentType(str, Enum):
    """The kinds of browsable content a media source can provide."""

    TRACK = "track"
    ALBUM = "album"
    PLAYLIST = "playlist"
    VIDEO = "video"
    CHANNEL = "channel"
    EPISODE = "episode"
    FEED = "feed"


class MediaItem(BaseModel):
    """A single playable unit that can be queued.

    ``source_id`` is what the provider's player needs: a Spotify track URI,
    a YouTube video ID or a podcast audio URL. ``id`` is stable across
    repeated fetches of the same content.
    """

    id: str
    source: MediaSourceType
    title: str
    source_id: str
    thumbnail: str | None = None
    duration: int | None = None  # seconds
    artist: str | None = None
    published_at: str | None = None


class MediaCollection(BaseModel):
    """A browsable grouping of media (playlist, channel, feed)."""

    id: str
    source: MediaSourceType
    title: str
    description: str | None = None
    thumbnail: str | None = None
    content_type: MediaContentType
    item_count: int | None = None


class FetchOptions(BaseModel):
    """Options for listing operations."""

    limit: int | None = Field(default=None, ge=1)
    cursor: str | None = None


class PaginatedResult(BaseModel, Generic[T]):
    """One page of a listing.

    ``next_cursor`` is absent once the listing is exhausted. Cursor values
    are opaque and must be passed back verbatim.
    """

    items: list[T] = Field(default_factory=list)
    next_cursor: str | None = None
    total: int | None = None


class UpdateEntry(BaseModel):
    """A collection polled for new content while something is playing.

    ``last_seen_item_id`` and ``last_checked`` form the marker the
    scheduler advances after every successful check.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    source: MediaSourceType
    source_id: str
    label: str
    interval_minutes: int = Field(ge=1)
    last_checked: datetime | None = None
    last_seen_item_id: str | None = None

    @field_validator("last_checked")
    @classmethod
    def _assume_utc(cls, value: datetime | None) -> datetime | None:
        # SQLite hands timestamps back without tzinfo
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value
