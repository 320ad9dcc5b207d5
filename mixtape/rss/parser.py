"""RSS podcast feed parsing."""

import re
import xml.etree.ElementTree as ET
from email.utils import parsedate_to_datetime

from mixtape.errors import MalformedSource
from mixtape.timeutil import format_timestamp, parse_timestamp

from .models import PodcastEpisode, PodcastFeed

# XML namespaces for podcast RSS feeds
NAMESPACES = {
    "itunes": "http://www.itunes.com/dtds/podcast-1.0.dtd",
}

SOURCE_NAME = "Podcasts"

_SECONDS = re.compile(r"\d+(?:\.\d+)?")
_CLOCK = re.compile(r"(\d+):(\d+)(?::(\d+))?")


def parse_duration(raw: str | None) -> int | None:
    """Parse an ``itunes:duration`` value into whole seconds.

    Accepts plain seconds (``"3600"``), ``MM:SS`` (``"45:30"``) and
    ``HH:MM:SS`` (``"1:30:00"``). Anything else yields ``None`` rather
    than zero; a literal ``"0"`` is a valid zero-length duration.
    """
    if raw is None:
        return None
    value = raw.strip()

    if _SECONDS.fullmatch(value):
        return round(float(value))

    match = _CLOCK.fullmatch(value)
    if not match:
        return None

    first, second, third = match.groups()
    if third is None:
        return int(first) * 60 + int(second)
    return int(first) * 3600 + int(second) * 60 + int(third)


def parse_published(raw: str | None) -> str | None:
    """Parse an RFC 822 ``pubDate`` (or an ISO timestamp) to ISO UTC."""
    if not raw or not raw.strip():
        return None
    value = raw.strip()
    try:
        dt = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        try:
            dt = parse_timestamp(value)
        except ValueError:
            return None
    return format_timestamp(dt)


def _text(elem: ET.Element, path: str) -> str | None:
    """Return the stripped text of a child element, or None when empty."""
    child = elem.find(path, NAMESPACES)
    if child is None or child.text is None:
        return None
    return child.text.strip() or None


def _href(elem: ET.Element, path: str) -> str | None:
    child = elem.find(path, NAMESPACES)
    if child is None:
        return None
    return child.attrib.get("href") or None


def _parse_episode(item: ET.Element) -> PodcastEpisode | None:
    enclosure = item.find("enclosure")
    audio_url = enclosure.attrib.get("url") if enclosure is not None else None

    # Items without audio cannot be queued
    if not audio_url:
        return None

    duration_raw = _text(item, "itunes:duration")
    if duration_raw is None:
        duration_raw = _text(item, "duration")

    return PodcastEpisode(
        guid=_text(item, "guid") or audio_url,
        title=_text(item, "title") or "Untitled Episode",
        description=_text(item, "description"),
        audio_url=audio_url,
        image_url=_href(item, "itunes:image"),
        published_at=parse_published(_text(item, "pubDate")),
        duration=parse_duration(duration_raw),
    )


def parse_feed(xml: str | bytes, feed_url: str) -> PodcastFeed:
    """Parse RSS XML into a PodcastFeed.

    Episodes are ordered newest-first by publication date regardless of
    document order. Undated episodes follow in document order.

    Args:
        xml: Raw feed document
        feed_url: The feed's original URL, used as its identity

    Returns:
        The parsed feed

    Raises:
        MalformedSource: If the document is not XML or has no <channel>
    """
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        raise MalformedSource(SOURCE_NAME, f"Invalid RSS feed: {e}") from e

    channel = root if root.tag == "channel" else root.find(".//channel")
    if channel is None:
        raise MalformedSource(SOURCE_NAME, "Invalid RSS feed: no <channel> element")

    dated, undated = [], []
    for item in channel.findall("item"):
        episode = _parse_episode(item)
        if episode is None:
            continue
        (dated if episode.published_at else undated).append(episode)

    # Normalized ISO timestamps sort lexically; the sort is stable for ties
    dated.sort(key=lambda e: e.published_at, reverse=True)
    episodes = dated + undated

    return PodcastFeed(
        url=feed_url,
        title=_text(channel, "title") or "Unknown Podcast",
        description=_text(channel, "description"),
        image_url=_text(channel, "image/url") or _href(channel, "itunes:image"),
        episodes=episodes,
    )
