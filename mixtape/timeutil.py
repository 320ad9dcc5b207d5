"""ISO-8601 timestamp helpers used for ordering and recency filters."""

from datetime import datetime, timezone

ISO_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def format_timestamp(dt: datetime) -> str:
    """Render a datetime as an ISO-8601 UTC timestamp."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc).strftime(ISO_FORMAT)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC.

    Raises:
        ValueError: If the value is not an ISO timestamp
    """
    dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def is_newer(published_at: str | None, since: datetime | None) -> bool:
    """Whether an item published at ``published_at`` is strictly newer than ``since``.

    Items without a usable timestamp are kept.
    """
    if since is None or not published_at:
        return True
    try:
        return parse_timestamp(published_at) > since
    except ValueError:
        return True
