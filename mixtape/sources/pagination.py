"""Offset cursors and in-memory pagination.

Cursors are opaque to callers. Offset-based sources encode their position
as a decimal string; token-based sources hand back the provider's own page
token unchanged.
"""

from collections.abc import Callable, Sequence
from typing import TypeVar

from mixtape.errors import InvalidCursor
from mixtape.models import FetchOptions, PaginatedResult

T = TypeVar("T")
U = TypeVar("U")


def encode_offset(offset: int) -> str:
    """Encode an offset as a cursor."""
    return str(offset)


def decode_offset(cursor: str | None) -> int:
    """Decode an offset cursor; a missing cursor is the first page.

    Raises:
        InvalidCursor: If the cursor was not produced by encode_offset
    """
    if not cursor:
        return 0
    try:
        offset = int(cursor)
    except ValueError:
        raise InvalidCursor(f"Invalid cursor: {cursor!r}") from None
    if offset < 0:
        raise InvalidCursor(f"Invalid cursor: {cursor!r}")
    return offset


def resolve_limit(options: FetchOptions | None, default: int) -> int:
    """Return the requested page size, falling back to the source default."""
    if options is None or options.limit is None:
        return default
    return options.limit


def paginate(
    items: Sequence[T],
    options: FetchOptions | None,
    default_limit: int,
    mapper: Callable[[T], U],
) -> PaginatedResult[U]:
    """Slice a fully materialized listing into one offset-paginated page."""
    limit = resolve_limit(options, default_limit)
    offset = decode_offset(options.cursor if options else None)

    page = items[offset : offset + limit]
    has_more = offset + limit < len(items)

    return PaginatedResult(
        items=[mapper(item) for item in page],
        next_cursor=encode_offset(offset + limit) if has_more else None,
        total=len(items),
    )
