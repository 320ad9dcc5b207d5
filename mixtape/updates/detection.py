"""Detection of content published after a last-seen marker."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from mixtape.models import FetchOptions, MediaItem, PaginatedResult

# Upper bound on pages inspected per walk; a marker further back counts as not found
MAX_UPDATE_PAGES = 10
DEFAULT_UPDATE_PAGE_SIZE = 20

PageFetcher = Callable[[FetchOptions], Awaitable[PaginatedResult[MediaItem]]]


@dataclass
class UpdateScan:
    """Outcome of one walk over a collection.

    ``items`` are oldest-first and empty unless the marker was found.
    ``newest_item_id`` is the first item of the listing, so a caller can
    re-anchor a marker that has gone stale.
    """

    items: list[MediaItem] = field(default_factory=list)
    marker_found: bool = False
    newest_item_id: str | None = None


async def detect_new_items(
    fetch_page: PageFetcher,
    last_seen_item_id: str | None,
    page_size: int = DEFAULT_UPDATE_PAGE_SIZE,
    max_pages: int = MAX_UPDATE_PAGES,
) -> UpdateScan:
    """Walk a newest-first listing until the last-seen item is reached.

    Pages are fetched one after another since each page needs the cursor
    returned by the previous one.

    Args:
        fetch_page: Fetches one page of the collection for the given options
        last_seen_item_id: ID of the newest item already seen
        page_size: Items requested per page
        max_pages: Maximum number of pages to inspect

    Returns:
        An UpdateScan whose items are newer than the marker, oldest-first.
        If the marker is not found within ``max_pages`` pages or before the
        listing ends, no items are returned at all.
    """
    candidates: list[MediaItem] = []
    newest_item_id: str | None = None
    cursor: str | None = None

    for _ in range(max_pages):
        page = await fetch_page(FetchOptions(limit=page_size, cursor=cursor))

        for item in page.items:
            if newest_item_id is None:
                newest_item_id = item.id
            if last_seen_item_id and item.id == last_seen_item_id:
                candidates.reverse()
                return UpdateScan(
                    items=candidates, marker_found=True, newest_item_id=newest_item_id
                )
            candidates.append(item)

        # Without a marker only the newest item matters, and it is on the first page
        if not last_seen_item_id:
            break
        if not page.next_cursor:
            break
        cursor = page.next_cursor

    return UpdateScan(items=[], marker_found=False, newest_item_id=newest_item_id)
