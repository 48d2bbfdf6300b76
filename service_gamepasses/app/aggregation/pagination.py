"""
Cursor pagination helper.
"""

from __future__ import annotations

from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

from shared.errors import PaginationLimitError

T = TypeVar("T")

PageFetcher = Callable[[str], Awaitable[Tuple[Sequence[T], Optional[str]]]]


async def collect_pages(fetch_page: PageFetcher, *, max_pages: Optional[int] = None) -> List[T]:
    """
    Walk a cursor-paginated listing and return every item in arrival order.

    ``fetch_page`` is called with ``""`` for the first page and with the
    returned cursor afterwards, until the cursor comes back empty or None.
    Errors raised by ``fetch_page`` propagate unchanged.

    When ``max_pages`` is given and the upstream still reports another page
    after that many fetches, ``PaginationLimitError`` is raised instead of
    returning a truncated list.
    """
    items: List[T] = []
    cursor = ""
    pages = 0

    while True:
        page_items, next_cursor = await fetch_page(cursor)
        items.extend(page_items)
        pages += 1

        if not next_cursor:
            return items
        if max_pages is not None and pages >= max_pages:
            raise PaginationLimitError(max_pages, details={"last_cursor": next_cursor})
        cursor = next_cursor
