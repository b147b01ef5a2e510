"""
Filter + page slicing shared by every list endpoint.

A list view is described by a predicate (what to keep), a page size and a
1-based page index. Without a page index the whole filtered list is returned.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Optional, Sequence, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 9
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    page_size: int

    @property
    def total_pages(self) -> int:
        if self.page_size <= 0:
            return 1
        return max(1, -(-self.total // self.page_size))


def text_matcher(query: Optional[str], fields: Sequence[str]) -> Optional[Callable[[object], bool]]:
    """Case-insensitive substring match over the named attributes; None when query is blank."""
    q = (query or "").strip().lower()
    if not q:
        return None

    def _match(item: object) -> bool:
        for name in fields:
            value = getattr(item, name, None)
            if value and q in str(value).lower():
                return True
        return False

    return _match


def paginate(
    items: Iterable[T],
    *,
    predicate: Optional[Callable[[T], bool]] = None,
    page: Optional[int] = None,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> Page[T]:
    matched = [x for x in items if predicate is None or predicate(x)]
    total = len(matched)

    if page is None:
        return Page(items=matched, total=total, page=1, page_size=total)

    page = max(1, int(page))
    page_size = min(max(1, int(page_size)), MAX_PAGE_SIZE)
    start = (page - 1) * page_size
    return Page(items=matched[start:start + page_size], total=total, page=page, page_size=page_size)
