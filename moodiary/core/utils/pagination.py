"""Page/offset arithmetic for list views."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, List, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

MAX_PAGE_SIZE = 100


def clamp_page(page: Optional[int]) -> int:
    try:
        return max(int(page or 1), 1)
    except (TypeError, ValueError):
        return 1


def clamp_limit(limit: Optional[int], default: int = 20) -> int:
    try:
        value = int(limit or default)
    except (TypeError, ValueError):
        value = default
    return max(min(value, MAX_PAGE_SIZE), 1)


def page_offset(page: int, limit: int) -> int:
    return (clamp_page(page) - 1) * limit


@dataclass(frozen=True)
class PageState:
    """Current page of a list plus whether neighbours exist.

    ``previous()``/``next()`` return the neighbouring state, or the same state
    when the move is not allowed. Neither ever goes below page 1.
    """

    current_page: int = 1
    limit: int = 20
    has_next_page: bool = False

    @property
    def offset(self) -> int:
        return page_offset(self.current_page, self.limit)

    @property
    def can_go_previous(self) -> bool:
        return self.current_page > 1

    @property
    def can_go_next(self) -> bool:
        return self.has_next_page

    def previous(self) -> "PageState":
        if not self.can_go_previous:
            return self
        return replace(self, current_page=self.current_page - 1, has_next_page=True)

    def next(self) -> "PageState":
        if not self.can_go_next:
            return self
        # Unknown until the next page is fetched.
        return replace(self, current_page=self.current_page + 1, has_next_page=False)

    def as_dict(self) -> dict[str, Any]:
        return {
            "page": self.current_page,
            "limit": self.limit,
            "has_next_page": self.has_next_page,
            "has_previous_page": self.can_go_previous,
        }


def fetch_page(
    fetch: Callable[[int, int], Sequence[T]],
    page: int,
    limit: int,
    *,
    exact: bool = True,
) -> Tuple[List[T], PageState]:
    """Call ``fetch(limit, offset)`` and work out ``has_next_page``.

    In exact mode one extra row is requested and dropped. Otherwise a full page
    is taken to mean there is another one, which is wrong when the total is an
    exact multiple of ``limit``.
    """
    page = clamp_page(page)
    offset = page_offset(page, limit)
    if exact:
        rows = list(fetch(limit + 1, offset))
        has_next = len(rows) > limit
        rows = rows[:limit]
    else:
        rows = list(fetch(limit, offset))
        has_next = len(rows) == limit
    return rows, PageState(current_page=page, limit=limit, has_next_page=has_next)
