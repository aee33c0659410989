from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Generic, List, Optional, Sequence, TypeVar

from fxrates.core.errors import InvalidPagination

T = TypeVar("T")


@dataclass(frozen=True)
class PageMeta:
    page: int
    limit: int
    total: int
    total_pages: int


@dataclass(frozen=True)
class Page(Generic[T]):
    data: List[T]
    meta: PageMeta


def paginate(
    items: Sequence[T], page: int, limit: int, max_limit: Optional[int] = None
) -> Page[T]:
    """Slice ``items`` into 1-based page ``page`` of size ``limit``.

    ``total`` counts the whole sequence; pages past the end come back empty.
    """
    if page < 1:
        raise InvalidPagination("page must be >= 1")
    if limit < 1:
        raise InvalidPagination("limit must be >= 1")
    if max_limit is not None and limit > max_limit:
        raise InvalidPagination(f"limit must be <= {max_limit}")
    total = len(items)
    start = (page - 1) * limit
    return Page(
        data=list(items[start : start + limit]),
        meta=PageMeta(
            page=page, limit=limit, total=total, total_pages=math.ceil(total / limit)
        ),
    )
