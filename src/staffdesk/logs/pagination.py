"""Fixed-size, 1-indexed page slicing."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    total_items: int
    total_pages: int
    page: int
    page_size: int
    has_next: bool
    has_prev: bool


def paginate(records: Sequence[T], page_size: int, page_number: int) -> Page[T]:
    """Slice ``records`` into page ``page_number``.

    Pages past the end (or below 1) come back empty rather than raising.
    An empty input has zero pages.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be positive, got {page_size}")

    total_items = len(records)
    total_pages = math.ceil(total_items / page_size)

    if page_number < 1:
        items: list[T] = []
    else:
        start = (page_number - 1) * page_size
        items = list(records[start : start + page_size])

    return Page(
        items=items,
        total_items=total_items,
        total_pages=total_pages,
        page=page_number,
        page_size=page_size,
        has_next=page_number < total_pages,
        has_prev=page_number > 1 and total_items > 0,
    )
