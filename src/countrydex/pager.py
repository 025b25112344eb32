"""
Page windows and the page-number controls shown under the table.
"""

from typing import List, Sequence, TypeVar

from .models import GAP, PageControl

T = TypeVar("T")

PAGE_SIZE = 10
GROUP_SIZE = 5


def total_pages(count: int, page_size: int = PAGE_SIZE) -> int:
    if page_size < 1:
        raise ValueError("page_size must be at least 1")
    return -(-count // page_size)


def window(items: Sequence[T], page: int, page_size: int = PAGE_SIZE) -> List[T]:
    """Rows for the 1-based `page`; empty when the page does not exist."""
    if page < 1 or page > total_pages(len(items), page_size):
        return []
    start = (page - 1) * page_size
    return list(items[start : start + page_size])


def page_group(current_page: int, group_size: int = GROUP_SIZE) -> int:
    return (current_page - 1) // group_size


def controls(
    total: int, current_page: int, group_size: int = GROUP_SIZE
) -> List[PageControl]:
    """
    Page numbers of the block containing `current_page`.

    Pages are grouped in consecutive blocks of `group_size`. A GAP marker
    flanks the block on each side that has further pages, but only when
    there are more pages than fit in a single block.
    """
    if total < 1:
        return []
    current_page = min(max(current_page, 1), total)
    first = page_group(current_page, group_size) * group_size + 1
    last = min(first + group_size - 1, total)

    items: List[PageControl] = []
    show_gaps = total > group_size
    if show_gaps and first > 1:
        items.append(GAP)
    items.extend(range(first, last + 1))
    if show_gaps and last < total:
        items.append(GAP)
    return items


def has_prev(page: int) -> bool:
    return page > 1


def has_next(page: int, total: int) -> bool:
    return page < total


def is_valid_page(page: int, total: int) -> bool:
    return 1 <= page <= total
