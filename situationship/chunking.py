"""Splitting uploads into fixed-size groups for per-call analysis."""

from typing import Sequence, TypeVar

T = TypeVar("T")


def chunk_items(items: Sequence[T], chunk_size: int) -> list[list[T]]:
    """
    Partition items into consecutive groups of chunk_size.

    The last group holds the remainder when len(items) is not a multiple of
    chunk_size. Order is preserved within and across groups.

    Examples:
        chunk_items([1, 2, 3, 4, 5], 2) -> [[1, 2], [3, 4], [5]]
        chunk_items([], 2) -> []
    """
    if chunk_size < 1:
        raise ValueError(f"chunk_size must be a positive integer, got {chunk_size}")

    return [list(items[i:i + chunk_size]) for i in range(0, len(items), chunk_size)]
