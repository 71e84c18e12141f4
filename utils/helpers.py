# utils/helpers.py
"""
Utility helpers.

Currently provides:
- mark_last: iterate with a one-item look-ahead, flagging the final item.
  Video containers often misreport their frame count, so the end of the
  stream is detected by exhaustion instead.
"""

from __future__ import annotations
from typing import Iterable, Iterator, Tuple, TypeVar

T = TypeVar("T")


def mark_last(items: Iterable[T]) -> Iterator[Tuple[T, bool]]:
    """
    Yield (item, is_last) for every item.

    Example:
        list(mark_last("ab")) -> [("a", False), ("b", True)]
    """
    it = iter(items)
    try:
        prev = next(it)
    except StopIteration:
        return
    for item in it:
        yield prev, False
        prev = item
    yield prev, True
