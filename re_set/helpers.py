from __future__ import annotations

from collections import deque
from typing import TypeVar, Iterable, Sequence


T = TypeVar("T")

MIN_BYTE = 0
MAX_BYTE = 0xFF

Range = tuple[int, int]  # inclusive (start, end)


def merge_ranges(ranges: Iterable[Range]) -> deque[Range]:
    """
    Merges overlapping and touching inclusive ranges.
    >>> merge_ranges([(5, 9), (0, 3), (4, 4), (20, 30)])
    deque([(0, 9), (20, 30)])
    """

    ranges = sorted(ranges)
    if not ranges:
        return deque()

    stack = deque([ranges[0]])
    for start, end in ranges[1:]:
        lstart, lend = stack.pop()
        if lend + 1 < start:
            stack.append((lstart, lend))
            stack.append((start, end))
        else:
            stack.append((lstart, max(lend, end)))

    return stack


def complement_ranges(ranges: Iterable[Range]) -> list[Range]:
    # expects nothing, minimizes by itself
    result = []
    prev = MIN_BYTE
    for start, end in merge_ranges(ranges):
        if start > prev:
            result.append((prev, start - 1))
        prev = end + 1
    if prev <= MAX_BYTE:
        result.append((prev, MAX_BYTE))
    return result


def split_overlapping_ranges(ranges: Sequence[Range]) -> list[Range]:
    """
    Will return the boundaries at which the given ranges have to be cut,
    so that any two pieces are either equal or disjoint.
    >>> split_overlapping_ranges([(0, 9), (3, 5)])
    [(0, 2), (3, 5), (6, 9)]
    >>> split_overlapping_ranges([(97, 97), (97, 122), (120, 130)])
    [(97, 97), (98, 119), (120, 122), (123, 130)]
    """

    bounds = set()
    for start, end in ranges:
        bounds.add(start)
        bounds.add(end + 1)

    sorted_bounds = sorted(bounds)
    result = []
    # keep only the pieces that are covered by at least one of the ranges
    for start_c, next_c in zip(sorted_bounds, sorted_bounds[1:]):
        end_c = next_c - 1
        if any(start_p <= start_c and end_c <= end_p for start_p, end_p in ranges):
            result.append((start_c, end_c))

    return result


def cut_range(range_: Range, pieces: Sequence[Range]) -> list[Range]:
    # pieces are sorted, disjoint and never straddle the range boundaries
    start, end = range_
    return [(s, e) for s, e in pieces if start <= s and e <= end]


def iter_unique(x: Iterable[T]) -> Iterable[T]:
    seen = set()
    for it in x:
        if it in seen:
            continue
        seen.add(it)
        yield it


def byte_repr(byte: int) -> str:
    char = chr(byte)
    if char.isprintable() and byte < 0x80 and char not in "\\'\"":
        return char
    return f"\\x{byte:02x}"
