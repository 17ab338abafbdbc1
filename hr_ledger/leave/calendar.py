"""Calendar day-set decomposition.

A leave span that crosses December 31 draws from two yearly quotas, so every
range is broken into per-year sets of distinct day-keys before it reaches
the allocator. The decomposition is a partition: each day of the inclusive
range appears in exactly one year's set.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import date, timedelta
from typing import Iterable, Optional

from hr_ledger.common.exceptions import InvalidRangeError

DaySetsByYear = dict[int, set[date]]


def validate_range(start: date, end: date) -> None:
    if end < start:
        raise InvalidRangeError(start, end)


def inclusive_day_count(start: date, end: date) -> int:
    """Number of calendar days in ``[start, end]``."""
    validate_range(start, end)
    return (end - start).days + 1


def iter_days(start: date, end: date) -> Iterable[date]:
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def split_days_by_year(start: date, end: date) -> DaySetsByYear:
    """Split ``[start, end]`` into ``{year: {day, ...}}``.

    Raises:
        InvalidRangeError: if ``end`` precedes ``start``.
    """
    validate_range(start, end)

    buckets: DaySetsByYear = {}
    for year in range(start.year, end.year + 1):
        year_start = max(start, date(year, 1, 1))
        year_end = min(end, date(year, 12, 31))
        buckets[year] = set(iter_days(year_start, year_end))
    return buckets


def union_by_year(ranges: Iterable[tuple[date, date]]) -> DaySetsByYear:
    """Union the per-year day-sets of many ranges.

    A day covered by two ranges is counted once.
    """
    merged: defaultdict[int, set[date]] = defaultdict(set)
    for start, end in ranges:
        for year, days in split_days_by_year(start, end).items():
            merged[year] |= days
    return dict(merged)


def clip_to_year(start: date, end: date, year: int) -> Optional[tuple[date, date]]:
    """Intersect ``[start, end]`` with ``[Jan 1, Dec 31]`` of *year*.

    Returns ``None`` when the range does not touch the year (or is empty).
    """
    lo = max(start, date(year, 1, 1))
    hi = min(end, date(year, 12, 31))
    if hi < lo:
        return None
    return lo, hi
