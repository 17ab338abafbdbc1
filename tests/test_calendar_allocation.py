"""Day-set decomposition and paid/unpaid allocation: pure functions, no DB."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from hr_ledger.common.constants import UserRole
from hr_ledger.common.exceptions import InvalidRangeError
from hr_ledger.common.policy import AccountingPolicy
from hr_ledger.leave.allocator import allocate_leave
from hr_ledger.leave.calendar import (
    clip_to_year,
    inclusive_day_count,
    split_days_by_year,
    union_by_year,
)

POLICY = AccountingPolicy(yearly_paid_leave_limit=18)


def _days(start: date, count: int) -> set[date]:
    return {start + timedelta(days=i) for i in range(count)}


# ═════════════════════════════════════════════════════════════════════
# 1. Calendar decomposition
# ═════════════════════════════════════════════════════════════════════


class TestSplitDaysByYear:

    def test_single_day(self):
        assert split_days_by_year(date(2026, 5, 4), date(2026, 5, 4)) == {
            2026: {date(2026, 5, 4)},
        }

    def test_year_boundary_splits_four_and_three(self):
        """Dec 28 to Jan 3 → 4 days in the old year, 3 in the new."""
        result = split_days_by_year(date(2025, 12, 28), date(2026, 1, 3))
        assert len(result[2025]) == 4
        assert len(result[2026]) == 3
        assert max(result[2025]) == date(2025, 12, 31)
        assert min(result[2026]) == date(2026, 1, 1)

    def test_partition_covers_every_day_once(self):
        start, end = date(2024, 11, 15), date(2026, 2, 10)
        result = split_days_by_year(start, end)

        assert sorted(result) == [2024, 2025, 2026]
        assert sum(len(s) for s in result.values()) == (end - start).days + 1
        all_days = set().union(*result.values())
        assert len(all_days) == (end - start).days + 1
        for year, days in result.items():
            assert all(d.year == year for d in days)

    def test_leap_year_full_span(self):
        result = split_days_by_year(date(2028, 1, 1), date(2028, 12, 31))
        assert len(result[2028]) == 366

    def test_reversed_range_raises(self):
        with pytest.raises(InvalidRangeError):
            split_days_by_year(date(2026, 3, 5), date(2026, 3, 4))


class TestCalendarHelpers:

    def test_inclusive_day_count(self):
        assert inclusive_day_count(date(2026, 1, 1), date(2026, 1, 1)) == 1
        assert inclusive_day_count(date(2026, 2, 27), date(2026, 3, 2)) == 4

    def test_union_counts_shared_day_once(self):
        merged = union_by_year([
            (date(2026, 3, 1), date(2026, 3, 5)),
            (date(2026, 3, 5), date(2026, 3, 7)),
        ])
        assert len(merged[2026]) == 7

    def test_union_of_nothing_is_empty(self):
        assert union_by_year([]) == {}

    def test_clip_to_year(self):
        assert clip_to_year(date(2025, 12, 28), date(2026, 1, 3), 2026) == (
            date(2026, 1, 1), date(2026, 1, 3),
        )
        assert clip_to_year(date(2025, 12, 28), date(2025, 12, 30), 2026) is None


# ═════════════════════════════════════════════════════════════════════
# 2. Allocation
# ═════════════════════════════════════════════════════════════════════


class TestAllocateLeave:

    def test_within_quota_all_paid(self):
        requested = {2026: _days(date(2026, 3, 2), 3)}
        result = allocate_leave(UserRole.employee, requested, {}, POLICY)

        assert (result.total_days, result.paid_days, result.unpaid_days) == (3, 3, 0)
        assert result.salary_cut is False

    def test_seventeen_consumed_plus_three_requested(self):
        """17 of 18 used → 1 paid, 2 unpaid, salary cut."""
        consumed = {2026: _days(date(2026, 1, 5), 17)}
        requested = {2026: _days(date(2026, 6, 1), 3)}
        result = allocate_leave(UserRole.employee, requested, consumed, POLICY)

        assert result.paid_days == 1
        assert result.unpaid_days == 2
        assert result.salary_cut is True

    def test_quota_exhausted_all_unpaid(self):
        consumed = {2026: _days(date(2026, 1, 5), 25)}
        requested = {2026: _days(date(2026, 6, 1), 2)}
        result = allocate_leave(UserRole.manager, requested, consumed, POLICY)

        assert result.paid_days == 0
        assert result.unpaid_days == 2

    def test_admin_is_never_capped(self):
        consumed = {2026: _days(date(2026, 1, 5), 40)}
        requested = {2026: _days(date(2026, 6, 1), 5)}
        result = allocate_leave(UserRole.admin, requested, consumed, POLICY)

        assert result.paid_days == 5
        assert result.salary_cut is False

    def test_cross_year_allocates_each_year_independently(self):
        """Old year exhausted, new year fresh: Dec days unpaid, Jan days paid."""
        consumed = {2025: _days(date(2025, 1, 6), 18)}
        requested = split_days_by_year(date(2025, 12, 28), date(2026, 1, 3))
        result = allocate_leave(UserRole.employee, requested, consumed, POLICY)

        by_year = {y.year: y for y in result.per_year}
        assert (by_year[2025].paid_days, by_year[2025].unpaid_days) == (0, 4)
        assert (by_year[2026].paid_days, by_year[2026].unpaid_days) == (3, 0)
        assert (result.total_days, result.paid_days, result.unpaid_days) == (7, 3, 4)

    def test_conservation_holds_for_every_year(self):
        consumed = {2025: _days(date(2025, 3, 1), 10), 2026: _days(date(2026, 3, 1), 16)}
        requested = split_days_by_year(date(2025, 12, 20), date(2026, 1, 20))
        result = allocate_leave(UserRole.hr, requested, consumed, POLICY)

        for year_alloc in result.per_year:
            assert year_alloc.total_days == year_alloc.paid_days + year_alloc.unpaid_days
        assert result.total_days == result.paid_days + result.unpaid_days
        assert result.total_days == 32

    def test_zero_limit_policy(self):
        zero = AccountingPolicy(yearly_paid_leave_limit=0)
        requested = {2026: _days(date(2026, 6, 1), 2)}
        result = allocate_leave(UserRole.employee, requested, {}, zero)
        assert result.paid_days == 0
        assert result.unpaid_days == 2

    def test_deterministic(self):
        consumed = {2026: _days(date(2026, 1, 5), 12)}
        requested = {2026: _days(date(2026, 6, 1), 9)}
        first = allocate_leave(UserRole.employee, requested, consumed, POLICY)
        second = allocate_leave(UserRole.employee, requested, consumed, POLICY)
        assert first == second
