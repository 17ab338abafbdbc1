"""Worked-minutes and shortfall math for a single check-in/check-out pair."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from hr_ledger.common.clock import as_utc
from hr_ledger.common.policy import AccountingPolicy


@dataclass(frozen=True)
class ShortfallResult:
    worked_minutes: int
    short_by_minutes: int

    @property
    def salary_cut(self) -> bool:
        return self.short_by_minutes > 0


def worked_minutes_between(check_in: datetime, check_out: datetime) -> int:
    """Whole minutes elapsed, floored; a backwards clock yields 0."""
    seconds = (as_utc(check_out) - as_utc(check_in)).total_seconds()
    if seconds <= 0:
        return 0
    return int(seconds // 60)


def compute_shortfall(
    check_in: datetime,
    check_out: datetime,
    policy: AccountingPolicy,
) -> ShortfallResult:
    worked = worked_minutes_between(check_in, check_out)
    short = max(0, policy.min_daily_work_minutes - worked)
    return ShortfallResult(worked_minutes=worked, short_by_minutes=short)
