"""Leave balance allocator: paid vs. unpaid split against the yearly cap.

Pure and deterministic: the same role, requested day-sets and consumed
day-sets always produce the same allocation, and years are allocated
independently of each other.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Mapping

from hr_ledger.common.constants import UserRole
from hr_ledger.common.policy import AccountingPolicy


@dataclass(frozen=True)
class YearAllocation:
    year: int
    total_days: int
    paid_days: int
    unpaid_days: int


@dataclass(frozen=True)
class LeaveAllocation:
    """Day fields persisted on a leave request."""

    total_days: int
    paid_days: int
    unpaid_days: int
    per_year: tuple[YearAllocation, ...] = field(default_factory=tuple)

    @property
    def salary_cut(self) -> bool:
        return self.unpaid_days > 0


def allocate_leave(
    role: UserRole,
    requested_by_year: Mapping[int, set[date]],
    consumed_by_year: Mapping[int, set[date]],
    policy: AccountingPolicy,
) -> LeaveAllocation:
    """Allocate a new request's days between paid and unpaid.

    Args:
        role: The requester's role; roles outside ``policy.capped_roles``
            are always fully paid.
        requested_by_year: The new request decomposed by calendar year.
        consumed_by_year: Union of day-sets of the requester's other
            non-rejected requests, by calendar year.
        policy: Yearly cap and capped-role set.
    """
    capped = policy.is_capped(role)
    per_year: list[YearAllocation] = []

    for year in sorted(requested_by_year):
        requested = len(requested_by_year[year])
        if capped:
            used = len(consumed_by_year.get(year, ()))
            remaining = max(0, policy.yearly_paid_leave_limit - used)
            paid = min(remaining, requested)
        else:
            paid = requested
        per_year.append(
            YearAllocation(
                year=year,
                total_days=requested,
                paid_days=paid,
                unpaid_days=requested - paid,
            )
        )

    return LeaveAllocation(
        total_days=sum(y.total_days for y in per_year),
        paid_days=sum(y.paid_days for y in per_year),
        unpaid_days=sum(y.unpaid_days for y in per_year),
        per_year=tuple(per_year),
    )
