"""Immutable accounting policy shared by the leave allocator and attendance tracker."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from hr_ledger.common.constants import (
    DEFAULT_CAPPED_ROLES,
    DEFAULT_MIN_DAILY_WORK_MINUTES,
    DEFAULT_YEARLY_PAID_LEAVE_LIMIT,
    MAX_DAILY_WORK_MINUTES,
    MIN_DAILY_WORK_MINUTES_FLOOR,
    UserRole,
)


class AccountingPolicy(BaseModel):
    """Process-wide policy constants, frozen after construction."""

    model_config = ConfigDict(frozen=True)

    yearly_paid_leave_limit: int = Field(DEFAULT_YEARLY_PAID_LEAVE_LIMIT, ge=0)
    min_daily_work_minutes: int = Field(
        DEFAULT_MIN_DAILY_WORK_MINUTES,
        ge=MIN_DAILY_WORK_MINUTES_FLOOR,
        le=MAX_DAILY_WORK_MINUTES,
    )
    capped_roles: frozenset[UserRole] = DEFAULT_CAPPED_ROLES

    def is_capped(self, role: UserRole) -> bool:
        return role in self.capped_roles
