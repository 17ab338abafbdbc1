"""Enums and constants for HR Ledger, matching PostgreSQL ENUM types."""

from __future__ import annotations

import enum


# ── Auth / Roles ────────────────────────────────────────────────────

class UserRole(str, enum.Enum):
    employee = "employee"
    manager = "manager"
    hr = "hr"
    admin = "admin"


# ── Leave ───────────────────────────────────────────────────────────

class LeaveStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


# Statuses whose days count against the yearly quota and block overlaps
ACTIVE_LEAVE_STATUSES = (LeaveStatus.pending, LeaveStatus.approved)


# ── Accounting policy defaults ──────────────────────────────────────

DEFAULT_YEARLY_PAID_LEAVE_LIMIT = 18
DEFAULT_MIN_DAILY_WORK_MINUTES = 8 * 60
MIN_DAILY_WORK_MINUTES_FLOOR = 60
MAX_DAILY_WORK_MINUTES = 24 * 60

# Every role except the top administrative one draws from the yearly cap
DEFAULT_CAPPED_ROLES = frozenset(
    {UserRole.employee, UserRole.manager, UserRole.hr}
)


# ── Misc constants ──────────────────────────────────────────────────

MAX_ATTENDANCE_RANGE_DAYS = 366
MAX_LEAVE_SPAN_DAYS = 366
MAX_PAGE_SIZE = 100
DEFAULT_PAGE_SIZE = 50
