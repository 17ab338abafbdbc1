"""Yearly leave summary: read-only re-derivation from persisted requests.

Each request's paid days are its first ``paid_days`` calendar days and its
unpaid days the trailing ones, mirroring how the allocator consumes the
cap chronologically. The in-year split is the intersection of those two
sub-ranges with the reporting year, not a flat proration.
"""

from __future__ import annotations

import uuid
from datetime import date, timedelta
from typing import Iterable, Protocol

from hr_ledger.common.constants import LeaveStatus
from hr_ledger.leave.calendar import clip_to_year
from hr_ledger.leave.schemas import YearlyLeaveSummary


class _LeaveLike(Protocol):
    requester_id: uuid.UUID
    start_date: date
    end_date: date
    paid_days: int
    unpaid_days: int
    status: LeaveStatus


def _days_in_year(start: date, end: date, year: int) -> int:
    clipped = clip_to_year(start, end, year)
    if clipped is None:
        return 0
    lo, hi = clipped
    return (hi - lo).days + 1


def split_in_year(
    start_date: date,
    end_date: date,
    paid_days: int,
    unpaid_days: int,
    year: int,
) -> tuple[int, int]:
    """Return ``(paid, unpaid)`` days of one request falling inside *year*."""
    paid_in_year = unpaid_in_year = 0

    if paid_days > 0:
        paid_end = start_date + timedelta(days=paid_days - 1)
        paid_in_year = _days_in_year(start_date, min(paid_end, end_date), year)

    if unpaid_days > 0:
        unpaid_start = start_date + timedelta(days=paid_days)
        unpaid_in_year = _days_in_year(unpaid_start, end_date, year)

    return paid_in_year, unpaid_in_year


def summarize_year(
    requests: Iterable[_LeaveLike],
    year: int,
) -> list[YearlyLeaveSummary]:
    """Bucket in-year paid/unpaid days by requester and status.

    Rejected requests and requests not touching *year* contribute nothing;
    requesters with no contributing request are omitted.
    """
    summaries: dict[uuid.UUID, YearlyLeaveSummary] = {}

    for req in requests:
        if req.status not in (LeaveStatus.approved, LeaveStatus.pending):
            continue
        if clip_to_year(req.start_date, req.end_date, year) is None:
            continue

        paid, unpaid = split_in_year(
            req.start_date, req.end_date, req.paid_days, req.unpaid_days, year,
        )
        summary = summaries.get(req.requester_id)
        if summary is None:
            summary = YearlyLeaveSummary(employee_id=req.requester_id, year=year)
            summaries[req.requester_id] = summary

        if req.status == LeaveStatus.approved:
            summary.approved_paid_days += paid
            summary.approved_unpaid_days += unpaid
        else:
            summary.pending_paid_days += paid
            summary.pending_unpaid_days += unpaid

    return sorted(summaries.values(), key=lambda s: str(s.employee_id))
