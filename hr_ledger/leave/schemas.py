"""Leave Pydantic v2 schemas: request / response validation.

Naming conventions:
  - *Create / *Update / *Request  → request bodies (write)
  - *Response / *Out              → response bodies (read)
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hr_ledger.common.constants import LeaveStatus
from hr_ledger.common.pagination import PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Leave Request: write
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestCreate(BaseModel):
    """Payload for submitting a leave request.

    Range ordering is checked by the ledger so that a reversed range yields
    ``invalid_range`` rather than a generic validation error.
    """

    start_date: date = Field(..., description="Leave start date (inclusive)")
    end_date: date = Field(..., description="Leave end date (inclusive)")
    reason: str = Field(..., min_length=1, max_length=1000)


class LeaveRequestUpdate(LeaveRequestCreate):
    """Payload for editing a pending leave request. Replaces all fields."""


class LeaveDecisionRequest(BaseModel):
    """Payload for approving or rejecting a leave request."""

    remarks: Optional[str] = Field(None, max_length=500)


# ═════════════════════════════════════════════════════════════════════
# Leave Request: read
# ═════════════════════════════════════════════════════════════════════


class LeaveRequestOut(BaseModel):
    """Full leave request response."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    requester_id: uuid.UUID
    start_date: date
    end_date: date
    reason: str
    status: LeaveStatus
    total_days: int
    paid_days: int
    unpaid_days: int
    salary_cut: bool
    approver_id: Optional[uuid.UUID] = None
    decided_at: Optional[datetime] = None
    reviewer_remarks: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class LeaveRequestListResponse(BaseModel):
    data: list[LeaveRequestOut]
    meta: PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Yearly summary
# ═════════════════════════════════════════════════════════════════════


class YearlyLeaveSummary(BaseModel):
    """One employee's in-year leave usage, split by status and pay."""

    employee_id: uuid.UUID
    year: int
    approved_paid_days: int = 0
    approved_unpaid_days: int = 0
    pending_paid_days: int = 0
    pending_unpaid_days: int = 0


class YearlyLeaveSummaryResponse(BaseModel):
    year: int
    data: list[YearlyLeaveSummary]
