"""Attendance router: check in/out, daily record, history.

All endpoints require authentication. The all-users view is HR/admin only.
"""


import uuid
from datetime import date, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hr_ledger.attendance.schemas import (
    AttendanceListResponse,
    AttendanceRecordOut,
    AttendanceTodayResponse,
    CheckInRequest,
    CheckOutRequest,
)
from hr_ledger.attendance.service import AttendanceService
from hr_ledger.auth.dependencies import get_current_principal, require_role
from hr_ledger.auth.schemas import Principal
from hr_ledger.common.clock import Clock, get_clock
from hr_ledger.common.constants import UserRole
from hr_ledger.common.pagination import PaginationParams
from hr_ledger.common.policy import AccountingPolicy
from hr_ledger.config import get_policy
from hr_ledger.database import get_db

router = APIRouter(prefix="", tags=["attendance"])

# Window used when a history endpoint is called without dates
DEFAULT_HISTORY_DAYS = 30


def _default_window(
    from_date: Optional[date],
    to_date: Optional[date],
    clock: Clock,
) -> tuple[date, date]:
    end = to_date or AttendanceService.resolve_day(None, clock)
    start = from_date or end - timedelta(days=DEFAULT_HISTORY_DAYS - 1)
    return start, end


# ── POST /check-in ──────────────────────────────────────────────────

@router.post("/check-in", response_model=AttendanceRecordOut, status_code=201)
async def check_in(
    body: CheckInRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Record the caller's check-in for the day."""
    return await AttendanceService.check_in(db, principal.user_id, body, clock=clock)


# ── POST /check-out ─────────────────────────────────────────────────

@router.post("/check-out", response_model=AttendanceRecordOut)
async def check_out(
    body: CheckOutRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    policy: AccountingPolicy = Depends(get_policy),
    clock: Clock = Depends(get_clock),
):
    """Record the caller's check-out and compute worked minutes."""
    return await AttendanceService.check_out(
        db, principal.user_id, body.work_date, policy=policy, clock=clock,
    )


# ── GET /today ──────────────────────────────────────────────────────

@router.get("/today", response_model=AttendanceTodayResponse)
async def today_attendance(
    day: Optional[date] = Query(None, alias="date"),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """The caller's record for a day (defaults to today)."""
    work_date = AttendanceService.resolve_day(day, clock)
    return await AttendanceService.get_day(db, principal.user_id, work_date)


# ── GET /my ─────────────────────────────────────────────────────────

@router.get("/my", response_model=AttendanceListResponse)
async def my_attendance(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Own attendance history. Defaults to the last 30 days."""
    start, end = _default_window(from_date, to_date, clock)
    return await AttendanceService.list_my_attendance(
        db,
        principal.user_id,
        start,
        end,
        page=pagination.page,
        page_size=pagination.page_size,
    )


# ── GET /all ────────────────────────────────────────────────────────

@router.get("/all", response_model=AttendanceListResponse)
async def all_attendance(
    from_date: Optional[date] = Query(None),
    to_date: Optional[date] = Query(None),
    user_id: Optional[uuid.UUID] = Query(None),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(require_role(UserRole.hr)),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Every user's records (HR/admin)."""
    start, end = _default_window(from_date, to_date, clock)
    return await AttendanceService.list_all_attendance(
        db,
        start,
        end,
        user_id=user_id,
        page=pagination.page,
        page_size=pagination.page_size,
    )
