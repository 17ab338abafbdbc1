"""Leave router: submit, edit, delete, approve/reject, yearly summary.

All endpoints require authentication. Reviewer authority is decided per
request by the service, so a missing request is a 404 before any 403.
"""


import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hr_ledger.auth.dependencies import get_current_principal
from hr_ledger.auth.schemas import Principal
from hr_ledger.common.clock import Clock, get_clock
from hr_ledger.common.constants import LeaveStatus
from hr_ledger.common.pagination import PaginationParams
from hr_ledger.common.policy import AccountingPolicy
from hr_ledger.config import get_policy, settings
from hr_ledger.database import get_db
from hr_ledger.leave.schemas import (
    LeaveDecisionRequest,
    LeaveRequestCreate,
    LeaveRequestListResponse,
    LeaveRequestOut,
    LeaveRequestUpdate,
    YearlyLeaveSummaryResponse,
)
from hr_ledger.leave.service import LeaveService

router = APIRouter(prefix="", tags=["leave"])


# ── POST /requests ──────────────────────────────────────────────────

@router.post("/requests", response_model=LeaveRequestOut, status_code=201)
async def create_leave_request(
    body: LeaveRequestCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    policy: AccountingPolicy = Depends(get_policy),
    clock: Clock = Depends(get_clock),
):
    """Submit a leave request. Days beyond the yearly quota are unpaid."""
    return await LeaveService.create_request(
        db, principal, body, policy=policy, clock=clock,
    )


# ── GET /requests/mine ──────────────────────────────────────────────

@router.get("/requests/mine", response_model=LeaveRequestListResponse)
async def my_leave_requests(
    status: Optional[LeaveStatus] = Query(None),
    pagination: PaginationParams = Depends(),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """The authenticated user's leave requests, newest first."""
    return await LeaveService.list_my_requests(
        db,
        principal,
        status=status,
        page=pagination.page,
        page_size=pagination.page_size,
    )


# ── GET /requests/pending ───────────────────────────────────────────

@router.get("/requests/pending", response_model=list[LeaveRequestOut])
async def pending_leave_requests(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    """Pending requests the caller is allowed to decide."""
    return await LeaveService.list_pending_for_reviewer(db, principal)


# ── GET /summary ────────────────────────────────────────────────────

@router.get("/summary", response_model=YearlyLeaveSummaryResponse)
async def yearly_leave_summary(
    year: Optional[int] = Query(None, ge=1900, le=9999),
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Approved/pending paid and unpaid days per employee for a year."""
    target_year = year or clock.today(settings.TIMEZONE).year
    return await LeaveService.get_yearly_summary(db, principal, target_year)


# ── GET /requests/{id} ──────────────────────────────────────────────

@router.get("/requests/{request_id}", response_model=LeaveRequestOut)
async def get_leave_request(
    request_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
):
    return await LeaveService.get_request(db, request_id, principal)


# ── PUT /requests/{id} ──────────────────────────────────────────────

@router.put("/requests/{request_id}", response_model=LeaveRequestOut)
async def edit_leave_request(
    request_id: uuid.UUID,
    body: LeaveRequestUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    policy: AccountingPolicy = Depends(get_policy),
    clock: Clock = Depends(get_clock),
):
    """Edit a pending request. Paid/unpaid days are recomputed."""
    return await LeaveService.edit_request(
        db, request_id, principal, body, policy=policy, clock=clock,
    )


# ── DELETE /requests/{id} ───────────────────────────────────────────

@router.delete("/requests/{request_id}", status_code=204)
async def delete_leave_request(
    request_id: uuid.UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    """Delete an own pending or rejected request."""
    await LeaveService.delete_request(db, request_id, principal, clock=clock)
    return Response(status_code=204)


# ── PUT /requests/{id}/approve ──────────────────────────────────────

@router.put("/requests/{request_id}/approve", response_model=LeaveRequestOut)
async def approve_leave_request(
    request_id: uuid.UUID,
    body: LeaveDecisionRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return await LeaveService.decide(
        db, request_id, principal, LeaveStatus.approved,
        clock=clock, remarks=body.remarks,
    )


# ── PUT /requests/{id}/reject ───────────────────────────────────────

@router.put("/requests/{request_id}/reject", response_model=LeaveRequestOut)
async def reject_leave_request(
    request_id: uuid.UUID,
    body: LeaveDecisionRequest,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db),
    clock: Clock = Depends(get_clock),
):
    return await LeaveService.decide(
        db, request_id, principal, LeaveStatus.rejected,
        clock=clock, remarks=body.remarks,
    )
