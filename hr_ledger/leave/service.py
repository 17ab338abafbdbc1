"""Leave service layer: request lifecycle, yearly quota, approvals, summaries.

Business logic:
  - Create / edit with overlap protection and paid-vs-unpaid allocation
    against the yearly quota (cross-year spans draw from each year)
  - Delete while pending or rejected
  - Approve / reject exactly once, by an authorized reviewer
  - Own history, reviewer queue and role-scoped yearly summary
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional, Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from hr_ledger.auth.schemas import Principal
from hr_ledger.common.audit import create_audit_entry
from hr_ledger.common.clock import Clock
from hr_ledger.common.constants import (
    ACTIVE_LEAVE_STATUSES,
    MAX_LEAVE_SPAN_DAYS,
    LeaveStatus,
    UserRole,
)
from hr_ledger.common.exceptions import (
    ForbiddenException,
    InvalidStateError,
    NotFoundException,
    OverlapConflictError,
    SelfApprovalError,
    ValidationException,
)
from hr_ledger.common.pagination import paginate
from hr_ledger.common.policy import AccountingPolicy
from hr_ledger.directory.models import Employee
from hr_ledger.directory.service import DirectoryService
from hr_ledger.leave.allocator import LeaveAllocation, allocate_leave
from hr_ledger.leave.approvals import can_decide
from hr_ledger.leave.calendar import (
    inclusive_day_count,
    split_days_by_year,
    union_by_year,
)
from hr_ledger.leave.models import LeaveRequest
from hr_ledger.leave.reporting import summarize_year
from hr_ledger.leave.schemas import (
    LeaveRequestCreate,
    LeaveRequestListResponse,
    LeaveRequestOut,
    LeaveRequestUpdate,
    YearlyLeaveSummaryResponse,
)

logger = logging.getLogger(__name__)

_ENTITY = "leave request"


# ═════════════════════════════════════════════════════════════════════
# LeaveService
# ═════════════════════════════════════════════════════════════════════


class LeaveService:
    """Async leave operations: submit, edit, delete, decide, read."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def _validate_span(start: date, end: date) -> None:
        """Ordered range of at most MAX_LEAVE_SPAN_DAYS days."""
        if inclusive_day_count(start, end) > MAX_LEAVE_SPAN_DAYS:
            raise ValidationException(
                {"dates": [
                    f"A leave request cannot span more than {MAX_LEAVE_SPAN_DAYS} days."
                ]}
            )

    @staticmethod
    async def _has_overlap(
        db: AsyncSession,
        requester_id: uuid.UUID,
        start: date,
        end: date,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> bool:
        """True if a pending/approved request of the requester touches [start, end]."""
        query = select(LeaveRequest.id).where(
            LeaveRequest.requester_id == requester_id,
            LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
            LeaveRequest.start_date <= end,
            LeaveRequest.end_date >= start,
        )
        if exclude_id is not None:
            query = query.where(LeaveRequest.id != exclude_id)
        result = await db.execute(query.limit(1))
        return result.first() is not None

    @staticmethod
    async def _allocate(
        db: AsyncSession,
        requester_id: uuid.UUID,
        role: UserRole,
        start: date,
        end: date,
        policy: AccountingPolicy,
        *,
        exclude_id: Optional[uuid.UUID] = None,
    ) -> LeaveAllocation:
        """Split [start, end] into paid/unpaid against the requester's other requests."""
        requested = split_days_by_year(start, end)

        query = select(LeaveRequest.start_date, LeaveRequest.end_date).where(
            LeaveRequest.requester_id == requester_id,
            LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
            LeaveRequest.start_date <= date(end.year, 12, 31),
            LeaveRequest.end_date >= date(start.year, 1, 1),
        )
        if exclude_id is not None:
            query = query.where(LeaveRequest.id != exclude_id)
        rows = (await db.execute(query)).all()
        consumed = union_by_year((row.start_date, row.end_date) for row in rows)

        return allocate_leave(role, requested, consumed, policy)

    @staticmethod
    async def _load_own_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        requester_id: uuid.UUID,
    ) -> LeaveRequest:
        """Load and lock a request owned by *requester_id*; missing or foreign is NotFound."""
        result = await db.execute(
            select(LeaveRequest)
            .where(
                LeaveRequest.id == request_id,
                LeaveRequest.requester_id == requester_id,
            )
            .with_for_update()
        )
        leave_req = result.scalars().first()
        if leave_req is None:
            raise NotFoundException("LeaveRequest", request_id)
        return leave_req

    @staticmethod
    async def _reviewer_may_decide(
        db: AsyncSession,
        principal: Principal,
        leave_req: LeaveRequest,
    ) -> bool:
        if leave_req.requester_id == principal.user_id:
            return False
        requester_role = await DirectoryService.get_role(db, leave_req.requester_id)
        if requester_role is None:
            return False
        is_direct = await DirectoryService.is_direct_manager_of(
            db, principal.user_id, leave_req.requester_id,
        )
        return can_decide(principal.role, requester_role, is_direct)

    @staticmethod
    def _snapshot(leave_req: LeaveRequest) -> dict:
        return {
            "start_date": leave_req.start_date.isoformat(),
            "end_date": leave_req.end_date.isoformat(),
            "status": leave_req.status.value,
            "total_days": leave_req.total_days,
            "paid_days": leave_req.paid_days,
            "unpaid_days": leave_req.unpaid_days,
            "salary_cut": leave_req.salary_cut,
        }

    # ─────────────────────────────────────────────────────────────────
    # Create
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def create_request(
        db: AsyncSession,
        principal: Principal,
        data: LeaveRequestCreate,
        *,
        policy: AccountingPolicy,
        clock: Clock,
    ) -> LeaveRequestOut:
        """Submit a pending leave request.

        The requester's directory row is locked for the rest of the
        transaction, so two submissions by the same person are serialized
        and the second one sees the first one's days.
        """
        LeaveService._validate_span(data.start_date, data.end_date)

        await DirectoryService.get_employee(db, principal.user_id, for_update=True)

        if await LeaveService._has_overlap(
            db, principal.user_id, data.start_date, data.end_date,
        ):
            raise OverlapConflictError(data.start_date, data.end_date)

        allocation = await LeaveService._allocate(
            db, principal.user_id, principal.role,
            data.start_date, data.end_date, policy,
        )

        now = clock.now()
        leave_req = LeaveRequest(
            requester_id=principal.user_id,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=data.reason,
            status=LeaveStatus.pending,
            total_days=allocation.total_days,
            paid_days=allocation.paid_days,
            unpaid_days=allocation.unpaid_days,
            salary_cut=allocation.salary_cut,
            created_at=now,
            updated_at=now,
        )
        db.add(leave_req)
        await db.flush()

        # Re-validate after the insert is visible to this transaction
        if await LeaveService._has_overlap(
            db, principal.user_id, data.start_date, data.end_date,
            exclude_id=leave_req.id,
        ):
            logger.warning(
                "Overlap detected after insert for %s (%s..%s)",
                principal.user_id, data.start_date, data.end_date,
            )
            raise OverlapConflictError(data.start_date, data.end_date)

        await create_audit_entry(
            db,
            action="create",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=principal.user_id,
            new_values=LeaveService._snapshot(leave_req),
            at=now,
        )

        logger.info(
            "Leave request %s created for %s: %d day(s), %d paid, %d unpaid",
            leave_req.id, principal.user_id,
            allocation.total_days, allocation.paid_days, allocation.unpaid_days,
        )
        return LeaveRequestOut.model_validate(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Edit
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def edit_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        principal: Principal,
        data: LeaveRequestUpdate,
        *,
        policy: AccountingPolicy,
        clock: Clock,
    ) -> LeaveRequestOut:
        """Replace dates and reason of a pending request and re-allocate its days."""
        leave_req = await LeaveService._load_own_request(db, request_id, principal.user_id)

        if leave_req.status != LeaveStatus.pending:
            raise InvalidStateError(_ENTITY, leave_req.status.value, "edit")

        LeaveService._validate_span(data.start_date, data.end_date)

        await DirectoryService.get_employee(db, principal.user_id, for_update=True)

        if await LeaveService._has_overlap(
            db, principal.user_id, data.start_date, data.end_date,
            exclude_id=leave_req.id,
        ):
            raise OverlapConflictError(data.start_date, data.end_date)

        allocation = await LeaveService._allocate(
            db, principal.user_id, principal.role,
            data.start_date, data.end_date, policy,
            exclude_id=leave_req.id,
        )

        old_values = LeaveService._snapshot(leave_req)
        now = clock.now()

        leave_req.start_date = data.start_date
        leave_req.end_date = data.end_date
        leave_req.reason = data.reason
        leave_req.total_days = allocation.total_days
        leave_req.paid_days = allocation.paid_days
        leave_req.unpaid_days = allocation.unpaid_days
        leave_req.salary_cut = allocation.salary_cut
        leave_req.updated_at = now
        await db.flush()

        await create_audit_entry(
            db,
            action="update",
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=principal.user_id,
            old_values=old_values,
            new_values=LeaveService._snapshot(leave_req),
            at=now,
        )

        logger.info("Leave request %s edited by %s", leave_req.id, principal.user_id)
        return LeaveRequestOut.model_validate(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Delete
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def delete_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        principal: Principal,
        *,
        clock: Clock,
    ) -> None:
        """Delete an own request that is pending or rejected."""
        leave_req = await LeaveService._load_own_request(db, request_id, principal.user_id)

        if leave_req.status == LeaveStatus.approved:
            raise InvalidStateError(_ENTITY, leave_req.status.value, "delete")

        old_values = LeaveService._snapshot(leave_req)
        await db.delete(leave_req)
        await db.flush()

        await create_audit_entry(
            db,
            action="delete",
            entity_type="leave_request",
            entity_id=request_id,
            actor_id=principal.user_id,
            old_values=old_values,
            at=clock.now(),
        )

        logger.info("Leave request %s deleted by %s", request_id, principal.user_id)

    # ─────────────────────────────────────────────────────────────────
    # Approve / Reject
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def decide(
        db: AsyncSession,
        request_id: uuid.UUID,
        principal: Principal,
        decision: LeaveStatus,
        *,
        clock: Clock,
        remarks: Optional[str] = None,
    ) -> LeaveRequestOut:
        """Move a pending request to ``approved`` or ``rejected``.

        Checks run in order: existence, self-decision, reviewer authority,
        then state. The status write is a conditional update on
        ``status = 'pending'`` so that of two racing reviewers exactly one
        wins and the other gets ``InvalidStateError``.
        """
        if decision not in (LeaveStatus.approved, LeaveStatus.rejected):
            raise ValueError(f"Not a terminal leave status: {decision!r}")
        action = "approve" if decision == LeaveStatus.approved else "reject"

        leave_req = await db.get(LeaveRequest, request_id)
        if leave_req is None:
            raise NotFoundException("LeaveRequest", request_id)

        if leave_req.requester_id == principal.user_id:
            raise SelfApprovalError()

        if not await LeaveService._reviewer_may_decide(db, principal, leave_req):
            raise ForbiddenException(
                f"You are not authorized to {action} this leave request."
            )

        if leave_req.status != LeaveStatus.pending:
            raise InvalidStateError(_ENTITY, leave_req.status.value, action)

        now = clock.now()
        result = await db.execute(
            update(LeaveRequest)
            .where(
                LeaveRequest.id == request_id,
                LeaveRequest.status == LeaveStatus.pending,
            )
            .values(
                status=decision,
                approver_id=principal.user_id,
                decided_at=now,
                reviewer_remarks=remarks,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        await db.refresh(leave_req)

        if result.rowcount == 0:
            logger.warning(
                "Lost decision race on leave request %s (now %s)",
                request_id, leave_req.status.value,
            )
            raise InvalidStateError(_ENTITY, leave_req.status.value, action)

        await create_audit_entry(
            db,
            action=action,
            entity_type="leave_request",
            entity_id=leave_req.id,
            actor_id=principal.user_id,
            old_values={"status": LeaveStatus.pending.value},
            new_values={"status": decision.value, "remarks": remarks},
            at=now,
        )

        logger.info(
            "Leave request %s %s by %s (%s)",
            request_id, decision.value, principal.user_id, principal.role.value,
        )
        return LeaveRequestOut.model_validate(leave_req)

    # ─────────────────────────────────────────────────────────────────
    # Read
    # ─────────────────────────────────────────────────────────────────

    @staticmethod
    async def get_request(
        db: AsyncSession,
        request_id: uuid.UUID,
        principal: Principal,
    ) -> LeaveRequestOut:
        """A single request, visible to its owner and to anyone who may decide it."""
        leave_req = await db.get(LeaveRequest, request_id)
        if leave_req is None:
            raise NotFoundException("LeaveRequest", request_id)

        if leave_req.requester_id != principal.user_id and not (
            await LeaveService._reviewer_may_decide(db, principal, leave_req)
        ):
            raise ForbiddenException("You cannot view this leave request.")

        return LeaveRequestOut.model_validate(leave_req)

    @staticmethod
    async def list_my_requests(
        db: AsyncSession,
        principal: Principal,
        *,
        status: Optional[LeaveStatus] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> LeaveRequestListResponse:
        """The caller's own requests, newest first."""
        query = (
            select(LeaveRequest)
            .where(LeaveRequest.requester_id == principal.user_id)
            .order_by(LeaveRequest.created_at.desc(), LeaveRequest.start_date.desc())
        )
        if status is not None:
            query = query.where(LeaveRequest.status == status)

        rows, meta = await paginate(db, query, page=page, page_size=page_size)
        return LeaveRequestListResponse(
            data=[LeaveRequestOut.model_validate(r) for r in rows],
            meta=meta,
        )

    @staticmethod
    async def list_pending_for_reviewer(
        db: AsyncSession,
        principal: Principal,
    ) -> list[LeaveRequestOut]:
        """Pending requests *principal* may decide, oldest first."""
        if principal.role == UserRole.employee:
            return []

        query = (
            select(LeaveRequest, Employee.role, Employee.manager_id)
            .join(Employee, Employee.id == LeaveRequest.requester_id)
            .where(
                LeaveRequest.status == LeaveStatus.pending,
                LeaveRequest.requester_id != principal.user_id,
            )
            .order_by(LeaveRequest.created_at.asc(), LeaveRequest.start_date.asc())
        )
        if principal.role == UserRole.manager:
            query = query.where(Employee.manager_id == principal.user_id)

        result = await db.execute(query)
        return [
            LeaveRequestOut.model_validate(leave_req)
            for leave_req, requester_role, manager_id in result.all()
            if can_decide(
                principal.role, requester_role, manager_id == principal.user_id,
            )
        ]

    @staticmethod
    async def get_yearly_summary(
        db: AsyncSession,
        principal: Principal,
        year: int,
    ) -> YearlyLeaveSummaryResponse:
        """Per-employee paid/unpaid days in *year*, scoped by the caller's role.

        admin and hr see everyone, a manager sees self plus direct reports,
        anyone else sees only themselves.
        """
        query = select(LeaveRequest).where(
            LeaveRequest.status.in_(ACTIVE_LEAVE_STATUSES),
            LeaveRequest.start_date <= date(year, 12, 31),
            LeaveRequest.end_date >= date(year, 1, 1),
        )

        if principal.role == UserRole.manager:
            scope = await DirectoryService.direct_report_ids(db, principal.user_id)
            scope.append(principal.user_id)
            query = query.where(LeaveRequest.requester_id.in_(scope))
        elif principal.role not in (UserRole.admin, UserRole.hr):
            query = query.where(LeaveRequest.requester_id == principal.user_id)

        requests: Sequence[LeaveRequest] = (await db.execute(query)).scalars().all()
        return YearlyLeaveSummaryResponse(
            year=year,
            data=summarize_year(requests, year),
        )
