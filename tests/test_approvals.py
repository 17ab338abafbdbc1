"""Approval authorization policy, service-level decisions and reviewer queue."""

from __future__ import annotations

import uuid
from datetime import date

import pytest

from hr_ledger.auth.schemas import Principal
from hr_ledger.common.constants import LeaveStatus, UserRole
from hr_ledger.common.exceptions import (
    ForbiddenException,
    InvalidStateError,
    NotFoundException,
    SelfApprovalError,
)
from hr_ledger.leave.approvals import can_decide
from hr_ledger.leave.models import LeaveRequest
from hr_ledger.leave.schemas import LeaveRequestCreate
from hr_ledger.leave.service import LeaveService


def _as(emp) -> Principal:
    return Principal(user_id=emp.id, role=emp.role)


async def _submit(db, emp, clock, policy, start=date(2026, 4, 6), end=date(2026, 4, 7)):
    return await LeaveService.create_request(
        db, _as(emp),
        LeaveRequestCreate(start_date=start, end_date=end, reason="Family event"),
        policy=policy, clock=clock,
    )


# ═════════════════════════════════════════════════════════════════════
# 1. Pure predicate
# ═════════════════════════════════════════════════════════════════════


class TestCanDecide:

    @pytest.mark.parametrize("requester", list(UserRole))
    def test_admin_decides_anything(self, requester):
        assert can_decide(UserRole.admin, requester, False) is True

    def test_hr_cannot_decide_for_hr(self):
        assert can_decide(UserRole.hr, UserRole.hr, False) is False

    @pytest.mark.parametrize("requester", [UserRole.employee, UserRole.manager, UserRole.admin])
    def test_hr_decides_non_hr(self, requester):
        assert can_decide(UserRole.hr, requester, False) is True

    def test_manager_decides_direct_report(self):
        assert can_decide(UserRole.manager, UserRole.employee, True) is True

    def test_manager_cannot_decide_non_report(self):
        assert can_decide(UserRole.manager, UserRole.employee, False) is False

    def test_manager_cannot_decide_other_manager_even_if_reporting(self):
        assert can_decide(UserRole.manager, UserRole.manager, True) is False

    def test_employee_never_decides(self):
        assert can_decide(UserRole.employee, UserRole.employee, True) is False


# ═════════════════════════════════════════════════════════════════════
# 2. LeaveService.decide
# ═════════════════════════════════════════════════════════════════════


class TestDecide:

    async def test_manager_approves_direct_report(self, db, make_employee, clock, policy):
        mgr = await make_employee(role=UserRole.manager)
        emp = await make_employee(manager_id=mgr.id)
        req = await _submit(db, emp, clock, policy)

        result = await LeaveService.decide(
            db, req.id, _as(mgr), LeaveStatus.approved, clock=clock, remarks="Enjoy",
        )

        assert result.status == LeaveStatus.approved
        assert result.approver_id == mgr.id
        assert result.decided_at is not None
        assert result.reviewer_remarks == "Enjoy"

    async def test_manager_of_other_team_forbidden(self, db, make_employee, clock, policy):
        mgr_a = await make_employee(role=UserRole.manager)
        mgr_b = await make_employee(role=UserRole.manager)
        emp = await make_employee(manager_id=mgr_b.id)
        req = await _submit(db, emp, clock, policy)

        with pytest.raises(ForbiddenException):
            await LeaveService.decide(db, req.id, _as(mgr_a), LeaveStatus.approved, clock=clock)

        stored = await db.get(LeaveRequest, req.id)
        assert stored.status == LeaveStatus.pending
        assert stored.approver_id is None

    async def test_hr_cannot_decide_hr_but_admin_can(self, db, make_employee, clock, policy):
        hr_a = await make_employee(role=UserRole.hr)
        hr_b = await make_employee(role=UserRole.hr)
        admin = await make_employee(role=UserRole.admin)
        req = await _submit(db, hr_a, clock, policy)

        with pytest.raises(ForbiddenException):
            await LeaveService.decide(db, req.id, _as(hr_b), LeaveStatus.approved, clock=clock)

        result = await LeaveService.decide(
            db, req.id, _as(admin), LeaveStatus.approved, clock=clock,
        )
        assert result.status == LeaveStatus.approved
        assert result.approver_id == admin.id

    async def test_self_approval_rejected_even_for_admin(self, db, make_employee, clock, policy):
        admin = await make_employee(role=UserRole.admin)
        req = await _submit(db, admin, clock, policy)

        with pytest.raises(SelfApprovalError):
            await LeaveService.decide(db, req.id, _as(admin), LeaveStatus.approved, clock=clock)

    async def test_missing_request_is_not_found(self, db, make_employee, clock):
        admin = await make_employee(role=UserRole.admin)
        with pytest.raises(NotFoundException):
            await LeaveService.decide(
                db, uuid.uuid4(), _as(admin), LeaveStatus.rejected, clock=clock,
            )

    async def test_second_decision_is_invalid_state(self, db, make_employee, clock, policy):
        hr = await make_employee(role=UserRole.hr)
        emp = await make_employee()
        req = await _submit(db, emp, clock, policy)

        await LeaveService.decide(db, req.id, _as(hr), LeaveStatus.rejected, clock=clock)
        with pytest.raises(InvalidStateError):
            await LeaveService.decide(db, req.id, _as(hr), LeaveStatus.approved, clock=clock)

        stored = await db.get(LeaveRequest, req.id)
        assert stored.status == LeaveStatus.rejected

    async def test_racing_reviewer_with_stale_read_loses(
        self, db, make_employee, session_factory, clock, policy,
    ):
        """A reviewer who loaded the request before another's decision gets InvalidState."""
        mgr = await make_employee(role=UserRole.manager)
        hr = await make_employee(role=UserRole.hr)
        emp = await make_employee(manager_id=mgr.id)
        req = await _submit(db, emp, clock, policy)
        await db.commit()

        async with session_factory() as late:
            stale = await late.get(LeaveRequest, req.id)
            assert stale.status == LeaveStatus.pending

            async with session_factory() as first:
                await LeaveService.decide(
                    first, req.id, _as(mgr), LeaveStatus.approved, clock=clock,
                )
                await first.commit()

            with pytest.raises(InvalidStateError):
                await LeaveService.decide(
                    late, req.id, _as(hr), LeaveStatus.rejected, clock=clock,
                )
            await late.rollback()

        async with session_factory() as check:
            stored = await check.get(LeaveRequest, req.id)
            assert stored.status == LeaveStatus.approved
            assert stored.approver_id == mgr.id


# ═════════════════════════════════════════════════════════════════════
# 3. Reviewer queue and single-request visibility
# ═════════════════════════════════════════════════════════════════════


class TestReviewerViews:

    async def test_manager_queue_only_direct_reports(self, db, make_employee, clock, policy):
        mgr = await make_employee(role=UserRole.manager)
        mine = await make_employee(manager_id=mgr.id)
        other = await make_employee()
        own_req = await _submit(db, mine, clock, policy)
        await _submit(db, other, clock, policy)
        await _submit(db, mgr, clock, policy)

        queue = await LeaveService.list_pending_for_reviewer(db, _as(mgr))
        assert [r.id for r in queue] == [own_req.id]

    async def test_hr_queue_excludes_hr_and_self(self, db, make_employee, clock, policy):
        hr_a = await make_employee(role=UserRole.hr)
        hr_b = await make_employee(role=UserRole.hr)
        emp = await make_employee()
        emp_req = await _submit(db, emp, clock, policy)
        await _submit(db, hr_a, clock, policy)
        await _submit(db, hr_b, clock, policy)

        queue = await LeaveService.list_pending_for_reviewer(db, _as(hr_a))
        assert [r.id for r in queue] == [emp_req.id]

    async def test_employee_queue_empty(self, db, make_employee, clock, policy):
        emp = await make_employee()
        other = await make_employee()
        await _submit(db, other, clock, policy)
        assert await LeaveService.list_pending_for_reviewer(db, _as(emp)) == []

    async def test_get_request_visibility(self, db, make_employee, clock, policy):
        mgr = await make_employee(role=UserRole.manager)
        emp = await make_employee(manager_id=mgr.id)
        stranger = await make_employee()
        req = await _submit(db, emp, clock, policy)

        assert (await LeaveService.get_request(db, req.id, _as(emp))).id == req.id
        assert (await LeaveService.get_request(db, req.id, _as(mgr))).id == req.id
        with pytest.raises(ForbiddenException):
            await LeaveService.get_request(db, req.id, _as(stranger))
