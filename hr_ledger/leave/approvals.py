"""Approval authorization policy for leave decisions.

A pure predicate over roles and the reporting line. Self-decision is not
handled here; the lifecycle rejects it before consulting this policy.
"""

from __future__ import annotations

from hr_ledger.common.constants import UserRole


def can_decide(
    approver_role: UserRole,
    requester_role: UserRole,
    is_direct_manager: bool,
) -> bool:
    """Return True if *approver_role* may approve/reject the request.

    - admin decides anything.
    - hr decides anything not authored by another hr user.
    - manager decides only requests from their own direct reports who hold
      the base employee role.
    """
    if approver_role == UserRole.admin:
        return True
    if approver_role == UserRole.hr:
        return requester_role != UserRole.hr
    if approver_role == UserRole.manager:
        return is_direct_manager and requester_role == UserRole.employee
    return False
