"""Directory lookups used by the ledger, plus manager-role reconciliation."""

from __future__ import annotations

import logging
import uuid
from typing import Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from hr_ledger.common.audit import create_audit_entry
from hr_ledger.common.constants import UserRole
from hr_ledger.common.exceptions import NotFoundException
from hr_ledger.directory.models import Employee

logger = logging.getLogger(__name__)


class DirectoryService:
    """Read-mostly access to employees, roles and reporting lines."""

    @staticmethod
    async def get_employee(
        db: AsyncSession,
        employee_id: uuid.UUID,
        *,
        for_update: bool = False,
    ) -> Employee:
        """Load an employee or raise ``NotFoundException``.

        ``for_update`` takes a row lock, used to serialize a requester's
        concurrent leave submissions.
        """
        query = select(Employee).where(Employee.id == employee_id)
        if for_update:
            query = query.with_for_update()
        employee = (await db.execute(query)).scalars().first()
        if employee is None:
            raise NotFoundException("Employee", employee_id)
        return employee

    @staticmethod
    async def get_role(db: AsyncSession, employee_id: uuid.UUID) -> Optional[UserRole]:
        result = await db.execute(
            select(Employee.role).where(Employee.id == employee_id)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def is_direct_manager_of(
        db: AsyncSession,
        manager_id: uuid.UUID,
        employee_id: uuid.UUID,
    ) -> bool:
        result = await db.execute(
            select(Employee.manager_id).where(Employee.id == employee_id)
        )
        return result.scalar_one_or_none() == manager_id

    @staticmethod
    async def direct_report_ids(
        db: AsyncSession,
        manager_id: uuid.UUID,
        *,
        active_only: bool = True,
    ) -> list[uuid.UUID]:
        query = select(Employee.id).where(Employee.manager_id == manager_id)
        if active_only:
            query = query.where(Employee.is_active.is_(True))
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def reconcile_manager_roles(
        db: AsyncSession,
        *,
        actor_id: Optional[uuid.UUID] = None,
    ) -> list[uuid.UUID]:
        """Promote active ``employee``-role users with active direct reports.

        Idempotent: a second run promotes nobody. ``hr`` and ``admin`` users
        are never touched, and nobody is demoted.
        """
        report = aliased(Employee)
        has_reports = (
            select(report.id)
            .where(report.manager_id == Employee.id, report.is_active.is_(True))
            .exists()
        )
        result = await db.execute(
            select(Employee)
            .where(
                Employee.role == UserRole.employee,
                Employee.is_active.is_(True),
                has_reports,
            )
            .order_by(Employee.employee_code)
        )
        candidates: Sequence[Employee] = result.scalars().all()

        promoted: list[uuid.UUID] = []
        for employee in candidates:
            employee.role = UserRole.manager
            promoted.append(employee.id)
            await create_audit_entry(
                db,
                action="promote",
                entity_type="employee",
                entity_id=employee.id,
                actor_id=actor_id,
                old_values={"role": UserRole.employee.value},
                new_values={"role": UserRole.manager.value},
            )

        if promoted:
            await db.flush()
            logger.info("Promoted %d employee(s) to manager", len(promoted))
        return promoted
