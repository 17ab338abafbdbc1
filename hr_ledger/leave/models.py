"""Leave ORM model: LeaveRequest."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_ledger.common.constants import LeaveStatus
from hr_ledger.database import Base
from hr_ledger.directory.models import Employee


class LeaveRequest(Base):
    __tablename__ = "leave_requests"
    __table_args__ = (
        sa.CheckConstraint(
            "total_days = paid_days + unpaid_days", name="ck_leave_days_sum"
        ),
        sa.CheckConstraint("end_date >= start_date", name="ck_leave_range"),
        sa.CheckConstraint(
            "paid_days >= 0 AND unpaid_days >= 0", name="ck_leave_days_non_negative"
        ),
        sa.Index("ix_leave_requests_requester_dates", "requester_id", "start_date"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    requester_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    start_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    end_date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    reason: Mapped[str] = mapped_column(sa.String(1000), nullable=False)
    status: Mapped[LeaveStatus] = mapped_column(
        sa.Enum(LeaveStatus, name="leave_status", create_type=False),
        nullable=False,
        default=LeaveStatus.pending,
    )
    total_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    paid_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    unpaid_days: Mapped[int] = mapped_column(sa.Integer, nullable=False)
    salary_cut: Mapped[bool] = mapped_column(sa.Boolean, nullable=False)
    approver_id: Mapped[Optional[uuid.UUID]] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id")
    )
    decided_at: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    reviewer_remarks: Mapped[Optional[str]] = mapped_column(sa.Text)
    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )

    # Relationships
    requester: Mapped[Employee] = relationship(foreign_keys=[requester_id])
    approver: Mapped[Optional[Employee]] = relationship(foreign_keys=[approver_id])
