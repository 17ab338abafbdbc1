"""Attendance ORM model: AttendanceRecord."""

from __future__ import annotations

import uuid
from datetime import date, datetime
from typing import Optional

import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hr_ledger.database import Base
from hr_ledger.directory.models import Employee


class AttendanceRecord(Base):
    __tablename__ = "attendance_records"
    __table_args__ = (
        sa.UniqueConstraint("user_id", "date", name="uq_attendance_user_date"),
        sa.CheckConstraint(
            "check_out IS NULL OR check_out >= check_in",
            name="ck_attendance_checkout_order",
        ),
        sa.CheckConstraint(
            "worked_minutes >= 0 AND short_by_minutes >= 0",
            name="ck_attendance_minutes_non_negative",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), sa.ForeignKey("employees.id"), nullable=False
    )
    date: Mapped[date] = mapped_column(sa.Date, nullable=False)
    check_in: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), nullable=False
    )
    check_out: Mapped[Optional[datetime]] = mapped_column(
        sa.DateTime(timezone=True)
    )
    worked_minutes: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0
    )
    short_by_minutes: Mapped[int] = mapped_column(
        sa.Integer, nullable=False, default=0
    )
    salary_cut: Mapped[bool] = mapped_column(
        sa.Boolean, nullable=False, default=False
    )

    # Capture metadata from the client
    photo_url: Mapped[Optional[str]] = mapped_column(sa.String(500))
    latitude: Mapped[Optional[float]] = mapped_column(sa.Float)
    longitude: Mapped[Optional[float]] = mapped_column(sa.Float)
    location_name: Mapped[Optional[str]] = mapped_column(sa.String(255))
    device_type: Mapped[Optional[str]] = mapped_column(sa.String(50))

    created_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True), server_default=sa.func.now()
    )

    # Relationships
    user: Mapped[Employee] = relationship(foreign_keys=[user_id])
