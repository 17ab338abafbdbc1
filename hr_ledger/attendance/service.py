"""Attendance service layer: daily check-in/check-out and shortfall.

Business logic:
  - One check-in per user per calendar day (storage unique constraint is
    the final arbiter)
  - Check-out exactly once, computing worked minutes, shortfall and the
    salary-cut flag against the policy minimum
  - Read operations for self and HR/admin views
"""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hr_ledger.attendance.models import AttendanceRecord
from hr_ledger.attendance.schemas import (
    AttendanceListResponse,
    AttendanceRecordOut,
    AttendanceTodayResponse,
    CheckInRequest,
)
from hr_ledger.attendance.shortfall import compute_shortfall
from hr_ledger.common.audit import create_audit_entry
from hr_ledger.common.clock import Clock, as_utc
from hr_ledger.common.constants import MAX_ATTENDANCE_RANGE_DAYS
from hr_ledger.common.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    InvalidRangeError,
    NoCheckInError,
    ValidationException,
)
from hr_ledger.common.pagination import paginate
from hr_ledger.common.policy import AccountingPolicy
from hr_ledger.config import settings
from hr_ledger.directory.service import DirectoryService

logger = logging.getLogger(__name__)

# Name of the one-record-per-day constraint; SQLite reports the columns instead
_UNIQUE_DAY_MARKERS = (
    "uq_attendance_user_date",
    "UNIQUE constraint failed: attendance_records.user_id, attendance_records.date",
)


# ═════════════════════════════════════════════════════════════════════
# AttendanceService
# ═════════════════════════════════════════════════════════════════════


class AttendanceService:
    """Async attendance operations: check in, check out, read."""

    # ── Helpers ─────────────────────────────────────────────────────

    @staticmethod
    def resolve_day(work_date: Optional[date], clock: Clock) -> date:
        """The caller-supplied day, or today in the configured timezone."""
        return work_date or clock.today(settings.TIMEZONE)

    @staticmethod
    async def _get_record(
        db: AsyncSession,
        user_id: uuid.UUID,
        work_date: date,
    ) -> Optional[AttendanceRecord]:
        result = await db.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.user_id == user_id,
                AttendanceRecord.date == work_date,
            )
        )
        return result.scalars().first()

    @staticmethod
    def _is_duplicate_day(exc: IntegrityError) -> bool:
        err = str(exc.orig)
        return any(marker in err for marker in _UNIQUE_DAY_MARKERS)

    @staticmethod
    def _validate_date_range(from_date: date, to_date: date) -> None:
        """Ensure date range is ordered and within MAX_ATTENDANCE_RANGE_DAYS."""
        if to_date < from_date:
            raise InvalidRangeError(from_date, to_date)
        if (to_date - from_date).days >= MAX_ATTENDANCE_RANGE_DAYS:
            raise ValidationException(
                {"date_range": [
                    f"Date range cannot exceed {MAX_ATTENDANCE_RANGE_DAYS} days."
                ]}
            )

    # ── Check in ────────────────────────────────────────────────────

    @staticmethod
    async def check_in(
        db: AsyncSession,
        user_id: uuid.UUID,
        data: CheckInRequest,
        *,
        clock: Clock,
    ) -> AttendanceRecordOut:
        """Create the day's record with ``check_in = now``."""
        work_date = AttendanceService.resolve_day(data.work_date, clock)

        await DirectoryService.get_employee(db, user_id)

        if await AttendanceService._get_record(db, user_id, work_date) is not None:
            raise AlreadyCheckedInError(work_date)

        now = clock.now()
        record = AttendanceRecord(
            user_id=user_id,
            date=work_date,
            check_in=now,
            worked_minutes=0,
            short_by_minutes=0,
            salary_cut=False,
            photo_url=data.photo_url,
            latitude=data.latitude,
            longitude=data.longitude,
            location_name=data.location_name,
            device_type=data.device_type,
            created_at=now,
            updated_at=now,
        )
        db.add(record)
        try:
            await db.flush()
        except IntegrityError as exc:
            await db.rollback()
            if not AttendanceService._is_duplicate_day(exc):
                raise
            # A concurrent check-in for the same day won the unique constraint
            logger.warning("Duplicate check-in rejected for %s on %s", user_id, work_date)
            raise AlreadyCheckedInError(work_date)

        await create_audit_entry(
            db,
            action="check_in",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=user_id,
            new_values={
                "date": work_date.isoformat(),
                "check_in": now.isoformat(),
                "device_type": data.device_type,
            },
            at=now,
        )

        logger.info("Check-in %s for %s on %s", record.id, user_id, work_date)
        return AttendanceRecordOut.model_validate(record)

    # ── Check out ───────────────────────────────────────────────────

    @staticmethod
    async def check_out(
        db: AsyncSession,
        user_id: uuid.UUID,
        work_date: Optional[date],
        *,
        policy: AccountingPolicy,
        clock: Clock,
    ) -> AttendanceRecordOut:
        """Close the day's record and compute worked minutes and shortfall."""
        work_date = AttendanceService.resolve_day(work_date, clock)

        record = await AttendanceService._get_record(db, user_id, work_date)
        if record is None:
            raise NoCheckInError(work_date)
        if record.check_out is not None:
            raise AlreadyCheckedOutError(work_date)

        now = clock.now()
        check_in = as_utc(record.check_in)
        checkout_at = now
        if now < check_in:
            logger.warning(
                "Clock went backwards for %s on %s: check-in %s, now %s",
                user_id, work_date, check_in.isoformat(), now.isoformat(),
            )
            checkout_at = check_in

        shortfall = compute_shortfall(check_in, checkout_at, policy)

        result = await db.execute(
            update(AttendanceRecord)
            .where(
                AttendanceRecord.id == record.id,
                AttendanceRecord.check_out.is_(None),
            )
            .values(
                check_out=checkout_at,
                worked_minutes=shortfall.worked_minutes,
                short_by_minutes=shortfall.short_by_minutes,
                salary_cut=shortfall.salary_cut,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            logger.warning("Concurrent check-out rejected for %s on %s", user_id, work_date)
            raise AlreadyCheckedOutError(work_date)

        await db.refresh(record)

        await create_audit_entry(
            db,
            action="check_out",
            entity_type="attendance_record",
            entity_id=record.id,
            actor_id=user_id,
            old_values={"check_out": None},
            new_values={
                "check_out": checkout_at.isoformat(),
                "worked_minutes": shortfall.worked_minutes,
                "short_by_minutes": shortfall.short_by_minutes,
                "salary_cut": shortfall.salary_cut,
            },
            at=now,
        )

        logger.info(
            "Check-out %s for %s on %s: worked %d min, short %d min",
            record.id, user_id, work_date,
            shortfall.worked_minutes, shortfall.short_by_minutes,
        )
        return AttendanceRecordOut.model_validate(record)

    # ── Read ────────────────────────────────────────────────────────

    @staticmethod
    async def get_day(
        db: AsyncSession,
        user_id: uuid.UUID,
        work_date: date,
    ) -> AttendanceTodayResponse:
        record = await AttendanceService._get_record(db, user_id, work_date)
        return AttendanceTodayResponse(
            date=work_date,
            record=AttendanceRecordOut.model_validate(record) if record else None,
        )

    @staticmethod
    async def list_my_attendance(
        db: AsyncSession,
        user_id: uuid.UUID,
        from_date: date,
        to_date: date,
        *,
        page: int = 1,
        page_size: int = 50,
    ) -> AttendanceListResponse:
        """Own attendance records, newest first."""
        return await AttendanceService.list_all_attendance(
            db, from_date, to_date, user_id=user_id, page=page, page_size=page_size,
        )

    @staticmethod
    async def list_all_attendance(
        db: AsyncSession,
        from_date: date,
        to_date: date,
        *,
        user_id: Optional[uuid.UUID] = None,
        page: int = 1,
        page_size: int = 50,
    ) -> AttendanceListResponse:
        """Every user's records in the window, optionally for one user."""
        AttendanceService._validate_date_range(from_date, to_date)

        query = (
            select(AttendanceRecord)
            .where(
                AttendanceRecord.date >= from_date,
                AttendanceRecord.date <= to_date,
            )
            .order_by(AttendanceRecord.date.desc(), AttendanceRecord.check_in.desc())
        )
        if user_id is not None:
            query = query.where(AttendanceRecord.user_id == user_id)

        rows, meta = await paginate(db, query, page=page, page_size=page_size)
        return AttendanceListResponse(
            data=[AttendanceRecordOut.model_validate(r) for r in rows],
            meta=meta,
        )
