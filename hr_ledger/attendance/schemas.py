"""Attendance Pydantic v2 schemas: request / response validation.

Naming conventions:
  - *Request  → request bodies (write)
  - *Out / *Response → response bodies (read)
"""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from hr_ledger.common.pagination import PaginationMeta


# ═════════════════════════════════════════════════════════════════════
# Check in / out
# ═════════════════════════════════════════════════════════════════════


class CheckInRequest(BaseModel):
    """Payload for checking in.

    ``work_date`` is the caller's local calendar day; when omitted the server's
    configured timezone decides it.
    """

    work_date: Optional[date] = None
    photo_url: Optional[str] = Field(None, max_length=500)
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    location_name: Optional[str] = Field(None, max_length=255)
    device_type: Optional[str] = Field(
        None,
        max_length=50,
        description="Capture source: web, mobile, kiosk",
    )


class CheckOutRequest(BaseModel):
    """Payload for checking out."""

    work_date: Optional[date] = None


# ═════════════════════════════════════════════════════════════════════
# Attendance record
# ═════════════════════════════════════════════════════════════════════


class AttendanceRecordOut(BaseModel):
    """Single attendance record for a day."""

    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    user_id: uuid.UUID
    date: date
    check_in: datetime
    check_out: Optional[datetime] = None
    worked_minutes: int = 0
    short_by_minutes: int = 0
    salary_cut: bool = False
    photo_url: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    location_name: Optional[str] = None
    device_type: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class AttendanceTodayResponse(BaseModel):
    """The caller's record for one day, or ``None`` if not checked in."""

    date: date
    record: Optional[AttendanceRecordOut] = None


class AttendanceListResponse(BaseModel):
    """Paginated attendance list."""

    data: list[AttendanceRecordOut]
    meta: PaginationMeta
