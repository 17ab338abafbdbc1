"""Common module: shared utilities for HR Ledger."""

from hr_ledger.common.clock import Clock, get_clock
from hr_ledger.common.constants import (
    ACTIVE_LEAVE_STATUSES,
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    LeaveStatus,
    UserRole,
)
from hr_ledger.common.exceptions import (
    AlreadyCheckedInError,
    AlreadyCheckedOutError,
    AppException,
    ForbiddenException,
    InvalidRangeError,
    InvalidStateError,
    NoCheckInError,
    NotFoundException,
    OverlapConflictError,
    SelfApprovalError,
    UnauthorizedException,
    ValidationException,
    register_exception_handlers,
)
from hr_ledger.common.pagination import (
    PaginationMeta,
    PaginationParams,
    paginate,
)
from hr_ledger.common.policy import AccountingPolicy

__all__ = [
    # Clock / policy
    "AccountingPolicy",
    "Clock",
    "get_clock",
    # Constants / Enums
    "ACTIVE_LEAVE_STATUSES",
    "LeaveStatus",
    "UserRole",
    "DEFAULT_PAGE_SIZE",
    "MAX_PAGE_SIZE",
    # Exceptions
    "AlreadyCheckedInError",
    "AlreadyCheckedOutError",
    "AppException",
    "ForbiddenException",
    "InvalidRangeError",
    "InvalidStateError",
    "NoCheckInError",
    "NotFoundException",
    "OverlapConflictError",
    "SelfApprovalError",
    "UnauthorizedException",
    "ValidationException",
    "register_exception_handlers",
    # Pagination
    "PaginationMeta",
    "PaginationParams",
    "paginate",
]
