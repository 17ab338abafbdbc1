"""Domain exceptions and RFC 7807 Problem Detail error handlers."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

BASE_ERROR_URI = "https://hr-ledger.local/errors"


# ── Exception hierarchy ─────────────────────────────────────────────

class AppException(Exception):
    """Base for all application exceptions → RFC 7807 JSON."""

    def __init__(
        self,
        status_code: int,
        error_type: str,
        title: str,
        detail: str,
        errors: Optional[dict[str, Any]] = None,
    ) -> None:
        self.status_code = status_code
        self.error_type = error_type
        self.title = title
        self.detail = detail
        self.errors = errors
        super().__init__(detail)


class NotFoundException(AppException):
    """404: entity not found (or not owned by the caller)."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(
            status_code=404,
            error_type="not-found",
            title=f"{entity_type} Not Found",
            detail=f"{entity_type} with id '{entity_id}' does not exist.",
        )


class ForbiddenException(AppException):
    """403: insufficient permissions."""

    def __init__(
        self,
        detail: str = "You do not have permission to perform this action.",
    ) -> None:
        super().__init__(
            status_code=403,
            error_type="forbidden",
            title="Forbidden",
            detail=detail,
        )


class UnauthorizedException(AppException):
    """401: missing, malformed or expired credentials."""

    def __init__(self, detail: str = "Authentication required.") -> None:
        super().__init__(
            status_code=401,
            error_type="unauthorized",
            title="Unauthorized",
            detail=detail,
        )


class ValidationException(AppException):
    """422: business-logic validation failures."""

    def __init__(self, errors: dict[str, list[str]]) -> None:
        super().__init__(
            status_code=422,
            error_type="validation-error",
            title="Validation Error",
            detail="One or more fields failed validation.",
            errors=errors,
        )


class InvalidRangeError(AppException):
    """422: an inclusive date range whose end precedes its start."""

    def __init__(self, start: date, end: date) -> None:
        super().__init__(
            status_code=422,
            error_type="invalid-range",
            title="Invalid Date Range",
            detail=f"End date {end.isoformat()} precedes start date {start.isoformat()}.",
            errors={"end_date": ["must be on or after start_date."]},
        )


class OverlapConflictError(AppException):
    """409: a non-rejected leave request already covers a requested day."""

    def __init__(self, start: date, end: date) -> None:
        super().__init__(
            status_code=409,
            error_type="overlap-conflict",
            title="Overlapping Leave Request",
            detail=(
                "You already have a pending or approved leave request "
                f"overlapping {start.isoformat()} to {end.isoformat()}."
            ),
        )


class InvalidStateError(AppException):
    """409: the entity's current state forbids the operation."""

    def __init__(self, entity_type: str, state: str, action: str) -> None:
        super().__init__(
            status_code=409,
            error_type="invalid-state",
            title="Invalid State",
            detail=f"Cannot {action} a {entity_type} that is {state}.",
        )


class SelfApprovalError(AppException):
    """403: a reviewer tried to decide their own request."""

    def __init__(self) -> None:
        super().__init__(
            status_code=403,
            error_type="self-approval",
            title="Self Approval",
            detail="You cannot approve or reject your own leave request.",
        )


class AlreadyCheckedInError(AppException):
    """409: a check-in already exists for this user and day."""

    def __init__(self, day: date) -> None:
        super().__init__(
            status_code=409,
            error_type="already-checked-in",
            title="Already Checked In",
            detail=f"You have already checked in for {day.isoformat()}.",
        )


class NoCheckInError(AppException):
    """409: check-out attempted without a check-in for the day."""

    def __init__(self, day: date) -> None:
        super().__init__(
            status_code=409,
            error_type="no-check-in",
            title="No Check-In",
            detail=f"No check-in found for {day.isoformat()}. Please check in first.",
        )


class AlreadyCheckedOutError(AppException):
    """409: check-out already recorded for the day."""

    def __init__(self, day: date) -> None:
        super().__init__(
            status_code=409,
            error_type="already-checked-out",
            title="Already Checked Out",
            detail=f"You have already checked out for {day.isoformat()}.",
        )


# ── RFC 7807 builder ────────────────────────────────────────────────

def _build_problem_detail(exc: AppException, request: Request) -> dict[str, Any]:
    body: dict[str, Any] = {
        "type": f"{BASE_ERROR_URI}/{exc.error_type}",
        "title": exc.title,
        "status": exc.status_code,
        "detail": exc.detail,
        "instance": str(request.url.path),
    }
    if exc.errors:
        body["errors"] = exc.errors
    return body


# ── FastAPI handlers ────────────────────────────────────────────────

async def _handle_app_exception(
    request: Request,
    exc: AppException,
) -> JSONResponse:
    logger.info(
        "%s %s rejected: %s (%s)",
        request.method, request.url.path, exc.error_type, exc.detail,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=_build_problem_detail(exc, request),
        media_type="application/problem+json",
    )


async def _handle_validation_error(
    request: Request,
    exc: RequestValidationError,
) -> JSONResponse:
    field_errors: dict[str, list[str]] = {}
    for err in exc.errors():
        loc = err.get("loc", ())
        name = (
            ".".join(str(p) for p in loc[1:])
            if len(loc) > 1
            else str(loc[0]) if loc else "unknown"
        )
        field_errors.setdefault(name, []).append(err.get("msg", "Invalid value"))

    return JSONResponse(
        status_code=422,
        content={
            "type": f"{BASE_ERROR_URI}/validation-error",
            "title": "Validation Error",
            "status": 422,
            "detail": "Request validation failed.",
            "instance": str(request.url.path),
            "errors": field_errors,
        },
        media_type="application/problem+json",
    )


# ── Registration helper (called from main.py) ──────────────────────

def register_exception_handlers(app: FastAPI) -> None:
    """Attach all custom exception handlers to the FastAPI app."""
    app.add_exception_handler(AppException, _handle_app_exception)          # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _handle_validation_error)  # type: ignore[arg-type]
