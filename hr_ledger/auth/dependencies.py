"""Auth dependencies: JWT validation, RBAC enforcement.

Token issuance lives with the identity provider; this module only decodes
bearer tokens into a ``Principal`` and gates endpoints by role.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends, Request
from jose import ExpiredSignatureError, JWTError, jwt

from hr_ledger.auth.schemas import Principal
from hr_ledger.common.constants import UserRole
from hr_ledger.common.exceptions import ForbiddenException, UnauthorizedException
from hr_ledger.config import settings

# Role hierarchy: each role implicitly includes lower roles
_ROLE_HIERARCHY: dict[UserRole, set[UserRole]] = {
    UserRole.admin: {UserRole.admin, UserRole.hr, UserRole.manager, UserRole.employee},
    UserRole.hr: {UserRole.hr, UserRole.manager, UserRole.employee},
    UserRole.manager: {UserRole.manager, UserRole.employee},
    UserRole.employee: {UserRole.employee},
}


def _extract_bearer(request: Request) -> str:
    """Extract Bearer token from Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        raise UnauthorizedException("Missing or invalid Authorization header.")
    return auth_header[7:]


def create_access_token(
    user_id: uuid.UUID,
    role: UserRole,
    *,
    expires_in: timedelta = timedelta(hours=1),
    now: Optional[datetime] = None,
) -> str:
    """Encode an access token in the shape ``get_current_principal`` accepts.

    Used by operational tooling and tests; production tokens come from the
    identity provider with the same claims.
    """
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "role": role.value,
        "type": "access",
        "exp": issued + expires_in,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


# ── Core dependency ─────────────────────────────────────────────────

async def get_current_principal(request: Request) -> Principal:
    """Validate the JWT and return the authenticated principal."""
    token = _extract_bearer(request)

    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError:
        raise UnauthorizedException("Token has expired.")
    except JWTError:
        raise UnauthorizedException("Invalid token.")

    if payload.get("type") != "access":
        raise UnauthorizedException("Invalid token type.")

    try:
        user_id = uuid.UUID(payload["sub"])
        role = UserRole(payload["role"])
    except (KeyError, TypeError, ValueError):
        raise UnauthorizedException("Token is missing a valid subject or role.")

    principal = Principal(user_id=user_id, role=role)
    request.state.principal = principal
    return principal


# ── Role-based dependency ───────────────────────────────────────────

def require_role(*allowed_roles: UserRole) -> Callable:
    """Return a FastAPI dependency that enforces role membership.

    Respects hierarchy: e.g. admin can access hr endpoints.
    """

    async def _check(
        principal: Principal = Depends(get_current_principal),
    ) -> Principal:
        effective_roles = _ROLE_HIERARCHY.get(principal.role, {principal.role})
        if not effective_roles.intersection(set(allowed_roles)):
            raise ForbiddenException(
                detail=f"Role '{principal.role.value}' is not permitted. Required: {[r.value for r in allowed_roles]}.",
            )
        return principal

    return _check
