"""Directory router: administrative maintenance of roles."""


from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from hr_ledger.auth.dependencies import require_role
from hr_ledger.auth.schemas import Principal
from hr_ledger.common.constants import UserRole
from hr_ledger.database import get_db
from hr_ledger.directory.schemas import ReconcileRolesResponse
from hr_ledger.directory.service import DirectoryService

router = APIRouter(prefix="", tags=["directory"])


# ── POST /reconcile-roles ───────────────────────────────────────────

@router.post("/reconcile-roles", response_model=ReconcileRolesResponse)
async def reconcile_roles(
    principal: Principal = Depends(require_role(UserRole.admin)),
    db: AsyncSession = Depends(get_db),
):
    """Promote employees who have direct reports to manager. Safe to re-run."""
    promoted = await DirectoryService.reconcile_manager_roles(
        db, actor_id=principal.user_id,
    )
    return ReconcileRolesResponse(promoted=promoted, count=len(promoted))
