"""Directory Pydantic schemas."""


import uuid

from pydantic import BaseModel


class ReconcileRolesResponse(BaseModel):
    """Result of a manager-role reconciliation run."""

    promoted: list[uuid.UUID]
    count: int
