"""Auth Pydantic schemas."""


import uuid

from pydantic import BaseModel, ConfigDict

from hr_ledger.common.constants import UserRole


class Principal(BaseModel):
    """The authenticated caller, as asserted by the identity provider."""

    model_config = ConfigDict(frozen=True)

    user_id: uuid.UUID
    role: UserRole
