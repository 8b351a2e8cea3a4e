"""Principal profile request/response schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from fortress.domain.models.transaction import Role


class PrincipalResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    wallet_address: str
    role: Role
    created_at: datetime
    last_login: datetime | None = None


class RoleAssignmentRequest(BaseModel):
    """Body for changing a principal's role."""

    role: Role = Field(..., description="New role: standard, reviewer or auditor")
