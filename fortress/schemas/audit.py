"""Audit ledger response schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from fortress.domain.models.transaction import AuditAction


class AuditLogEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    sequence: int
    action: AuditAction
    actor_id: str
    actor_wallet: str
    target_id: str | None = None
    metadata: dict[str, Any] = {}
    timestamp: datetime
    hash: str


class PaginationInfo(BaseModel):
    limit: int
    offset: int
    total: int


class AuditLogResponse(BaseModel):
    """Audit entries newest first, with the chain's verification result."""

    logs: list[AuditLogEntryResponse]
    integrity_valid: bool
    pagination: PaginationInfo


class IntegrityResponse(BaseModel):
    integrity_valid: bool
    entries: int
    broken_at_sequence: int | None = None
