"""API routes for reading and verifying the audit ledger."""

from fastapi import APIRouter, Query

from fortress.core.dependencies import AuditLedgerDep, RequireAuditRead
from fortress.persistence.base import clamp_page
from fortress.schemas.audit import (
    AuditLogEntryResponse,
    AuditLogResponse,
    IntegrityResponse,
    PaginationInfo,
)

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=AuditLogResponse)
async def list_audit_logs(
    current_principal: RequireAuditRead,
    ledger: AuditLedgerDep,
    limit: int = Query(100, description="Page size (clamped to the configured maximum)"),
    offset: int = Query(0, description="Entries to skip from the newest"),
) -> AuditLogResponse:
    """List audit entries newest first, with the chain verification result."""
    limit, offset = clamp_page(limit, offset, ledger.max_page_size)
    entries = await ledger.list(limit=limit, offset=offset)
    return AuditLogResponse(
        logs=[AuditLogEntryResponse.model_validate(e, from_attributes=True) for e in entries],
        integrity_valid=await ledger.verify_integrity(),
        pagination=PaginationInfo(limit=limit, offset=offset, total=await ledger.count()),
    )


@router.get("/verify", response_model=IntegrityResponse)
async def verify_audit_chain(
    current_principal: RequireAuditRead,
    ledger: AuditLedgerDep,
) -> IntegrityResponse:
    """Replay the hash chain from genesis."""
    broken_at = await ledger.find_first_violation()
    return IntegrityResponse(
        integrity_valid=broken_at is None,
        entries=await ledger.count(),
        broken_at_sequence=broken_at,
    )
