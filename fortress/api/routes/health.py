"""Health check routes."""

from fastapi import APIRouter
from pydantic import BaseModel

from fortress import __version__
from fortress.core.dependencies import AuditLedgerDep

router = APIRouter(prefix="/health", tags=["Health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str


class ReadyResponse(BaseModel):
    """Readiness check response."""

    status: str
    audit_entries: int


@router.get(
    "",
    response_model=HealthResponse,
    summary="Health check",
    description="Check if the service is running.",
)
async def health_check() -> HealthResponse:
    """Return service health status."""
    return HealthResponse(
        status="healthy",
        version=__version__,
    )


@router.get(
    "/ready",
    response_model=ReadyResponse,
    summary="Readiness check",
    description="Check if the service is ready to receive traffic.",
)
async def readiness_check(ledger: AuditLedgerDep) -> ReadyResponse:
    """Return service readiness status."""
    return ReadyResponse(
        status="ready",
        audit_entries=await ledger.count(),
    )


@router.get(
    "/live",
    summary="Liveness check",
    description="Kubernetes liveness probe endpoint.",
)
async def liveness_check() -> dict:
    """Return liveness status."""
    return {"status": "alive"}
