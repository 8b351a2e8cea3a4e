"""API routes package."""

from fastapi import APIRouter

from fortress.api.routes.audit import router as audit_router
from fortress.api.routes.health import router as health_router
from fortress.api.routes.principals import router as principals_router
from fortress.api.routes.transactions import router as transactions_router

# Create API router with all sub-routers
api_router = APIRouter()

api_router.include_router(health_router)
api_router.include_router(transactions_router)
api_router.include_router(principals_router)
api_router.include_router(audit_router)


__all__ = [
    "api_router",
    "audit_router",
    "health_router",
    "principals_router",
    "transactions_router",
]
