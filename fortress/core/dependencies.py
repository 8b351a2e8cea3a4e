"""
FastAPI dependency injection utilities.

Services are built once in the application lifespan and stored on
app.state; these dependencies hand them to route handlers together with
the authenticated principal.
"""

from typing import Annotated

from fastapi import Depends, Request

from fortress.core.auth import (
    AuthenticatedPrincipal,
    get_current_principal,
    require_any_permission,
    require_permission,
)
from fortress.core.rbac import (
    AUDIT_READ,
    PROFILE_READ_ALL,
    PROFILE_READ_OWN,
    TRANSACTION_APPROVE,
    TRANSACTION_CREATE,
    USER_MANAGE,
)
from fortress.services.audit_ledger import AuditLedger
from fortress.services.principal_service import PrincipalService
from fortress.services.transaction_service import TransactionService


def get_transaction_service(request: Request) -> TransactionService:
    """Transaction service owned by the running application."""
    return request.app.state.transaction_service


def get_principal_service(request: Request) -> PrincipalService:
    return request.app.state.principal_service


def get_audit_ledger(request: Request) -> AuditLedger:
    return request.app.state.audit_ledger


TransactionServiceDep = Annotated[TransactionService, Depends(get_transaction_service)]
PrincipalServiceDep = Annotated[PrincipalService, Depends(get_principal_service)]
AuditLedgerDep = Annotated[AuditLedger, Depends(get_audit_ledger)]


# =============================================================================
# Principal Dependencies
# =============================================================================

CurrentPrincipal = Annotated[AuthenticatedPrincipal, Depends(get_current_principal)]

RequireTransactionCreate = Annotated[
    AuthenticatedPrincipal, Depends(require_permission(TRANSACTION_CREATE))
]
RequireTransactionApprove = Annotated[
    AuthenticatedPrincipal, Depends(require_permission(TRANSACTION_APPROVE))
]
RequireAuditRead = Annotated[AuthenticatedPrincipal, Depends(require_permission(AUDIT_READ))]
RequireProfileRead = Annotated[
    AuthenticatedPrincipal, Depends(require_any_permission(PROFILE_READ_OWN, PROFILE_READ_ALL))
]
RequireProfileReadAll = Annotated[
    AuthenticatedPrincipal, Depends(require_permission(PROFILE_READ_ALL))
]
RequireUserManage = Annotated[AuthenticatedPrincipal, Depends(require_permission(USER_MANAGE))]
