"""API routes for the caller's profile and principal administration."""

from fastapi import APIRouter

from fortress.core.dependencies import (
    PrincipalServiceDep,
    RequireProfileRead,
    RequireProfileReadAll,
    RequireUserManage,
)
from fortress.core.errors import NotFoundError, ValidationError
from fortress.schemas.principal import PrincipalResponse, RoleAssignmentRequest
from fortress.settlement.wallet import is_valid_wallet_address

router = APIRouter(prefix="/auth", tags=["auth"])


def _check_wallet(wallet_address: str) -> None:
    if not is_valid_wallet_address(wallet_address):
        raise ValidationError("Invalid wallet address", details={"wallet_address": wallet_address})


@router.get("/me", response_model=PrincipalResponse)
async def get_me(
    current_principal: RequireProfileRead,
    service: PrincipalServiceDep,
) -> PrincipalResponse:
    """Return the caller's principal, registering it on its first verified token."""
    principal = await service.resolve_authenticated(
        current_principal.principal_id,
        current_principal.wallet_address,
        current_principal.role,
    )
    return PrincipalResponse.model_validate(principal, from_attributes=True)


@router.get("/principals/{wallet_address}", response_model=PrincipalResponse)
async def get_principal(
    wallet_address: str,
    current_principal: RequireProfileReadAll,
    service: PrincipalServiceDep,
) -> PrincipalResponse:
    _check_wallet(wallet_address)
    principal = await service.get_by_wallet(wallet_address)
    if principal is None:
        raise NotFoundError("Principal not found", details={"wallet_address": wallet_address})
    return PrincipalResponse.model_validate(principal, from_attributes=True)


@router.put("/principals/{wallet_address}/role", response_model=PrincipalResponse)
async def assign_role(
    wallet_address: str,
    request: RoleAssignmentRequest,
    current_principal: RequireUserManage,
    service: PrincipalServiceDep,
) -> PrincipalResponse:
    """Change a registered principal's role.

    Tokens carry the role they were minted with; the new role applies to
    tokens issued after the change.
    """
    _check_wallet(wallet_address)
    principal = await service.assign_role(
        wallet_address, request.role, current_principal.to_principal()
    )
    return PrincipalResponse.model_validate(principal, from_attributes=True)
