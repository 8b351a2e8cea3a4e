"""
Bearer token verification and authorization dependencies.

Tokens are minted by the external session service; this module only
verifies them (python-jose) and turns the claims into an
AuthenticatedPrincipal. Claims: sub (principal id), wallet, role, exp.
"""

import logging
from typing import Any

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from pydantic import BaseModel

from fortress.core.config import get_settings
from fortress.core.errors import ForbiddenError, UnauthorizedError
from fortress.core.rbac import get_permissions, has_any_permission, has_permission
from fortress.domain.models.transaction import Principal, Role

logger = logging.getLogger(__name__)

INVALID_OR_EXPIRED_TOKEN_MSG = "Invalid or expired token"

_optional_security = HTTPBearer(auto_error=False)


class AuthenticatedPrincipal(BaseModel):
    """Principal identity extracted from a verified token."""

    principal_id: str
    wallet_address: str
    role: Role

    @property
    def permissions(self) -> list[str]:
        return get_permissions(self.role)

    def has_permission(self, permission: str) -> bool:
        return has_permission(self.role, permission)

    def to_principal(self) -> Principal:
        return Principal(id=self.principal_id, wallet_address=self.wallet_address, role=self.role)


def verify_token(token: str) -> dict[str, Any]:
    """Verify signature and expiry, returning the claims."""
    settings = get_settings()

    try:
        payload = jwt.decode(
            token,
            settings.security.token_secret.get_secret_value(),
            algorithms=settings.security.token_algorithms_list,
        )
        logger.debug(f"Token verified successfully for subject: {payload.get('sub')}")
        return payload

    except jwt.ExpiredSignatureError:
        logger.warning("Token has expired")
        raise UnauthorizedError(INVALID_OR_EXPIRED_TOKEN_MSG) from None

    except jwt.JWTClaimsError as e:
        logger.warning(f"Invalid token claims: {e}")
        raise UnauthorizedError(INVALID_OR_EXPIRED_TOKEN_MSG) from None

    except JWTError as e:
        logger.warning(f"JWT verification failed: {e}")
        raise UnauthorizedError(INVALID_OR_EXPIRED_TOKEN_MSG) from None


def principal_from_claims(payload: dict[str, Any]) -> AuthenticatedPrincipal:
    sub = payload.get("sub")
    wallet = payload.get("wallet")
    if not sub or not wallet:
        logger.error("Token payload missing 'sub' or 'wallet' claim")
        raise UnauthorizedError("Invalid token - missing principal identifier")

    try:
        role = Role(payload.get("role", Role.STANDARD.value))
    except ValueError:
        logger.warning(f"Unknown role claim: {payload.get('role')}")
        raise UnauthorizedError("Invalid token - unknown role") from None

    return AuthenticatedPrincipal(principal_id=sub, wallet_address=wallet.lower(), role=role)


async def get_current_principal(
    credentials: HTTPAuthorizationCredentials | None = Depends(_optional_security),
) -> AuthenticatedPrincipal:
    """Extract and verify the bearer token, returning the caller's principal."""
    if credentials is None:
        logger.warning("Missing Authorization header")
        raise UnauthorizedError("Missing authorization header")

    return principal_from_claims(verify_token(credentials.credentials))


def require_permission(required_permission: str):
    """Dependency factory that enforces a specific permission.

    Usage:
        @router.get("/audit")
        async def list_audit(
            principal: AuthenticatedPrincipal = Depends(require_permission("audit:read"))
        ):
            ...
    """

    def permission_checker(
        principal: AuthenticatedPrincipal = Depends(get_current_principal),
    ) -> AuthenticatedPrincipal:
        if not principal.has_permission(required_permission):
            logger.warning(
                "Access denied - principal %s (%s) lacks required permission: %s",
                principal.principal_id,
                principal.role.value,
                required_permission,
            )
            raise ForbiddenError(
                "Insufficient permissions",
                details={"required_permission": required_permission},
            )
        return principal

    return permission_checker


def require_any_permission(*permissions: str):
    """Dependency factory that passes principals holding any of the permissions."""

    def permission_checker(
        principal: AuthenticatedPrincipal = Depends(get_current_principal),
    ) -> AuthenticatedPrincipal:
        if not has_any_permission(principal.role, list(permissions)):
            logger.warning(
                "Access denied - principal %s (%s) lacks any of: %s",
                principal.principal_id,
                principal.role.value,
                ", ".join(permissions),
            )
            raise ForbiddenError(
                "Insufficient permissions",
                details={"required_permissions": list(permissions)},
            )
        return principal

    return permission_checker
