"""Principal registry: wallet-bound identities created on first authentication."""

from __future__ import annotations

from datetime import UTC, datetime

from fortress.core.errors import ForbiddenError, NotFoundError, ValidationError
from fortress.core.locks import KeyedLock
from fortress.core.logging import get_logger
from fortress.core.rbac import USER_MANAGE, has_permission
from fortress.domain.models.transaction import AuditAction, Principal, Role
from fortress.persistence.base import PrincipalRepository
from fortress.persistence.principal_repository import InMemoryPrincipalRepository
from fortress.services.audit_ledger import AuditLedger
from fortress.settlement.wallet import is_valid_wallet_address

logger = get_logger(__name__)

SYSTEM_ACTOR = "system"


class PrincipalService:
    """Resolves wallets to principals and records authentication events."""

    def __init__(
        self,
        ledger: AuditLedger,
        repository: PrincipalRepository | None = None,
        preset_roles: dict[str, str] | None = None,
    ):
        self.ledger = ledger
        self.repository = repository or InMemoryPrincipalRepository()
        self.preset_roles = {w.lower(): Role(r) for w, r in (preset_roles or {}).items()}
        self._registration_locks = KeyedLock()

    async def get_or_create(self, wallet_address: str) -> Principal:
        """Return the wallet's principal, creating it with its preset role on first sight."""
        if not is_valid_wallet_address(wallet_address):
            raise ValidationError(
                "Invalid wallet address", details={"wallet_address": wallet_address}
            )
        wallet = wallet_address.lower()
        now = datetime.now(UTC)

        principal = await self.repository.get_by_wallet(wallet)
        if principal is None:
            principal = Principal(
                wallet_address=wallet,
                role=self.preset_roles.get(wallet, Role.STANDARD),
                created_at=now,
            )
            logger.info("Principal created", principal_id=principal.id, role=principal.role.value)
        principal.last_login = now
        return await self.repository.save(principal)

    async def resolve_authenticated(
        self, principal_id: str, wallet_address: str, role: Role
    ) -> Principal:
        """Resolve the caller of a verified token, registering it on first sight.

        Tokens are only minted after the session service has verified the
        wallet signature, so the first token presented counts as the
        principal's first successful authentication and is recorded as such.
        """
        wallet = wallet_address.lower()
        async with self._registration_locks.hold(wallet):
            principal = await self.repository.get_by_id(principal_id)
            if principal is None:
                principal = await self.repository.get_by_wallet(wallet)
            if principal is not None:
                return principal

            now = datetime.now(UTC)
            principal = await self.repository.save(
                Principal(
                    id=principal_id,
                    wallet_address=wallet,
                    role=Role(role),
                    created_at=now,
                    last_login=now,
                )
            )
            await self.ledger.append(
                AuditAction.AUTH_SUCCESS,
                principal.id,
                principal.wallet_address,
                None,
                {"role": principal.role.value},
            )
            logger.info("Principal registered", principal_id=principal.id, role=principal.role.value)
            return principal

    async def get_by_id(self, principal_id: str) -> Principal | None:
        return await self.repository.get_by_id(principal_id)

    async def get_by_wallet(self, wallet_address: str) -> Principal | None:
        return await self.repository.get_by_wallet(wallet_address.lower())

    async def record_challenge(self, wallet_address: str, nonce: str) -> None:
        await self.ledger.append(
            AuditAction.AUTH_CHALLENGE_REQUESTED,
            SYSTEM_ACTOR,
            wallet_address,
            None,
            {"nonce": nonce[:8] + "..."},
        )

    async def record_authentication(self, wallet_address: str) -> Principal:
        """Resolve the principal after a verified sign-in and log AUTH_SUCCESS."""
        principal = await self.get_or_create(wallet_address)
        await self.ledger.append(
            AuditAction.AUTH_SUCCESS,
            principal.id,
            principal.wallet_address,
            None,
            {"role": principal.role.value},
        )
        return principal

    async def record_authentication_failure(self, wallet_address: str, reason: str) -> None:
        await self.ledger.append(
            AuditAction.AUTH_FAILED,
            SYSTEM_ACTOR,
            wallet_address,
            None,
            {"reason": reason},
        )

    async def assign_role(self, wallet_address: str, role: Role, assigned_by: Principal) -> Principal:
        """Change a principal's role. The assigner needs user:manage."""
        if not has_permission(assigned_by.role, USER_MANAGE):
            raise ForbiddenError(
                "Insufficient permissions",
                details={"required_permission": USER_MANAGE},
            )
        principal = await self.repository.get_by_wallet(wallet_address.lower())
        if principal is None:
            raise NotFoundError("Principal not found", details={"wallet_address": wallet_address})

        previous = principal.role
        principal.role = Role(role)
        saved = await self.repository.save(principal)
        await self.ledger.append(
            AuditAction.ROLE_ASSIGNED,
            assigned_by.id,
            assigned_by.wallet_address,
            saved.id,
            {"previous_role": previous.value, "role": saved.role.value},
        )
        return saved
