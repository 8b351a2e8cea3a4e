"""In-memory principal repository."""

from fortress.domain.models.transaction import Principal
from fortress.persistence.base import PrincipalRepository


class InMemoryPrincipalRepository(PrincipalRepository):
    def __init__(self) -> None:
        self._by_wallet: dict[str, Principal] = {}

    async def get_by_wallet(self, wallet_address: str) -> Principal | None:
        principal = self._by_wallet.get(wallet_address.lower())
        return principal.model_copy() if principal else None

    async def get_by_id(self, principal_id: str) -> Principal | None:
        for principal in self._by_wallet.values():
            if principal.id == principal_id:
                return principal.model_copy()
        return None

    async def save(self, principal: Principal) -> Principal:
        self._by_wallet[principal.wallet_address.lower()] = principal.model_copy()
        return principal.model_copy()
