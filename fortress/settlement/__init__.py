"""External settlement collaborators."""

from fortress.settlement.executor import (
    HttpSettlementExecutor,
    SettlementExecutor,
    SettlementResult,
    SettlementStatus,
    SimulatedSettlementExecutor,
    build_settlement_executor,
)
from fortress.settlement.wallet import generate_wallet_address, is_valid_wallet_address

__all__ = [
    "HttpSettlementExecutor",
    "SettlementExecutor",
    "SettlementResult",
    "SettlementStatus",
    "SimulatedSettlementExecutor",
    "build_settlement_executor",
    "generate_wallet_address",
    "is_valid_wallet_address",
]
