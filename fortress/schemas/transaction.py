"""Transaction request/response schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from fortress.domain.models.transaction import Decision, RiskLevel, TransactionStatus


class TransactionCreateRequest(BaseModel):
    """Schema for submitting a transfer request."""

    amount: Decimal = Field(..., gt=0, description="Amount to transfer")
    recipient: str = Field(..., pattern=r"^0x[0-9a-fA-F]{40}$", description="Recipient wallet")
    description: str = Field(..., min_length=1, max_length=500)


class DecisionRequest(BaseModel):
    """Schema for a reviewer decision on a pending transaction."""

    action: Decision = Field(..., description="approve or reject")


class TransactionResponse(BaseModel):
    """Response schema for a single transaction."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    principal_id: str
    wallet_address: str
    recipient: str
    amount: Decimal
    description: str
    status: TransactionStatus
    settlement_reference: str | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class FraudCheckResponse(BaseModel):
    passed: bool
    risk_level: RiskLevel
    flags: list[str] = []


class TransactionCreateResponse(BaseModel):
    """Response schema for an admitted transaction."""

    transaction: TransactionResponse
    fraud_check: FraudCheckResponse


class TransactionListResponse(BaseModel):
    transactions: list[TransactionResponse]
    total: int
