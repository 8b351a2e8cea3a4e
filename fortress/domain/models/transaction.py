"""Transaction, principal and audit models."""

from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, JsonValue


def utcnow() -> datetime:
    return datetime.now(UTC)


def new_id() -> str:
    return str(uuid4())


class Role(str, Enum):
    STANDARD = "standard"
    REVIEWER = "reviewer"
    AUDITOR = "auditor"


class TransactionStatus(str, Enum):
    CREATED = "created"
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _RISK_RANK[self]

    def raise_to(self, other: "RiskLevel") -> "RiskLevel":
        """Return the higher of the two levels; risk is never lowered."""
        return other if other.rank > self.rank else self


_RISK_RANK = {RiskLevel.LOW: 0, RiskLevel.MEDIUM: 1, RiskLevel.HIGH: 2}


class Decision(str, Enum):
    APPROVE = "approve"
    REJECT = "reject"


class AuditAction(str, Enum):
    AUTH_CHALLENGE_REQUESTED = "AUTH_CHALLENGE_REQUESTED"
    AUTH_SUCCESS = "AUTH_SUCCESS"
    AUTH_FAILED = "AUTH_FAILED"
    ROLE_ASSIGNED = "ROLE_ASSIGNED"
    TRANSACTION_CREATED = "TRANSACTION_CREATED"
    TRANSACTION_BLOCKED = "TRANSACTION_BLOCKED"
    TRANSACTION_APPROVED = "TRANSACTION_APPROVED"
    TRANSACTION_REJECTED = "TRANSACTION_REJECTED"
    TRANSACTION_BLOCKCHAIN_FAILED = "TRANSACTION_BLOCKCHAIN_FAILED"


class Principal(BaseModel):
    id: str = Field(default_factory=new_id)
    wallet_address: str
    role: Role = Role.STANDARD
    created_at: datetime = Field(default_factory=utcnow)
    last_login: datetime | None = None


class Transaction(BaseModel):
    id: str = Field(default_factory=new_id)
    principal_id: str
    wallet_address: str = Field(..., description="Sender wallet, lower-cased")
    recipient: str = Field(..., description="Recipient wallet, lower-cased")
    amount: Decimal = Field(..., gt=0)
    description: str
    status: TransactionStatus = TransactionStatus.CREATED
    settlement_reference: str | None = None
    reviewed_by: str | None = None
    reviewed_at: datetime | None = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class FraudCandidate(BaseModel):
    """A submission as seen by fraud screening, before any record exists."""

    wallet_address: str
    recipient: str
    amount: Decimal


class FraudCheckResult(BaseModel):
    passed: bool
    risk_level: RiskLevel
    flags: list[str] = []


class AuditLogEntry(BaseModel):
    """Immutable, hash-chained audit record."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    sequence: int = Field(..., ge=0)
    action: AuditAction
    actor_id: str
    actor_wallet: str
    target_id: str | None = None
    metadata: dict[str, JsonValue] = {}
    timestamp: datetime
    hash: str
