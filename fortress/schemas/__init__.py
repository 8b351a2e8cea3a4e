"""Schemas package for request/response models."""

from fortress.schemas.audit import (
    AuditLogEntryResponse,
    AuditLogResponse,
    IntegrityResponse,
    PaginationInfo,
)
from fortress.schemas.principal import PrincipalResponse, RoleAssignmentRequest
from fortress.schemas.transaction import (
    DecisionRequest,
    FraudCheckResponse,
    TransactionCreateRequest,
    TransactionCreateResponse,
    TransactionListResponse,
    TransactionResponse,
)

__all__ = [
    # Audit
    "AuditLogEntryResponse",
    "AuditLogResponse",
    "IntegrityResponse",
    "PaginationInfo",
    # Principal
    "PrincipalResponse",
    "RoleAssignmentRequest",
    # Transaction
    "DecisionRequest",
    "FraudCheckResponse",
    "TransactionCreateRequest",
    "TransactionCreateResponse",
    "TransactionListResponse",
    "TransactionResponse",
]
