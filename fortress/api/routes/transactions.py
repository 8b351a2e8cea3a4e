"""API routes for transfer requests and reviewer decisions."""

from fastapi import APIRouter, status

from fortress.core.dependencies import (
    CurrentPrincipal,
    RequireTransactionApprove,
    RequireTransactionCreate,
    TransactionServiceDep,
)
from fortress.schemas.transaction import (
    DecisionRequest,
    TransactionCreateRequest,
    TransactionCreateResponse,
    TransactionListResponse,
    TransactionResponse,
)

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get("", response_model=TransactionListResponse)
async def list_transactions(
    current_principal: CurrentPrincipal,
    service: TransactionServiceDep,
) -> TransactionListResponse:
    """List transactions visible to the caller, newest first.

    Principals with transaction:read:all see every transaction; everyone
    else sees only their own.
    """
    transactions = await service.list_transactions(current_principal.to_principal())
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t, from_attributes=True) for t in transactions],
        total=len(transactions),
    )


@router.post("", response_model=TransactionCreateResponse, status_code=status.HTTP_201_CREATED)
async def create_transaction(
    request: TransactionCreateRequest,
    current_principal: RequireTransactionCreate,
    service: TransactionServiceDep,
) -> TransactionCreateResponse:
    """Submit a transfer request. High-risk requests are refused with 422."""
    creation = await service.create_transaction(
        current_principal.to_principal(),
        amount=request.amount,
        recipient=request.recipient,
        description=request.description,
    )
    return TransactionCreateResponse.model_validate(creation.model_dump())


@router.get("/pending", response_model=TransactionListResponse)
async def list_pending_transactions(
    current_principal: RequireTransactionApprove,
    service: TransactionServiceDep,
) -> TransactionListResponse:
    """Review queue: every pending transaction."""
    transactions = await service.list_pending(current_principal.to_principal())
    return TransactionListResponse(
        transactions=[TransactionResponse.model_validate(t, from_attributes=True) for t in transactions],
        total=len(transactions),
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: str,
    current_principal: CurrentPrincipal,
    service: TransactionServiceDep,
) -> TransactionResponse:
    transaction = await service.get_transaction(transaction_id, current_principal.to_principal())
    return TransactionResponse.model_validate(transaction, from_attributes=True)


@router.patch("/{transaction_id}", response_model=TransactionResponse)
async def decide_transaction(
    transaction_id: str,
    request: DecisionRequest,
    current_principal: CurrentPrincipal,
    service: TransactionServiceDep,
) -> TransactionResponse:
    """Approve or reject a pending transaction.

    Approval settles the transfer; a failed settlement rejects the
    transaction and returns 502.
    """
    transaction = await service.decide(
        transaction_id, current_principal.to_principal(), request.action
    )
    return TransactionResponse.model_validate(transaction, from_attributes=True)
