from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from marketplace.api.dependencies import get_lifecycle_coordinator, get_transaction_repo
from marketplace.api.schemas.transaction_schemas import (
    PaginatedTransactionsResponse,
    RequestToBuyRequest,
    SellerDecisionRequest,
    TransactionResponse,
)
from marketplace.application.coordinators.lifecycle_coordinator import LifecycleCoordinator
from marketplace.application.interfaces.transaction_repository import (
    TransactionRepository,
)
from marketplace.domain.enums.transaction_status import TransactionStatus
from marketplace.domain.errors import NotFoundError

router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.post(
    "/request-to-buy",
    status_code=status.HTTP_201_CREATED,
    response_model=TransactionResponse,
)
async def request_to_buy(
    body: RequestToBuyRequest,
    coordinator: LifecycleCoordinator = Depends(get_lifecycle_coordinator),
) -> TransactionResponse:
    """Buyer asks to purchase an ACTIVE listing; the listing moves to PENDING."""
    transaction = await coordinator.request_to_buy(body.listing_id, body.buyer_id)
    return TransactionResponse.model_validate(transaction)


@router.post("/{transaction_id}/accept", response_model=TransactionResponse)
async def accept_transaction(
    transaction_id: UUID,
    body: SellerDecisionRequest,
    coordinator: LifecycleCoordinator = Depends(get_lifecycle_coordinator),
) -> TransactionResponse:
    """Seller accepts a pending request; the listing is marked SOLD."""
    transaction = await coordinator.accept_transaction(transaction_id, body.seller_id)
    return TransactionResponse.model_validate(transaction)


@router.post("/{transaction_id}/reject", response_model=TransactionResponse)
async def reject_transaction(
    transaction_id: UUID,
    body: SellerDecisionRequest,
    coordinator: LifecycleCoordinator = Depends(get_lifecycle_coordinator),
) -> TransactionResponse:
    """Seller declines a pending request; the listing becomes ACTIVE again."""
    transaction = await coordinator.reject_transaction(transaction_id, body.seller_id)
    return TransactionResponse.model_validate(transaction)


@router.get("", response_model=PaginatedTransactionsResponse)
async def list_transactions(
    buyer_id: UUID | None = Query(default=None),
    seller_id: UUID | None = Query(default=None),
    transaction_status: TransactionStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    repo: TransactionRepository = Depends(get_transaction_repo),
) -> PaginatedTransactionsResponse:
    transactions, total = await repo.list_all(
        buyer_id=buyer_id,
        seller_id=seller_id,
        status=transaction_status,
        limit=limit,
        offset=offset,
    )
    return PaginatedTransactionsResponse(
        transactions=[TransactionResponse.model_validate(t) for t in transactions],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{transaction_id}", response_model=TransactionResponse)
async def get_transaction(
    transaction_id: UUID,
    repo: TransactionRepository = Depends(get_transaction_repo),
) -> TransactionResponse:
    transaction = await repo.get_by_id(transaction_id)
    if transaction is None:
        raise NotFoundError("transaction", transaction_id)
    return TransactionResponse.model_validate(transaction)
