from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel

from marketplace.domain.enums.transaction_status import TransactionStatus


class RequestToBuyRequest(BaseModel):
    listing_id: UUID
    buyer_id: UUID


class SellerDecisionRequest(BaseModel):
    seller_id: UUID


class SetTransactionStatusRequest(BaseModel):
    status: TransactionStatus
    reason: str | None = None


class TransactionResponse(BaseModel):
    id: UUID
    listing_id: UUID
    buyer_id: UUID
    seller_id: UUID
    final_price: Decimal
    status: TransactionStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginatedTransactionsResponse(BaseModel):
    transactions: list[TransactionResponse]
    total: int
    limit: int
    offset: int


class ListingTransactionsResponse(BaseModel):
    listing_id: UUID
    transactions: list[TransactionResponse]
