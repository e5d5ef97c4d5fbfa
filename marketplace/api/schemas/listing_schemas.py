from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from marketplace.domain.enums.listing_status import ListingStatus


class CreateListingRequest(BaseModel):
    seller_id: UUID
    title: str = Field(min_length=1, max_length=255)
    description: str | None = None
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    draft: bool = False


class ListingResponse(BaseModel):
    id: UUID
    seller_id: UUID
    title: str
    description: str | None = None
    price: Decimal
    status: ListingStatus
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PaginatedListingsResponse(BaseModel):
    listings: list[ListingResponse]
    total: int
    limit: int
    offset: int


class UpdateListingStatusRequest(BaseModel):
    seller_id: UUID
    status: ListingStatus
