from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from marketplace.api.dependencies import (
    get_change_listing_status_use_case,
    get_create_listing_use_case,
    get_listing_repo,
    get_listing_transactions_use_case,
)
from marketplace.api.schemas.listing_schemas import (
    CreateListingRequest,
    ListingResponse,
    PaginatedListingsResponse,
    UpdateListingStatusRequest,
)
from marketplace.api.schemas.transaction_schemas import (
    ListingTransactionsResponse,
    TransactionResponse,
)
from marketplace.application.interfaces.listing_repository import ListingRepository
from marketplace.application.use_cases.change_listing_status import (
    ChangeListingStatus,
    ChangeListingStatusInput,
)
from marketplace.application.use_cases.create_listing import CreateListing, CreateListingInput
from marketplace.application.use_cases.get_listing_transactions import (
    GetListingTransactions,
)
from marketplace.domain.entities.listing import Listing
from marketplace.domain.enums.listing_status import ListingStatus
from marketplace.domain.errors import NotFoundError

router = APIRouter(prefix="/listings", tags=["listings"])


def _listing_to_response(listing: Listing) -> ListingResponse:
    return ListingResponse.model_validate(listing)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=ListingResponse)
async def create_listing(
    body: CreateListingRequest,
    use_case: CreateListing = Depends(get_create_listing_use_case),
) -> ListingResponse:
    listing = await use_case.execute(
        CreateListingInput(
            seller_id=body.seller_id,
            title=body.title,
            price=body.price,
            description=body.description,
            draft=body.draft,
        )
    )
    return _listing_to_response(listing)


@router.get("", response_model=PaginatedListingsResponse)
async def list_listings(
    seller_id: UUID | None = Query(default=None),
    listing_status: ListingStatus | None = Query(default=None, alias="status"),
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    repo: ListingRepository = Depends(get_listing_repo),
) -> PaginatedListingsResponse:
    """List listings with optional filtering by seller and status."""
    listings, total = await repo.list_all(
        seller_id=seller_id, status=listing_status, limit=limit, offset=offset
    )
    return PaginatedListingsResponse(
        listings=[_listing_to_response(l) for l in listings],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.get("/{listing_id}", response_model=ListingResponse)
async def get_listing(
    listing_id: UUID,
    repo: ListingRepository = Depends(get_listing_repo),
) -> ListingResponse:
    listing = await repo.get_by_id(listing_id)
    if listing is None:
        raise NotFoundError("listing", listing_id)
    return _listing_to_response(listing)


@router.patch("/{listing_id}/status", response_model=ListingResponse)
async def change_listing_status(
    listing_id: UUID,
    body: UpdateListingStatusRequest,
    use_case: ChangeListingStatus = Depends(get_change_listing_status_use_case),
) -> ListingResponse:
    """Seller publishes a draft, or moves their listing between ACTIVE, DRAFT and DISABLED."""
    listing = await use_case.execute(
        ChangeListingStatusInput(
            listing_id=listing_id, seller_id=body.seller_id, status=body.status
        )
    )
    return _listing_to_response(listing)


@router.get("/{listing_id}/transactions", response_model=ListingTransactionsResponse)
async def get_listing_transactions(
    listing_id: UUID,
    use_case: GetListingTransactions = Depends(get_listing_transactions_use_case),
) -> ListingTransactionsResponse:
    result = await use_case.execute(listing_id)
    return ListingTransactionsResponse(
        listing_id=listing_id,
        transactions=[TransactionResponse.model_validate(t) for t in result.transactions],
    )
