from dataclasses import dataclass
from uuid import UUID

from marketplace.application.interfaces.listing_repository import ListingRepository
from marketplace.application.interfaces.transaction_repository import (
    TransactionRepository,
)
from marketplace.domain.entities.listing import Listing
from marketplace.domain.entities.transaction import Transaction
from marketplace.domain.errors import NotFoundError


@dataclass
class GetListingTransactionsOutput:
    listing: Listing
    transactions: list[Transaction]


class GetListingTransactions:
    """Use case: Retrieve every purchase attempt made on a listing."""

    def __init__(
        self,
        listing_repo: ListingRepository,
        transaction_repo: TransactionRepository,
    ) -> None:
        self._listing_repo = listing_repo
        self._transaction_repo = transaction_repo

    async def execute(self, listing_id: UUID) -> GetListingTransactionsOutput:
        listing = await self._listing_repo.get_by_id(listing_id)
        if listing is None:
            raise NotFoundError("listing", listing_id)

        transactions = await self._transaction_repo.find_by_listing(listing_id)
        return GetListingTransactionsOutput(listing=listing, transactions=transactions)
