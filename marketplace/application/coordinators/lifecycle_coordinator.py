"""
Listing/transaction lifecycle coordinator.

The only component allowed to change ``Listing.status`` or
``Transaction.status``. Every operation runs inside one unit of work and relies
on the stores' compare-and-set updates to decide races: whichever conditional
update lands first wins, the loser fails fast with a taxonomy error and its
unit is rolled back. Notifications and domain events go out only after commit
and are best-effort.
"""
from collections.abc import Callable
from uuid import UUID

import structlog

from marketplace.application.interfaces.event_publisher import EventPublisher
from marketplace.application.interfaces.notifier import Notifier
from marketplace.application.interfaces.unit_of_work import UnitOfWork
from marketplace.config import TransactionUniqueness
from marketplace.domain.entities.listing import Listing
from marketplace.domain.entities.transaction import Transaction
from marketplace.domain.enums.listing_status import ListingStatus
from marketplace.domain.enums.transaction_status import TransactionStatus
from marketplace.domain.errors import (
    DuplicateTransactionError,
    ForbiddenError,
    InvalidStateError,
    NotAvailableError,
    NotFoundError,
    SelfPurchaseError,
)
from marketplace.domain.state_machine.transaction_state_machine import (
    TransactionStateMachine,
)

logger = structlog.get_logger(__name__)

REQUEST_MESSAGE = (
    'I\'m interested in buying "{title}" for ${price:.2f}. '
    "Please let me know if you'd like to proceed with the sale."
)
ACCEPT_MESSAGE = (
    'Great news! I\'ve accepted your purchase request for "{title}". '
    "The item is now marked as sold. Please contact me to arrange pickup/payment."
)
REJECT_MESSAGE = (
    'I\'m sorry, but I\'ve decided not to proceed with the sale of "{title}" at this time. '
    "The listing is now available again for other buyers."
)


class LifecycleCoordinator:
    """Moves a (Listing, Transaction) pair through the purchase state machine."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        notifier: Notifier,
        event_publisher: EventPublisher,
        uniqueness: TransactionUniqueness = TransactionUniqueness.ACTIVE,
    ) -> None:
        self._uow_factory = uow_factory
        self._notifier = notifier
        self._event_publisher = event_publisher
        self._uniqueness = uniqueness
        self._state_machine = TransactionStateMachine()

    # -------------------------------------------------------------------------
    # Buyer side
    # -------------------------------------------------------------------------

    async def request_to_buy(self, listing_id: UUID, buyer_id: UUID) -> Transaction:
        async with self._uow_factory() as uow:
            listing = await uow.listings.get_by_id(listing_id)
            if listing is None:
                raise NotFoundError("listing", listing_id)
            if not await uow.users.exists(buyer_id):
                raise NotFoundError("user", buyer_id)
            if listing.seller_id == buyer_id:
                raise SelfPurchaseError(listing_id)
            if not listing.status.is_purchasable:
                raise NotAvailableError(listing_id, listing.status.value)

            await self._ensure_no_blocking_transaction(uow, listing_id)

            transaction = Transaction.open(listing, buyer_id)

            # Decides concurrent requests: only one ACTIVE -> PENDING update can land.
            claimed = await uow.listings.compare_and_set_status(
                listing_id, ListingStatus.ACTIVE, ListingStatus.PENDING
            )
            if not claimed:
                logger.info("purchase_request_lost_race", listing_id=str(listing_id))
                raise NotAvailableError(listing_id)

            await uow.transactions.add(transaction)
            await uow.commit()

        listing.status = ListingStatus.PENDING
        logger.info(
            "purchase_requested",
            transaction_id=str(transaction.id),
            listing_id=str(listing_id),
            buyer_id=str(buyer_id),
            final_price=str(transaction.final_price),
        )

        await self._notify(
            listing.id,
            buyer_id,
            listing.seller_id,
            REQUEST_MESSAGE.format(title=listing.title, price=listing.price),
        )
        await self._publish(transaction)
        return transaction

    # -------------------------------------------------------------------------
    # Seller side
    # -------------------------------------------------------------------------

    async def accept_transaction(self, transaction_id: UUID, seller_id: UUID) -> Transaction:
        transaction, listing = await self._decide(
            transaction_id, seller_id, TransactionStatus.COMPLETED, verb="accepted"
        )
        await self._notify(
            listing.id, seller_id, transaction.buyer_id, ACCEPT_MESSAGE.format(title=listing.title)
        )
        await self._publish(transaction)
        return transaction

    async def reject_transaction(self, transaction_id: UUID, seller_id: UUID) -> Transaction:
        transaction, listing = await self._decide(
            transaction_id, seller_id, TransactionStatus.CANCELLED, verb="rejected"
        )
        await self._notify(
            listing.id, seller_id, transaction.buyer_id, REJECT_MESSAGE.format(title=listing.title)
        )
        await self._publish(transaction)
        return transaction

    # -------------------------------------------------------------------------
    # Administrative override
    # -------------------------------------------------------------------------

    async def set_transaction_status(
        self,
        transaction_id: UUID,
        status: TransactionStatus,
        triggered_by: str = "admin",
    ) -> Transaction:
        """
        Force a transaction to ``status`` without a seller check.

        Still bound by the transition table, so a transaction can never be
        moved back to PENDING. The listing follows only for COMPLETED (SOLD)
        and CANCELLED (ACTIVE). No user notification is sent.
        """
        async with self._uow_factory() as uow:
            transaction = await uow.transactions.get_by_id(transaction_id)
            if transaction is None:
                raise NotFoundError("transaction", transaction_id)

            from_status = transaction.status
            transaction.transition_to(status, triggered_by=triggered_by)

            await self._swap_transaction_status(uow, transaction, from_status, status)

            listing_status = self._state_machine.listing_status_for(status)
            if listing_status is not None:
                await self._swap_listing_status(uow, transaction.listing_id, listing_status)

            await uow.commit()

        logger.warning(
            "transaction_status_overridden",
            transaction_id=str(transaction_id),
            from_status=from_status.value,
            to_status=status.value,
            listing_status=listing_status.value if listing_status else None,
            triggered_by=triggered_by,
        )
        await self._publish(transaction)
        return transaction

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _decide(
        self,
        transaction_id: UUID,
        seller_id: UUID,
        to_status: TransactionStatus,
        *,
        verb: str,
    ) -> tuple[Transaction, Listing]:
        async with self._uow_factory() as uow:
            transaction = await uow.transactions.get_by_id(transaction_id)
            if transaction is None:
                raise NotFoundError("transaction", transaction_id)
            listing = await uow.listings.get_by_id(transaction.listing_id)
            if listing is None:
                raise NotFoundError("listing", transaction.listing_id)

            if listing.seller_id != seller_id:
                raise ForbiddenError(
                    f"Only the seller of listing {listing.id} can mark this transaction as {verb}."
                )
            if not transaction.status.is_active:
                raise InvalidStateError(
                    f"Only PENDING transactions can be {verb}; "
                    f"transaction {transaction_id} is {transaction.status.value}."
                )

            from_status = transaction.status
            transaction.transition_to(to_status, triggered_by=f"seller:{seller_id}")
            await self._swap_transaction_status(uow, transaction, from_status, to_status)

            listing_status = self._state_machine.listing_status_for(to_status)
            if listing_status is not None:
                await self._swap_listing_status(uow, listing.id, listing_status)
                listing.status = listing_status

            await uow.commit()

        logger.info(
            f"transaction_{verb}",
            transaction_id=str(transaction_id),
            listing_id=str(listing.id),
            seller_id=str(seller_id),
            listing_status=listing.status.value,
        )
        return transaction, listing

    async def _ensure_no_blocking_transaction(self, uow: UnitOfWork, listing_id: UUID) -> None:
        if self._uniqueness is TransactionUniqueness.PERMANENT:
            if await uow.transactions.find_by_listing(listing_id):
                raise DuplicateTransactionError(listing_id)
        elif await uow.transactions.find_active_by_listing(listing_id) is not None:
            raise DuplicateTransactionError(listing_id)

    async def _swap_transaction_status(
        self,
        uow: UnitOfWork,
        transaction: Transaction,
        expected: TransactionStatus,
        new: TransactionStatus,
    ) -> None:
        swapped = await uow.transactions.compare_and_set_status(transaction.id, expected, new)
        if not swapped:
            raise InvalidStateError(
                f"Transaction {transaction.id} is no longer {expected.value}."
            )

    async def _swap_listing_status(
        self, uow: UnitOfWork, listing_id: UUID, new: ListingStatus
    ) -> None:
        # Every coordinator move out of a live transaction starts from PENDING
        self._state_machine.validate_listing_move(ListingStatus.PENDING, new)
        swapped = await uow.listings.compare_and_set_status(
            listing_id, ListingStatus.PENDING, new
        )
        if not swapped:
            raise InvalidStateError(f"Listing {listing_id} is no longer PENDING.")

    async def _notify(
        self, listing_id: UUID, from_user_id: UUID, to_user_id: UUID, text: str
    ) -> None:
        try:
            await self._notifier.notify(listing_id, from_user_id, to_user_id, text)
        except Exception:
            # Never fail or undo a committed transition over a notification
            logger.exception(
                "notification_failed",
                listing_id=str(listing_id),
                to_user_id=str(to_user_id),
            )

    async def _publish(self, transaction: Transaction) -> None:
        events = transaction.collect_events()
        try:
            await self._event_publisher.publish_many(events)
        except Exception:
            logger.exception(
                "event_publishing_failed",
                transaction_id=str(transaction.id),
                event_count=len(events),
            )
