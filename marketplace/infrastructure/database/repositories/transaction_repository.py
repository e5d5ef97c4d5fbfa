from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.application.interfaces.transaction_repository import (
    TransactionRepository,
)
from marketplace.domain.entities.transaction import Transaction
from marketplace.domain.enums.transaction_status import TransactionStatus
from marketplace.domain.errors import DuplicateTransactionError
from marketplace.infrastructure.database.models import TransactionModel


def _to_domain(model: TransactionModel) -> Transaction:
    return Transaction(
        id=model.id,
        listing_id=model.listing_id,
        buyer_id=model.buyer_id,
        seller_id=model.seller_id,
        final_price=Decimal(str(model.final_price)),
        status=TransactionStatus(model.status),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_model(transaction: Transaction) -> TransactionModel:
    return TransactionModel(
        id=transaction.id,
        listing_id=transaction.listing_id,
        buyer_id=transaction.buyer_id,
        seller_id=transaction.seller_id,
        final_price=transaction.final_price,
        status=transaction.status.value,
        created_at=transaction.created_at,
        updated_at=transaction.updated_at,
    )


class SqlAlchemyTransactionRepository(TransactionRepository):
    """SQLAlchemy implementation for transaction persistence."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, transaction: Transaction) -> None:
        model = _to_model(transaction)
        self._session.add(model)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            # uq_transactions_active_listing: a PENDING row already exists
            raise DuplicateTransactionError(transaction.listing_id) from exc

    async def get_by_id(self, transaction_id: UUID) -> Transaction | None:
        model = await self._session.get(TransactionModel, transaction_id, populate_existing=True)
        return _to_domain(model) if model is not None else None

    async def find_by_listing(self, listing_id: UUID) -> list[Transaction]:
        result = await self._session.execute(
            select(TransactionModel)
            .where(TransactionModel.listing_id == listing_id)
            .order_by(TransactionModel.created_at.desc())
        )
        return [_to_domain(m) for m in result.scalars().all()]

    async def find_active_by_listing(self, listing_id: UUID) -> Transaction | None:
        result = await self._session.execute(
            select(TransactionModel).where(
                TransactionModel.listing_id == listing_id,
                TransactionModel.status == TransactionStatus.PENDING.value,
            )
        )
        model = result.scalars().first()
        return _to_domain(model) if model is not None else None

    async def list_all(
        self,
        *,
        buyer_id: UUID | None = None,
        seller_id: UUID | None = None,
        status: TransactionStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Transaction], int]:
        filters = []
        if buyer_id is not None:
            filters.append(TransactionModel.buyer_id == buyer_id)
        if seller_id is not None:
            filters.append(TransactionModel.seller_id == seller_id)
        if status is not None:
            filters.append(TransactionModel.status == status.value)

        query = (
            select(TransactionModel)
            .where(*filters)
            .order_by(TransactionModel.created_at.desc())
            .limit(limit)
            .offset(offset)
        )
        count_query = select(func.count()).select_from(TransactionModel).where(*filters)

        result = await self._session.execute(query)
        models = result.scalars().all()

        count_result = await self._session.execute(count_query)
        total = count_result.scalar_one()

        return [_to_domain(m) for m in models], total

    async def compare_and_set_status(
        self, transaction_id: UUID, expected: TransactionStatus, new: TransactionStatus
    ) -> bool:
        result = await self._session.execute(
            update(TransactionModel)
            .where(
                TransactionModel.id == transaction_id,
                TransactionModel.status == expected.value,
            )
            .values(status=new.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
