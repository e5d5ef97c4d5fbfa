from datetime import datetime, timezone
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.application.interfaces.listing_repository import ListingRepository
from marketplace.domain.entities.listing import Listing
from marketplace.domain.enums.listing_status import ListingStatus
from marketplace.infrastructure.database.models import ListingModel


def _to_domain(model: ListingModel) -> Listing:
    return Listing(
        id=model.id,
        seller_id=model.seller_id,
        title=model.title,
        description=model.description,
        price=Decimal(str(model.price)),
        status=ListingStatus(model.status),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def _to_model(listing: Listing) -> ListingModel:
    return ListingModel(
        id=listing.id,
        seller_id=listing.seller_id,
        title=listing.title,
        description=listing.description,
        price=listing.price,
        status=listing.status.value,
        created_at=listing.created_at,
        updated_at=listing.updated_at,
    )


class SqlAlchemyListingRepository(ListingRepository):
    """SQLAlchemy implementation for listing persistence."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, listing: Listing) -> None:
        self._session.add(_to_model(listing))
        await self._session.flush()

    async def get_by_id(self, listing_id: UUID) -> Listing | None:
        model = await self._session.get(ListingModel, listing_id, populate_existing=True)
        return _to_domain(model) if model is not None else None

    async def list_all(
        self,
        *,
        seller_id: UUID | None = None,
        status: ListingStatus | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[Listing], int]:
        query = select(ListingModel)
        count_query = select(func.count()).select_from(ListingModel)

        if seller_id is not None:
            query = query.where(ListingModel.seller_id == seller_id)
            count_query = count_query.where(ListingModel.seller_id == seller_id)
        if status is not None:
            query = query.where(ListingModel.status == status.value)
            count_query = count_query.where(ListingModel.status == status.value)

        query = query.order_by(ListingModel.created_at.desc()).limit(limit).offset(offset)

        result = await self._session.execute(query)
        models = result.scalars().all()

        count_result = await self._session.execute(count_query)
        total = count_result.scalar_one()

        return [_to_domain(m) for m in models], total

    async def compare_and_set_status(
        self, listing_id: UUID, expected: ListingStatus, new: ListingStatus
    ) -> bool:
        # Single conditional UPDATE; the row count tells us whether we won.
        result = await self._session.execute(
            update(ListingModel)
            .where(ListingModel.id == listing_id, ListingModel.status == expected.value)
            .values(status=new.value, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
