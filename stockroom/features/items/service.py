"""Item service layer."""

import logging
import uuid
from datetime import timedelta

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database.base import utcnow
from stockroom.features.movements.models import Movement
from stockroom.shared.pagination.pagination import QueryParams
from stockroom.shared.pagination.sqlalchemy_pagination import SQLAlchemyPagination

from .exceptions import ItemHasMovements, ItemNotFound, SkuAlreadyExists
from .models import Item
from .schemas import CreateItemRequest, UpdateItemRequest

logger = logging.getLogger(__name__)


class ItemService:
    """Service for item catalogue operations."""

    @staticmethod
    async def get_by_sku(session: AsyncSession, sku: str) -> Item | None:
        stmt = select(Item).where(Item.sku == sku.upper())
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_item(session: AsyncSession, item_id: uuid.UUID) -> Item:
        """Get item by ID.

        Raises:
            ItemNotFound: If no item has this ID

        """
        item = await session.get(Item, item_id)
        if item is None:
            raise ItemNotFound()
        return item

    @staticmethod
    async def get_items(session: AsyncSession, params: QueryParams) -> tuple[list[Item], int]:
        """Get paginated items, optionally filtered by name, SKU, category or location."""
        filters = []
        if params.search_term:
            pattern = f"%{params.search_term.lower()}%"
            filters.append(
                or_(
                    func.lower(Item.name).like(pattern),
                    func.lower(Item.sku).like(pattern),
                    func.lower(Item.category).like(pattern),
                    func.lower(Item.location).like(pattern),
                )
            )

        return await SQLAlchemyPagination.paginate(
            session,
            Item,
            params,
            filters=filters,
            sortable={
                "name": Item.name,
                "sku": Item.sku,
                "category": Item.category,
                "quantity": Item.quantity,
                "expiryDate": Item.expiry_date,
                "createdAt": Item.created_at,
            },
            default_sort=Item.name,
        )

    @staticmethod
    async def create_item(session: AsyncSession, data: CreateItemRequest) -> Item:
        """Create a new item.

        Raises:
            SkuAlreadyExists: If another item already uses the SKU

        """
        if await ItemService.get_by_sku(session, data.sku):
            raise SkuAlreadyExists(data.sku)

        item = Item(**data.model_dump())
        session.add(item)
        await session.flush()

        logger.info(f"Item created: {item.sku} ({item.name})")
        return item

    @staticmethod
    async def update_item(session: AsyncSession, item: Item, data: UpdateItemRequest) -> Item:
        """Apply the fields present in the request."""
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(item, key, value)

        await session.flush()
        logger.info(f"Item updated: {item.sku}")
        return item

    @staticmethod
    async def delete_item(session: AsyncSession, item: Item) -> None:
        """Delete an item without movement history.

        Raises:
            ItemHasMovements: If any movement references the item

        """
        stmt = select(func.count()).select_from(Movement).where(Movement.item_id == item.id)
        result = await session.execute(stmt)
        if result.scalar_one() > 0:
            raise ItemHasMovements()

        await session.delete(item)
        await session.flush()
        logger.info(f"Item deleted: {item.sku}")

    @staticmethod
    async def get_expiring(session: AsyncSession, days: int) -> list[Item]:
        """Items whose expiry date falls between now and ``days`` from now."""
        now = utcnow()
        stmt = (
            select(Item)
            .where(
                Item.expiry_date.is_not(None),
                Item.expiry_date > now,
                Item.expiry_date <= now + timedelta(days=days),
            )
            .order_by(Item.expiry_date)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_items(session: AsyncSession) -> int:
        result = await session.execute(select(func.count()).select_from(Item))
        return result.scalar_one()
