"""Item catalogue router (API endpoints)."""

import logging
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database.dependencies import get_db_session
from stockroom.features.auth.dependencies import get_current_active_user, require_capability
from stockroom.features.user.models import User
from stockroom.shared.access.capabilities import Capability
from stockroom.shared.audit.audit import AuditAction, create_audit_log, serialize_model
from stockroom.shared.pagination.pagination import PaginatedResponse, QueryParams

from .schemas import CreateItemRequest, ItemResponse, UpdateItemRequest
from .service import ItemService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/items", tags=["Items"])


@router.get("", response_model=PaginatedResponse[ItemResponse], dependencies=[Depends(get_current_active_user)])
async def list_items(
    params: QueryParams = Depends(),
    session: AsyncSession = Depends(get_db_session),
):
    """List items.

    - `search_term`: Matches name, SKU, category or location
    - `sort_by`: name, sku, category, quantity, expiryDate or createdAt
    """
    items, total = await ItemService.get_items(session, params)
    return PaginatedResponse[ItemResponse](
        items=[ItemResponse.model_validate(i) for i in items],
        total=total,
        page=params.page,
        page_size=params.page_size,
    )


@router.get("/{item_id}", response_model=ItemResponse, dependencies=[Depends(get_current_active_user)])
async def get_item(item_id: uuid.UUID, session: AsyncSession = Depends(get_db_session)):
    """Get item by ID."""
    item = await ItemService.get_item(session, item_id)
    return ItemResponse.model_validate(item)


@router.post(
    "",
    response_model=ItemResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_capability(Capability.ITEMS_MANAGE))],
)
async def create_item(
    data: CreateItemRequest,
    current_user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Create an item. SKUs are unique and stored upper-case."""
    item = await ItemService.create_item(session, data)
    await create_audit_log(session, "items", item.id, AuditAction.CREATE, after=serialize_model(item))
    await session.commit()
    logger.info(f"Item {item.sku} created by {current_user.email}")
    return ItemResponse.model_validate(item)


@router.put(
    "/{item_id}",
    response_model=ItemResponse,
    dependencies=[Depends(require_capability(Capability.ITEMS_MANAGE))],
)
async def update_item(
    item_id: uuid.UUID,
    data: UpdateItemRequest,
    session: AsyncSession = Depends(get_db_session),
):
    """Update item details. Stock levels change only through movements."""
    item = await ItemService.get_item(session, item_id)
    before = serialize_model(item)
    item = await ItemService.update_item(session, item, data)
    await create_audit_log(session, "items", item.id, AuditAction.UPDATE, before, serialize_model(item))
    await session.commit()
    return ItemResponse.model_validate(item)


@router.delete(
    "/{item_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_capability(Capability.ITEMS_MANAGE))],
)
async def delete_item(
    item_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Delete an item that has no movement history."""
    item = await ItemService.get_item(session, item_id)
    before = serialize_model(item)
    await ItemService.delete_item(session, item)
    await create_audit_log(session, "items", item_id, AuditAction.DELETE, before=before)
    await session.commit()
    logger.info(f"Item {before['sku']} deleted by {current_user.email}")
