"""Movement router (check-out, check-in and history endpoints)."""

import uuid

from fastapi import APIRouter, Depends, Header, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database.dependencies import get_db_session
from stockroom.features.auth.dependencies import require_capability
from stockroom.features.user.models import User
from stockroom.shared.access.capabilities import Capability
from stockroom.shared.pagination.pagination import PaginatedResponse, PaginationParams

from .models import MovementType
from .schemas import MovementResponse, RegisterMovementRequest
from .service import MovementService

router = APIRouter(prefix="/movements", tags=["Movements"])

view_movements = [Depends(require_capability(Capability.MOVEMENTS_VIEW))]


async def _register(
    movement_type: MovementType,
    data: RegisterMovementRequest,
    response: Response,
    operator: User,
    session: AsyncSession,
    idempotency_key: str | None,
) -> MovementResponse:
    movement, created = await MovementService.register(session, operator, data, movement_type, idempotency_key)
    await session.commit()

    if not created:
        # Already applied; report the original record
        response.status_code = status.HTTP_200_OK
    return MovementResponse.model_validate(movement)


@router.post("/checkout", response_model=MovementResponse, status_code=status.HTTP_201_CREATED)
async def register_checkout(
    data: RegisterMovementRequest,
    response: Response,
    idempotency_key: str | None = Header(None, max_length=100),
    operator: User = Depends(require_capability(Capability.MOVEMENTS_RECORD)),
    session: AsyncSession = Depends(get_db_session),
):
    """Register a check-out (stock decreases).

    Send an `Idempotency-Key` header to make the request safe to replay:
    a repeated key returns the recorded movement with status 200.
    """
    return await _register(MovementType.CHECKOUT, data, response, operator, session, idempotency_key)


@router.post("/checkin", response_model=MovementResponse, status_code=status.HTTP_201_CREATED)
async def register_checkin(
    data: RegisterMovementRequest,
    response: Response,
    idempotency_key: str | None = Header(None, max_length=100),
    operator: User = Depends(require_capability(Capability.MOVEMENTS_RECORD)),
    session: AsyncSession = Depends(get_db_session),
):
    """Register a check-in (stock increases)."""
    return await _register(MovementType.CHECKIN, data, response, operator, session, idempotency_key)


@router.get("", response_model=PaginatedResponse[MovementResponse], dependencies=view_movements)
async def list_movements(
    pagination: PaginationParams = Depends(),
    session: AsyncSession = Depends(get_db_session),
):
    """List all movements, newest first."""
    movements, total = await MovementService.get_movements(session, pagination)
    return PaginatedResponse[MovementResponse](
        items=[MovementResponse.model_validate(m) for m in movements],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )


@router.get("/item/{item_id}", response_model=list[MovementResponse], dependencies=view_movements)
async def list_item_movements(item_id: uuid.UUID, session: AsyncSession = Depends(get_db_session)):
    """Movement history of one item."""
    return [MovementResponse.model_validate(m) for m in await MovementService.get_by_item(session, item_id)]


@router.get("/by-operator/{user_id}", response_model=list[MovementResponse], dependencies=view_movements)
async def list_operator_movements(user_id: uuid.UUID, session: AsyncSession = Depends(get_db_session)):
    """Movements registered by an operator."""
    return [MovementResponse.model_validate(m) for m in await MovementService.get_by_operator(session, user_id)]


@router.get("/recipient/{recipient_id}", response_model=list[MovementResponse], dependencies=view_movements)
async def list_recipient_movements(recipient_id: uuid.UUID, session: AsyncSession = Depends(get_db_session)):
    """Items withdrawn or returned by an employee (PPE history)."""
    return [MovementResponse.model_validate(m) for m in await MovementService.get_by_recipient(session, recipient_id)]


@router.get("/{movement_id}", response_model=MovementResponse, dependencies=view_movements)
async def get_movement(movement_id: uuid.UUID, session: AsyncSession = Depends(get_db_session)):
    """Get movement by ID."""
    movement = await MovementService.get_movement(session, movement_id)
    return MovementResponse.model_validate(movement)
