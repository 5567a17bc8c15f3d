"""Movement service layer."""

import logging
import uuid
from datetime import datetime, timedelta

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database.base import utcnow
from stockroom.features.items.models import Item
from stockroom.features.user.models import User
from stockroom.shared.audit.audit import AuditAction, create_audit_log
from stockroom.shared.pagination.pagination import PaginationParams
from stockroom.shared.pagination.sqlalchemy_pagination import SQLAlchemyPagination

from .exceptions import (
    IdempotencyKeyConflict,
    MovementItemNotFound,
    MovementNotFound,
    RecipientInactive,
    RecipientNotFound,
)
from .models import Movement, MovementType
from .schemas import RegisterMovementRequest

logger = logging.getLogger(__name__)


class MovementService:
    """Service for registering and querying stock movements."""

    @staticmethod
    async def get_by_idempotency_key(session: AsyncSession, idempotency_key: str) -> Movement | None:
        stmt = select(Movement).where(Movement.idempotency_key == idempotency_key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    def _check_replay(
        existing: Movement, operator: User, data: RegisterMovementRequest, movement_type: MovementType
    ) -> Movement:
        """Return a recorded movement for a replayed key, or fail if the key belongs to another request."""
        if existing.type != movement_type or existing.user_id != operator.id or existing.item_id != data.item_id:
            logger.warning(f"Idempotency key {existing.idempotency_key} reused for a different movement")
            raise IdempotencyKeyConflict()
        logger.info(f"Replayed movement request ignored (key {existing.idempotency_key})")
        return existing

    @staticmethod
    async def register(
        session: AsyncSession,
        operator: User,
        data: RegisterMovementRequest,
        movement_type: MovementType,
        idempotency_key: str | None = None,
    ) -> tuple[Movement, bool]:
        """Register a check-out or check-in and adjust stock in the same transaction.

        A request carrying an ``idempotency_key`` that was already recorded
        returns the existing movement and changes nothing. Reusing a key for
        a different type, operator or item is a conflict.

        Args:
            session: Database session
            operator: Authenticated user registering the movement
            data: Movement request
            movement_type: CHECKOUT decreases stock, CHECKIN increases it
            idempotency_key: Optional client-supplied replay key

        Returns:
            Tuple of (movement, created)

        Raises:
            MovementItemNotFound: Unknown item
            RecipientNotFound: Unknown recipient
            InsufficientStock: Check-out larger than the available stock
            IdempotencyKeyConflict: Key already recorded for a different movement

        """
        if idempotency_key:
            existing = await MovementService.get_by_idempotency_key(session, idempotency_key)
            if existing:
                return MovementService._check_replay(existing, operator, data, movement_type), False

        stmt = select(Item).where(Item.id == data.item_id).with_for_update()
        result = await session.execute(stmt)
        item = result.scalar_one_or_none()
        if item is None:
            raise MovementItemNotFound()

        recipient = None
        if data.recipient_id is not None:
            recipient = await session.get(User, data.recipient_id)
            if recipient is None:
                raise RecipientNotFound()
            if not recipient.is_active:
                raise RecipientInactive()

        if movement_type == MovementType.CHECKOUT:
            item.decrease_stock(data.quantity)
        else:
            item.increase_stock(data.quantity)

        movement = Movement(
            item=item,
            user=operator,
            recipient=recipient,
            type=movement_type,
            quantity=data.quantity,
            observations=data.observations,
            expected_return_date=data.expected_return_date,
            digital_signature=data.digital_signature,
            idempotency_key=idempotency_key,
        )
        session.add(movement)

        try:
            await session.flush()
        except IntegrityError:
            # A concurrent request with the same key won the race
            await session.rollback()
            if idempotency_key:
                existing = await MovementService.get_by_idempotency_key(session, idempotency_key)
                if existing:
                    return MovementService._check_replay(existing, operator, data, movement_type), False
            raise

        await create_audit_log(
            session,
            "movements",
            movement.id,
            AuditAction.CREATE,
            after={
                "type": movement_type.value,
                "item_id": str(item.id),
                "quantity": data.quantity,
                "stock_after": item.quantity,
            },
        )

        logger.info(f"{movement_type} of {data.quantity} x {item.sku} by {operator.email} (stock now {item.quantity})")
        return movement, True

    @staticmethod
    async def get_movement(session: AsyncSession, movement_id: uuid.UUID) -> Movement:
        movement = await session.get(Movement, movement_id)
        if movement is None:
            raise MovementNotFound()
        return movement

    @staticmethod
    async def get_movements(session: AsyncSession, pagination: PaginationParams) -> tuple[list[Movement], int]:
        """Get paginated movement history, newest first."""
        return await SQLAlchemyPagination.paginate(
            session, Movement, pagination, default_sort=Movement.movement_date.desc()
        )

    @staticmethod
    async def find(session: AsyncSession, *conditions) -> list[Movement]:
        """Movements matching all conditions, newest first."""
        stmt = select(Movement).where(*conditions).order_by(Movement.movement_date.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def get_by_item(session: AsyncSession, item_id: uuid.UUID) -> list[Movement]:
        return await MovementService.find(session, Movement.item_id == item_id)

    @staticmethod
    async def get_by_operator(session: AsyncSession, user_id: uuid.UUID) -> list[Movement]:
        return await MovementService.find(session, Movement.user_id == user_id)

    @staticmethod
    async def get_by_recipient(session: AsyncSession, recipient_id: uuid.UUID) -> list[Movement]:
        return await MovementService.find(session, Movement.recipient_id == recipient_id)

    @staticmethod
    async def get_overdue(session: AsyncSession) -> list[Movement]:
        """Check-outs whose expected return date has passed."""
        return await MovementService.find(
            session,
            Movement.type == MovementType.CHECKOUT,
            Movement.expected_return_date.is_not(None),
            Movement.expected_return_date < utcnow(),
        )

    @staticmethod
    async def get_checkouts_between(session: AsyncSession, from_date: datetime, to_date: datetime) -> list[Movement]:
        return await MovementService.find(
            session,
            Movement.type == MovementType.CHECKOUT,
            Movement.movement_date >= from_date,
            Movement.movement_date <= to_date,
        )

    @staticmethod
    async def count_today(session: AsyncSession) -> int:
        """Movements registered since midnight UTC."""
        start = utcnow().replace(hour=0, minute=0, second=0, microsecond=0)
        stmt = (
            select(func.count())
            .select_from(Movement)
            .where(Movement.movement_date >= start, Movement.movement_date < start + timedelta(days=1))
        )
        result = await session.execute(stmt)
        return result.scalar_one()
