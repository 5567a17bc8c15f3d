"""Stock movement models."""

import uuid
from datetime import datetime
from enum import StrEnum

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from stockroom.database.base import Base, UTCDateTime, utcnow
from stockroom.features.items.models import Item
from stockroom.features.user.models import User


class MovementType(StrEnum):
    """Direction of a stock movement."""

    CHECKOUT = "CHECKOUT"
    CHECKIN = "CHECKIN"


class Movement(Base):
    """Immutable record of a check-out or check-in.

    ``user_id`` is the operator who registered the movement; ``recipient_id``
    is the employee who received or returned the item.
    """

    __tablename__ = "movements"
    __table_args__ = (CheckConstraint("quantity > 0", name="ck_movements_quantity_positive"),)

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # References
    item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("items.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id"), nullable=False, index=True)
    recipient_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("users.id"), nullable=True, index=True)

    # Movement details
    type: Mapped[MovementType] = mapped_column(
        Enum(MovementType, native_enum=False, length=20, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    movement_date: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, default=utcnow, index=True)
    observations: Mapped[str | None] = mapped_column(Text, nullable=True)
    expected_return_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    digital_signature: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Replay protection for queued client mutations
    idempotency_key: Mapped[str | None] = mapped_column(String(100), nullable=True, unique=True)

    item: Mapped[Item] = relationship(lazy="selectin")
    user: Mapped[User] = relationship(foreign_keys=[user_id], lazy="selectin")
    recipient: Mapped[User | None] = relationship(foreign_keys=[recipient_id], lazy="selectin")
