"""Item domain models."""

import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, Integer, Numeric, String, Text, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from stockroom.database.base import Base, TimestampMixin, UTCDateTime, utcnow

from .exceptions import InsufficientStock, InvalidQuantity


class Item(Base, TimestampMixin):
    """A stock item (tool, consumable or PPE).

    Stock levels change only through movements; ``quantity`` is never
    negative.
    """

    __tablename__ = "items"
    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_items_quantity_non_negative"),)

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Identity
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    sku: Mapped[str] = mapped_column(String(50), nullable=False, unique=True, index=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    location: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Stock
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    min_stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_stock: Mapped[int | None] = mapped_column(Integer, nullable=True)
    cost: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)

    # Lifecycle
    expiry_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True, index=True)
    is_ppe: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())
    requires_maintenance: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )
    next_maintenance_date: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    def increase_stock(self, amount: int) -> None:
        """Add ``amount`` units to stock (check-in)."""
        if amount <= 0:
            raise InvalidQuantity()
        self.quantity += amount

    def decrease_stock(self, amount: int) -> None:
        """Remove ``amount`` units from stock (check-out).

        Raises:
            InvalidQuantity: If amount is not positive
            InsufficientStock: If fewer than ``amount`` units are available

        """
        if amount <= 0:
            raise InvalidQuantity()
        if self.quantity < amount:
            raise InsufficientStock(self.name, self.quantity, amount)
        self.quantity -= amount

    def is_expired(self) -> bool:
        return self.expiry_date is not None and self.expiry_date < utcnow()

    @property
    def below_min_stock(self) -> bool:
        return self.min_stock is not None and self.quantity < self.min_stock
