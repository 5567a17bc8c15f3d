"""Item schemas (DTOs)."""

import uuid
from datetime import UTC, datetime
from decimal import Decimal

from pydantic import Field, field_validator, model_validator

from stockroom.database.base import utcnow
from stockroom.shared.schemas import CamelModel
from stockroom.shared.validators.sku import normalize_sku


def _check_stock_bounds(min_stock: int | None, max_stock: int | None) -> None:
    if min_stock is not None and max_stock is not None and min_stock > max_stock:
        raise ValueError("minStock cannot be greater than maxStock")


# Request schemas
class CreateItemRequest(CamelModel):
    """Item creation request."""

    name: str = Field(..., min_length=1, max_length=200)
    sku: str = Field(..., min_length=1, max_length=50)
    description: str | None = Field(None, max_length=1000)
    category: str = Field(..., min_length=1, max_length=100)
    location: str | None = Field(None, max_length=200)
    quantity: int = Field(0, ge=0, description="Initial stock level")
    min_stock: int | None = Field(None, ge=0)
    max_stock: int | None = Field(None, ge=0)
    cost: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    expiry_date: datetime | None = None
    is_ppe: bool = False
    requires_maintenance: bool = False
    next_maintenance_date: datetime | None = None

    @field_validator("sku")
    @classmethod
    def sku_format(cls, value):
        return normalize_sku(value)

    @field_validator("expiry_date")
    @classmethod
    def expiry_in_future(cls, value):
        """The expiry date, if provided, must be a future date."""
        if value is None:
            return value
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        if value <= utcnow():
            raise ValueError("The expiry date, if provided, must be a future date")
        return value

    @model_validator(mode="after")
    def stock_bounds(self):
        _check_stock_bounds(self.min_stock, self.max_stock)
        return self


class UpdateItemRequest(CamelModel):
    """Item update request.

    SKU and quantity are not editable: stock changes only through movements.
    """

    name: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=1000)
    category: str | None = Field(None, min_length=1, max_length=100)
    location: str | None = Field(None, max_length=200)
    min_stock: int | None = Field(None, ge=0)
    max_stock: int | None = Field(None, ge=0)
    cost: Decimal | None = Field(None, ge=0, max_digits=12, decimal_places=2)
    expiry_date: datetime | None = None
    is_ppe: bool | None = None
    requires_maintenance: bool | None = None
    next_maintenance_date: datetime | None = None

    @model_validator(mode="after")
    def stock_bounds(self):
        _check_stock_bounds(self.min_stock, self.max_stock)
        return self


# Response schemas
class ItemResponse(CamelModel):
    """Item response."""

    id: uuid.UUID
    name: str
    sku: str
    description: str | None = None
    category: str
    location: str | None = None
    quantity: int
    min_stock: int | None = None
    max_stock: int | None = None
    cost: Decimal | None = None
    expiry_date: datetime | None = None
    is_ppe: bool
    requires_maintenance: bool
    next_maintenance_date: datetime | None = None
    created_at: datetime
    updated_at: datetime | None = None
