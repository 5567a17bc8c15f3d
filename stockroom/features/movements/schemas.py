"""Movement schemas (DTOs)."""

import uuid
from datetime import datetime

from pydantic import Field

from stockroom.features.user.schemas import UserSummary
from stockroom.shared.schemas import CamelModel

from .models import MovementType


# Request schemas
class RegisterMovementRequest(CamelModel):
    """Check-out or check-in request. The operator is the authenticated caller."""

    item_id: uuid.UUID
    quantity: int = Field(..., gt=0)
    recipient_id: uuid.UUID | None = None
    observations: str | None = Field(None, max_length=1000)
    expected_return_date: datetime | None = None
    digital_signature: str | None = Field(None, description="Base64 or data URL of the recipient's signature")


# Response schemas
class MovementItemSummary(CamelModel):
    id: uuid.UUID
    name: str
    sku: str


class MovementResponse(CamelModel):
    """Historical record of a stock movement."""

    id: uuid.UUID
    item_id: uuid.UUID
    user_id: uuid.UUID
    recipient_id: uuid.UUID | None = None
    type: MovementType
    quantity: int
    movement_date: datetime
    observations: str | None = None
    expected_return_date: datetime | None = None
    digital_signature: str | None = None
    item: MovementItemSummary | None = None
    user: UserSummary | None = None
    recipient: UserSummary | None = None
