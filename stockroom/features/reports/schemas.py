"""Report schemas (DTOs)."""

from decimal import Decimal

from stockroom.features.movements.schemas import MovementResponse
from stockroom.shared.schemas import CamelModel


class CostByCenterResponse(CamelModel):
    """Total cost of check-outs for one cost center."""

    cost_center: str
    total_cost: Decimal
    movements: list[MovementResponse]


class DashboardStatsResponse(CamelModel):
    total_items_count: int
    active_users_count: int
    expiring_in_30_days_count: int
    movements_today_count: int
