"""Report and dashboard services."""

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.features.items.models import Item
from stockroom.features.items.service import ItemService
from stockroom.features.movements.models import Movement
from stockroom.features.movements.schemas import MovementResponse
from stockroom.features.movements.service import MovementService
from stockroom.features.user.service import UserService

from .schemas import CostByCenterResponse, DashboardStatsResponse

logger = logging.getLogger(__name__)

DASHBOARD_EXPIRY_WINDOW_DAYS = 30


class ReportService:
    """Read-only reports over items and movements."""

    @staticmethod
    async def expiring_items(session: AsyncSession, days: int = 30) -> list[Item]:
        """Items expiring within the next ``days`` days (already expired items excluded)."""
        return await ItemService.get_expiring(session, days)

    @staticmethod
    async def overdue_returns(session: AsyncSession) -> list[Movement]:
        """Check-outs whose expected return date is in the past."""
        return await MovementService.get_overdue(session)

    @staticmethod
    async def cost_by_center(
        session: AsyncSession, from_date: datetime, to_date: datetime
    ) -> list[CostByCenterResponse]:
        """Total cost of check-outs in the period, grouped by the recipient's cost center.

        Check-outs without a recipient cost center or without an item cost
        are left out. Cost is ``quantity * item.cost``.
        """
        movements = await MovementService.get_checkouts_between(session, from_date, to_date)

        groups: dict[str, list[Movement]] = defaultdict(list)
        for movement in movements:
            if movement.recipient is None or movement.recipient.cost_center is None:
                continue
            if movement.item.cost is None:
                continue
            groups[movement.recipient.cost_center].append(movement)

        return [
            CostByCenterResponse(
                cost_center=center,
                total_cost=sum((m.quantity * m.item.cost for m in group), Decimal("0")),
                movements=[MovementResponse.model_validate(m) for m in group],
            )
            for center, group in sorted(groups.items())
        ]


class DashboardService:
    """Aggregated counters for the dashboard."""

    @staticmethod
    async def get_stats(session: AsyncSession) -> DashboardStatsResponse:
        # One AsyncSession cannot run queries concurrently
        total_items = await ItemService.count_items(session)
        active_users = await UserService.count_active(session)
        expiring = len(await ItemService.get_expiring(session, DASHBOARD_EXPIRY_WINDOW_DAYS))
        movements_today = await MovementService.count_today(session)

        return DashboardStatsResponse(
            total_items_count=total_items,
            active_users_count=active_users,
            expiring_in_30_days_count=expiring,
            movements_today_count=movements_today,
        )
