"""Reports and dashboard router."""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database.dependencies import get_db_session
from stockroom.features.auth.dependencies import get_current_active_user, require_capability
from stockroom.features.items.schemas import ItemResponse
from stockroom.features.movements.schemas import MovementResponse
from stockroom.features.user.models import User
from stockroom.shared.access.capabilities import Capability
from stockroom.shared.audit.audit import AuditAction, create_audit_log

from .schemas import CostByCenterResponse, DashboardStatsResponse
from .service import DashboardService, ReportService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/reports", tags=["Reports"])
dashboard_router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


async def _record_view(session: AsyncSession, report: str, details: str | None = None) -> None:
    await create_audit_log(session, "reports", report, AuditAction.VIEW_REPORT, details=details)
    await session.commit()


@router.get("/expiring-items", response_model=list[ItemResponse])
async def expiring_items(
    days: int = Query(30, ge=1, le=3650),
    current_user: User = Depends(require_capability(Capability.REPORTS_VIEW)),
    session: AsyncSession = Depends(get_db_session),
):
    """Items expiring within the next `days` days."""
    items = await ReportService.expiring_items(session, days)
    await _record_view(session, "expiring-items", f"days={days}")
    return [ItemResponse.model_validate(i) for i in items]


@router.get("/overdue-returns", response_model=list[MovementResponse])
async def overdue_returns(
    current_user: User = Depends(require_capability(Capability.REPORTS_VIEW)),
    session: AsyncSession = Depends(get_db_session),
):
    """Check-outs past their expected return date."""
    movements = await ReportService.overdue_returns(session)
    await _record_view(session, "overdue-returns")
    return [MovementResponse.model_validate(m) for m in movements]


@router.get("/cost-by-center", response_model=list[CostByCenterResponse])
async def cost_by_center(
    from_date: datetime = Query(..., alias="from"),
    to_date: datetime = Query(..., alias="to"),
    current_user: User = Depends(require_capability(Capability.REPORTS_VIEW)),
    session: AsyncSession = Depends(get_db_session),
):
    """Check-out cost per recipient cost center between `from` and `to`."""
    # Dates without an offset are read as UTC
    from_date = from_date if from_date.tzinfo else from_date.replace(tzinfo=UTC)
    to_date = to_date if to_date.tzinfo else to_date.replace(tzinfo=UTC)
    if from_date > to_date:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="'from' must not be after 'to'")

    report = await ReportService.cost_by_center(session, from_date, to_date)
    await _record_view(session, "cost-by-center", f"from={from_date.isoformat()} to={to_date.isoformat()}")
    logger.info(f"Cost report generated by {current_user.email}: {len(report)} cost centers")
    return report


@dashboard_router.get("/stats", response_model=DashboardStatsResponse, dependencies=[Depends(get_current_active_user)])
async def dashboard_stats(session: AsyncSession = Depends(get_db_session)):
    """Dashboard counters: items, active users, items expiring in 30 days, movements today."""
    return await DashboardService.get_stats(session)
