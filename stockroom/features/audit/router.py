"""Audit log router."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database.dependencies import get_db_session
from stockroom.features.auth.dependencies import require_capability
from stockroom.shared.access.capabilities import Capability
from stockroom.shared.audit.audit import AuditAction
from stockroom.shared.pagination.pagination import PaginatedResponse, PaginationParams

from .schemas import AuditLogResponse
from .service import AuditService

router = APIRouter(prefix="/audit-logs", tags=["Audit"])


@router.get(
    "",
    response_model=PaginatedResponse[AuditLogResponse],
    dependencies=[Depends(require_capability(Capability.AUDIT_LOG_VIEW))],
)
async def list_audit_logs(
    pagination: PaginationParams = Depends(),
    entity_type: str | None = None,
    action: AuditAction | None = None,
    user_id: str | None = None,
    session: AsyncSession = Depends(get_db_session),
):
    """List audit entries, newest first. Filter by `entity_type`, `action` or `user_id`."""
    logs, total = await AuditService.get_logs(session, pagination, entity_type, action, user_id)
    return PaginatedResponse[AuditLogResponse](
        items=[AuditLogResponse.model_validate(log) for log in logs],
        total=total,
        page=pagination.page,
        page_size=pagination.page_size,
    )
