"""Audit log queries."""

from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.shared.audit.audit import AuditAction, AuditLog
from stockroom.shared.pagination.pagination import PaginationParams
from stockroom.shared.pagination.sqlalchemy_pagination import SQLAlchemyPagination


class AuditService:
    """Read access to the audit trail."""

    @staticmethod
    async def get_logs(
        session: AsyncSession,
        pagination: PaginationParams,
        entity_type: str | None = None,
        action: AuditAction | None = None,
        user_id: str | None = None,
    ) -> tuple[list[AuditLog], int]:
        """Get paginated audit entries, newest first."""
        filters = []
        if entity_type:
            filters.append(AuditLog.entity_type == entity_type)
        if action:
            filters.append(AuditLog.action == action)
        if user_id:
            filters.append(AuditLog.user_id == user_id)

        return await SQLAlchemyPagination.paginate(
            session,
            AuditLog,
            pagination,
            filters=filters,
            default_sort=(AuditLog.timestamp.desc(), AuditLog.id.desc()),
        )
