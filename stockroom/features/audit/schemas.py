"""Audit log schemas (DTOs)."""

from datetime import datetime
from typing import Any

from stockroom.shared.audit.audit import AuditAction
from stockroom.shared.schemas import CamelModel


class AuditLogResponse(CamelModel):
    id: int
    entity_type: str
    entity_id: str | None = None
    action: AuditAction
    timestamp: datetime
    details: str | None = None
    user_id: str | None = None
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    diff: dict[str, Any] | None = None
