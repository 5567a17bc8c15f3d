"""Audit logging for domain operations and authentication events."""

import logging
import uuid
from contextvars import ContextVar
from datetime import date, datetime
from decimal import Decimal
from enum import Enum as PyEnum
from enum import StrEnum
from typing import Any

from sqlalchemy import JSON, Enum, Integer, String, Text, inspect
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Mapped, mapped_column

from stockroom.database.base import Base, UTCDateTime, utcnow

logger = logging.getLogger(__name__)

# ContextVar for tracking the current authenticated user
current_user_ctx: ContextVar = ContextVar("current_user", default=None)

# JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")

# Never written to the audit trail
REDACTED_FIELDS = frozenset({"hashed_password"})


class AuditAction(StrEnum):
    """Audit action types."""

    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"
    LOGIN_SUCCESS = "LOGIN_SUCCESS"
    LOGIN_FAILURE = "LOGIN_FAILURE"
    LOGOUT = "LOGOUT"
    PASSWORD_CHANGE = "PASSWORD_CHANGE"
    ACCESS_DENIED = "ACCESS_DENIED"
    VIEW_REPORT = "VIEW_REPORT"


class AuditLog(Base):
    """Audit log entry.

    All audit logs are stored in a single table.
    """

    __tablename__ = "audit_logs"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Entity information
    entity_type: Mapped[str] = mapped_column(String(100), nullable=False, index=True)
    entity_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    # Action details
    action: Mapped[AuditAction] = mapped_column(
        Enum(AuditAction, native_enum=False, length=50, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    timestamp: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False, index=True)
    details: Mapped[str | None] = mapped_column(Text, nullable=True)

    # User tracking
    user_id: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)

    # State tracking
    before: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    after: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    diff: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)


def _to_json_value(value: Any) -> Any:
    if isinstance(value, datetime | date):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, PyEnum):
        return value.value
    return value


def compute_diff(before: dict[str, Any], after: dict[str, Any]) -> dict[str, dict[str, Any]] | None:
    """Compute field-level differences between two record states.

    Args:
        before: Previous record state
        after: New record state

    Returns:
        Dictionary of changed fields with 'from' and 'to' values

    """
    diff = {}

    all_keys = set(before.keys()) | set(after.keys())

    for key in all_keys:
        before_value = before.get(key)
        after_value = after.get(key)

        if before_value != after_value:
            diff[key] = {"from": _to_json_value(before_value), "to": _to_json_value(after_value)}

    return diff if diff else None


def serialize_model(instance: Any) -> dict[str, Any] | None:
    """Serialize a SQLAlchemy model to a JSON-friendly dictionary for audit logging.

    Args:
        instance: SQLAlchemy model instance to serialize

    Returns:
        Serialized model as dictionary or None

    """
    if instance is None:
        return None

    mapper = inspect(instance.__class__)
    data = {}

    for column in mapper.columns:
        if column.key in REDACTED_FIELDS:
            continue
        data[column.key] = _to_json_value(getattr(instance, column.key))

    return data


async def create_audit_log(
    session: AsyncSession,
    entity_type: str,
    entity_id: Any,
    action: AuditAction,
    before: dict[str, Any] | None = None,
    after: dict[str, Any] | None = None,
    details: str | None = None,
    user_id: Any = None,
) -> AuditLog:
    """Create an audit log entry.

    The actor defaults to the user stored in the request context; pass
    ``user_id`` explicitly for events without an authenticated request
    (login attempts).

    Args:
        session: Database session
        entity_type: Table name of the model
        entity_id: ID of the affected record
        action: Type of operation
        before: Record state before operation
        after: Record state after operation
        details: Free-text description
        user_id: Explicit actor id

    """
    if user_id is None:
        user = current_user_ctx.get()
        user_id = user.id if user is not None and hasattr(user, "id") else None

    diff = None
    if action == AuditAction.UPDATE and before and after:
        diff = compute_diff(before, after)

    audit_entry = AuditLog(
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        action=action,
        user_id=str(user_id) if user_id is not None else None,
        details=details,
        before=before,
        after=after,
        diff=diff,
    )

    # The session is committed by the calling code
    session.add(audit_entry)
    return audit_entry


# Helper functions to set current user in context
def set_current_user(user: Any) -> None:
    """Set the current user in the context for audit logging.

    Called by the authentication dependency so every audit entry created
    during the request is attributed to the caller.

    Args:
        user: The authenticated user object

    """
    current_user_ctx.set(user)


def get_current_user() -> Any:
    """Get the current user from context.

    Returns:
        The current user or None

    """
    return current_user_ctx.get()


def clear_current_user() -> None:
    """Clear the current user from context."""
    current_user_ctx.set(None)
