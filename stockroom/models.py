"""Model registry.

Importing this module registers every table on ``Base.metadata``.
"""

from stockroom.features.auth.models import RefreshToken
from stockroom.features.items.models import Item
from stockroom.features.movements.models import Movement, MovementType
from stockroom.features.user.models import User, UserRole, UserStatus
from stockroom.shared.audit.audit import AuditAction, AuditLog

__all__ = [
    "AuditAction",
    "AuditLog",
    "Item",
    "Movement",
    "MovementType",
    "RefreshToken",
    "User",
    "UserRole",
    "UserStatus",
]
