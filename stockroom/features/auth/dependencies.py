"""Authentication dependencies for FastAPI."""

import logging
import uuid

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt.exceptions import InvalidTokenError
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database.dependencies import get_db_session
from stockroom.features.user.models import User
from stockroom.shared.access.capabilities import Capability, can
from stockroom.shared.audit.audit import AuditAction, create_audit_log, set_current_user

from .exceptions import (
    InsufficientPermissionsException,
    InvalidTokenException,
    UserInactiveException,
    UserLockedException,
)
from .jwt_utils import decode_token, verify_token_type

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    session: AsyncSession = Depends(get_db_session),
) -> User:
    """Get the current authenticated user from JWT token.

    Args:
        credentials: HTTP authorization credentials with bearer token
        session: Database session

    Returns:
        User object

    Raises:
        InvalidTokenException: If token is missing, invalid or user not found

    """
    if credentials is None:
        raise InvalidTokenException(detail="Not authenticated")

    try:
        payload = decode_token(credentials.credentials)

        # Verify it's an access token
        if not verify_token_type(payload, "access"):
            raise InvalidTokenException(detail="Invalid token type")

        user_id = uuid.UUID(str(payload.get("sub")))

    except (InvalidTokenError, ValueError) as err:
        raise InvalidTokenException() from err

    user = await session.get(User, user_id)

    if user is None:
        raise InvalidTokenException(detail="User not found")

    if user.is_locked():
        raise UserLockedException()

    if not user.is_active:
        raise UserInactiveException()

    set_current_user(user)
    return user


async def get_current_active_user(current_user: User = Depends(get_current_user)) -> User:
    """Get current active user (convenience wrapper)."""
    return current_user


def require_capability(capability: Capability):
    """Dependency factory to require a capability of the caller's role.

    Usage:
        Depends(require_capability(Capability.ITEMS_MANAGE))
    """

    async def capability_checker(
        current_user: User = Depends(get_current_user),
        session: AsyncSession = Depends(get_db_session),
    ) -> User:
        if not can(current_user.role, capability):
            logger.warning(f"Access denied: {current_user.email} ({current_user.role}) -> {capability}")
            # Committed here: the request transaction is rolled back on error
            await create_audit_log(
                session, "capabilities", capability.value, AuditAction.ACCESS_DENIED, user_id=current_user.id
            )
            await session.commit()
            raise InsufficientPermissionsException(capability.value)
        return current_user

    return capability_checker
