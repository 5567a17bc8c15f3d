"""User management router (API endpoints)."""

import logging
import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database.dependencies import get_db_session
from stockroom.features.auth.dependencies import get_current_active_user, require_capability
from stockroom.shared.access.capabilities import Capability
from stockroom.shared.audit.audit import AuditAction, create_audit_log, serialize_model
from stockroom.shared.pagination.pagination import PaginatedResponse, QueryParams

from .exceptions import CannotDeactivateOwnAccount, UserNotFound
from .models import User
from .schemas import (
    AssignRoleRequest,
    PasswordChangeRequest,
    UserRegisterRequest,
    UserResponse,
    UserUpdateRequest,
)
from .service import UserService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["User Management"])


async def _get_user_or_404(session: AsyncSession, user_id: uuid.UUID) -> User:
    user = await UserService.get_user(session, user_id)
    if not user:
        raise UserNotFound()
    return user


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(current_user: User = Depends(get_current_active_user)):
    """Get current user information."""
    return UserResponse.model_validate(current_user)


@router.put("/me", response_model=UserResponse)
async def update_current_user(
    data: UserUpdateRequest,
    current_user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Update current user's own profile (full name, email, cost center)."""
    before = serialize_model(current_user)
    user = await UserService.update_user(
        session,
        current_user,
        full_name=data.full_name,
        email=data.email,
        cost_center=data.cost_center,
    )
    await create_audit_log(session, "users", user.id, AuditAction.UPDATE, before, serialize_model(user))
    await session.commit()
    return UserResponse.model_validate(user)


@router.post("/me/change-password")
async def change_password(
    data: PasswordChangeRequest,
    current_user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Change current user's password."""
    await UserService.change_password(current_user, data.current_password, data.new_password)
    await create_audit_log(session, "users", current_user.id, AuditAction.PASSWORD_CHANGE)
    await session.commit()
    return {"message": "Password changed successfully"}


# User administration (HR)
@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_capability(Capability.USERS_MANAGE))],
)
async def register_user(
    data: UserRegisterRequest,
    current_user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Register a new user.

    The role defaults to Employee. Only Admins can change roles afterwards
    (`PUT /users/{id}/role`).
    """
    user = await UserService.register_user(session, data)
    await create_audit_log(session, "users", user.id, AuditAction.CREATE, after=serialize_model(user))
    await session.commit()
    logger.info(f"New user registered by {current_user.email}: {user.email}")
    return UserResponse.model_validate(user)


@router.get(
    "",
    response_model=PaginatedResponse[UserResponse],
    dependencies=[Depends(require_capability(Capability.USERS_MANAGE))],
)
async def list_users(
    params: QueryParams = Depends(),
    session: AsyncSession = Depends(get_db_session),
):
    """List users.

    - `page`: Page number (1-indexed, default: 1)
    - `page_size`: Items per page (default: 20, max: 100)
    - `search_term`: Matches full name or email
    - `sort_by`: fullName, email, role or createdAt
    """
    users, total = await UserService.get_users(session, params)
    return PaginatedResponse[UserResponse](
        items=[UserResponse.model_validate(u) for u in users],
        total=total,
        page=params.page,
        page_size=params.page_size,
    )


@router.get(
    "/{user_id}",
    response_model=UserResponse,
    dependencies=[Depends(require_capability(Capability.USERS_MANAGE))],
)
async def get_user(user_id: uuid.UUID, session: AsyncSession = Depends(get_db_session)):
    """Get user by ID."""
    user = await _get_user_or_404(session, user_id)
    return UserResponse.model_validate(user)


@router.post(
    "/{user_id}/activate",
    response_model=UserResponse,
    dependencies=[Depends(require_capability(Capability.USERS_MANAGE))],
)
async def activate_user(
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Activate an account (also clears a login lockout)."""
    user = await _get_user_or_404(session, user_id)
    before = serialize_model(user)
    user = await UserService.set_active(user, True)
    await create_audit_log(session, "users", user.id, AuditAction.UPDATE, before, serialize_model(user))
    await session.commit()
    logger.info(f"User activated by {current_user.email}: {user.email}")
    return UserResponse.model_validate(user)


@router.post(
    "/{user_id}/deactivate",
    response_model=UserResponse,
    dependencies=[Depends(require_capability(Capability.USERS_MANAGE))],
)
async def deactivate_user(
    user_id: uuid.UUID,
    current_user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Deactivate an account. Deactivated users cannot log in or refresh tokens."""
    if current_user.id == user_id:
        raise CannotDeactivateOwnAccount()

    user = await _get_user_or_404(session, user_id)
    before = serialize_model(user)
    user = await UserService.set_active(user, False)
    await create_audit_log(session, "users", user.id, AuditAction.UPDATE, before, serialize_model(user))
    await session.commit()
    logger.info(f"User deactivated by {current_user.email}: {user.email}")
    return UserResponse.model_validate(user)


@router.put(
    "/{user_id}/role",
    response_model=UserResponse,
    dependencies=[Depends(require_capability(Capability.ROLES_ASSIGN))],
)
async def assign_role(
    user_id: uuid.UUID,
    data: AssignRoleRequest,
    current_user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Assign a role to a user (admin only)."""
    user = await _get_user_or_404(session, user_id)
    before = serialize_model(user)
    user = await UserService.assign_role(user, data.role)
    await create_audit_log(session, "users", user.id, AuditAction.UPDATE, before, serialize_model(user))
    await session.commit()
    logger.info(f"Role {data.role} assigned to {user.email} by {current_user.email}")
    return UserResponse.model_validate(user)
