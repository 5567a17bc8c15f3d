"""User service layer."""

import logging
import uuid

from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.shared.pagination.pagination import QueryParams
from stockroom.shared.pagination.sqlalchemy_pagination import SQLAlchemyPagination

from .exceptions import EmailAlreadyExists, IncorrectPassword
from .models import User, UserRole, UserStatus
from .schemas import UserRegisterRequest

logger = logging.getLogger(__name__)


class UserService:
    """Service for user operations."""

    @staticmethod
    async def get_by_email(session: AsyncSession, email: str) -> User | None:
        """Get user by email (case-insensitive)."""
        stmt = select(User).where(User.email == email.lower())
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def register_user(session: AsyncSession, data: UserRegisterRequest) -> User:
        """Register a new user.

        Args:
            session: Database session
            data: User registration data

        Returns:
            Created User object

        Raises:
            EmailAlreadyExists: If email already exists

        """
        if await UserService.get_by_email(session, data.email):
            raise EmailAlreadyExists()

        user = User(
            email=data.email.lower(),
            full_name=data.full_name,
            hashed_password=User.hash_password(data.password),
            role=data.role,
            cost_center=data.cost_center,
            status=UserStatus.ACTIVE,
        )

        session.add(user)
        await session.flush()
        logger.info(f"New user registered: {user.email} ({user.role})")

        return user

    @staticmethod
    async def get_user(session: AsyncSession, user_id: uuid.UUID) -> User | None:
        """Get user by ID."""
        stmt = select(User).where(User.id == user_id)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_users(session: AsyncSession, params: QueryParams) -> tuple[list[User], int]:
        """Get paginated users list, optionally filtered by name or email."""
        filters = []
        if params.search_term:
            pattern = f"%{params.search_term.lower()}%"
            filters.append(or_(func.lower(User.full_name).like(pattern), User.email.like(pattern)))

        return await SQLAlchemyPagination.paginate(
            session,
            User,
            params,
            filters=filters,
            sortable={"fullName": User.full_name, "email": User.email, "role": User.role, "createdAt": User.created_at},
            default_sort=User.full_name,
        )

    @staticmethod
    async def update_user(session: AsyncSession, user: User, **kwargs) -> User:
        """Update user profile fields (full_name, email, cost_center).

        Raises:
            EmailAlreadyExists: If email is being changed to an existing email

        """
        new_email = kwargs.get("email")
        if new_email is not None:
            new_email = new_email.lower()
            kwargs["email"] = new_email
            if new_email != user.email and await UserService.get_by_email(session, new_email):
                raise EmailAlreadyExists()

        for key, value in kwargs.items():
            if value is not None and key in ("full_name", "email", "cost_center"):
                setattr(user, key, value)

        await session.flush()
        logger.info(f"User updated: {user.email}")
        return user

    @staticmethod
    async def change_password(user: User, current_password: str, new_password: str) -> bool:
        """Change user password.

        Raises:
            IncorrectPassword: If current password is incorrect

        """
        if not user.verify_password(current_password):
            raise IncorrectPassword()

        user.hashed_password = User.hash_password(new_password)

        logger.info(f"Password changed for user: {user.email}")
        return True

    @staticmethod
    async def assign_role(user: User, role: UserRole) -> User:
        """Replace the user's role."""
        user.role = role
        logger.info(f"Role assigned to user {user.email}: {role}")
        return user

    @staticmethod
    async def set_active(user: User, active: bool) -> User:
        """Activate or deactivate an account. Activation also clears a lockout."""
        if active:
            user.status = UserStatus.ACTIVE
            user.failed_login_attempts = 0
            user.locked_until = None
        else:
            user.status = UserStatus.INACTIVE
        logger.info(f"User {user.email} status set to {user.status}")
        return user

    @staticmethod
    async def count_active(session: AsyncSession) -> int:
        stmt = select(func.count()).select_from(User).where(User.status == UserStatus.ACTIVE)
        result = await session.execute(stmt)
        return result.scalar_one()
