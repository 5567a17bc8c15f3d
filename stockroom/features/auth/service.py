"""Authentication service layer (credential and token service)."""

import logging
from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database.base import utcnow
from stockroom.features.user.exceptions import IncorrectPassword
from stockroom.features.user.models import User, UserStatus
from stockroom.features.user.schemas import UserSummary
from stockroom.shared.audit.audit import AuditAction, create_audit_log

from .exceptions import (
    InvalidTokenException,
    RefreshTokenExpiredException,
    RefreshTokenNotFoundException,
    RefreshTokenRevokedException,
)
from .jwt_utils import create_access_token, generate_refresh_token, refresh_token_expiry
from .models import RefreshToken
from .schemas import AuthResult

logger = logging.getLogger(__name__)

MAX_FAILED_LOGIN_ATTEMPTS = 5
LOCKOUT_DURATION = timedelta(minutes=30)


class AuthService:
    """Service for JWT authentication and refresh token management."""

    @staticmethod
    async def authenticate_user(session: AsyncSession, email: str, password: str) -> User | None:
        """Authenticate a user with email and password.

        Five consecutive failures lock the account for 30 minutes. An expired
        lock is lifted on the next attempt.

        Args:
            session: Database session
            email: Email address (case-insensitive)
            password: Plain text password

        Returns:
            User object if authentication successful, None otherwise

        """
        stmt = select(User).where(User.email == email.lower())
        result = await session.execute(stmt)
        user = result.scalar_one_or_none()

        if not user:
            logger.warning(f"Login attempt for unknown account: {email}")
            await create_audit_log(
                session, "users", None, AuditAction.LOGIN_FAILURE, details=f"Unknown account: {email}"
            )
            return None

        if user.is_locked():
            logger.warning(f"Login attempt for locked account: {email}")
            await create_audit_log(
                session, "users", user.id, AuditAction.LOGIN_FAILURE, details="Account locked", user_id=user.id
            )
            return None

        if user.status == UserStatus.LOCKED:
            # Lock window elapsed
            user.status = UserStatus.ACTIVE
            user.failed_login_attempts = 0
            user.locked_until = None

        if not user.is_active:
            logger.warning(f"Login attempt for inactive account: {email}")
            await create_audit_log(
                session, "users", user.id, AuditAction.LOGIN_FAILURE, details="Account inactive", user_id=user.id
            )
            return None

        if not user.verify_password(password):
            user.failed_login_attempts += 1

            if user.failed_login_attempts >= MAX_FAILED_LOGIN_ATTEMPTS:
                user.locked_until = utcnow() + LOCKOUT_DURATION
                user.status = UserStatus.LOCKED
                logger.warning(f"Account locked due to failed attempts: {email}")

            await create_audit_log(
                session, "users", user.id, AuditAction.LOGIN_FAILURE, details="Invalid password", user_id=user.id
            )
            return None

        user.failed_login_attempts = 0
        user.last_login_at = utcnow()
        user.locked_until = None

        await create_audit_log(session, "users", user.id, AuditAction.LOGIN_SUCCESS, user_id=user.id)
        return user

    @staticmethod
    async def issue_tokens(
        session: AsyncSession, user: User, ip_address: str | None = None, user_agent: str | None = None
    ) -> AuthResult:
        """Issue a signed access token and a fresh opaque refresh token.

        Args:
            session: Database session
            user: Authenticated user
            ip_address: Requester's IP address (optional)
            user_agent: Requester's User-Agent header (optional)

        Returns:
            AuthResult with the token pair, access token expiry and user summary

        """
        claims = {
            "sub": str(user.id),
            "email": user.email,
            "name": user.full_name,
            "role": user.role.value,
        }
        access_token, expires_at = create_access_token(claims)

        refresh_token = RefreshToken(
            token=generate_refresh_token(),
            user_id=user.id,
            expires_at=refresh_token_expiry(),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        session.add(refresh_token)
        await session.flush()

        return AuthResult(
            token=access_token,
            refresh_token=refresh_token.token,
            expiry_date=expires_at,
            user=UserSummary.model_validate(user),
        )

    @staticmethod
    async def refresh_tokens(
        session: AsyncSession, refresh_token: str, ip_address: str | None = None, user_agent: str | None = None
    ) -> AuthResult:
        """Exchange a refresh token for a new pair.

        The presented token is revoked before the new pair is issued, so each
        refresh token can be used at most once.

        Raises:
            RefreshTokenNotFoundException: Unknown token
            RefreshTokenRevokedException: Token already revoked
            RefreshTokenExpiredException: Token past its expiry
            InvalidTokenException: Owning user missing or not active

        """
        stmt = select(RefreshToken).where(RefreshToken.token == refresh_token)
        result = await session.execute(stmt)
        stored_token = result.scalar_one_or_none()

        if not stored_token:
            raise RefreshTokenNotFoundException()

        if stored_token.revoked:
            logger.warning(f"Revoked refresh token presented for user {stored_token.user_id}")
            raise RefreshTokenRevokedException()

        if stored_token.expires_at <= utcnow():
            raise RefreshTokenExpiredException()

        user = await session.get(User, stored_token.user_id)

        if not user or not user.is_active:
            raise InvalidTokenException(detail="User not found or inactive")

        stored_token.revoke()
        tokens = await AuthService.issue_tokens(session, user, ip_address, user_agent)

        logger.info(f"Tokens refreshed for user: {user.email}")
        return tokens

    @staticmethod
    async def revoke_refresh_token(session: AsyncSession, refresh_token: str) -> bool:
        """Revoke a refresh token (logout).

        Returns:
            True if an active token was revoked, False if it was unknown or already revoked

        """
        stmt = select(RefreshToken).where(RefreshToken.token == refresh_token)
        result = await session.execute(stmt)
        stored_token = result.scalar_one_or_none()

        if stored_token and not stored_token.revoked:
            stored_token.revoke()
            await create_audit_log(session, "users", stored_token.user_id, AuditAction.LOGOUT)
            return True

        return False

    @staticmethod
    async def change_password(session: AsyncSession, user: User, current_password: str, new_password: str) -> None:
        """Change the user's password after verifying the current one.

        Raises:
            IncorrectPassword: If current password is incorrect

        """
        if not user.verify_password(current_password):
            raise IncorrectPassword()

        user.hashed_password = User.hash_password(new_password)
        await create_audit_log(session, "users", user.id, AuditAction.PASSWORD_CHANGE)
        logger.info(f"Password changed for user: {user.email}")
