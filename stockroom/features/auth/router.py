"""Authentication router (login, refresh, logout, password change)."""

import logging

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.config.settings import settings
from stockroom.database.dependencies import get_db_session
from stockroom.features.user.models import User
from stockroom.shared.rate_limit.limiter import limiter

from .dependencies import get_current_active_user
from .exceptions import InvalidCredentialsException
from .schemas import AuthResult, ChangePasswordRequest, LoginRequest, MessageResponse, RefreshTokenRequest
from .service import AuthService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/auth", tags=["Authentication"])


def _client_info(request: Request) -> tuple[str | None, str | None]:
    ip_address = request.client.host if request.client else None
    return ip_address, request.headers.get("user-agent")


@router.post("/login", response_model=AuthResult)
@limiter.limit(settings.login_rate_limit)
async def login(data: LoginRequest, request: Request, session: AsyncSession = Depends(get_db_session)):
    """Login and get a token pair.

    - **email**: Email address
    - **password**: Password

    Returns the access token, refresh token, access token expiry and the user.
    """
    user = await AuthService.authenticate_user(session, data.email, data.password)

    if not user:
        # Persist failed-attempt counters and audit entries before rejecting
        await session.commit()
        raise InvalidCredentialsException()

    ip_address, user_agent = _client_info(request)
    tokens = await AuthService.issue_tokens(session, user, ip_address, user_agent)
    await session.commit()

    logger.info(f"User logged in: {user.email}")
    return tokens


@router.post("/refresh", response_model=AuthResult)
async def refresh_token(data: RefreshTokenRequest, request: Request, session: AsyncSession = Depends(get_db_session)):
    """Exchange a refresh token for a new pair.

    - **refreshToken**: Active refresh token (revoked once used)
    """
    ip_address, user_agent = _client_info(request)
    tokens = await AuthService.refresh_tokens(session, data.refresh_token, ip_address, user_agent)
    await session.commit()
    return tokens


@router.post("/logout", response_model=MessageResponse)
async def logout(
    data: RefreshTokenRequest,
    current_user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Logout and revoke refresh token.

    - **refreshToken**: Refresh token to revoke
    """
    revoked = await AuthService.revoke_refresh_token(session, data.refresh_token)

    if revoked:
        await session.commit()
        logger.info(f"User logged out: {current_user.email}")
        return MessageResponse(message="Successfully logged out")

    return MessageResponse(message="Token already revoked or not found")


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: User = Depends(get_current_active_user),
    session: AsyncSession = Depends(get_db_session),
):
    """Change the current user's password."""
    await AuthService.change_password(session, current_user, data.current_password, data.new_password)
    await session.commit()
    return MessageResponse(message="Password changed successfully")
