"""JWT and refresh token utilities for authentication."""

import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from stockroom.config.settings import settings

REFRESH_TOKEN_BYTES = 64


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> tuple[str, datetime]:
    """Create a signed JWT access token.

    Args:
        data: Claims to encode in the token (sub, email, name, role)
        expires_delta: Optional expiration time delta

    Returns:
        Tuple of (encoded token, expiry datetime in UTC)

    """
    to_encode = data.copy()
    now = datetime.now(UTC)

    if expires_delta:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=settings.access_token_expire_minutes)

    to_encode.update(
        {
            "exp": expire,
            "iat": now,
            "iss": settings.jwt_issuer,
            "aud": settings.jwt_audience,
            "type": "access",
        }
    )

    encoded_jwt = jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)
    return encoded_jwt, expire


def generate_refresh_token() -> str:
    """Generate a high-entropy opaque refresh token string."""
    return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)


def refresh_token_expiry() -> datetime:
    return datetime.now(UTC) + timedelta(days=settings.refresh_token_expire_days)


def decode_token(token: str) -> dict[str, Any]:
    """Decode and verify a JWT access token.

    Args:
        token: JWT token string

    Returns:
        Decoded token payload

    Raises:
        InvalidTokenError: If token is invalid, expired or issued for another audience

    """
    return jwt.decode(
        token,
        settings.secret_key,
        algorithms=[settings.jwt_algorithm],
        audience=settings.jwt_audience,
        issuer=settings.jwt_issuer,
    )


def verify_token_type(payload: dict[str, Any], expected_type: str) -> bool:
    """Verify the token type matches expected.

    Args:
        payload: Decoded token payload
        expected_type: Expected token type

    Returns:
        True if type matches, False otherwise

    """
    return payload.get("type") == expected_type
