"""Authentication schemas (DTOs)."""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from stockroom.features.user.schemas import UserSummary
from stockroom.shared.schemas import CamelModel
from stockroom.shared.validators.password import validate_password_strength


# Request schemas
class LoginRequest(CamelModel):
    """Login request.

    Note: Uses email-validator library via Pydantic's EmailStr for RFC 5322 compliant email validation.
    """

    email: EmailStr
    password: str = Field(..., min_length=1)


class RefreshTokenRequest(CamelModel):
    """Refresh token request (``{"refreshToken": ...}`` on the wire)."""

    refresh_token: str = Field(..., min_length=1)


class ChangePasswordRequest(CamelModel):
    """Password change through the auth endpoint."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, value):
        return validate_password_strength(value)


# Response schemas
class AuthResult(CamelModel):
    """Token pair plus the identity it was issued for."""

    token: str
    refresh_token: str
    expiry_date: datetime
    token_type: str = "bearer"
    user: UserSummary


class MessageResponse(CamelModel):
    message: str
