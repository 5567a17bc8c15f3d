"""User schemas (DTOs)."""

import uuid
from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from stockroom.shared.schemas import CamelModel
from stockroom.shared.validators.password import validate_password_strength

from .models import UserRole, UserStatus


# Request schemas
class UserRegisterRequest(CamelModel):
    """User registration request."""

    email: EmailStr
    full_name: str = Field(..., min_length=1, max_length=200)
    password: str = Field(..., min_length=8, description="Password must be at least 8 characters")
    role: UserRole = UserRole.EMPLOYEE
    cost_center: str | None = Field(None, max_length=100)

    @field_validator("password")
    @classmethod
    def password_strength(cls, value):
        """Validate password strength using shared validator."""
        return validate_password_strength(value)


class UserUpdateRequest(CamelModel):
    """Profile update request."""

    full_name: str | None = Field(None, min_length=1, max_length=200)
    email: EmailStr | None = None
    cost_center: str | None = Field(None, max_length=100)


class PasswordChangeRequest(CamelModel):
    """Password change request."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, description="Password must be at least 8 characters")
    confirm_new_password: str = Field(..., min_length=8)

    @field_validator("new_password")
    @classmethod
    def password_strength(cls, value):
        """Validate password strength using shared validator."""
        return validate_password_strength(value)

    @field_validator("confirm_new_password")
    @classmethod
    def passwords_match(cls, value, info):
        """Validate that new_password and confirm_new_password match."""
        if "new_password" in info.data and value != info.data["new_password"]:
            raise ValueError("New passwords do not match")
        return value


class AssignRoleRequest(CamelModel):
    """Change a user's role (admin only)."""

    role: UserRole


# Response schemas
class UserSummary(CamelModel):
    """Identity embedded in tokens responses and movement records."""

    id: uuid.UUID
    full_name: str
    email: EmailStr
    role: UserRole


class UserResponse(UserSummary):
    """User response."""

    cost_center: str | None = None
    status: UserStatus
    is_active: bool
    created_at: datetime
    last_login_at: datetime | None = None
