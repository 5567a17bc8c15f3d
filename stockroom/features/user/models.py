"""User domain models."""

import uuid
from datetime import datetime
from enum import StrEnum

from pwdlib import PasswordHash
from sqlalchemy import Enum, Integer, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from stockroom.database.base import Base, TimestampMixin, UTCDateTime, utcnow


class UserRole(StrEnum):
    """User roles for RBAC.

    WAREHOUSE_MANAGER: Day-to-day stock management.
                       Registers item check-ins and check-outs, manages items.

    HR: Management and auditing perspective.
        Manages users and items, views reports and the audit log.

    EMPLOYEE: End user who withdraws and returns items.
              Usually the recipient of a movement rather than an operator.

    ADMIN: Superuser for maintenance and initial configuration.
           Assigns roles; does not take part in stock operations.
    """

    WAREHOUSE_MANAGER = "WarehouseManager"
    HR = "HR"
    EMPLOYEE = "Employee"
    ADMIN = "Admin"


class UserStatus(StrEnum):
    """User account status."""

    ACTIVE = "active"
    INACTIVE = "inactive"
    LOCKED = "locked"


pwd_hasher = PasswordHash.recommended()


def _enum_values(enum_cls) -> list[str]:
    return [member.value for member in enum_cls]


class User(Base, TimestampMixin):
    """User model for authentication and authorization."""

    __tablename__ = "users"

    # Primary key
    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)

    # Identity
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True, index=True)
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)
    cost_center: Mapped[str | None] = mapped_column(String(100), nullable=True)

    # Authentication
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    # Authorization
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, length=50, values_callable=_enum_values),
        nullable=False,
        default=UserRole.EMPLOYEE,
    )

    # Status
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, native_enum=False, length=50, values_callable=_enum_values),
        nullable=False,
        default=UserStatus.ACTIVE,
        index=True,
    )

    # Audit
    last_login_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    failed_login_attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default="0")
    locked_until: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)

    @property
    def is_active(self) -> bool:
        """Computed property: user is active if status is ACTIVE."""
        return self.status == UserStatus.ACTIVE

    def verify_password(self, plain_password: str) -> bool:
        """Verify a password against the hash using Argon2.

        Salt is automatically extracted from the hash by pwdlib.
        """
        return pwd_hasher.verify(plain_password, self.hashed_password)

    @staticmethod
    def hash_password(password: str) -> str:
        """Hash a password using Argon2.

        Salt is automatically generated and embedded in the returned hash.
        """
        return pwd_hasher.hash(password)

    def has_role(self, *roles: UserRole) -> bool:
        """Check if the user holds any of the given roles."""
        return self.role in roles

    def is_locked(self) -> bool:
        """Check if account is locked."""
        locked_until = self.locked_until
        if locked_until:
            if locked_until > utcnow():
                return True
        return False
