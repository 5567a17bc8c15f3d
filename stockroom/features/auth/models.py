"""Authentication models (refresh token storage)."""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, ForeignKey, String, Uuid, false
from sqlalchemy.orm import Mapped, mapped_column

from stockroom.database.base import Base, UTCDateTime, utcnow


class RefreshToken(Base):
    """Opaque refresh token issued at login and rotated on every refresh.

    Tokens are revoked, never deleted. A user may hold several active
    tokens at once (one per device).
    """

    __tablename__ = "refresh_tokens"

    # The token itself is the primary key
    token: Mapped[str] = mapped_column(String(128), primary_key=True)

    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False, index=True)
    revoked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=false())

    # Audit trail
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utcnow, nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)  # IPv6 max length is 45
    user_agent: Mapped[str | None] = mapped_column(String(500), nullable=True)

    @property
    def is_active(self) -> bool:
        return not self.revoked and self.expires_at > utcnow()

    def revoke(self) -> None:
        """Mark the token revoked. Safe to call on an already revoked token."""
        if not self.revoked:
            self.revoked = True
            self.revoked_at = utcnow()
