"""Client credential session: token pair and cached identity."""

import logging

from pydantic import ValidationError

from stockroom.features.auth.schemas import AuthResult
from stockroom.features.user.models import UserRole
from stockroom.features.user.schemas import UserSummary
from stockroom.shared.access.capabilities import Capability, allowed_routes, can

from .storage import KeyValueStore

logger = logging.getLogger(__name__)

TOKEN_KEY = "token"
REFRESH_TOKEN_KEY = "refreshToken"
USER_KEY = "user"


class ClientSession:
    """Token pair and identity persisted in a key-value store.

    The three values are written together on login or refresh and cleared
    together on logout or when the session ends.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    @property
    def access_token(self) -> str | None:
        return self.store.get(TOKEN_KEY)

    @property
    def refresh_token(self) -> str | None:
        return self.store.get(REFRESH_TOKEN_KEY)

    @property
    def user(self) -> UserSummary | None:
        """Cached identity. A corrupted value is discarded and reported as absent."""
        raw = self.store.get(USER_KEY)
        if raw is None:
            return None

        try:
            return UserSummary.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding corrupted cached identity")
            self.store.delete(USER_KEY)
            return None

    @property
    def role(self) -> UserRole | None:
        user = self.user
        return user.role if user else None

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    def save(self, auth: AuthResult) -> None:
        """Replace the stored credentials with a freshly issued pair."""
        self.store.set(TOKEN_KEY, auth.token)
        self.store.set(REFRESH_TOKEN_KEY, auth.refresh_token)
        self.store.set(USER_KEY, auth.user.model_dump_json(by_alias=True))

    def clear(self) -> None:
        for key in (TOKEN_KEY, REFRESH_TOKEN_KEY, USER_KEY):
            self.store.delete(key)

    def can(self, capability: Capability) -> bool:
        """Advisory check used to hide what the API would refuse."""
        if not self.is_authenticated:
            return False
        return can(self.role, capability)

    def allowed_routes(self) -> list[str]:
        if not self.is_authenticated:
            return []
        return allowed_routes(self.role)
