"""Client-side exceptions."""


class ClientError(Exception):
    """Base exception for the Stockroom API client."""


class AuthenticationError(ClientError):
    """Terminal authentication failure (bad credentials, or a 401 after the single retry)."""


class SessionExpiredError(AuthenticationError):
    """The session ended: stored credentials were cleared and the user must log in again."""


class OfflineError(ClientError):
    """The API is unreachable and the operation cannot be queued."""


class ApiError(ClientError):
    """The server rejected a request (validation error, conflict, missing resource)."""

    def __init__(self, status_code: int, detail: str):
        super().__init__(f"{status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
