"""Authentication exceptions."""

from fastapi import HTTPException, status


class AuthenticationException(HTTPException):
    """Base authentication exception."""

    def __init__(self, detail: str = "Authentication failed"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class InvalidCredentialsException(AuthenticationException):
    """Raised when email or password is incorrect."""

    def __init__(self):
        super().__init__(detail="Invalid credentials")


class InvalidTokenException(AuthenticationException):
    """Raised when JWT token is invalid or expired."""

    def __init__(self, detail: str = "Invalid or expired token"):
        super().__init__(detail=detail)


class RefreshTokenNotFoundException(InvalidTokenException):
    """Raised when refresh token is unknown."""

    def __init__(self):
        super().__init__(detail="Refresh token not found")


class RefreshTokenRevokedException(InvalidTokenException):
    """Raised when a revoked refresh token is presented."""

    def __init__(self):
        super().__init__(detail="Refresh token revoked")


class RefreshTokenExpiredException(InvalidTokenException):
    """Raised when refresh token has expired."""

    def __init__(self):
        super().__init__(detail="Refresh token expired")


class UserInactiveException(HTTPException):
    """Raised when user account is inactive."""

    def __init__(self):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail="User account is inactive")


class UserLockedException(HTTPException):
    """Raised when user account is locked."""

    def __init__(self):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail="User account is locked")


class InsufficientPermissionsException(HTTPException):
    """Raised when user lacks the capability required by an endpoint."""

    def __init__(self, capability: str):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"User role is not allowed to use '{capability}'",
        )
