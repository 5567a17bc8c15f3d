"""User-related exceptions."""

from fastapi import HTTPException, status


class UserException(HTTPException):
    """Base user exception."""

    def __init__(self, detail: str = "User operation failed", status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=detail)


class UserNotFound(UserException):
    """Raised when user is not found."""

    def __init__(self):
        super().__init__(detail="User not found", status_code=status.HTTP_404_NOT_FOUND)


class EmailAlreadyExists(UserException):
    """Raised when email already exists."""

    def __init__(self):
        super().__init__(detail="Email already registered", status_code=status.HTTP_409_CONFLICT)


class IncorrectPassword(UserException):
    """Raised when password is incorrect."""

    def __init__(self):
        super().__init__(detail="Current password is incorrect")


class CannotDeactivateOwnAccount(UserException):
    """Raised when a user tries to deactivate their own account."""

    def __init__(self):
        super().__init__(detail="Cannot deactivate your own account")
