"""Movement-related exceptions."""

from fastapi import HTTPException, status


class MovementException(HTTPException):
    """Base movement exception. Invalid movement requests are 400s."""

    def __init__(self, detail: str = "Invalid movement", status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=detail)


class MovementNotFound(MovementException):
    """Raised when movement is not found."""

    def __init__(self):
        super().__init__(detail="Movement not found", status_code=status.HTTP_404_NOT_FOUND)


class MovementItemNotFound(MovementException):
    def __init__(self):
        super().__init__(detail="The specified item was not found")


class RecipientNotFound(MovementException):
    def __init__(self):
        super().__init__(detail="The specified recipient was not found")


class RecipientInactive(MovementException):
    def __init__(self):
        super().__init__(detail="The specified recipient is not active")


class IdempotencyKeyConflict(MovementException):
    """Raised when an idempotency key is reused for a different movement."""

    def __init__(self):
        super().__init__(
            detail="Idempotency key was already used for a different movement",
            status_code=status.HTTP_409_CONFLICT,
        )
