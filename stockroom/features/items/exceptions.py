"""Item-related exceptions."""

from fastapi import HTTPException, status


class ItemException(HTTPException):
    """Base item exception."""

    def __init__(self, detail: str = "Item operation failed", status_code: int = status.HTTP_400_BAD_REQUEST):
        super().__init__(status_code=status_code, detail=detail)


class ItemNotFound(ItemException):
    """Raised when item is not found."""

    def __init__(self):
        super().__init__(detail="Item not found", status_code=status.HTTP_404_NOT_FOUND)


class SkuAlreadyExists(ItemException):
    """Raised when another item already uses the SKU."""

    def __init__(self, sku: str):
        super().__init__(detail=f"An item with SKU '{sku}' already exists", status_code=status.HTTP_409_CONFLICT)


class ItemHasMovements(ItemException):
    """Raised when deleting an item that has movement history."""

    def __init__(self):
        super().__init__(
            detail="Item has movement history and cannot be deleted", status_code=status.HTTP_409_CONFLICT
        )


class InvalidQuantity(ItemException):
    def __init__(self):
        super().__init__(detail="Quantity must be greater than zero")


class InsufficientStock(ItemException):
    """Raised when a check-out asks for more units than are in stock."""

    def __init__(self, item_name: str, available: int, requested: int):
        super().__init__(detail=f"Insufficient stock for '{item_name}': {available} available, {requested} requested")
