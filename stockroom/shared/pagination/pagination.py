"""Pagination utilities and models for API responses."""

from typing import Literal

from pydantic import BaseModel, Field

from stockroom.shared.schemas import CamelModel

MAX_PAGE_SIZE = 100


class PaginationParams(BaseModel):
    """Query parameters for pagination.

    Used as a route dependency and handed to SQLAlchemyPagination:
    ```python
    @router.get("/movements")
    async def list_movements(pagination: PaginationParams = Depends(), session=Depends(get_db_session)):
        return await SQLAlchemyPagination.paginate(session, Movement, pagination)
    ```

    Clients that want every row send page=None.
    """

    page: int | None = Field(default=1, ge=1, description="Page number (1-indexed). Set to None to disable pagination")

    page_size: int | None = Field(
        default=20, ge=1, le=MAX_PAGE_SIZE, description="Items per page. Set to None to disable pagination"
    )

    @property
    def skip(self) -> int:
        """Calculate skip/offset for database query."""
        if self.page is None or self.page_size is None:
            return 0
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int | None:
        """Calculate limit for database query (None = no limit)."""
        return self.page_size

    @property
    def is_paginated(self) -> bool:
        """Check if pagination is enabled."""
        return self.page is not None and self.page_size is not None


class QueryParams(PaginationParams):
    """Pagination plus free-text search and sorting."""

    search_term: str | None = Field(default=None, max_length=200, description="Case-insensitive search")
    sort_by: str | None = Field(default=None, description="Field to sort by (camelCase name)")
    sort_order: Literal["asc", "desc"] = "asc"


class PaginatedResponse[T](CamelModel):
    """Generic paginated response model."""

    items: list[T]
    total: int
    page: int | None = None
    page_size: int | None = None

    @property
    def total_pages(self) -> int | None:
        """Calculate total pages. Returns None if not paginated."""
        if self.page is None or self.page_size is None or self.page_size == 0:
            return None
        return (self.total + self.page_size - 1) // self.page_size

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        if self.page is None or self.total_pages is None:
            return False
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        """Check if there's a previous page."""
        if self.page is None or self.page_size is None:
            return False
        return self.page > 1


__all__ = ["MAX_PAGE_SIZE", "PaginatedResponse", "PaginationParams", "QueryParams"]
