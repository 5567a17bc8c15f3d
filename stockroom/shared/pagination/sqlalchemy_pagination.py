"""SQLAlchemy query helpers for pagination."""

from typing import Any, TypeVar

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from stockroom.database.base import Base

from .pagination import PaginationParams, QueryParams

ModelType = TypeVar("ModelType", bound=Base)


class SQLAlchemyPagination:
    """Helper class for paginating SQLAlchemy queries."""

    @staticmethod
    async def paginate(
        session: AsyncSession,
        model: type[ModelType],
        pagination: PaginationParams,
        filters: list | None = None,
        sortable: dict[str, Any] | None = None,
        default_sort: Any = None,
    ) -> tuple[list[ModelType], int]:
        """Paginate a SQLAlchemy model query.

        Args:
            session: Database session
            model: SQLAlchemy model class
            pagination: PaginationParams (or QueryParams for sorting)
            filters: Optional list of SQLAlchemy filter conditions
            sortable: Mapping of public sort keys to columns
            default_sort: Ordering clause (or tuple of clauses) used when no valid sort key is given

        Returns:
            Tuple of (items, total_count)

        Example:
            ```python
            items, total = await SQLAlchemyPagination.paginate(
                session,
                Item,
                params,
                filters=[Item.category == "PPE"],
                sortable={"name": Item.name},
            )
            ```

        """
        stmt = select(model)
        count_stmt = select(func.count()).select_from(model)
        for filter_condition in filters or []:
            stmt = stmt.where(filter_condition)
            count_stmt = count_stmt.where(filter_condition)

        total_result = await session.execute(count_stmt)
        total = total_result.scalar_one()

        order_clause = default_sort
        if isinstance(pagination, QueryParams) and sortable and pagination.sort_by in sortable:
            column = sortable[pagination.sort_by]
            order_clause = column.desc() if pagination.sort_order == "desc" else column.asc()
        if isinstance(order_clause, tuple):
            stmt = stmt.order_by(*order_clause)
        elif order_clause is not None:
            stmt = stmt.order_by(order_clause)

        if pagination.is_paginated:
            stmt = stmt.offset(pagination.skip).limit(pagination.limit)

        result = await session.execute(stmt)
        items = list(result.scalars().all())

        return items, total


__all__ = ["SQLAlchemyPagination"]
