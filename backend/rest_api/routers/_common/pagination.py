"""
Standardized page-based pagination for list endpoints.

Usage:
    from rest_api.routers._common.pagination import Pagination, get_pagination

    @router.get("/orders")
    def list_orders(
        pagination: Pagination = Depends(get_pagination),
        db: Session = Depends(get_db),
    ):
        query = query.offset(pagination.offset).limit(pagination.limit)
        return {"orders": items, "pagination": pagination.to_dict(total=count)}
"""

from dataclasses import dataclass
from typing import Any
from fastapi import Query

from shared.config.constants import Limits


@dataclass
class Pagination:
    """
    Pagination parameters with validation.

    Attributes:
        page: 1-indexed page number
        limit: Maximum items per page (1 to max_limit)
        max_limit: Maximum allowed limit (default 200)
    """

    page: int
    limit: int
    max_limit: int = Limits.MAX_PAGE_SIZE

    def __post_init__(self):
        """Validate and normalize values."""
        self.limit = min(max(1, self.limit), self.max_limit)
        self.page = max(1, self.page)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    def to_dict(self, total: int) -> dict[str, Any]:
        """
        Pagination block of a list response.

        Args:
            total: Total count of matching rows
        """
        return {
            "current": self.page,
            "pages": (total + self.limit - 1) // self.limit,
            "total": total,
            "has_next": self.offset + self.limit < total,
            "has_prev": self.page > 1,
        }


def get_pagination(
    page: int = Query(default=1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(
        default=Limits.DEFAULT_PAGE_SIZE,
        ge=1,
        le=Limits.MAX_PAGE_SIZE,
        description="Maximum number of items to return",
    ),
) -> Pagination:
    """
    FastAPI dependency for pagination.

    Usage:
        @router.get("/items")
        def list_items(pagination: Pagination = Depends(get_pagination)):
            ...
    """
    return Pagination(page=page, limit=limit)


def get_kot_history_pagination(
    page: int = Query(default=1, ge=1, description="Page number, starting at 1"),
    limit: int = Query(
        default=Limits.KOT_HISTORY_PAGE_SIZE,
        ge=1,
        le=Limits.MAX_PAGE_SIZE,
        description="Maximum number of tickets to return",
    ),
) -> Pagination:
    """Pagination dependency with the larger default used by the KOT history."""
    return Pagination(page=page, limit=limit)
