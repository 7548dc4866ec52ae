"""
Common utilities shared across routers.
"""

from .pagination import (
    Pagination,
    get_pagination,
    get_kot_history_pagination,
)

__all__ = [
    "Pagination",
    "get_pagination",
    "get_kot_history_pagination",
]
