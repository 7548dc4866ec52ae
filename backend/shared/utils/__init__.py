"""
Utilities module: Exceptions, validators, schemas.
"""

from shared.utils.exceptions import (
    NotFoundError,
    ForbiddenError,
    ValidationError,
    ConflictError,
    InvalidTransitionError,
)
from shared.utils.validators import (
    escape_like_pattern,
    contains_pattern,
    parse_status_list,
)
from shared.utils.schemas import ErrorResponse, PaginationInfo

__all__ = [
    # exceptions
    "NotFoundError",
    "ForbiddenError",
    "ValidationError",
    "ConflictError",
    "InvalidTransitionError",
    # validators
    "escape_like_pattern",
    "contains_pattern",
    "parse_status_list",
    # schemas
    "ErrorResponse",
    "PaginationInfo",
]
