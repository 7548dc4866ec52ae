"""
Centralized HTTP exceptions for consistent error handling.

Domain services raise these directly; the global handlers in
rest_api.core.errors turn them into `{"message": ...}` JSON bodies.

Usage:
    from shared.utils.exceptions import NotFoundError, ForbiddenError, ValidationError

    raise NotFoundError("Order", order_id)
    raise ForbiddenError("access this order")
    raise ValidationError("Order type and items are required")
"""

from typing import Any

from fastapi import HTTPException, status

from shared.config.logging import get_logger

logger = get_logger(__name__)


class AppException(HTTPException):
    """
    Base exception with automatic logging.

    All custom exceptions inherit from this class so every raised
    error leaves one log line with its context.
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        log_level: str = "warning",
        headers: dict[str, str] | None = None,
        **log_context: Any,
    ):
        log_fn = getattr(logger, log_level, logger.warning)
        log_fn(detail, status_code=status_code, **log_context)

        super().__init__(status_code=status_code, detail=detail, headers=headers)


# =============================================================================
# 404 Not Found Errors
# =============================================================================


class NotFoundError(AppException):
    """
    Entity not found error (404).

    Usage:
        raise NotFoundError("Order", 123)
    """

    def __init__(self, entity: str, entity_id: int | str | None = None, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"{entity} not found",
            log_level="info",
            entity=entity,
            entity_id=entity_id,
            **log_context,
        )


# =============================================================================
# 403 Forbidden Errors
# =============================================================================


class ForbiddenError(AppException):
    """
    Authorization/ownership error (403).

    Usage:
        raise ForbiddenError("access this order", user_id=user_id)
    """

    def __init__(self, action: str | None = None, **log_context: Any):
        detail = f"Not authorized to {action}" if action else "Access denied"
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=detail,
            action=action,
            **log_context,
        )


class PermissionDeniedError(ForbiddenError):
    """User lacks `action` on `module`."""

    def __init__(self, module: str, action: str, **log_context: Any):
        super().__init__(f"{action} {module}", module=module, **log_context)


# =============================================================================
# 400 Bad Request Errors
# =============================================================================


class ValidationError(AppException):
    """
    Input validation error (400).

    Usage:
        raise ValidationError("Menu item not found", menu_item_id=7)
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            log_level="info",
            **log_context,
        )


class InvalidStateError(AppException):
    """
    Operation not allowed in the entity's current state (400).

    Usage:
        raise InvalidStateError("Order", order.status, ["pending", "confirmed"])
    """

    def __init__(
        self,
        entity: str,
        current_state: str,
        expected_states: list[str] | None = None,
        detail: str | None = None,
        **log_context: Any,
    ):
        if detail is None:
            detail = f"{entity} is {current_state}"
            if expected_states:
                detail += f"; expected one of: {', '.join(expected_states)}"

        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
            entity=entity,
            current_state=current_state,
            expected_states=expected_states,
            **log_context,
        )


class InvalidTransitionError(AppException):
    """
    Status transition rejected by the transition table (400).

    Usage:
        raise InvalidTransitionError("Order", "completed", "pending")
    """

    def __init__(self, entity: str, from_status: str, to_status: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid {entity.lower()} status transition from {from_status} to {to_status}",
            entity=entity,
            from_status=from_status,
            to_status=to_status,
            **log_context,
        )


class DuplicateEntityError(AppException):
    """
    Unique business key already taken (400).

    Usage:
        raise DuplicateEntityError("SKU")
    """

    def __init__(self, field: str, value: Any = None, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"{field} already exists",
            field=field,
            value=value,
            **log_context,
        )


class InsufficientStockError(AppException):
    """Stock movement would take an item below zero (400)."""

    def __init__(self, item_name: str, available: float, requested: float, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Insufficient stock",
            item_name=item_name,
            available=available,
            requested=requested,
            **log_context,
        )


# =============================================================================
# 409 Conflict Errors
# =============================================================================


class ConflictError(AppException):
    """
    Resource conflict error (409).

    Usage:
        raise ConflictError("Table 4 already has an open order")
    """

    def __init__(self, detail: str, **log_context: Any):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
            **log_context,
        )


# =============================================================================
# 500 Internal Server Errors
# =============================================================================


class InternalError(AppException):
    """
    Internal server error (500).

    Usage:
        raise InternalError("Failed to allocate order number")
    """

    def __init__(self, detail: str = "Server error", **log_context: Any):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=detail,
            log_level="error",
            **log_context,
        )


class DatabaseError(InternalError):
    """Persistence failure."""

    def __init__(self, operation: str, **log_context: Any):
        super().__init__(f"Database error during {operation}", operation=operation, **log_context)
