"""
Services module for business logic.

- domain/: Application services (business logic, transaction boundaries)
- permissions/: Data-driven authorization and FastAPI dependencies
- events/: Real-time event publishing
- order_view: Response views assembled from ORM rows

Usage:
    from rest_api.services.domain import OrderService
    service = OrderService(db)
    result = service.create_order(body, user, idempotency_key)
"""
