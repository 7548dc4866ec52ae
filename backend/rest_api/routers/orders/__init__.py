"""
Order routers - /api/orders/*
Creation, listing, status changes, payments and cancellation.
"""

from .routes import router

__all__ = ["router"]
