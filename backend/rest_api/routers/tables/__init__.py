"""
Table routers - /api/tables/*
Floor plan listing, table status and waiter assignment.
"""

from .routes import router

__all__ = ["router"]
