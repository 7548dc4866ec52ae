"""
Inventory routers - /api/inventory/*
Stock items, movements, purchase orders and stock analytics.
"""

from .routes import router

__all__ = ["router"]
