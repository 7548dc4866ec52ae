"""
Menu routers - /api/menu/*
Categories, menu items and item availability.
"""

from .routes import router

__all__ = ["router"]
