"""
User routers - /api/users/*
Account listing, creation and permission overrides.
"""

from .routes import router

__all__ = ["router"]
