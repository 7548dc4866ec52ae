"""
Settings routers - /api/settings/*
Per-category settings, reset to defaults and backups.
"""

from .routes import router

__all__ = ["router"]
