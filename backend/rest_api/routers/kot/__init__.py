"""
Kitchen routers - /api/kot/*
Ticket printing, the kitchen queue, line progress and kitchen analytics.
"""

from .routes import router

__all__ = ["router"]
