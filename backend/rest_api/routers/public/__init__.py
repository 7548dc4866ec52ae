"""
Public routers - No authentication required.
- /api/health - Health checks
"""

from .health import router as health_router

__all__ = ["health_router"]
