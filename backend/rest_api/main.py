"""
REST API main application.
Entry point for the FastAPI REST server.
"""

from fastapi import FastAPI
from slowapi.errors import RateLimitExceeded

from shared.config.settings import settings
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler
from rest_api.core import configure_cors, lifespan, register_exception_handlers, register_middlewares
from rest_api.routers.auth import router as auth_router
from rest_api.routers.inventory import router as inventory_router
from rest_api.routers.kot import router as kot_router
from rest_api.routers.menu import router as menu_router
from rest_api.routers.orders import router as orders_router
from rest_api.routers.public import health_router
from rest_api.routers.settings import router as settings_router
from rest_api.routers.tables import router as tables_router
from rest_api.routers.users import router as users_router


app = FastAPI(
    title="Restaurant POS REST API",
    description="Orders, kitchen tickets, tables, inventory and back office",
    version="1.0.0",
    lifespan=lifespan,
)

# Rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

register_exception_handlers(app)
register_middlewares(app)
configure_cors(app)


# =============================================================================
# Include Routers
# =============================================================================

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(orders_router)
app.include_router(kot_router)
app.include_router(tables_router)
app.include_router(inventory_router)
app.include_router(menu_router)
app.include_router(users_router)
app.include_router(settings_router)


# =============================================================================
# Development entry point
# =============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "rest_api.main:app",
        host="0.0.0.0",
        port=settings.rest_api_port,
        reload=settings.debug,
    )
