"""
Global exception handlers.
Every failure leaves as JSON with a `message` field, mirrored as `detail`.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from shared.config.logging import rest_api_logger as logger
from shared.config.settings import settings


def _body(message: str, **extra) -> dict:
    return {"message": message, "detail": message, **extra}


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    first = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = f"{location}: {first.get('msg')}" if location else first.get("msg", "Invalid request")

    extra = {}
    if not settings.is_production:
        # ctx may hold exception instances that are not JSON serializable
        extra["validation"] = [
            {key: value for key, value in error.items() if key != "ctx"} for error in errors
        ]
    logger.info("Request validation failed", path=request.url.path, error=message)
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=_body(message, **extra))


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled error",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        exc_info=exc,
    )
    extra = {"error": str(exc)} if not settings.is_production else {}
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_body("Server error", **extra),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
