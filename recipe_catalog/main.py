import logging
import time
import traceback
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException

from recipe_catalog.core.config import get_settings
from recipe_catalog.core.errors import AppError, ErrorKind
from recipe_catalog.core.logging_config import configure_logging
from recipe_catalog.routers.catalog import router as catalog_router
from recipe_catalog.routers.health import router as health_router
from recipe_catalog.routers.menus import router as menus_router
from recipe_catalog.routers.recipes import router as recipes_router

settings = get_settings()
configure_logging()

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

app = FastAPI(
    title=settings.APP_NAME,
    description="Recipe and restaurant menu catalog API - Versioned recipes, menus and menu item view metrics.",
    version="0.1.0",
)


def error_response(
    request: Request,
    kind: ErrorKind,
    message: str,
    details: Optional[Any] = None,
) -> JSONResponse:
    """Render the error envelope shared by every failure."""
    body = {
        "code": kind.code,
        "message": message,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "path": request.url.path,
    }
    if details is not None:
        body["details"] = details
    return JSONResponse(status_code=kind.status_code, content=jsonable_encoder({"error": body}))


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.kind is ErrorKind.INTERNAL:
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.message)
    return error_response(request, exc.kind, exc.message, exc.details)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    return error_response(request, ErrorKind.VALIDATION, "Request validation failed", exc.errors())


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return error_response(request, ErrorKind.from_status(exc.status_code), str(exc.detail))


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Integrity error on %s %s: %s", request.method, request.url.path, exc.orig)
    return error_response(request, ErrorKind.CONFLICT, "Resource conflicts with existing data")


# Global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected server errors with structured response."""
    user_id = getattr(request.state, "user_id", None)
    logger.error(
        "Unhandled exception on %s %s (user=%s): %s",
        request.method, request.url.path, user_id, exc,
        exc_info=True,
    )
    details = None
    if settings.is_development:
        details = {
            "message": str(exc),
            "stack": traceback.format_exception(type(exc), exc, exc.__traceback__),
        }
    return error_response(
        request,
        ErrorKind.INTERNAL,
        "An unexpected error occurred. Please try again later.",
        details,
    )


@app.middleware("http")
async def log_requests(request: Request, call_next):
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    started = time.perf_counter()
    logger.info("request started: %s %s [%s]", request.method, request.url.path, request_id)

    response = await call_next(request)

    duration_ms = (time.perf_counter() - started) * 1000
    response.headers["X-Request-ID"] = request_id
    logger.info(
        "request completed: %s %s %s in %.1fms [%s]",
        request.method, request.url.path, response.status_code, duration_ms, request_id,
    )
    return response


# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(GZipMiddleware, minimum_size=1000)

# Include routers
app.include_router(health_router)
app.include_router(recipes_router, prefix=API_PREFIX)
app.include_router(menus_router, prefix=API_PREFIX)
app.include_router(catalog_router, prefix=API_PREFIX)


@app.get("/")
def read_root():
    return {
        "message": f"Welcome to {settings.APP_NAME}",
        "docs": "/docs",
        "health": "/health"
    }
