"""
Notebook Backend: FastAPI Application Factory
==============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (uvicorn app.main:app) and the test client.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:  [Request ID] → [Access Logging]            │
    │                                                          │
    │  Routes:                                                 │
    │    POST /api/analytics/track     GET /api/analytics/tags │
    │    GET  /api/analytics/summary   GET /api/analytics/stats│
    │    GET  /health                                          │
    │                                                          │
    │  Exception Handlers:                                     │
    │    ValidationError → 400   RequestValidationError → 400  │
    │    StorageError → 500      Exception → 500               │
    └──────────────────────────────────────────────────────────┘

Every error body uses the same envelope:
    {"success": false, "error": <category>, "details": <message>, "request_id": ...}
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app import __version__
from app.config import settings
from app.database import dispose_engine
from app.exceptions import StorageError, ValidationError
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, RequestIdFilter, request_id_var
from app.routes import analytics, health

logger = logging.getLogger(__name__)

NOISY_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpcore", "httpx")


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging once at startup.

    Format: %(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s

    The RequestIdFilter sits on the handler, so records from every logger
    (ours and third-party) get a request_id attribute before formatting.
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RequestIdFilter())

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s [%(request_id)s]: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[handler],
        force=True,
    )

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Notebook analytics backend %s starting up...", __version__)
    logger.info(
        "Reporting timezone: %s | default window: %d days | recent events: %d",
        settings.analytics_timezone,
        settings.analytics_default_days,
        settings.recent_events_limit,
    )
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Notebook analytics backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def error_body(
    request: Request,
    error: str,
    details: Optional[str] = None,
    field: Optional[str] = None,
) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": False, "error": error, "details": details}
    if field:
        body["field"] = field
    body["request_id"] = _request_id(request)
    return body


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to status codes and the shared error envelope.

        ValidationError         → 400 (ingestion payload)
        RequestValidationError  → 400 (query parameters, malformed JSON)
        HTTPException           → its own status (unknown route, wrong method)
        StorageError            → 500 (read-path store failure)
        Exception               → 500 (anything else; stack trace logged)
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("Validation error: %s", exc.message)
        return JSONResponse(
            status_code=400,
            content=error_body(request, "Validation failed", exc.message, exc.field),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        # loc is ("query", "days") or ("body", ...); the first element is the source
        loc = [str(part) for part in first.get("loc", ())][1:]
        field = ".".join(loc) or None
        message = first.get("msg", "Invalid request")
        if field:
            message = f"{field}: {message}"
        logger.warning("Request validation error: %s", message)
        return JSONResponse(
            status_code=400,
            content=error_body(request, "Validation failed", message, field),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(request, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(StorageError)
    async def handle_storage_error(request: Request, exc: StorageError):
        logger.error("%s: %s | Context: %s", exc.message, exc.details, exc.context)
        return JSONResponse(
            status_code=500,
            content=error_body(request, exc.message, exc.details),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body(
                request,
                "Internal server error",
                "An unexpected error occurred. Please try again later.",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Notebook Analytics API",
        description=(
            "Usage analytics for the notebook app: event tracking, activity "
            "summaries, popular tags and note statistics."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Executed in reverse order of addition: RequestID → Logging → routes
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(analytics.router)
    app.include_router(health.router)

    return app


app = create_app()
