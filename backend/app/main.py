"""
TechGear Catalog Backend — FastAPI Application Factory
========================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance,
       wiring the database handle, rate limiters, auth service, middleware,
       exception handlers and routers.
Who:   Called by uvicorn (uvicorn app.main:app) and by the test suite
       (create_app(Settings(...))).

Application Architecture:
    ┌──────────────────────────────────────────────────────────────┐
    │                        FastAPI App                           │
    │                                                              │
    │  Middleware: RequestID → Logging → CORS policy → Rate limit  │
    │                                                              │
    │  Routes:  GET /   GET /health   /products CRUD   /register   │
    │                                                              │
    │  app.state:  db (DatabaseHandle)                             │
    │              rate_limiters {general, auth, product_write}    │
    │              auth_service (AuthService)                      │
    └──────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:   logging → config check (logged, never fatal) → first connect
    Shutdown:  dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from app import __version__
from app.config import Settings, settings as default_settings
from app.database import DatabaseHandle
from app.exceptions import (
    CatalogError,
    ConflictError,
    DatabaseError,
    ForbiddenError,
    NotFoundError,
    RateLimitExceededError,
    ServiceUnavailableError,
    UnauthorizedError,
    ValidationError,
)
from app.middleware.cors import CORSPolicy, OriginPolicyMiddleware
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.rate_limit import RateLimitMiddleware, SlidingWindowLimiter
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, products, users
from app.services.auth_service import AuthService

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(level: str) -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before any other initialization.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Validate critical configuration (logged, never fatal: a missing
           DATABASE_URL must not crash the process)
        3. One connection attempt; failures are retried lazily per request
    Shutdown:
        Dispose the database engine (close all pooled connections)
    """
    config: Settings = app.state.settings
    handle: DatabaseHandle = app.state.db

    setup_logging(config.log_level)
    logger.info("=" * 60)
    logger.info("TechGear catalog backend starting up...")

    try:
        config.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    if handle.configured and not await handle.connect():
        logger.warning("Database not reachable at startup; requests will retry")

    logger.info("Server ready at http://%s:%d", config.host, config.port)
    logger.info("=" * 60)

    yield

    logger.info("TechGear catalog backend shutting down...")
    await handle.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": message,
            "request_id": request_id_var.get(""),
        },
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400
        ConflictError                            → 400
        UnauthorizedError                        → 401 (WWW-Authenticate)
        ForbiddenError                           → 403
        NotFoundError                            → 404
        RateLimitExceededError                   → 429 (Retry-After)
        ServiceUnavailableError                  → 503 (Retry-After)
        DatabaseError / CatalogError             → 500
        Exception (fallback)                     → 500

    Error bodies never include stack traces, SQL or driver messages.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.info("Validation error: %s", exc.message)
        return _error_response(400, "validation_error", exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg", "Invalid request") if errors else "Invalid request"
        return _error_response(400, "validation_error", detail)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        return _error_response(400, "conflict", exc.message)

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        return _error_response(
            401, "unauthorized", exc.message, headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return _error_response(403, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error_response(
            429,
            "rate_limit_exceeded",
            exc.message,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(ServiceUnavailableError)
    async def handle_service_unavailable(request: Request, exc: ServiceUnavailableError):
        logger.warning("Service unavailable: %s | Context: %s", exc.message, exc.context)
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return _error_response(503, "service_unavailable", exc.message, headers=headers)

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("Database error: %s | Context: %s", exc.message, exc.context)
        return _error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(CatalogError)
    async def handle_catalog_error(request: Request, exc: CatalogError):
        logger.error("Unhandled application error: %s | Context: %s", exc.message, exc.context)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("Unexpected error: %s", str(exc), exc_info=True)
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_rate_limiters(config: Settings) -> Dict[str, SlidingWindowLimiter]:
    return {
        "general": SlidingWindowLimiter(
            "general", config.rate_limit_requests, config.rate_limit_window
        ),
        "auth": SlidingWindowLimiter(
            "auth", config.rate_limit_auth_requests, config.rate_limit_auth_window
        ),
        "product_write": SlidingWindowLimiter(
            "product_write",
            config.rate_limit_product_write_requests,
            config.rate_limit_product_write_window,
        ),
    }


def create_app(config: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        config: Settings override (tests); defaults to the environment-loaded
                singleton.
    """
    config = config or default_settings

    app = FastAPI(
        title="TechGear Catalog API",
        description=(
            "Product catalog with JWT-protected writes, user registration, "
            "per-IP rate limiting and an origin allow-list."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.settings = config
    app.state.db = DatabaseHandle.from_settings(config)
    app.state.rate_limiters = build_rate_limiters(config)
    app.state.auth_service = AuthService(config)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → CORS policy → RateLimit
    app.add_middleware(RateLimitMiddleware, limiter=app.state.rate_limiters["general"])
    app.add_middleware(
        OriginPolicyMiddleware,
        policy=CORSPolicy(config.cors_origins_list, config.cors_trusted_domain_suffix),
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(products.router)
    app.include_router(users.router)

    return app


app = create_app()
