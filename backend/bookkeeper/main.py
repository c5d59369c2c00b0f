"""
Book Keeper Backend - FastAPI Application Factory
==================================================

What:  Builds the FastAPI application: middleware, exception handlers,
       routers and lifecycle hooks.
Who:   uvicorn (`uvicorn bookkeeper.main:app`) and the test suite.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware: RateLimit → RequestID → Logging        │
    │                                                     │
    │  Routes:                                            │
    │  /api/user  /api/book  /api/book/category           │
    │  /api/transaction  /health  /                       │
    │                                                     │
    │  Exception Handlers:                                │
    │  Validation/AlreadyCompleted/BookUnavailable → 400  │
    │  Unauthenticated/InvalidCredential/Forbidden → 401  │
    │  NotFound → 404   RateLimit → 429   DB/other → 500  │
    └─────────────────────────────────────────────────────┘
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from bookkeeper import __version__
from bookkeeper.config import settings
from bookkeeper.database import dispose_engine
from bookkeeper.exceptions import (
    AlreadyCompletedError,
    BookKeeperError,
    BookUnavailableError,
    DatabaseError,
    DuplicateKeyError,
    ForbiddenError,
    InvalidCredentialError,
    NotFoundError,
    RateLimitExceededError,
    UnauthenticatedError,
    ValidationError,
)
from bookkeeper.middleware.logging import RequestLoggingMiddleware
from bookkeeper.middleware.rate_limit import RateLimitMiddleware
from bookkeeper.middleware.request_id import RequestIDMiddleware, request_id_var
from bookkeeper.routes import books, categories, health, transactions, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging once, at startup.

    Format: 2024-01-15T12:00:00 [INFO] bookkeeper.services.loan_service: ...
    Output goes to stdout so container runtimes collect it.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Book Keeper Backend v%s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        if not settings.is_sqlite:
            logger.critical("Configuration error: %s", e)
            raise RuntimeError(str(e)) from e
        # Local SQLite runs keep the development secret
        logger.error("Configuration error: %s", e)

    logger.info("Token lifetime: %dh, loan period: %d days",
                settings.token_expiry_hours, settings.loan_period_days)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Book Keeper Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    content: Dict[str, Any] = {
        "error": error,
        "message": message,
        "request_id": request_id_var.get(""),
    }
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content, headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses.

    Every body is {"error", "message", "request_id"} plus optional
    "details". Stack traces, SQL and credentials stay in the server log.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        code = "duplicate_key" if isinstance(exc, DuplicateKeyError) else "validation_error"
        details = {"field": exc.field} if exc.field else None
        return _error_response(400, code, exc.message, details)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        logger.warning("[%s] Invalid request payload: %s", request_id_var.get(""), fields)
        return _error_response(
            400, "validation_error", "Request data is invalid", {"fields": fields}
        )

    @app.exception_handler(AlreadyCompletedError)
    async def handle_already_completed(request: Request, exc: AlreadyCompletedError):
        return _error_response(400, "already_completed", exc.message)

    @app.exception_handler(BookUnavailableError)
    async def handle_book_unavailable(request: Request, exc: BookUnavailableError):
        return _error_response(400, "book_unavailable", exc.message)

    @app.exception_handler(UnauthenticatedError)
    async def handle_unauthenticated(request: Request, exc: UnauthenticatedError):
        return _error_response(
            401, "unauthenticated", exc.message, headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(InvalidCredentialError)
    async def handle_invalid_credential(request: Request, exc: InvalidCredentialError):
        return _error_response(
            401, "invalid_credential", exc.message, headers={"WWW-Authenticate": "Bearer"}
        )

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        return _error_response(401, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(RateLimitExceededError)
    async def handle_rate_limit(request: Request, exc: RateLimitExceededError):
        return _error_response(
            429,
            "rate_limit_exceeded",
            exc.message,
            exc.context,
            headers={"Retry-After": str(exc.retry_after)},
        )

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error(
            "[%s] Database error: %s | Context: %s",
            request_id_var.get(""), exc.message, exc.context,
        )
        return _error_response(
            500, "server_error", "An internal error occurred. Please try again later."
        )

    @app.exception_handler(BookKeeperError)
    async def handle_app_error(request: Request, exc: BookKeeperError):
        logger.error("[%s] Unhandled application error: %s", request_id_var.get(""), exc.message)
        return _error_response(500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s", request_id_var.get(""), exc, exc_info=True
        )
        return _error_response(
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again or contact support.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Book Keeper API",
        description=(
            "Library management backend: user accounts, book catalog and "
            "categories, and the borrow/return ticket workflow."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # Executed in reverse order of addition: RateLimit runs first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "Retry-After"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(users.router)
    app.include_router(categories.router)
    app.include_router(books.router)
    app.include_router(transactions.router)

    return app


app = create_app()
