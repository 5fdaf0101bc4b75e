"""
ReadSync Backend — FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn readsync.main:app`) and the Lambda adapter in
       readsync.handler.
When:  Once per process; the returned app handles all subsequent requests.

Application Architecture:
    ┌─────────────────────────────────────────────────────────────┐
    │                       FastAPI App                           │
    │                                                             │
    │  Middleware Chain:                                          │
    │  ┌───────────┐ ┌────────┐ ┌─────────┐ ┌──────┐ ┌──────┐     │
    │  │ Preflight │→│ Req ID │→│ Logging │→│ GZip │→│ CORS │     │
    │  └───────────┘ └────────┘ └─────────┘ └──────┘ └──────┘     │
    │                                                             │
    │  Routes:                                                    │
    │  ┌──────────────┐ ┌────────────────────────┐ ┌───────────┐  │
    │  │ /auth/*      │ │ /reading-records[/id]  │ │ /health   │  │
    │  └──────────────┘ └────────────────────────┘ └───────────┘  │
    │                                                             │
    │  Exception Handlers (all render {success: false, message}): │
    │  Validation→400 │ Auth→401 │ NotFound→404 │ Conflict→409    │
    │  Backend→500 (generic message, detail logged)               │
    └─────────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration (log problems, keep serving)

    Shutdown:
    1. Close the identity provider's connection pool
    2. Dispose database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from readsync import __version__
from readsync.config import settings
from readsync.database import dispose_engine
from readsync.exceptions import (
    AuthError,
    BackendError,
    ConflictError,
    NotFoundError,
    ReadSyncError,
    ValidationError,
)
from readsync.middleware.cors import PreflightMiddleware
from readsync.middleware.logging import RequestLoggingMiddleware
from readsync.middleware.request_id import RequestIDMiddleware, request_id_var
from readsync.routes import auth, health, reading_records
from readsync.services.identity_base import IdentityProvider
from readsync.services.supabase_auth import SupabaseAuthService

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "An internal error occurred. Please try again later."


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Called from the lifespan under uvicorn, and directly by the Lambda
    handler (which runs with lifespan disabled).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries log every request/statement at INFO or DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


def check_settings() -> None:
    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Keep serving: /health still reports what is reachable
        logger.error("Configuration error: %s", str(e))


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("ReadSync Backend %s starting up...", __version__)
    check_settings()
    logger.info("Identity provider: %s", settings.supabase_url)
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("ReadSync Backend shutting down...")
    await app.state.identity.aclose()
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "message": message},
        headers=headers,
    )


def _describe_validation_error(exc: RequestValidationError) -> str:
    """
    Turn pydantic's error list into one line naming the first bad field,
    e.g. "record.currentPage: Input should be greater than or equal to 1".
    """
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    if first.get("type") == "json_invalid":
        return "Request body is not valid JSON"
    # loc starts with the source ("body", "query", "path")
    field = ".".join(str(part) for part in first.get("loc", ())[1:])
    msg = first.get("msg", "Invalid value")
    if first.get("type") == "missing" and not field:
        return "Request body is required"
    return f"{field}: {msg}" if field else msg


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes in the response envelope.

    Handler hierarchy:
        ValidationError / RequestValidationError → 400
        AuthError                                → 401
        NotFoundError                            → 404
        ConflictError                            → 409
        BackendError (DB, identity provider)     → 500, generic message
        StarletteHTTPException (404/405 routing) → its own status
        Exception (fallback)                     → 500, generic message

    Backend and unexpected errors never expose their detail in the response;
    it is logged server-side with the request id.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return _error(400, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        rid = request_id_var.get("")
        message = _describe_validation_error(exc)
        logger.warning("[%s] Request validation failed: %s", rid, message)
        return _error(400, message)

    @app.exception_handler(AuthError)
    async def handle_auth_error(request: Request, exc: AuthError):
        rid = request_id_var.get("")
        logger.info("[%s] Auth rejected (%s)", rid, exc.reason)
        return _error(401, exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error(404, exc.message)

    @app.exception_handler(ConflictError)
    async def handle_conflict(request: Request, exc: ConflictError):
        rid = request_id_var.get("")
        logger.info("[%s] Conflict: %s", rid, exc.message)
        return _error(409, exc.message)

    @app.exception_handler(BackendError)
    async def handle_backend_error(request: Request, exc: BackendError):
        rid = request_id_var.get("")
        logger.error(
            "[%s] %s: %s | Context: %s", rid, type(exc).__name__, exc.message, exc.context
        )
        return _error(500, GENERIC_SERVER_ERROR)

    @app.exception_handler(ReadSyncError)
    async def handle_readsync_error(request: Request, exc: ReadSyncError):
        rid = request_id_var.get("")
        logger.error("[%s] Unhandled application error: %s | Context: %s", rid, exc.message, exc.context)
        return _error(500, GENERIC_SERVER_ERROR)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error(500, GENERIC_SERVER_ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(identity: Optional[IdentityProvider] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        identity: Identity provider client shared by every request. Defaults
                  to a SupabaseAuthService built from settings; tests pass
                  a fake.
    """
    app = FastAPI(
        title="ReadSync API",
        description=(
            "Account registration/login and per-user reading progress sync "
            "for document reader clients."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.state.identity = identity or SupabaseAuthService.from_settings(settings)

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: Preflight → RequestID → Logging → GZip → CORS
    origins = settings.cors_origins_list
    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        # Browsers reject credentials with a wildcard origin
        allow_credentials="*" not in origins,
        allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(PreflightMiddleware, allow_any_origin="*" in origins)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(reading_records.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
