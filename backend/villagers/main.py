"""
The Villagers Backend — FastAPI Application Factory
=====================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn villagers.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────┐ ┌─────────┐ ┌──────┐ ┌──────┐              │
    │  │ Req ID   │→│ Logging │→│ GZip │→│ CORS │              │
    │  └──────────┘ └─────────┘ └──────┘ └──────┘              │
    │                                                          │
    │  Routes:                                                 │
    │  pincodes │ stories │ photos │ foods │ specialties       │
    │  village-details │ villages │ health                     │
    │                                                          │
    │  Exception Handlers (body is always {"error": msg}):     │
    │  Validation→400 │ NotFound→404 │ Conflict→409 │ else→500 │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  configure logging, log the effective configuration.
    Shutdown: dispose the database engine (close pooled connections).
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from villagers import __version__
from villagers.config import settings
from villagers.database import dispose_engine
from villagers.exceptions import VillagersError
from villagers.middleware.logging import RequestLoggingMiddleware
from villagers.middleware.request_id import RequestIDMiddleware, request_id_var
from villagers.routes import (
    foods,
    health,
    photos,
    pincodes,
    specialties,
    stories,
    village_details,
    villages,
)

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Server error"
MISSING_FIELDS_MESSAGE = "Missing required fields"
INVALID_REQUEST_MESSAGE = "Invalid request"


def _is_missing(err: dict) -> bool:
    """A field counts as missing when it is absent or an empty string."""
    if err.get("type") == "missing":
        return True
    return err.get("type") == "string_too_short" and err.get("input") == ""


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s, to stdout
    (Docker captures stdout). Called once from the lifespan.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # These log every connection, statement or request at INFO/DEBUG
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("The Villagers backend %s starting up...", __version__)
    logger.info("Postal directory: %s (timeout %.1fs, %d attempts)",
                settings.postal_api_base_url, settings.postal_api_timeout,
                settings.retry_max_attempts)
    if settings.enable_debug_routes:
        logger.warning("Debug routes are enabled: /api/pincodes/debug/* is reachable without auth")
    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("The Villagers backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exceptions to HTTP status codes and the flat `{"error": message}` body.

    Handler hierarchy:
        VillagersError subclasses → their status_code
            4xx: message returned as-is
            5xx: (DirectoryServiceError, DatabaseError) generic message,
                 message and context logged server-side
        RequestValidationError    → 400 "Missing required fields" / "Invalid request"
        Starlette HTTPException   → its status code, detail as the message
        Exception (fallback)      → 500, stack trace logged

    Services raise; nothing between them and these handlers catches.
    """

    @app.exception_handler(VillagersError)
    async def handle_villagers_error(request: Request, exc: VillagersError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s: %s | Context: %s",
                         rid, type(exc).__name__, exc.message, exc.context)
            return _error(exc.status_code, GENERIC_SERVER_ERROR)

        logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
        return _error(exc.status_code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """
        FastAPI rejected the request before the route ran: missing body
        fields, a malformed JSON body or a path id that is not a UUID.
        """
        rid = request_id_var.get("")
        errors = exc.errors()
        message = MISSING_FIELDS_MESSAGE if any(_is_missing(err) for err in errors) else INVALID_REQUEST_MESSAGE
        logger.warning("[%s] Request validation failed on %s: %s",
                       rid, request.url.path, [err.get("loc") for err in errors])
        return _error(400, message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Routing errors (unknown path, wrong method) in the same body format."""
        return _error(exc.status_code, str(exc.detail))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return _error(500, GENERIC_SERVER_ERROR)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    The debug router is only mounted when settings.enable_debug_routes is set;
    it must be included before the pincode router so `/debug/...` is not
    captured by `/{code}`.
    """
    app = FastAPI(
        title="The Villagers API",
        description=(
            "Community platform for Indian villages. Look up a pincode, pick a "
            "village and share its stories, photos, food and specialties."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    # Village views carry inline base64 images; compress anything non-trivial
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    if settings.enable_debug_routes:
        app.include_router(pincodes.debug_router)
    app.include_router(pincodes.router)
    app.include_router(stories.router)
    app.include_router(photos.router)
    app.include_router(foods.router)
    app.include_router(specialties.router)
    app.include_router(village_details.router)
    app.include_router(villages.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
# uvicorn expects `villagers.main:app` to be importable
app = create_app()
