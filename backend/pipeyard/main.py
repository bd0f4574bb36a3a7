"""
Pipeyard Backend - FastAPI Application Factory
===============================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   uvicorn (`uvicorn pipeyard.main:app`), `python -m pipeyard`, tests.

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware Chain:                                  │
    │  ┌──────────┐ ┌─────────────────┐                   │
    │  │ Req ID   │→│  Logging        │                   │
    │  └──────────┘ └─────────────────┘                   │
    │                                                     │
    │  Routes (in match order):                           │
    │  ┌────────────┐ ┌─────────────┐ ┌─────────────────┐ │
    │  │ GET /pipes │ │ POST /pipes │ │ * /{path} proxy │ │
    │  └────────────┘ └─────────────┘ └─────────────────┘ │
    │                                                     │
    │  Exception Handlers:                                │
    │  ┌──────────────────────────────────────────────┐   │
    │  │ Validation→400 │ NotFound→404 │ Upstream→502 │   │
    │  └──────────────────────────────────────────────┘   │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Load the pipe collection (a corrupt database aborts startup)
    3. Open the upstream HTTP client

    Shutdown:
    1. Close the upstream HTTP client
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pipeyard import __version__
from pipeyard.config import Settings, settings as default_settings
from pipeyard.database import JsonDocument
from pipeyard.exceptions import (
    PipeyardError,
    StoreLoadError,
    ValidationError,
    NotFoundError,
    UpstreamUnavailableError,
)
from pipeyard.middleware.request_id import RequestIDMiddleware, request_id_var
from pipeyard.middleware.logging import RequestLoggingMiddleware
from pipeyard.routes import pipes, proxy
from pipeyard.services.pipe_service import PipeStore
from pipeyard.services.proxy_service import UpstreamProxy

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # pipeyard.access already covers every request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the store and the forwarder, and tear the forwarder down after.

    A StoreLoadError is logged and re-raised: uvicorn then reports
    "Application startup failed" and exits without serving traffic.
    """
    config: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config.log_level)
    logger.info("=" * 60)
    logger.info("Pipeyard Backend %s starting up...", __version__)

    database_path = Path(config.database_path)
    database_path.parent.mkdir(parents=True, exist_ok=True)

    store = PipeStore(JsonDocument(database_path))
    try:
        await store.load()
    except StoreLoadError as e:
        logger.critical("Error reading or parsing database: %s", e.message)
        logger.critical("Fix or move %s and restart the server.", database_path.resolve())
        raise
    app.state.pipe_store = store

    app.state.upstream_proxy = UpstreamProxy(
        config.upstream_url,
        timeout=config.proxy_timeout,
        transport=app.state.upstream_transport,
    )

    logger.info("API server listening on http://%s:%d", config.backend_host, config.backend_port)
    logger.info("Proxying unhandled requests to %s", config.upstream_url)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Pipeyard Backend shutting down...")
    await app.state.upstream_proxy.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Map exception types to HTTP status codes and JSON bodies.

    Handler hierarchy:
        ValidationError          → 400 Bad Request
        NotFoundError            → 404 Not Found
        UpstreamUnavailableError → 502 Bad Gateway
        PipeyardError (base)     → 500 Internal Server Error
        Exception (fallback)     → 500 Internal Server Error

    Every body carries a human-readable `message`; internal details stay in
    the server log.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content={
                "error": "validation_error",
                "message": exc.message,
                "details": {"field": exc.field} if exc.field else None,
                "request_id": rid,
            },
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=404,
            content={
                "error": "not_found",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(UpstreamUnavailableError)
    async def handle_upstream_unavailable(request: Request, exc: UpstreamUnavailableError):
        rid = request_id_var.get("")
        return JSONResponse(
            status_code=502,
            content={
                "error": "bad_gateway",
                "message": exc.message,
                "request_id": rid,
            },
        )

    @app.exception_handler(PipeyardError)
    async def handle_pipeyard_error(request: Request, exc: PipeyardError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content={
                "error": "server_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": rid,
            },
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Catch-all: stack trace goes to the log, never to the client."""
        rid = request_id_var.get("")
        logger.error("[%s] API Error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "Internal Server Error",
                "request_id": rid,
            },
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration; defaults to the environment-derived singleton.
        upstream_transport: httpx transport for the forwarder. None means real
                            network I/O; tests pass an httpx.MockTransport.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="Pipeyard API",
        description="Pipe inventory records, with every other path proxied to the front-end.",
        version=__version__,
        # Every non-/pipes path belongs to the upstream, docs included
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings or default_settings
    app.state.upstream_transport = upstream_transport

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → routes
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(pipes.router)
    app.include_router(proxy.router)  # catch-all, must stay last

    return app


# uvicorn expects `pipeyard.main:app` to be importable
app = create_app()
