"""
Groceree Backend - FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers;
       `app = create_app()` is what uvicorn serves
       (uvicorn groceree.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware: Request ID → Logging → GZip → CORS → Errors │
    │                                                          │
    │  Routes:                                                 │
    │    /api/auth/*   /api/users/*   /api/recipes/*           │
    │    /images/{key} /health        /docs                    │
    │                                                          │
    │  Exception Handlers:                                     │
    │    GrocereeError          → its own status / error code  │
    │    RequestValidationError → 400 validation_error         │
    │    HTTPException          → its status, same body shape  │
    │    Exception              → 500 internal_server_error    │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → configuration check → storage root → ready
    Shutdown: dispose the database engine
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from groceree import __version__
from groceree.config import settings
from groceree.database import dispose_engine
from groceree.exceptions import GrocereeError
from groceree.middleware.logging import RequestLoggingMiddleware
from groceree.middleware.errors import (
    UnhandledErrorMiddleware,
    error_body,
    request_id_for,
    unexpected_error_response,
)
from groceree.middleware.request_id import RequestIDMiddleware
from groceree.routes import auth, health, images, recipes, users

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """Configure the root logger once, writing to stdout."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party loggers that are chatty at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    setup_logging()
    logger.info("=" * 60)
    logger.info("Groceree Backend %s starting up (%s)...", __version__, settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: /health and error responses stay reachable
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    storage = Path(settings.storage_root)
    storage.mkdir(parents=True, exist_ok=True)
    logger.info("Storage directory: %s", storage.resolve())

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("Groceree Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map every failure to the uniform error body:

        {"error": <code>, "message": <text>, "details"?: {...}, "request_id": <id>}

    Internal details (SQL, file paths, stack traces) stay in the server log.
    The wrapped cause is added as `details.cause` only outside production.
    """

    @app.exception_handler(GrocereeError)
    async def handle_groceree_error(request: Request, exc: GrocereeError):
        rid = request_id_for(request)
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s: %s | Context: %s | Cause: %r",
                rid, type(exc).__name__, exc.message, exc.context, exc.cause,
            )
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        details: Dict[str, Any] = {}
        if exc.status_code == 400 and exc.context:
            details.update(exc.context)
        if exc.cause is not None and not settings.is_production:
            details["cause"] = str(exc.cause)

        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.error_code, exc.message, rid, details),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        """Malformed JSON, missing fields, wrong types and bad UUIDs all become 400."""
        rid = request_id_for(request)
        errors = [
            {
                "loc": [str(part) for part in err.get("loc", ())],
                "msg": err.get("msg", ""),
                "type": err.get("type", ""),
            }
            for err in exc.errors()
        ]
        logger.warning("[%s] Request validation failed: %s", rid, errors)
        return JSONResponse(
            status_code=400,
            content=error_body("validation_error", "Invalid request data", rid, {"errors": errors}),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Unknown routes and wrong methods keep their status with our body shape."""
        rid = request_id_for(request)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body("http_error", str(exc.detail), rid),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """Last resort; UnhandledErrorMiddleware normally renders these first."""
        return unexpected_error_response(request, exc)


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Groceree API",
        description=(
            "Recipe sharing backend: accounts, profiles, recipes with ingredients "
            "and instructions, favorites, and image uploads."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware ────────────────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS → errors → route
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # ── Routes ────────────────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(recipes.router)
    app.include_router(images.router)
    app.include_router(health.router)

    return app


app = create_app()
