"""
FastAPI application factory for the egg pool.

Usage:
    python main.py                              # Dev server on port 8000
    uvicorn --factory api.app:create_app        # Same, via uvicorn directly

OpenAPI docs available at http://localhost:8000/docs after starting.

The shared document location is read from EGGPOOL_GITHUB_* variables.  When
no repository is configured the read and submit endpoints answer 503, while
reference lookups keep working.
"""

import logging
import time
import uuid
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from api.routes import eggs, reference
from eggpool import __version__
from eggpool.reference import ReferenceClient
from eggpool.services import build_coordinator, build_reference, build_store
from eggpool.store import VersionedDocumentStore
from utils.config import AppConfig, ReferenceConfig, StoreConfig
from utils.logging import configure_logging

_logger = logging.getLogger("eggpool_api")


def create_app(store: Optional[VersionedDocumentStore] = None,
               reference_client: Optional[ReferenceClient] = None,
               app_config: Optional[AppConfig] = None,
               store_config: Optional[StoreConfig] = None,
               configure_logs: bool = True) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Override the document store (useful for testing).
        reference_client: Override the PokeAPI client (useful for testing).
        app_config: Server settings (default: from environment).
        store_config: Document location and retry policy (default: from environment).
        configure_logs: Install the root log handler from ``app_config``.

    Returns:
        Configured FastAPI application instance.
    """
    app_config = app_config or AppConfig.from_env()
    store_config = store_config or StoreConfig.from_env()
    if configure_logs:
        configure_logging(app_config.log_format, app_config.log_level)

    if store is None and store_config.is_configured():
        store = build_store(store_config)
    if store is None:
        _logger.warning("No egg document store configured; "
                        "gallery and submissions are disabled")
    if reference_client is None:
        reference_client = build_reference(ReferenceConfig.from_env())

    app = FastAPI(
        title="Egg Pool API",
        summary="Shared egg pool for Pokemon Egglocke challenges.",
        description=(
            "## Egg Pool API\n\n"
            "Trainers submit eggs to one shared list stored as `eggs.json` in a "
            "GitHub repository.\n\n"
            "### Concurrency\n"
            "Submissions use optimistic concurrency: the document is read with "
            "its version token and written back against that token. When another "
            "submission lands in between, the write is retried from a fresh read "
            f"(up to {store_config.max_attempts} attempts). A submission that "
            "still conflicts after that answers `409`.\n\n"
            "### Reference data\n"
            "Pokemon, move, ability and held-item names come from PokeAPI and are "
            "cached locally for a week."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_tags=[
            {"name": "eggs", "description": "Browse and submit eggs."},
            {"name": "reference", "description": "PokeAPI names and lookups."},
            {"name": "meta", "description": "Health check."},
        ],
    )

    app.state.store = store
    app.state.coordinator = (
        build_coordinator(store, store_config) if store is not None else None
    )
    app.state.reference = reference_client

    # ── CORS middleware ────────────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_config.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # ── Request logging middleware ─────────────────────────────────────────────

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        request_id = str(uuid.uuid4())[:8]
        start = time.monotonic()
        response = await call_next(request)
        duration_ms = round((time.monotonic() - start) * 1000, 1)
        response.headers["X-Request-ID"] = request_id
        _logger.info(
            "%s %s %s %.1fms", request.method, request.url.path,
            response.status_code, duration_ms,
            extra={"method": request.method, "path": request.url.path,
                   "status": response.status_code, "duration_ms": duration_ms},
        )
        return response

    @app.get("/health", tags=["meta"], summary="Health check")
    def health() -> dict:
        """Report whether a document store is configured."""
        return {
            "status": "ok",
            "store_configured": app.state.store is not None,
            "version": __version__,
        }

    app.include_router(eggs.router, prefix="/api/v1")
    app.include_router(reference.router, prefix="/api/v1")

    return app
