"""FastAPI application factory.

Lifespan
--------
On startup the app configures logging and reports which generation provider
is active.  The pipeline itself is stateless per request, so there is
nothing to tear down on shutdown.

Routers
-------
All endpoint groups are mounted under ``settings.api_prefix`` (empty by
default):

    /fetch       → URL fetch + article extraction
    /parse       → pasted content parsing
    /enhance     → per-paragraph insights (SSE streaming)
    /structure   → article navigation outline
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from backend import llm
from backend.config import configure_logging, settings

from backend.api.routers import enhance as enhance_router
from backend.api.routers import fetch as fetch_router
from backend.api.routers import parse as parse_router
from backend.api.routers import structure as structure_router

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# Browser-extension pages call the API from their own origin scheme.
_EXTENSION_ORIGINS = r"(chrome|moz)-extension://.*"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Configure logging and report the generation provider."""
    configure_logging()
    if llm.is_configured():
        logger.info("Generation provider: %s (configured)", settings.llm_provider)
    else:
        logger.warning(
            "Generation provider %s is not configured; enhancement will fall back",
            settings.llm_provider,
        )
    yield


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed request to %s", request.url.path)
    return JSONResponse(
        status_code=400,
        content={"success": False, "error": "Malformed request body"},
    )


def create_app() -> FastAPI:
    """Return a fully-configured FastAPI application instance."""
    app = FastAPI(
        title="Premium Reader API",
        description=(
            "Turns web pages and pasted text into clean, paragraph-structured "
            "articles, then streams AI-selected key insights per paragraph and "
            "generates a navigation outline."
        ),
        version=API_VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_origin_regex=_EXTENSION_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(RequestValidationError, _validation_error_handler)

    prefix = settings.api_prefix
    app.include_router(fetch_router.router, prefix=prefix, tags=["fetch"])
    app.include_router(parse_router.router, prefix=prefix, tags=["parse"])
    app.include_router(enhance_router.router, prefix=prefix, tags=["enhance"])
    app.include_router(structure_router.router, prefix=prefix, tags=["structure"])

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "llmConfigured": llm.is_configured(),
            "llmProvider": settings.llm_provider,
        }

    @app.get("/")
    def index() -> dict[str, Any]:
        return {
            "name": "Premium Reader API",
            "version": API_VERSION,
            "endpoints": {
                "health": "GET /health",
                "fetch": f"POST {prefix}/fetch - Extract article from URL",
                "parse": f"POST {prefix}/parse - Parse pasted content",
                "enhance": f"POST {prefix}/enhance - Stream key insights (SSE)",
                "enhanceSingle": f"POST {prefix}/enhance/single - Insight for one paragraph",
                "structure": f"POST {prefix}/structure - Article navigation structure",
            },
        }

    return app


# Module-level instance used by uvicorn:
#   uvicorn backend.api.app:app --reload
app = create_app()
