"""
FastAPI Main Application - HTTP entry point.

Run with: uvicorn fiscalrag.interfaces.api.main:app --reload
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fiscalrag import __version__
from fiscalrag.config import get_settings

from .deps import cleanup_services, init_services
from .middleware import (
    ErrorHandlerMiddleware,
    LatencyMiddleware,
    RateLimitMiddleware,
    RequestIDMiddleware,
)
from .routes import chat, health, search

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan manager."""
    settings = get_settings()
    logger.info("Starting FiscalRAG API...")
    logger.info("  Index dir: %s", settings.index_dir)
    logger.info("  LLM provider: %s", settings.llm_provider)

    # Validate rule tables and load vector partitions
    await init_services()
    logger.info("  Services initialized")

    yield

    logger.info("Shutting down FiscalRAG API...")
    await cleanup_services()


def create_app() -> FastAPI:
    """Create FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title="FiscalRAG API",
        description="Hybrid retrieval and edition routing for the Congo tax code (CGI 2025/2026)",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters - last added = outermost)
    app.add_middleware(RateLimitMiddleware, requests_per_minute=settings.api_rate_limit_rpm)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(LatencyMiddleware)
    app.add_middleware(RequestIDMiddleware)

    allowed_origins = [
        "http://localhost:3000",
        "http://localhost:8000",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:8000",
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_origin_regex=r"http://localhost:\d+" if settings.api_debug else None,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Request-ID"],
    )

    app.include_router(health.router, tags=["Health"])
    app.include_router(search.router, prefix="/api", tags=["Search"])
    app.include_router(chat.router, prefix="/api", tags=["Chat"])

    return app


# Create app instance
app = create_app()
