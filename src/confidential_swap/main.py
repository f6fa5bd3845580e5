"""FastAPI application entry point for the confidential swap service.

Lifecycle:
    1. Startup: configure logging, initialize the record store (tables in dev).
    2. Running: serve the REST API and the MCP tools on one Uvicorn process.
    3. Shutdown: dispose of the database engine.

Run with:
    uv run uvicorn confidential_swap.main:app --reload --host 0.0.0.0 --port 8000
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI

from confidential_swap.config import get_settings
from confidential_swap.logging_config import get_logger, setup_logging

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle."""
    settings = get_settings()

    setup_logging(
        log_level=settings.app_log_level,
        json_logs=not settings.is_development,
    )
    logger = get_logger(__name__)
    logger.info(
        "app.starting",
        env=settings.app_env,
        program_id=settings.program_id,
        validator_allowlist=len(settings.allowed_validator_list),
    )

    from confidential_swap.infrastructure.database.engine import close_db, init_db

    await init_db()
    logger.info("app.started", host=settings.app_host, port=settings.app_port)

    yield

    logger.info("app.shutting_down")
    await close_db()
    logger.info("app.stopped")


def create_app() -> FastAPI:
    """Application factory — creates and configures the FastAPI app."""
    settings = get_settings()

    app = FastAPI(
        title="Confidential Swap",
        description=(
            "Lifecycle of confidential swap orders: initialize, delegate to a "
            "TEE validator, execute, finalize."
        ),
        version="0.1.0",
        lifespan=lifespan,
        debug=settings.app_debug,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
    )

    from confidential_swap.api.middleware import setup_middleware

    setup_middleware(app)

    from confidential_swap.api.routes.health import router as health_router
    from confidential_swap.api.routes.swap import router as swap_router

    app.include_router(health_router)
    app.include_router(swap_router)

    from confidential_swap.mcp_server.tools import mcp

    app.mount("/mcp", mcp.sse_app())

    return app


app = create_app()
