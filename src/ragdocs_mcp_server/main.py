"""
Documentation MCP Server Application Entry Point

This module defines the FastAPI application instance, registers all routers,
configures logging and global exception handling, and provides a
test-friendly application factory.

Design Goals
------------
- Deterministic startup: configuration and the embedding provider are
  validated before the first request is served
- Explicit component wiring through one ToolContext
- Centralized router registration
- Global exception safety net
- Test-friendly via create_app()
"""

from __future__ import annotations

import contextlib
import logging
from typing import AsyncIterator, Optional

from fastapi import FastAPI

from .api import health_routes, tool_routes
from .config import Settings, get_settings
from .context import build_tool_context
from .core.errors import (
    RagDocsError,
    ragdocs_error_handler,
    unhandled_exception_handler,
)

logger = logging.getLogger("ragdocs.app")


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


# ---------------------------------------------------------------------
# Application Factory (Test-Friendly)
# ---------------------------------------------------------------------

def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration to run with. Defaults to the process-wide settings.

    Returns
    -------
    FastAPI
        Fully configured FastAPI application.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    @contextlib.asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("Starting ragdocs-mcp-server")

        # ConfigurationError propagates and aborts startup.
        ctx = build_tool_context(settings)
        app.state.tool_context = ctx

        try:
            action = await ctx.collections.ensure_collection()
            logger.info("Collection '%s' %s", settings.collection_name, action)
        except RagDocsError as exc:
            logger.warning(
                "Could not verify collection at startup (%s): %s",
                exc.kind,
                exc.message,
            )

        try:
            yield
        finally:
            logger.info("Shutting down ragdocs-mcp-server")
            await ctx.close()

    app = FastAPI(
        title="ragdocs-mcp-server",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # --------------------------------------------------------------
    # Global Exception Handling
    # --------------------------------------------------------------

    app.state.settings = settings

    app.add_exception_handler(RagDocsError, ragdocs_error_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # --------------------------------------------------------------
    # Router Registration
    # --------------------------------------------------------------

    app.include_router(health_routes.router)
    app.include_router(tool_routes.router)

    return app


def run() -> None:
    """Console entry point: serve the default application with uvicorn."""
    import uvicorn

    uvicorn.run("ragdocs_mcp_server.main:app", host="127.0.0.1", port=8000)


# ---------------------------------------------------------------------
# Default Application Instance (for Uvicorn/Gunicorn)
# ---------------------------------------------------------------------

app = create_app()
