"""FastAPI application exposing the step engine."""

from fastapi import FastAPI

from remedy_core import __version__
from remedy_core.actions.catalog import DEFAULT_CATALOG
from remedy_core.config import settings
from remedy_core.server.api import engine_router


def create_app() -> FastAPI:
    """Build the RPC application."""
    app = FastAPI(
        title="Remedy Step Engine",
        description="Agentic step engine for autonomous incident remediation",
        version=__version__,
    )
    app.include_router(engine_router)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {
            "status": "healthy",
            "model": settings.model,
            "catalog_version": DEFAULT_CATALOG.version,
        }

    @app.get("/api/v1/catalog")
    async def get_catalog():
        """The action catalog offered to the reasoning model."""
        return {
            "version": DEFAULT_CATALOG.version,
            "actions": [d.model_dump(mode="json") for d in DEFAULT_CATALOG.get_definitions()],
        }

    return app


app = create_app()
