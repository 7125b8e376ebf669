"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bre import __version__
from bre.config import get_settings
from bre.rules import get_engine, rules_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Starting %s...", settings.app_name)
    logger.info("Package path: %s", settings.package_path)

    # Load the configured package, if any
    get_engine()

    yield

    logger.info("Shutting down...")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Business rule engine: condition/action rule packages evaluated over fact tables",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )

    app.include_router(rules_router)  # /package, /evaluate

    @app.get("/")
    async def root():
        """Root endpoint."""
        return {
            "name": settings.app_name,
            "version": __version__,
            "endpoints": {
                "package": "/package - Load (PUT) or inspect (GET) the rule package",
                "evaluate": "/evaluate - Run the active package against facts",
            },
        }

    @app.get("/health")
    async def health():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
