import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI

from .api import health, tools
from .config import Settings, settings
from .dependencies import AnalyzerServices
from .logging_config import setup_logging
from .middleware import RequestLoggingMiddleware
from .tools import ToolRegistry

logger = logging.getLogger(__name__)

SERVICE_NAME = "defi-analyzer"
SERVICE_VERSION = "1.0.0"


def create_app(
    services: Optional[AnalyzerServices] = None,
    config: Settings = settings,
) -> FastAPI:
    """Build the API; tests pass their own services to avoid network calls."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        setup_logging(config.log_level, config.log_format)
        for warning in config.startup_warnings():
            logger.warning(warning)
        logger.info("DeFi Analyzer server started")
        yield

    app = FastAPI(
        title="DeFi Swap Analyzer",
        description="Wallet swap efficiency analysis against aggregator routes",
        version=SERVICE_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.add_middleware(RequestLoggingMiddleware)

    app.state.services = services or AnalyzerServices.from_settings(config)
    app.state.tool_registry = ToolRegistry(app.state.services)

    app.include_router(health.router, tags=["Health"])
    app.include_router(tools.router, tags=["Tools"])

    @app.get("/")
    async def root():
        """Root endpoint with basic info"""
        return {
            "name": SERVICE_NAME,
            "version": SERVICE_VERSION,
            "tools": "/tools",
            "docs": "/docs",
            "health": "/healthz",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "defi_analyzer.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
