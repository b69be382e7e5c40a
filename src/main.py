"""
Part Template Locator - Main FastAPI Application
"""

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

# Add parent directory to path
sys.path.append(str(Path(__file__).parent))

from api.exceptions import register_exception_handlers  # noqa: E402
from api.routers import vision  # noqa: E402
from config import get_settings  # noqa: E402
from domain_types import SystemConstants  # noqa: E402
from services.locator_service import LocatorService  # noqa: E402

# Get configuration
settings = get_settings()

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.system.log_level),
    format=SystemConstants.LOG_FORMAT,
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifecycle"""
    logger.info("Starting Part Template Locator server...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Debug mode: {settings.system.debug}")

    locator_service = LocatorService(
        default_params=settings.locator.to_params(),
        max_workers=settings.system.worker_threads,
        thumbnail_width=settings.system.thumbnail_width,
    )
    logger.info(f"Locator defaults: {locator_service.default_params.to_dict()}")

    # Store service in app state for access by routers
    app.state.locator_service = locator_service
    app.state.request_timeout = float(settings.api.request_timeout)
    app.state.config = settings.to_dict()
    app.state.debug = settings.system.debug

    yield

    logger.info("Shutting down Part Template Locator server...")
    locator_service.shutdown()
    logger.info("Server shutdown complete")


# Create FastAPI app
app = FastAPI(
    title="Part Template Locator",
    description="Rotation-invariant template location for pick-and-place vision",
    version=settings.api.api_version,
    lifespan=lifespan,
)

if settings.api.cors_enabled:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.api.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

# Register exception handlers
register_exception_handlers(app)

# Include routers
app.include_router(vision.router, prefix="/api/vision", tags=["Vision"])


# Root endpoint
@app.get("/")
async def root():
    return {
        "name": "Part Template Locator",
        "status": "running",
        "version": settings.api.api_version,
        "endpoints": {
            "vision": "/api/vision",
            "docs": "/docs",
        },
    }


# Health check endpoint
@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "services": {
            "locator_service": getattr(app.state, "locator_service", None) is not None,
        },
    }


if __name__ == "__main__":
    server_config = uvicorn.Config(
        "main:app",
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.system.debug,
        log_level=settings.system.log_level.lower(),
        loop="asyncio",
    )

    server = uvicorn.Server(server_config)

    try:
        server.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    finally:
        logger.info("Server exiting...")
