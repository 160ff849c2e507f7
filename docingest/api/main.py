"""
FastAPI application with assembled routers.

Initializes FastAPI app with the batch ingestion routers and configures
the uvicorn server.

Dependencies: fastapi, docingest.api.routers, uvicorn, python-dotenv
System role: API entry point with router assembly and server launch
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from docingest import __version__
from docingest.api.deps import get_session_manager
from docingest.configs import get_settings
from docingest.observability.logger import configure_logging
from docingest.observability.middleware import RequestLoggingMiddleware

from .routers import batches_router, health_router

load_dotenv()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Configures logging on startup; cancels every batch session and closes
    the shared ingestion client on shutdown.
    """
    configure_logging(get_settings().log_level)
    logger = logging.getLogger("uvicorn")
    logger.info("Document ingestion API starting")

    yield

    manager = app.dependency_overrides.get(get_session_manager, get_session_manager)()
    await manager.aclose()
    logger.info("Batch sessions cancelled")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application with routers.

    Returns:
        FastAPI: Configured application instance with all routers registered
    """
    app = FastAPI(
        title="Document Ingestion API",
        description="Batch document upload with tracked asynchronous processing",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestLoggingMiddleware)

    # Register all routers with /api/v1 prefix for versioning
    app.include_router(health_router, prefix="/api/v1")
    app.include_router(batches_router, prefix="/api/v1")

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run(
        "docingest.api.main:app",
        host="0.0.0.0",
        port=8000,
    )
