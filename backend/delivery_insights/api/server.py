from contextlib import asynccontextmanager
from datetime import datetime
from typing import Optional
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from delivery_insights.api.middleware.auth import JWTAuthMiddleware
from delivery_insights.api.middleware.error_handler import (
    ErrorHandlerMiddleware,
    register_exception_handlers,
)
from delivery_insights.api.routes import analytics
from delivery_insights.config import Settings, get_settings
from delivery_insights.db.record_store import RecordStore
from delivery_insights.db.store_factory import create_record_store
from delivery_insights.utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)

def create_app(
    record_store: Optional[RecordStore] = None,
    settings: Optional[Settings] = None
) -> FastAPI:
    """
    Create the API application.

    Args:
        record_store: Store to serve from. When omitted, the configured store
            is created on startup and closed on shutdown.
        settings: Settings to use (defaults to the cached application settings)

    Returns:
        FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Starting {settings.app_name} (version {settings.api_version})")
        logger.info(f"Environment: {settings.environment}")

        owns_store = app.state.record_store is None
        if owns_store:
            app.state.record_store = create_record_store(settings)

        yield

        logger.info(f"Shutting down {settings.app_name}")
        if owns_store:
            await app.state.record_store.close()
            app.state.record_store = None

    app = FastAPI(
        title=settings.app_name,
        description="Delivery order analytics for restaurant operations",
        version=settings.api_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.record_store = record_store

    # Middleware runs in reverse order of registration
    app.add_middleware(JWTAuthMiddleware, settings=settings)
    app.add_middleware(ErrorHandlerMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request timing middleware
    @app.middleware("http")
    async def add_process_time_header(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        response.headers["X-Process-Time"] = str(time.time() - start_time)
        return response

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/api/health", tags=["system"])
    async def health_check():
        """
        Health check endpoint to verify the API is running.
        """
        return {
            "status": "healthy",
            "version": settings.api_version,
            "timestamp": datetime.now().isoformat(),
            "environment": settings.environment,
        }

    app.include_router(analytics.router, prefix="/api")

    return app
