"""
Application entry point.

This module serves as the main entry point for the FastAPI application.
"""

import uvicorn

from delivery_insights.api.server import create_app
from delivery_insights.config import get_settings
from delivery_insights.utils.logger import setup_logging, get_logger

# Get settings
settings = get_settings()

# Setup logging
setup_logging(settings)
logger = get_logger(__name__)

# Create the main application
app = create_app(settings=settings)

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development",
        workers=settings.uvicorn_workers
    )
