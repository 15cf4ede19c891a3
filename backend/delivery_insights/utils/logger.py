"""
Logging utilities.

This module provides functions for consistent logging throughout the application.
"""

import logging
import sys
import os
from pathlib import Path
from typing import Optional, Dict, Any
import json
from datetime import datetime
import traceback

from delivery_insights.config import Settings, get_settings

# Configure logging format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Log levels mapping
LOG_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}

# Default log level
DEFAULT_LOG_LEVEL = logging.INFO

class JSONLogFormatter(logging.Formatter):
    """Custom formatter for structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data = {
            "timestamp": datetime.now().isoformat(),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
        }

        # Add exception info if present
        if record.exc_info:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        # Add context attributes attached by log_with_context
        context = getattr(record, "context", None)
        if context:
            log_data.update(context)

        return json.dumps(log_data, default=str)

def setup_logging(settings: Optional[Settings] = None) -> None:
    """
    Set up logging configuration.

    Configures the root logger from the application settings: level, text or
    JSON output, and an optional daily log file.

    Args:
        settings: Settings to use (defaults to the cached application settings)
    """
    settings = settings or get_settings()

    log_level_name = settings.log_level.lower()
    log_level = LOG_LEVELS.get(log_level_name, DEFAULT_LOG_LEVEL)

    if settings.log_format == "json":
        formatter = JSONLogFormatter()
    else:
        formatter = logging.Formatter(LOG_FORMAT, DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    root_logger.addHandler(console_handler)

    # Add file handler if log_to_file is enabled
    if settings.log_to_file:
        Path(settings.log_directory).mkdir(parents=True, exist_ok=True)

        log_file = os.path.join(settings.log_directory, f"{datetime.now().strftime('%Y-%m-%d')}.log")
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Set log level for external libraries
    logging.getLogger("uvicorn").setLevel(logging.WARNING)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)

    logging.info(f"Logging initialized at level: {log_level_name.upper()}")

def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)

def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    context: Dict[str, Any] = None
) -> None:
    """
    Log a message with additional context.

    The context is rendered inline for text logs and merged into the
    record for JSON logs.

    Args:
        logger: Logger instance
        level: Log level (debug, info, warning, error, critical)
        message: Log message
        context: Additional context to include in the log
    """
    ctx = context or {}

    log_method = getattr(logger, level.lower(), logger.info)

    if ctx:
        rendered = " ".join(f"{key}={value}" for key, value in ctx.items())
        message = f"{message} [{rendered}]"

    log_method(message, extra={"context": ctx})
