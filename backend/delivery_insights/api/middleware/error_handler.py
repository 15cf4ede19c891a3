from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from typing import Dict, Any
import time
import traceback

from delivery_insights.analytics.aggregation import AggregationError
from delivery_insights.utils.logger import get_logger

# Initialize logger
logger = get_logger(__name__)

_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "unauthorized",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
}

def create_error_response(
    status_code: int,
    error_code: str,
    message: str,
    details: Any = None,
    meta: Dict[str, Any] = None,
    headers: Dict[str, str] = None
) -> JSONResponse:
    """Create a standardized error response."""
    content = {
        "error": {
            "code": error_code,
            "message": message
        }
    }

    if details:
        content["error"]["details"] = details

    if meta:
        content["error"]["meta"] = meta

    return JSONResponse(
        status_code=status_code,
        content=content,
        headers=headers
    )

class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware for centralized error handling.

    This middleware catches exceptions that weren't handled by route handlers
    or exception handlers, logs them, and returns a generic error response.
    """

    async def dispatch(self, request: Request, call_next):
        try:
            return await call_next(request)

        except Exception as exc:
            error_id = f"err_{int(time.time())}"

            logger.error(
                f"Unhandled exception ({error_id}): {str(exc)}\n"
                f"URL: {request.method} {request.url}\n"
                f"{traceback.format_exc()}"
            )

            return create_error_response(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                error_code="server_error",
                message="Internal server error",
                meta={"error_id": error_id}
            )

async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return create_error_response(
        status_code=exc.status_code,
        error_code=_ERROR_CODES.get(exc.status_code, "http_error"),
        message=str(exc.detail),
        headers=getattr(exc, "headers", None)
    )

async def aggregation_exception_handler(request: Request, exc: AggregationError) -> JSONResponse:
    # Store errors stay in the logs; callers get a generic failure
    error_id = f"err_{int(time.time())}"
    logger.error(f"Aggregation error ({error_id}) on {request.method} {request.url.path}: {str(exc)}")

    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        error_code="server_error",
        message="Internal server error",
        meta={"error_id": error_id}
    )

async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.warning(f"Validation error: {str(exc)}")
    return create_error_response(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        error_code="validation_error",
        message="Invalid request data",
        details=jsonable_encoder(exc.errors())
    )

def register_exception_handlers(app: FastAPI) -> None:
    """Register the standard error responses on an application."""
    app.add_exception_handler(HTTPException, http_exception_handler)
    app.add_exception_handler(AggregationError, aggregation_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
