"""
Middleware configuration for the service.
Includes Correlation ID setup and request logging middleware.
"""

import time
import structlog
from typing import Callable
from fastapi import Request, Response
from asgi_correlation_id import CorrelationIdMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log requests and responses with timing."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        logger.info(
            "Request started",
            method=request.method,
            path=request.url.path,
            client_ip=request.client.host if request.client else "unknown",
        )

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "Request failed",
                method=request.method,
                path=request.url.path,
                process_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
            )
            raise

        logger.info(
            "Request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            process_time_ms=round((time.perf_counter() - start_time) * 1000, 2),
        )
        return response


def setup_middleware(app):
    """Setup all middleware for the application."""

    # Starlette runs the last added middleware first, so the correlation id
    # is added after request logging to wrap it.
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        update_request_header=True,
    )
