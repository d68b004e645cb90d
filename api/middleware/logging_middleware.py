"""
FastAPI middleware for request logging and timing.

This middleware:
- Reuses an incoming X-Request-ID or assigns a short one
- Logs each request start and end with the response status
- Adds X-Request-ID and X-Response-Time headers to the response
- Reports event streams as opened rather than timing their whole lifetime
"""

import time
import uuid
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from core.logging_config import get_logger, get_llm_logger

logger = get_logger(__name__)
llm_logger = get_llm_logger(__name__)

EVENT_STREAM = "text/event-stream"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request logging with ids and timing"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        endpoint = request.url.path

        llm_logger.log_api_call_start(endpoint=endpoint, method=request.method, request_id=request_id)
        start_time = time.time()

        try:
            response = await call_next(request)
        except Exception as e:
            duration_ms = (time.time() - start_time) * 1000
            llm_logger.log_api_call_end(
                endpoint=endpoint,
                method=request.method,
                request_id=request_id,
                duration_ms=duration_ms,
                status=f"error: {str(e)}"
            )
            raise

        duration_ms = (time.time() - start_time) * 1000
        if response.headers.get("content-type", "").startswith(EVENT_STREAM):
            status = "stream opened"
        elif response.status_code >= 400:
            status = f"error ({response.status_code})"
        else:
            status = f"success ({response.status_code})"

        llm_logger.log_api_call_end(
            endpoint=endpoint,
            method=request.method,
            request_id=request_id,
            duration_ms=duration_ms,
            status=status
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response


def add_logging_middleware(app):
    """Add logging middleware to FastAPI app"""
    app.add_middleware(LoggingMiddleware)
    logger.info("🔧 Logging middleware added to FastAPI app")
