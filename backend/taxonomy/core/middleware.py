"""Application middleware: request logging."""

import time

import structlog
from structlog.contextvars import bind_contextvars, clear_contextvars
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log each request with timing, tagging category events with the acting admin."""

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        clear_contextvars()
        actor_id = request.headers.get("x-actor-id")
        if actor_id:
            bind_contextvars(actor_id=actor_id)

        response = await call_next(request)

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "request",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        return response
