"""
HTTP-level middleware: trace IDs, request logging and no-cache headers.
"""

import logging
import time
from uuid import uuid4
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger("kol360.request")

TRACE_HEADER = "x-trace-id"


def new_trace_id() -> str:
    return uuid4().hex[:16]


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Attach a trace ID to every request and log its completion."""

    async def dispatch(self, request: Request, call_next):
        trace_id = request.headers.get(TRACE_HEADER) or new_trace_id()
        request.state.trace_id = trace_id
        started = time.perf_counter()

        response = await call_next(request)

        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        response.headers[TRACE_HEADER] = trace_id

        if not request.url.path.startswith("/health"):
            if response.status_code >= 500:
                level = logging.ERROR
            elif response.status_code >= 400:
                level = logging.WARNING
            else:
                level = logging.INFO
            logger.log(
                level,
                f"{request.method} {request.url.path} {response.status_code} {duration_ms}ms",
                extra={"extra_fields": {
                    "trace_id": trace_id,
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": response.status_code,
                    "duration_ms": duration_ms,
                }},
            )
        return response


class NoCacheMiddleware(BaseHTTPMiddleware):
    """Keep API responses out of browser caches."""
    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
            response.headers["Pragma"] = "no-cache"
        return response
