"""
ClassNotes Backend - Request Logging Middleware
=================================================

What:  One access log line per HTTP request.
How:   Measures the time spent below this middleware and logs method,
       path, status, duration and client address, tagged with the
       request id.

Log line:
    2024-06-10T12:00:00 [INFO] classnotes.access: POST /api/notes 201 35.2ms [a1b2c3d4] from 127.0.0.1

What we log vs what we DON'T log (privacy):
    Log:        method, path, status, duration, IP, request ID
    Don't log:  request bodies (passwords, files), Authorization headers
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from classnotes.middleware.request_id import request_id_var

logger = logging.getLogger("classnotes.access")

# Probed every few seconds by orchestrators; not worth a log line each
QUIET_PATHS = frozenset({"/health"})


def level_for_status(status: int) -> int:
    """5xx → ERROR, 4xx → WARNING, everything else → INFO."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Access logging with duration and request-id correlation."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code

        logger.log(
            level_for_status(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
