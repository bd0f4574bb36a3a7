"""
Pipeyard Backend - Request Logging Middleware
==============================================

What:  One access-log line per request: method, path, status, duration,
       request ID, client address, and whether it was proxied.
How:   Times the downstream call and picks the log level from the status:
       5xx → ERROR, 4xx → WARNING, everything else → INFO.

Request bodies are never logged.

Proxied traffic is logged at DEBUG when it succeeds; a dev server serves
dozens of module requests per page load and would drown the API lines.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from pipeyard.middleware.request_id import request_id_var

logger = logging.getLogger("pipeyard.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs structured information about each HTTP request and response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        start_time = time.perf_counter()

        client_ip = getattr(request.client, "host", "unknown") if request.client else "unknown"
        method = request.method
        path = request.url.path
        rid = request_id_var.get("")

        response = await call_next(request)

        # For proxied requests this is time to upstream headers, not full body
        duration_ms = (time.perf_counter() - start_time) * 1000
        proxied = getattr(request.state, "proxied", False)

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        elif proxied:
            log_level = logging.DEBUG
        else:
            log_level = logging.INFO

        logger.log(
            log_level,
            "%s %s %d %.1fms [%s] from %s%s",
            method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            " (proxied)" if proxied else "",
            extra={
                "request_id": rid,
                "method": method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
                "proxied": proxied,
            },
        )

        return response
