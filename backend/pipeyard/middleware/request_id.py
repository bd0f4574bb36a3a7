"""
Pipeyard Backend - Request ID Middleware
=========================================

What:  Assigns a correlation ID to each incoming request.
How:   Reuses the client's X-Request-ID header or generates a short UUID,
       stores it in a ContextVar for loggers and error handlers, and echoes
       it on responses the backend produced itself.

Forwarded responses are left exactly as the upstream sent them, so the
header is not added there. Local errors raised while forwarding (502)
still get it.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local storage for the current request ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that assigns a unique ID to each request for tracing.

    Behavior:
        1. Use the client's X-Request-ID header if present
        2. Otherwise generate an 8-char UUID prefix
        3. Store in ContextVar and request.state
        4. Add to locally handled responses
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID", str(uuid.uuid4())[:8])

        request_id_var.set(rid)
        # Also creates the shared request.state the proxy route flags
        request.state.request_id = rid

        response = await call_next(request)

        if not getattr(request.state, "proxied", False):
            response.headers["X-Request-ID"] = rid

        return response
