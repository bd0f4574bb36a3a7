"""
Pipeyard Backend - Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for the record store and the forwarder.
How:   Each exception carries a message and an optional context dict.
       Global exception handlers (registered in main.py) catch the per-request
       ones and return structured JSON error responses.
Who:   Raised by the store, the JSON document layer, routes and the proxy.

Exception Hierarchy:
    PipeyardError (base)
    ├── StoreLoadError            → fatal at startup (process exits)
    ├── ValidationError           → 400 Bad Request
    ├── NotFoundError             → 404 Not Found
    │   └── PipeNotFoundError
    ├── PersistenceError          → never surfaced; logged by the store
    └── UpstreamUnavailableError  → 502 Bad Gateway
"""

import json
from typing import Any, Dict, Optional


class PipeyardError(Exception):
    """
    Base exception for all Pipeyard application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class StoreLoadError(PipeyardError):
    """
    Raised when the durable document exists but cannot be read or parsed.

    When:    Startup only, from PipeStore.load().
    Effect:  Propagates out of the lifespan so the server never starts
             serving from a partially loaded or corrupt collection.
    """

    def __init__(
        self,
        message: str = "Could not load the pipe database",
        path: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if path:
            ctx["path"] = path
        super().__init__(message=message, context=ctx)
        self.path = path


class ValidationError(PipeyardError):
    """
    Raised when the client sent a body the API cannot accept.

    When:    Request body is not JSON, not a JSON object, or a known pipe
             field carries a non-scalar value.
    HTTP:    400 Bad Request. The request has no side effect.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(PipeyardError):
    """
    Raised when a requested resource does not exist.

    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


def _render_id(pipe_id: Any) -> str:
    # Booleans as they appeared in the request body
    if isinstance(pipe_id, bool):
        return json.dumps(pipe_id)
    return str(pipe_id)


class PipeNotFoundError(NotFoundError):
    """
    Raised by an update whose `id` matches no stored pipe.

    The collection is left untouched when this is raised.
    """

    def __init__(self, pipe_id: Any, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            resource="pipe",
            resource_id=str(pipe_id),
            message=f"Pipe with id {_render_id(pipe_id)} not found.",
            context=context,
        )
        self.pipe_id = pipe_id


class PersistenceError(PipeyardError):
    """
    Raised when writing the durable document fails.

    The in-memory mutation that triggered the write has already been
    applied and stays authoritative; PipeStore catches this and logs it.
    """

    def __init__(
        self,
        message: str = "Failed to write the pipe database",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class UpstreamUnavailableError(PipeyardError):
    """
    Raised when a forwarded request cannot reach or complete against the upstream.

    When:    Connection refused, DNS failure, timeout or protocol error before
             the upstream response starts.
    HTTP:    502 Bad Gateway. No retry.
    """

    def __init__(
        self,
        message: str = "Bad Gateway - Is the frontend server running?",
        upstream: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if upstream:
            ctx["upstream"] = upstream
        super().__init__(message=message, context=ctx)
        self.upstream = upstream
