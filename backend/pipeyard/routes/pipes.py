"""
Pipeyard Backend - Pipes Route Handlers
========================================

What:  GET /pipes (list) and POST /pipes (create or update).
How:   Parses the body, validates it with PipePayload, delegates to PipeStore.
Who:   Called by the pipe form in the browser.

Status codes:
    GET  /pipes  → 200, JSON array of every pipe
    POST /pipes  → 201 when a pipe was created, 200 when one was updated,
                   404 when the id is unknown, 400 on a malformed body

Only GET and POST are registered here. Any other method on /pipes falls
through to the catch-all proxy route.
"""

import json
import logging
import math
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request, Response
from pydantic import ValidationError as PydanticValidationError

from pipeyard.database import get_pipe_store
from pipeyard.exceptions import ValidationError
from pipeyard.schemas.pipe import ErrorResponse, PipePayload
from pipeyard.services.pipe_service import PipeStore

logger = logging.getLogger(__name__)

PIPES_PATH = "/pipes"


def _reject_constant(name: str) -> Any:
    # NaN and Infinity cannot be written back as strict JSON
    raise ValueError(f"{name} is not a valid JSON value")


def _parse_finite_float(text: str) -> float:
    # 1e400 overflows to inf without ever spelling "Infinity"
    value = float(text)
    if not math.isfinite(value):
        raise ValueError(f"{text} is out of range for a JSON number")
    return value


router = APIRouter(tags=["Pipes"])


async def parse_pipe_body(request: Request) -> Dict[str, Any]:
    """
    Read the request body as a pipe payload.

    An empty body counts as `{}`, i.e. "create a blank pipe".

    Raises:
        ValidationError: body is not JSON, not an object, or a known field
                         holds an object/array.
    """
    raw = await request.body()
    if not raw.strip():
        return {}

    try:
        body = json.loads(
            raw,
            parse_constant=_reject_constant,
            parse_float=_parse_finite_float,
        )
    except ValueError as e:
        raise ValidationError(
            message="Invalid JSON in request body",
            field="body",
            context={"error": str(e)},
        ) from e

    if not isinstance(body, dict):
        raise ValidationError(
            message="Request body must be a JSON object",
            field="body",
            context={"found": type(body).__name__},
        )

    try:
        payload = PipePayload.model_validate(body)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"][:1])
        raise ValidationError(
            message=f"Field '{field}' must be a number, string, boolean or null",
            field=field,
            context={"errors": e.error_count()},
        ) from e

    return payload.to_record()


@router.get(
    PIPES_PATH,
    summary="List every pipe",
    responses={200: {"description": "All pipes in storage order"}},
)
async def list_pipes(store: PipeStore = Depends(get_pipe_store)) -> List[Dict[str, Any]]:
    return store.list()


@router.post(
    PIPES_PATH,
    summary="Create or update a pipe",
    responses={
        200: {"description": "Existing pipe updated"},
        201: {"description": "New pipe created"},
        400: {"description": "Malformed body", "model": ErrorResponse},
        404: {"description": "Unknown pipe id", "model": ErrorResponse},
    },
)
async def upsert_pipe(
    request: Request,
    response: Response,
    store: PipeStore = Depends(get_pipe_store),
) -> Dict[str, Any]:
    """
    Create a pipe (no/falsy id) or merge fields into an existing one.

    Returns the full stored record. PipeNotFoundError propagates to the
    global handler as a 404.
    """
    payload = await parse_pipe_body(request)
    record, created = await store.upsert(payload)
    response.status_code = 201 if created else 200
    return record
