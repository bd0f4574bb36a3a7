"""
Pipeyard Backend - Catch-all Proxy Route
=========================================

What:  Forwards every request no other route claims to the upstream
       front-end dev server.
How:   A single `/{path:path}` route accepting every method, registered
       after the pipes router so /pipes GET/POST keep priority.
"""

from fastapi import APIRouter, Request
from starlette.responses import StreamingResponse

router = APIRouter(include_in_schema=False)

PROXIED_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/{path:path}", methods=PROXIED_METHODS)
async def proxy_to_upstream(request: Request, path: str) -> StreamingResponse:
    response = await request.app.state.upstream_proxy.forward(request)
    # Only set once the upstream answered; a local 502 is not proxied
    request.state.proxied = True
    return response
