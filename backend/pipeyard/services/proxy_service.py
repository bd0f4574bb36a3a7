"""
Pipeyard Backend - Upstream Forwarder
======================================

What:  Relays every request the pipes API does not handle to the front-end
       dev server, and streams the answer back.
How:   One pooled httpx.AsyncClient. The inbound request is rebuilt as an
       httpx.Request with the same method, path, query, raw headers and
       (streamed) body; the upstream response is opened in streaming mode
       and relayed byte-for-byte through a Starlette StreamingResponse.
Who:   Created by the application lifespan; called by the catch-all route.

Failure handling:
    Connect errors, timeouts and protocol errors that happen before the
    upstream response starts become UpstreamUnavailableError (502).
    Nothing is retried.
"""

import logging
from typing import AsyncIterator, Optional

import httpx
from starlette.background import BackgroundTask
from starlette.requests import Request
from starlette.responses import StreamingResponse

from pipeyard.exceptions import UpstreamUnavailableError

logger = logging.getLogger(__name__)


class UpstreamProxy:
    """
    Reverse-proxy forwarder pointed at a single upstream origin.

    Args:
        base_url:  e.g. "http://localhost:5173"
        timeout:   connect/read/write/pool timeout in seconds
        transport: optional httpx transport (tests pass httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = httpx.Timeout(timeout)
        self.client = httpx.AsyncClient(transport=transport, timeout=self.timeout)

    def _build_request(self, request: Request) -> httpx.Request:
        # raw_path keeps %3F, %23 and friends encoded; request.url.path does not
        raw_path = request.scope.get("raw_path") or request.url.path.encode("utf-8")
        url = self.base_url + raw_path.decode("latin-1")
        query = request.scope.get("query_string", b"")
        if query:
            url = f"{url}?{query.decode('latin-1')}"

        # Only stream a body when the caller declared one; otherwise httpx
        # would add Transfer-Encoding: chunked to bodiless requests.
        has_body = "content-length" in request.headers or "transfer-encoding" in request.headers

        # httpx.Request instead of client.build_request: the client's default
        # headers (User-Agent, Accept, ...) must not be added.
        return httpx.Request(
            request.method,
            url,
            headers=request.headers.raw,
            content=request.stream() if has_body else None,
            extensions={"timeout": self.timeout.as_dict()},
        )

    async def forward(self, request: Request) -> StreamingResponse:
        """
        Send `request` upstream and return a response streaming the reply.

        Raises:
            UpstreamUnavailableError: the upstream could not be reached or
                                      failed before sending a response.
        """
        upstream_request = self._build_request(request)

        try:
            upstream_response = await self.client.send(upstream_request, stream=True)
        except httpx.HTTPError as e:
            logger.error(
                "Proxy Error: %s %s -> %s: %s",
                request.method,
                request.url.path,
                self.base_url,
                str(e) or type(e).__name__,
            )
            raise UpstreamUnavailableError(
                upstream=self.base_url,
                context={"error": type(e).__name__, "path": request.url.path},
            ) from e

        logger.debug(
            "Proxied %s %s -> %d",
            request.method,
            request.url.path,
            upstream_response.status_code,
        )

        response = StreamingResponse(
            self._relay(upstream_response),
            status_code=upstream_response.status_code,
            background=BackgroundTask(upstream_response.aclose),
        )
        # Raw list keeps repeated headers such as Set-Cookie intact
        response.raw_headers = [
            (name.lower(), value) for name, value in upstream_response.headers.raw
        ]
        return response

    async def _relay(self, upstream_response: httpx.Response) -> AsyncIterator[bytes]:
        # aiter_raw: content encoding (gzip, br) is passed through untouched
        try:
            async for chunk in upstream_response.aiter_raw():
                yield chunk
        except httpx.HTTPError as e:
            logger.error("Upstream stream aborted for %s: %s", upstream_response.url, str(e))
            raise
        finally:
            await upstream_response.aclose()

    async def aclose(self) -> None:
        """Close pooled upstream connections (called on shutdown)."""
        await self.client.aclose()
