"""
Pipeyard Backend - Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── database_path: JSON document location inside tmp_path
    ├── pipe_store: PipeStore over that document (not loaded)
    ├── test_settings: Settings pointing at database_path
    ├── upstream_body: factory for streamed fake upstream bodies
    ├── upstream_requests / upstream_handler: fake front-end dev server
    ├── app: create_app() wired to the fake upstream, lifespan running
    └── test_client: HTTPX AsyncClient talking to `app` over ASGI

Test modules can override `upstream_handler` to script the upstream.
"""

import os
import tempfile
from typing import Callable, List

import httpx
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Override settings for testing BEFORE any app imports
os.environ["DATABASE_PATH"] = os.path.join(
    tempfile.mkdtemp(prefix="pipeyard_test_"), "database.json"
)
os.environ["LOG_LEVEL"] = "WARNING"

from pipeyard.config import Settings  # noqa: E402
from pipeyard.database import JsonDocument  # noqa: E402
from pipeyard.main import create_app  # noqa: E402
from pipeyard.services.pipe_service import PipeStore  # noqa: E402


class UpstreamBody(httpx.AsyncByteStream):
    """
    Unread response body for the fake upstream.

    httpx.Response(content=...) is read on construction, which a streaming
    relay cannot iterate again; this behaves like a body still on the wire.
    """

    def __init__(self, *chunks: bytes):
        self.chunks = chunks
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture
def database_path(tmp_path):
    """Location of the durable document; the file itself does not exist yet."""
    return tmp_path / "database.json"


@pytest.fixture
def pipe_store(database_path):
    """A fresh, unloaded PipeStore backed by database_path."""
    return PipeStore(JsonDocument(database_path))


@pytest.fixture
def test_settings(database_path):
    return Settings(
        database_path=str(database_path),
        upstream_host="frontend.local",
        upstream_port=5173,
        log_level="WARNING",
    )


@pytest.fixture
def upstream_body():
    """Factory for unread upstream bodies: upstream_body(b"chunk", ...)."""
    return UpstreamBody


@pytest.fixture
def upstream_requests() -> List[httpx.Request]:
    """Every request the fake upstream received, in order."""
    return []


@pytest.fixture
def upstream_handler(upstream_requests) -> Callable[[httpx.Request], httpx.Response]:
    """
    Default fake upstream: records the request and answers with a small page.

    Override in a test module to return other responses or raise
    transport errors.
    """
    def handler(request: httpx.Request) -> httpx.Response:
        upstream_requests.append(request)
        return httpx.Response(
            200,
            headers={"content-type": "text/html", "x-served-by": "vite"},
            stream=UpstreamBody(b"<html>", b"frontend</html>"),
        )
    return handler


@pytest_asyncio.fixture
async def app(test_settings, upstream_handler):
    """
    Application with its lifespan running (store loaded, proxy open).

    Usage:
        async def test_something(app):
            store = app.state.pipe_store
    """
    application = create_app(
        settings=test_settings,
        upstream_transport=httpx.MockTransport(upstream_handler),
    )
    async with application.router.lifespan_context(application):
        yield application


@pytest_asyncio.fixture
async def test_client(app):
    """
    Async HTTP client routed straight into `app`.

    raise_app_exceptions=False lets tests observe the 500 response the
    catch-all handler produces instead of the re-raised exception.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
