# Middleware package init
"""
Pipeyard Backend - Middleware Package
======================================

What:  Cross-cutting concerns applied to every request, API and proxied alike.

Middleware Chain:
    Request → [Request ID] → [Logging] → Route Handler (pipes or proxy)

    1. Request ID: correlation ID available to every later log line
    2. Logging: method, path, status and duration with that ID

No CORS or compression layer: the browser reaches the API through the same
origin, and proxied bodies must stay exactly as the upstream encoded them.
"""
