# Schemas package init
"""
Pipeyard Backend - Request/Response Schemas
============================================

What:  Pydantic models describing what crosses the HTTP boundary.

Schema Inventory:
    - PipePayload:   body of POST /pipes (known scalar fields, extras allowed)
    - ErrorResponse: JSON body of every locally produced error
"""
