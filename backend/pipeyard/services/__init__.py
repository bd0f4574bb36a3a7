# Services package init
"""
Pipeyard Backend - Services Layer
==================================

What:  Business logic between routes (HTTP) and the JSON document (persistence).

Service Inventory:
    - PipeStore:     in-memory pipe collection, upsert/list, durable snapshots
    - UpstreamProxy: forwards non-API traffic to the front-end dev server

Both are created once per application in the lifespan and stored on
app.state, so tests can build as many isolated apps as they need.
"""
