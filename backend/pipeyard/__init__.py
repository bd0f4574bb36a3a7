"""
Pipeyard Backend - Application Package Initializer
===================================================

What: Marks the `pipeyard` directory as a Python package.
Who:  Used by uvicorn (`pipeyard.main:app`), `python -m pipeyard` and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │     Routes (pipes API + proxy)      │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (PipeStore, Upstream)    │  ← Upsert/list rules, forwarding
    ├─────────────────────────────────────┤
    │      Schemas (request payloads)     │  ← Pydantic
    ├─────────────────────────────────────┤
    │   Database (JSON document on disk)  │  ← aiofiles, atomic rename
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
