# Routes package init
"""
Pipeyard Backend - API Routes Package
======================================

Route Inventory:
    - pipes.py:  GET  /pipes     (list every pipe)
                 POST /pipes     (create or update a pipe)
    - proxy.py:  *    /{path}    (everything else, forwarded upstream)

Routes stay thin: they handle HTTP concerns and delegate to PipeStore or
UpstreamProxy. proxy.router must be included last.
"""
