"""Route Modules: one file per resource/concern.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Anonymous routers carry the general rate limiter as a router dependency
    - Routes never contain business logic (delegate to services)
"""
