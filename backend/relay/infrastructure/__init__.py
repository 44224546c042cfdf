"""Infrastructure Layer: database plumbing and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/ or api/
    - All database failures surface as DatabaseError
"""
