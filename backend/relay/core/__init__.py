"""Core Layer: pure domain logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Time is always passed in (datetime or clock callable), never read implicitly

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
    - Limiter state lives here as a plain in-memory object, it does no IO
"""
