"""Pydantic Schemas: request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary: malformed base64, wrong key length,
      short ciphertext and unknown enum values never reach a store
    - Wire format is camelCase; Python attributes stay snake_case

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence (ADR: DDD boundary)
    - Binary fields are bytes inside Python and base64 strings on the wire
"""
