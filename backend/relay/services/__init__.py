"""Service Layer: stores, the cascade deletion protocol and the cleanup scheduler.

Invariants:
    - Services do IO through an AsyncSession handed in by the caller
    - Services raise RelayError subclasses; they never build HTTP responses

Design Decisions:
    - One class per aggregate (MailboxStore, BroadcastStore); the cascade is
      plain functions so routes and the scheduler share it without a store
"""
