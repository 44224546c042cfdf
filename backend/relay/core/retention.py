"""Retention Windows: pure time math for every TTL policy, plus tombstone group sets.

Invariants:
    - Every cutoff is strict: a row is eligible only when its timestamp is
      older than (now - window), never equal to it
    - Group-id sets are de-duplicated and order-stable (first seen wins)

Design Decisions:
    - Cutoffs computed here, compared in SQL: the store never compares
      DB-loaded datetimes in Python (SQLite returns naive values)
"""

from datetime import datetime, timedelta
from typing import Iterable
from uuid import UUID


def broadcast_expiry(now: datetime, ttl_days: int) -> datetime:
    """Absolute expiry for a broadcast and each of its invites."""
    return now + timedelta(days=ttl_days)


def decrypted_invite_cutoff(now: datetime, grace_minutes: int) -> datetime:
    """Invites decrypted before this instant have used up their grace window."""
    return now - timedelta(minutes=grace_minutes)


def inactivity_cutoff(now: datetime, threshold_days: int) -> datetime:
    """Mailboxes last read before this instant are inactive."""
    return now - timedelta(days=threshold_days)


def distinct_group_ids(*sources: Iterable[UUID | str]) -> list[str]:
    """Union of group ids from several sources, as strings, first-seen order."""
    seen: dict[str, None] = {}
    for source in sources:
        for group_id in source or ():
            seen.setdefault(str(group_id), None)
    return list(seen)
