"""Retention Windows: cutoffs and tombstone group sets."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from relay.core.retention import (
    broadcast_expiry, decrypted_invite_cutoff, distinct_group_ids, inactivity_cutoff,
)

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def test_broadcast_expiry_adds_ttl():
    assert broadcast_expiry(NOW, 7) == NOW + timedelta(days=7)


def test_decrypted_cutoff_subtracts_grace():
    assert decrypted_invite_cutoff(NOW, 10) == NOW - timedelta(minutes=10)


def test_inactivity_cutoff_subtracts_days():
    assert inactivity_cutoff(NOW, 30) == NOW - timedelta(days=30)


def test_distinct_group_ids_unions_in_first_seen_order():
    a, b, c = uuid4(), uuid4(), uuid4()
    result = distinct_group_ids([str(a), str(b)], [b, c, a])
    assert result == [str(a), str(b), str(c)]


def test_distinct_group_ids_skips_missing_sources():
    a = uuid4()
    assert distinct_group_ids(None, [a]) == [str(a)]
    assert distinct_group_ids() == []
