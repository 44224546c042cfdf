"""Cascade Deletion Protocol: reference-counted broadcast retirement.

Invariants:
    - Broadcast alive iff at least one invite references it
    - Exactly one tombstone per retired broadcast, naming every invited group
    - Repeat calls are no-ops; a failure mid-cascade rolls everything back
    - Concurrent retirement of the last two invites yields one tombstone
"""

from datetime import datetime, timezone
from unittest.mock import patch

import asyncio
import pytest
from sqlalchemy import select, func

import relay.models  # noqa: F401
from relay.core.domain_types import AidCategory, BroadcastCategory, DeletionType
from relay.db.base import Base
from relay.db.session import create_session_factory
from relay.models.broadcast import Broadcast
from relay.models.broadcast_invite import BroadcastInvite
from relay.models.broadcast_tombstone import BroadcastTombstone
from relay.models.group import Group
from relay.models.mailbox import Mailbox
from relay.models.mailbox_tombstone import MailboxTombstone
from relay.services.broadcast_store import BroadcastStore, InviteGrant
from relay.services.cascade import retire_invite, retire_mailbox
from relay.services.mailbox_store import MailboxStore

NOW = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


async def _count(db, model) -> int:
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


async def _broadcast_with_invites(db, group_ids) -> tuple:
    store = BroadcastStore(db, clock=lambda: NOW)
    broadcast_id = await store.create_broadcast(
        b"\x01" * 64, b"\x02" * 24, "Minneapolis", [BroadcastCategory.SHELTER_HOUSING],
        [InviteGrant(g, b"wrapped") for g in group_ids],
    )
    invite_ids = (await db.execute(
        select(BroadcastInvite.id)
        .where(BroadcastInvite.broadcast_id == broadcast_id)
        .order_by(BroadcastInvite.group_id),
    )).scalars().all()
    return broadcast_id, list(invite_ids)


async def test_retiring_some_invites_keeps_broadcast(test_db, groups):
    ids = [groups[k].id for k in ("a", "b", "c")]
    broadcast_id, invite_ids = await _broadcast_with_invites(test_db, ids)

    assert await retire_invite(test_db, invite_ids[0], NOW) is True
    assert await retire_invite(test_db, invite_ids[1], NOW) is True

    assert await _count(test_db, Broadcast) == 1
    assert await _count(test_db, BroadcastInvite) == 1
    assert await _count(test_db, BroadcastTombstone) == 0


async def test_last_invite_takes_broadcast_and_leaves_tombstone(test_db, groups):
    ids = [groups[k].id for k in ("a", "b", "c")]
    broadcast_id, invite_ids = await _broadcast_with_invites(test_db, ids)

    for invite_id in invite_ids:
        assert await retire_invite(test_db, invite_id, NOW) is True

    assert await _count(test_db, Broadcast) == 0
    assert await _count(test_db, BroadcastInvite) == 0
    tombstone = (await test_db.execute(select(BroadcastTombstone))).scalar_one()
    assert tombstone.original_broadcast_id == broadcast_id
    assert tombstone.region == "Minneapolis"
    assert tombstone.categories == ["shelter_housing"]
    # Groups whose invites went first are still named
    assert set(tombstone.group_ids) == {str(g) for g in ids}
    assert len(tombstone.group_ids) == 3


async def test_retire_is_idempotent(test_db, groups):
    _, invite_ids = await _broadcast_with_invites(test_db, [groups["a"].id])

    assert await retire_invite(test_db, invite_ids[0], NOW) is True
    assert await retire_invite(test_db, invite_ids[0], NOW) is False

    assert await _count(test_db, BroadcastTombstone) == 1


async def test_failure_mid_cascade_rolls_back(test_db, groups):
    broadcast_id, invite_ids = await _broadcast_with_invites(test_db, [groups["a"].id])

    with patch(
        "relay.services.cascade._build_broadcast_tombstone",
        side_effect=RuntimeError("disk on fire"),
    ):
        with pytest.raises(RuntimeError):
            await retire_invite(test_db, invite_ids[0], NOW)

    assert await _count(test_db, BroadcastInvite) == 1
    assert await _count(test_db, Broadcast) == 1
    assert await _count(test_db, BroadcastTombstone) == 0

    # A retry after the fault completes normally
    assert await retire_invite(test_db, invite_ids[0], NOW) is True
    assert await _count(test_db, BroadcastTombstone) == 1


async def test_inactive_guard_skips_recently_touched_mailbox(test_db):
    store = MailboxStore(test_db, clock=lambda: NOW)
    mailbox_id = await store.create_mailbox(b"\x11" * 32, AidCategory.UTILITIES, "Minneapolis")

    # last_accessed_at == NOW is not older than NOW
    retired = await retire_mailbox(
        test_db, mailbox_id, DeletionType.AUTO_INACTIVITY, NOW, inactive_before=NOW,
    )

    assert retired is False
    assert await _count(test_db, Mailbox) == 1
    assert await _count(test_db, MailboxTombstone) == 0


async def test_concurrent_last_invites_write_one_tombstone(tmp_path):
    factory = create_session_factory(f"sqlite+aiosqlite:///{tmp_path / 'relay.db'}")
    engine = factory.kw["bind"]
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        async with factory() as db:
            a = Group(name="A", service_area="Minneapolis", verification_status="verified")
            b = Group(name="B", service_area="Minneapolis", verification_status="verified")
            db.add_all([a, b])
            await db.commit()
            broadcast_id, invite_ids = await _broadcast_with_invites(db, [a.id, b.id])

        async def retire(invite_id):
            async with factory() as db:
                return await retire_invite(db, invite_id, NOW)

        results = await asyncio.gather(*(retire(i) for i in invite_ids))

        assert results == [True, True]
        async with factory() as db:
            assert await _count(db, Broadcast) == 0
            assert await _count(db, BroadcastInvite) == 0
            tombstones = (await db.execute(select(BroadcastTombstone))).scalars().all()
            assert len(tombstones) == 1
            assert tombstones[0].original_broadcast_id == broadcast_id
            assert set(tombstones[0].group_ids) == {str(a.id), str(b.id)}
    finally:
        await engine.dispose()
