"""Broadcast Store: atomic fan-out, group-scoped invite reads, decrypt transition.

Invariants:
    - Broadcast and invites are created together or not at all
    - Groups only ever see their own invites
    - pending -> decrypted happens once; decrypted invites leave the pending list
    - An invite past expires_at is unreachable even before the sweeper runs
"""

from datetime import timedelta
from uuid import uuid4

import pytest
from sqlalchemy import select, func

from relay.core.domain_types import BroadcastCategory, InviteStatus
from relay.core.errors import RelayValidationError, ResourceNotFoundError
from relay.models.broadcast import Broadcast
from relay.models.broadcast_invite import BroadcastInvite
from relay.services.broadcast_store import BroadcastStore, InviteGrant

PAYLOAD = b"\x01" * 96
NONCE = b"\x02" * 24


@pytest.fixture
def store(test_db, clock):
    return BroadcastStore(test_db, clock=clock, ttl_days=7)


async def _create(store, groups, *keys: str):
    return await store.create_broadcast(
        PAYLOAD, NONCE, "Minneapolis",
        [BroadcastCategory.FOOD, BroadcastCategory.MEDICAL],
        [InviteGrant(groups[k].id, f"wrapped-{k}".encode()) for k in keys],
    )


async def test_create_fans_out_one_invite_per_group(store, test_db, groups, clock):
    broadcast_id = await _create(store, groups, "a", "b")

    broadcast = (await test_db.execute(
        select(Broadcast).where(Broadcast.id == broadcast_id),
    )).scalar_one()
    assert broadcast.categories == ["food", "medical"]
    assert broadcast.recipient_group_ids == [str(groups["a"].id), str(groups["b"].id)]

    invites = (await test_db.execute(select(BroadcastInvite))).scalars().all()
    assert {i.group_id for i in invites} == {groups["a"].id, groups["b"].id}
    assert all(i.status == InviteStatus.PENDING.value for i in invites)


async def test_invites_expire_with_broadcast_ttl(store, groups, clock):
    await _create(store, groups, "a")
    cutoff = clock.now + timedelta(days=7)

    assert await store.find_expired_invites(cutoff) == []
    assert len(await store.find_expired_invites(cutoff + timedelta(seconds=1))) == 1


async def test_unverified_or_unknown_group_rejected_atomically(store, test_db, groups):
    with pytest.raises(RelayValidationError):
        await _create(store, groups, "a", "pending")
    with pytest.raises(RelayValidationError):
        await store.create_broadcast(
            PAYLOAD, NONCE, "Minneapolis", [BroadcastCategory.FOOD],
            [InviteGrant(uuid4(), b"k")],
        )
    count = (await test_db.execute(
        select(func.count()).select_from(Broadcast),
    )).scalar_one()
    assert count == 0


async def test_duplicate_group_rejected(store, groups):
    with pytest.raises(RelayValidationError):
        await _create(store, groups, "a", "a")


async def test_empty_categories_or_invites_rejected(store, groups):
    with pytest.raises(RelayValidationError):
        await store.create_broadcast(PAYLOAD, NONCE, "Minneapolis", [], [
            InviteGrant(groups["a"].id, b"k"),
        ])
    with pytest.raises(RelayValidationError):
        await store.create_broadcast(
            PAYLOAD, NONCE, "Minneapolis", [BroadcastCategory.FOOD], [],
        )


async def test_group_sees_only_its_own_pending_invites(store, groups):
    await _create(store, groups, "a", "b")

    invites_a = await store.get_invites_for_group(groups["a"].id)
    invites_c = await store.get_invites_for_group(groups["c"].id)

    assert len(invites_a) == 1
    assert invites_a[0]["wrapped_key"] == b"wrapped-a"
    assert invites_a[0]["region"] == "Minneapolis"
    assert invites_a[0]["categories"] == ["food", "medical"]
    assert invites_c == []


async def test_ciphertext_returned_byte_for_byte(store, groups):
    broadcast_id = await _create(store, groups, "a")
    result = await store.get_ciphertext_for_broadcast(broadcast_id)
    assert result == {"ciphertext_payload": PAYLOAD, "nonce": NONCE}


async def test_ciphertext_for_unknown_broadcast_not_found(store):
    with pytest.raises(ResourceNotFoundError):
        await store.get_ciphertext_for_broadcast(uuid4())


async def test_get_invite_scoped_to_owner(store, groups):
    await _create(store, groups, "a", "b")
    invite_id = (await store.get_invites_for_group(groups["a"].id))[0]["invite_id"]

    assert (await store.get_invite_for_group(invite_id, groups["a"].id))["invite_id"] == invite_id
    with pytest.raises(ResourceNotFoundError):
        await store.get_invite_for_group(invite_id, groups["b"].id)


async def test_mark_decrypted_once(store, groups, clock):
    await _create(store, groups, "a")
    invite_id = (await store.get_invites_for_group(groups["a"].id))[0]["invite_id"]

    assert await store.mark_invite_decrypted(invite_id, groups["a"].id) is True
    clock.advance(minutes=5)
    assert await store.mark_invite_decrypted(invite_id, groups["a"].id) is False

    assert await store.get_invites_for_group(groups["a"].id) == []
    # Still readable during the grace window
    assert (await store.get_invite_for_group(invite_id, groups["a"].id))["status"] == "decrypted"

    # decrypted_at stayed at the first call
    assert await store.find_invites_decrypted_before(clock.now - timedelta(minutes=5)) == []
    assert await store.find_invites_decrypted_before(
        clock.now - timedelta(minutes=5) + timedelta(seconds=1),
    ) == [invite_id]


async def test_mark_decrypted_by_other_group_fails(store, groups):
    await _create(store, groups, "a")
    invite_id = (await store.get_invites_for_group(groups["a"].id))[0]["invite_id"]
    assert await store.mark_invite_decrypted(invite_id, groups["b"].id) is False


async def test_delete_invite_by_other_group_is_refused(store, test_db, groups):
    await _create(store, groups, "a")
    invite_id = (await store.get_invites_for_group(groups["a"].id))[0]["invite_id"]

    assert await store.delete_invite(invite_id, groups["b"].id) is False
    still_there = (await test_db.execute(
        select(BroadcastInvite.id).where(BroadcastInvite.id == invite_id),
    )).scalar_one_or_none()
    assert still_there == invite_id


async def test_expired_invite_unreachable_before_sweep(store, test_db, groups, clock):
    await _create(store, groups, "a")
    invite_id = (await store.get_invites_for_group(groups["a"].id))[0]["invite_id"]

    clock.advance(days=7)
    assert (await store.get_invite_for_group(invite_id, groups["a"].id))["invite_id"] == invite_id

    clock.advance(seconds=1)
    assert await store.get_invites_for_group(groups["a"].id) == []
    with pytest.raises(ResourceNotFoundError):
        await store.get_invite_for_group(invite_id, groups["a"].id)
    assert await store.mark_invite_decrypted(invite_id, groups["a"].id) is False

    status = (await test_db.execute(
        select(BroadcastInvite.status).where(BroadcastInvite.id == invite_id),
    )).scalar_one()
    assert status == InviteStatus.PENDING.value
