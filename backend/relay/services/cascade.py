"""Cascade Deletion Protocol: retire an invite (and its broadcast when it was the last)
or a mailbox, always paired with exactly one tombstone.

Invariants:
    - A broadcast is alive iff at least one invite references it
    - Each call is one transaction: commit on success, rollback on a no-op
      or on any failure (then re-raise), so no partial tombstone or orphaned
      broadcast/message is ever observable
    - Idempotent: retiring something already gone returns False and mutates nothing
    - The parent broadcast row is locked (FOR UPDATE) before the snapshot, so
      concurrent retirements of invites of one broadcast serialize and only the
      call whose delete brings the count to zero writes the tombstone
    - Mailboxes are locked the same way; reply inserts take FOR SHARE on them

Design Decisions:
    - Explicit count-after-delete instead of ON DELETE CASCADE: the
      tombstone-then-delete-parent sequence must be one unit the DB cannot
      reorder (ADR: reference counting is application logic)
    - Rowcount of the DELETE decides who "owns" the retirement; a racer that
      lost sees 0 rows and backs out
    - Tombstone group set = live invites at lock time ∪ recipient_group_ids,
      so groups whose invites were retired earlier are still named
    - Shared by manual deletion routes and the cleanup scheduler
"""

import logging
from datetime import datetime
from uuid import UUID

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from relay.core.domain_types import DeletionType
from relay.core.retention import distinct_group_ids
from relay.models.broadcast import Broadcast
from relay.models.broadcast_invite import BroadcastInvite
from relay.models.broadcast_tombstone import BroadcastTombstone
from relay.models.mailbox import Mailbox
from relay.models.mailbox_message import MailboxMessage
from relay.models.mailbox_tombstone import MailboxTombstone

logger = logging.getLogger(__name__)


async def retire_invite(
    db: AsyncSession, invite_id: UUID, now: datetime,
) -> bool:
    """Hard-delete one invite; tombstone and delete its broadcast if it was the last."""
    return await _in_transaction(db, _retire_invite(db, invite_id, now))


async def retire_mailbox(
    db: AsyncSession,
    mailbox_id: UUID,
    deletion_type: DeletionType,
    now: datetime,
    inactive_before: datetime | None = None,
) -> bool:
    """Tombstone and hard-delete a mailbox with all its messages.

    With inactive_before set, the mailbox is only retired if its
    last_accessed_at is still older than that instant once the row is locked.
    """
    return await _in_transaction(
        db, _retire_mailbox(db, mailbox_id, deletion_type, now, inactive_before),
    )


async def _in_transaction(db: AsyncSession, work) -> bool:
    try:
        retired = await work
        if retired:
            await db.commit()
        else:
            await db.rollback()
        return retired
    except Exception:
        await db.rollback()
        raise


# ─── Broadcast side ──────────────────────────────────────────────

async def _retire_invite(
    db: AsyncSession, invite_id: UUID, now: datetime,
) -> bool:
    broadcast_id = (await db.execute(
        select(BroadcastInvite.broadcast_id)
        .where(BroadcastInvite.id == invite_id),
    )).scalar_one_or_none()
    if broadcast_id is None:
        return False

    broadcast = (await db.execute(
        select(Broadcast)
        .where(Broadcast.id == broadcast_id)
        .with_for_update(),
    )).scalar_one_or_none()

    # Snapshot before anything is deleted
    live_group_ids = (await db.execute(
        select(BroadcastInvite.group_id)
        .where(BroadcastInvite.broadcast_id == broadcast_id)
        .order_by(BroadcastInvite.created_at),
    )).scalars().all()

    deleted = await db.execute(
        delete(BroadcastInvite).where(BroadcastInvite.id == invite_id),
    )
    if deleted.rowcount == 0:
        return False

    remaining = (await db.execute(
        select(func.count())
        .select_from(BroadcastInvite)
        .where(BroadcastInvite.broadcast_id == broadcast_id),
    )).scalar_one()

    if remaining == 0 and broadcast is not None:
        group_ids = distinct_group_ids(
            broadcast.recipient_group_ids, live_group_ids,
        )
        db.add(_build_broadcast_tombstone(broadcast, group_ids, now))
        await db.execute(delete(Broadcast).where(Broadcast.id == broadcast_id))
        logger.info("Broadcast retired after its last invite was removed")
    return True


def _build_broadcast_tombstone(
    broadcast: Broadcast, group_ids: list[str], now: datetime,
) -> BroadcastTombstone:
    return BroadcastTombstone(
        original_broadcast_id=broadcast.id,
        region=broadcast.region,
        categories=list(broadcast.categories),
        group_ids=group_ids,
        created_at=broadcast.created_at,
        deleted_at=now,
    )


# ─── Mailbox side ────────────────────────────────────────────────

async def _retire_mailbox(
    db: AsyncSession,
    mailbox_id: UUID,
    deletion_type: DeletionType,
    now: datetime,
    inactive_before: datetime | None,
) -> bool:
    query = select(Mailbox).where(
        Mailbox.id == mailbox_id, Mailbox.deleted_at.is_(None),
    )
    if inactive_before is not None:
        query = query.where(Mailbox.last_accessed_at < inactive_before)
    mailbox = (await db.execute(query.with_for_update())).scalar_one_or_none()
    if mailbox is None:
        return False

    replying_group_ids = (await db.execute(
        select(MailboxMessage.group_id)
        .where(MailboxMessage.mailbox_id == mailbox_id)
        .order_by(MailboxMessage.created_at),
    )).scalars().all()
    tombstone = MailboxTombstone(
        original_mailbox_id=mailbox.id,
        help_category=mailbox.help_category,
        region=mailbox.region,
        had_responses=len(replying_group_ids) > 0,
        responding_group_ids=distinct_group_ids(replying_group_ids),
        deletion_type=deletion_type.value,
        created_at=mailbox.created_at,
        deleted_at=now,
    )

    # Messages first: they hold the foreign key
    await db.execute(
        delete(MailboxMessage).where(MailboxMessage.mailbox_id == mailbox_id),
    )
    deleted = await db.execute(delete(Mailbox).where(Mailbox.id == mailbox_id))
    if deleted.rowcount == 0:
        return False
    db.add(tombstone)
    return True
