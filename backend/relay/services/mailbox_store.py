"""Mailbox Store: anonymous inbox CRUD, reply ingestion and inactivity sweep.

Invariants:
    - Never stores or logs anything identifying the individual
    - "Not found" is raised identically for never-existed, deleted and
      out-of-region mailboxes (ResourceNotFoundError("Mailbox"))
    - get_mailbox refreshes last_accessed_at in the same transaction that reads it
    - Replies share-lock the mailbox row, so a concurrent delete either
      sees the reply (and removes it) or the reply sees no mailbox
    - Deletion always goes through cascade.retire_mailbox (one tombstone each)

Design Decisions:
    - Injectable clock: tests can age mailboxes without touching the DB rows
    - Returns plain dicts shaped like the response schemas; routes stay thin
"""

import logging
from datetime import datetime
from typing import NamedTuple
from uuid import UUID, uuid4

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from relay.core.clock import Clock, utc_now
from relay.core.domain_types import (
    AidCategory, DeletionType, MailboxId, MessageId, GroupId,
    PUBLIC_KEY_BYTES, MIN_REPLY_CIPHERTEXT_BYTES,
)
from relay.core.errors import RelayValidationError, ResourceNotFoundError
from relay.core.retention import inactivity_cutoff
from relay.models.group import Group
from relay.models.mailbox import Mailbox
from relay.models.mailbox_message import MailboxMessage
from relay.models.mailbox_tombstone import MailboxTombstone
from relay.services.cascade import retire_mailbox

logger = logging.getLogger(__name__)

_NOT_FOUND = "Mailbox"


class InactivitySweep(NamedTuple):
    deleted: int
    failed: int


class MailboxStore:
    """Mailbox persistence for anonymous owners and replying groups."""

    def __init__(self, db: AsyncSession, clock: Clock = utc_now):
        self.db = db
        self._clock = clock

    # ─── Owner operations (anonymous) ─────────────────────────────

    async def create_mailbox(
        self, public_key: bytes, category: AidCategory, region: str,
    ) -> MailboxId:
        """Insert a mailbox and return its random id."""
        if len(public_key) != PUBLIC_KEY_BYTES:
            raise RelayValidationError(
                f"Public key must be {PUBLIC_KEY_BYTES} bytes", "publicKey",
            )
        now = self._clock()
        mailbox = Mailbox(
            id=uuid4(),
            public_key=public_key,
            help_category=AidCategory(category).value,
            region=region,
            created_at=now,
            last_accessed_at=now,
        )
        self.db.add(mailbox)
        await self.db.commit()
        return MailboxId(mailbox.id)

    async def get_mailbox(self, mailbox_id: UUID) -> dict:
        """Return the mailbox with all replies, refreshing last_accessed_at."""
        touched = await self.db.execute(
            update(Mailbox)
            .where(Mailbox.id == mailbox_id, Mailbox.deleted_at.is_(None))
            .values(last_accessed_at=self._clock()),
        )
        if touched.rowcount == 0:
            await self.db.rollback()
            raise ResourceNotFoundError(_NOT_FOUND)

        mailbox = (await self.db.execute(
            select(
                Mailbox.id, Mailbox.help_category,
                Mailbox.region, Mailbox.created_at,
            ).where(Mailbox.id == mailbox_id),
        )).one()
        messages = (await self.db.execute(
            select(
                MailboxMessage.id, MailboxMessage.group_id, Group.name,
                MailboxMessage.ciphertext, MailboxMessage.created_at,
            )
            .join(Group, Group.id == MailboxMessage.group_id)
            .where(MailboxMessage.mailbox_id == mailbox_id)
            .order_by(MailboxMessage.created_at, MailboxMessage.id),
        )).all()
        await self.db.commit()

        return {
            "id": mailbox.id,
            "help_category": mailbox.help_category,
            "region": mailbox.region,
            "created_at": mailbox.created_at,
            "messages": [
                {
                    "id": m.id,
                    "group_id": m.group_id,
                    "group_name": m.name,
                    "ciphertext": m.ciphertext,
                    "created_at": m.created_at,
                }
                for m in messages
            ],
        }

    async def get_mailbox_by_public_key(self, public_key: bytes) -> MailboxId:
        """Find the owner's newest live mailbox from its public key (new-device recovery)."""
        mailbox_id = (await self.db.execute(
            select(Mailbox.id)
            .where(Mailbox.public_key == public_key, Mailbox.deleted_at.is_(None))
            .order_by(Mailbox.created_at.desc())
            .limit(1),
        )).scalar_one_or_none()
        if mailbox_id is None:
            raise ResourceNotFoundError(_NOT_FOUND)
        return MailboxId(mailbox_id)

    async def delete_mailbox(self, mailbox_id: UUID) -> bool:
        """Manual, irreversible delete. False if the mailbox is already gone."""
        return await retire_mailbox(
            self.db, mailbox_id, DeletionType.MANUAL, self._clock(),
        )

    # ─── Group operations ─────────────────────────────────────────

    async def list_help_requests(
        self, region: str, category: AidCategory | None = None,
    ) -> list[dict]:
        """Open mailboxes in a region, oldest first. No key material."""
        query = select(
            Mailbox.id, Mailbox.help_category, Mailbox.region, Mailbox.created_at,
        ).where(Mailbox.region == region, Mailbox.deleted_at.is_(None))
        if category is not None:
            query = query.where(Mailbox.help_category == AidCategory(category).value)
        rows = (await self.db.execute(query.order_by(Mailbox.created_at))).all()
        return [
            {
                "id": r.id,
                "help_category": r.help_category,
                "region": r.region,
                "created_at": r.created_at,
            }
            for r in rows
        ]

    async def get_public_key(self, mailbox_id: UUID, group_region: str) -> bytes:
        """Public key for encrypting a reply; only inside the group's region."""
        row = (await self.db.execute(
            select(Mailbox.public_key, Mailbox.region)
            .where(Mailbox.id == mailbox_id, Mailbox.deleted_at.is_(None)),
        )).one_or_none()
        if row is None or row.region != group_region:
            raise ResourceNotFoundError(_NOT_FOUND)
        return row.public_key

    async def send_reply(
        self,
        mailbox_id: UUID,
        group_id: GroupId,
        group_region: str,
        ciphertext: bytes,
    ) -> MessageId:
        """Store an encrypted reply. Out-of-region replies look like a missing mailbox."""
        if len(ciphertext) < MIN_REPLY_CIPHERTEXT_BYTES:
            raise RelayValidationError(
                f"Ciphertext must be at least {MIN_REPLY_CIPHERTEXT_BYTES} bytes",
                "ciphertext",
            )
        region = (await self.db.execute(
            select(Mailbox.region)
            .where(Mailbox.id == mailbox_id, Mailbox.deleted_at.is_(None))
            .with_for_update(read=True),
        )).scalar_one_or_none()
        if region is None or region != group_region:
            await self.db.rollback()
            raise ResourceNotFoundError(_NOT_FOUND)

        message = MailboxMessage(
            id=uuid4(),
            mailbox_id=mailbox_id,
            group_id=group_id,
            ciphertext=ciphertext,
            created_at=self._clock(),
        )
        self.db.add(message)
        await self.db.commit()
        return MessageId(message.id)

    async def list_group_tombstones(
        self, group_id: GroupId, group_region: str,
    ) -> list[dict]:
        """Tombstones of mailboxes this group replied to, oldest deletion first."""
        # Replies are region-bound, so every relevant tombstone is in the group's region
        rows = (await self.db.execute(
            select(MailboxTombstone)
            .where(MailboxTombstone.region == group_region)
            .order_by(MailboxTombstone.deleted_at),
        )).scalars().all()
        needle = str(group_id)
        return [
            {
                "help_category": t.help_category,
                "region": t.region,
                "deleted_at": t.deleted_at,
                "deletion_type": t.deletion_type,
            }
            for t in rows
            if needle in (t.responding_group_ids or [])
        ]

    # ─── Sweeper ──────────────────────────────────────────────────

    async def find_inactive_mailbox_ids(self, cutoff: datetime) -> list[UUID]:
        """Candidates for the inactivity sweep (re-checked per row on delete)."""
        return list((await self.db.execute(
            select(Mailbox.id)
            .where(Mailbox.deleted_at.is_(None), Mailbox.last_accessed_at < cutoff)
            .order_by(Mailbox.last_accessed_at),
        )).scalars().all())

    async def delete_inactive_mailboxes(self, threshold_days: int = 30) -> int:
        """Retire every mailbox idle for longer than threshold_days. Returns the count."""
        return (await self.sweep_inactive_mailboxes(threshold_days)).deleted

    async def sweep_inactive_mailboxes(self, threshold_days: int = 30) -> InactivitySweep:
        """Inactivity sweep with per-mailbox failure isolation.

        A mailbox whose retirement raises is logged and counted as failed;
        the rest of the sweep continues and the next sweep retries it.
        """
        now = self._clock()
        cutoff = inactivity_cutoff(now, threshold_days)
        deleted = failed = 0
        for mailbox_id in await self.find_inactive_mailbox_ids(cutoff):
            try:
                if await retire_mailbox(
                    self.db, mailbox_id, DeletionType.AUTO_INACTIVITY, now,
                    inactive_before=cutoff,
                ):
                    deleted += 1
            except Exception:
                failed += 1
                logger.warning("Inactive mailbox not retired; will retry", exc_info=True)
        if deleted:
            logger.info(
                "Inactive mailboxes deleted",
                extra={"inactive_count": deleted},
            )
        return InactivitySweep(deleted, failed)
