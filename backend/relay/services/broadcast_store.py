"""Broadcast/Invite Store: atomic broadcast fan-out and invite state transitions.

Invariants:
    - create_broadcast writes the broadcast and every invite in one
      transaction; a partial invite set is never observable
    - Only existing, verified groups can be invited, each at most once
    - mark_invite_decrypted only succeeds from pending (countdown starts once)
    - An invite past expires_at is unreachable even before the sweeper removes it
    - Invite deletion always goes through cascade.retire_invite
    - Ciphertext reads never mutate state

Design Decisions:
    - recipient_group_ids copied onto the broadcast at creation: the tombstone
      must name groups whose invites were retired long before the last one
    - Group scoping (group_id arguments) is optional so the scheduler can
      reuse the same operations without an acting group
"""

import logging
from datetime import datetime
from typing import NamedTuple
from uuid import UUID, uuid4

from sqlalchemy import select, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from relay.core.clock import Clock, utc_now
from relay.core.domain_types import (
    BroadcastCategory, BroadcastId, GroupId, InviteStatus, VerificationStatus,
)
from relay.core.errors import RelayValidationError, ResourceNotFoundError
from relay.core.retention import broadcast_expiry
from relay.models.broadcast import Broadcast
from relay.models.broadcast_invite import BroadcastInvite
from relay.models.group import Group
from relay.services.cascade import retire_invite

logger = logging.getLogger(__name__)


class InviteGrant(NamedTuple):
    """A recipient group and the content key wrapped for it."""
    group_id: GroupId
    wrapped_key: bytes


class BroadcastStore:
    """Broadcast persistence for anonymous senders and invited groups."""

    def __init__(
        self, db: AsyncSession, clock: Clock = utc_now, ttl_days: int = 7,
    ):
        self.db = db
        self._clock = clock
        self._ttl_days = ttl_days

    async def create_broadcast(
        self,
        ciphertext: bytes,
        nonce: bytes,
        region: str,
        categories: list[BroadcastCategory],
        invites: list[InviteGrant],
    ) -> BroadcastId:
        """Insert a broadcast and one invite per recipient group, all-or-nothing."""
        if not categories:
            raise RelayValidationError("At least one category is required", "categories")
        if not invites:
            raise RelayValidationError("At least one invite is required", "invites")
        group_ids = [invite.group_id for invite in invites]
        if len(set(group_ids)) != len(group_ids):
            raise RelayValidationError("Each group may be invited only once", "invites")
        await self._check_groups_invitable(group_ids)

        now = self._clock()
        expires_at = broadcast_expiry(now, self._ttl_days)
        broadcast = Broadcast(
            id=uuid4(),
            ciphertext_payload=ciphertext,
            nonce=nonce,
            region=region,
            categories=[BroadcastCategory(c).value for c in categories],
            recipient_group_ids=[str(g) for g in group_ids],
            created_at=now,
            expires_at=expires_at,
        )
        try:
            self.db.add(broadcast)
            # Parent row first: invites reference it
            await self.db.flush()
            self.db.add_all([
                BroadcastInvite(
                    id=uuid4(),
                    broadcast_id=broadcast.id,
                    group_id=invite.group_id,
                    wrapped_key=invite.wrapped_key,
                    status=InviteStatus.PENDING.value,
                    expires_at=expires_at,
                    created_at=now,
                )
                for invite in invites
            ])
            await self.db.commit()
        except Exception:
            await self.db.rollback()
            raise
        return BroadcastId(broadcast.id)

    async def _check_groups_invitable(self, group_ids: list[GroupId]) -> None:
        found = (await self.db.execute(
            select(func.count())
            .select_from(Group)
            .where(
                Group.id.in_(group_ids),
                Group.verification_status == VerificationStatus.VERIFIED.value,
            ),
        )).scalar_one()
        if found != len(group_ids):
            raise RelayValidationError(
                "Invites must target existing, verified groups", "invites",
            )

    async def get_invites_for_group(self, group_id: GroupId) -> list[dict]:
        """Pending invites for a group with routing metadata, oldest first."""
        rows = (await self.db.execute(
            select(BroadcastInvite, Broadcast.region, Broadcast.categories)
            .join(Broadcast, Broadcast.id == BroadcastInvite.broadcast_id)
            .where(
                BroadcastInvite.group_id == group_id,
                BroadcastInvite.status == InviteStatus.PENDING.value,
                BroadcastInvite.expires_at >= self._clock(),
            )
            .order_by(BroadcastInvite.created_at, BroadcastInvite.id),
        )).all()
        return [
            _invite_dict(invite, region, categories)
            for invite, region, categories in rows
        ]

    async def get_invite_for_group(
        self, invite_id: UUID, group_id: GroupId,
    ) -> dict:
        """An invite of this group that can still be opened (pending or decrypted)."""
        row = (await self.db.execute(
            select(BroadcastInvite, Broadcast.region, Broadcast.categories)
            .join(Broadcast, Broadcast.id == BroadcastInvite.broadcast_id)
            .where(
                BroadcastInvite.id == invite_id,
                BroadcastInvite.group_id == group_id,
                BroadcastInvite.status.in_([
                    InviteStatus.PENDING.value, InviteStatus.DECRYPTED.value,
                ]),
                BroadcastInvite.expires_at >= self._clock(),
            ),
        )).one_or_none()
        if row is None:
            raise ResourceNotFoundError("Invite")
        invite, region, categories = row
        return _invite_dict(invite, region, categories)

    async def get_ciphertext_for_broadcast(self, broadcast_id: UUID) -> dict:
        """Ciphertext and nonce, byte-for-byte as stored. Read-only."""
        row = (await self.db.execute(
            select(Broadcast.ciphertext_payload, Broadcast.nonce)
            .where(Broadcast.id == broadcast_id, Broadcast.deleted_at.is_(None)),
        )).one_or_none()
        if row is None:
            raise ResourceNotFoundError("Broadcast")
        return {"ciphertext_payload": row.ciphertext_payload, "nonce": row.nonce}

    async def mark_invite_decrypted(
        self, invite_id: UUID, group_id: GroupId | None = None,
    ) -> bool:
        """pending -> decrypted with decrypted_at=now. False if the guard fails."""
        now = self._clock()
        # Expiry compared in SQL; it only moves forward, so a separate check is safe
        unexpired = (await self.db.execute(
            select(BroadcastInvite.id).where(
                BroadcastInvite.id == invite_id, BroadcastInvite.expires_at >= now,
            ),
        )).scalar_one_or_none()
        if unexpired is None:
            return False

        query = update(BroadcastInvite).where(
            BroadcastInvite.id == invite_id,
            BroadcastInvite.status == InviteStatus.PENDING.value,
        )
        if group_id is not None:
            query = query.where(BroadcastInvite.group_id == group_id)
        result = await self.db.execute(
            query.values(
                status=InviteStatus.DECRYPTED.value,
                decrypted_at=now,
            ),
        )
        await self.db.commit()
        return result.rowcount == 1

    async def delete_invite(
        self, invite_id: UUID, group_id: GroupId | None = None,
    ) -> bool:
        """Hard-delete an invite, cascading to the broadcast if it was the last."""
        if group_id is not None:
            owned = (await self.db.execute(
                select(BroadcastInvite.id).where(
                    BroadcastInvite.id == invite_id,
                    BroadcastInvite.group_id == group_id,
                ),
            )).scalar_one_or_none()
            if owned is None:
                await self.db.rollback()
                return False
        return await retire_invite(self.db, invite_id, self._clock())

    # ─── Sweeper queries ──────────────────────────────────────────

    async def find_invites_decrypted_before(self, cutoff: datetime) -> list[UUID]:
        """Decrypted invites whose grace window has run out."""
        return list((await self.db.execute(
            select(BroadcastInvite.id).where(
                BroadcastInvite.status == InviteStatus.DECRYPTED.value,
                BroadcastInvite.decrypted_at.is_not(None),
                BroadcastInvite.decrypted_at < cutoff,
            ),
        )).scalars().all())

    async def find_expired_invites(self, now: datetime) -> list[UUID]:
        """Invites in any state past their absolute expiry."""
        return list((await self.db.execute(
            select(BroadcastInvite.id).where(BroadcastInvite.expires_at < now),
        )).scalars().all())


def _invite_dict(invite: BroadcastInvite, region: str, categories: list) -> dict:
    return {
        "invite_id": invite.id,
        "broadcast_id": invite.broadcast_id,
        "wrapped_key": invite.wrapped_key,
        "region": region,
        "categories": categories,
        "status": invite.status,
        "created_at": invite.created_at,
        "expires_at": invite.expires_at,
    }
