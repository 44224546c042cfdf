"""Route Dependencies: stores bound to the request session, and the acting group.

Invariants:
    - Anonymous routes never resolve a group and never read identifying headers
    - Coordinator routes require X-Group-Id naming a verified group, else 403

Design Decisions:
    - The authentication gateway in front of Relay sets X-Group-Id after
      authenticating the coordinator; account management is not Relay's job
"""

from uuid import UUID

from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from relay.config import get_settings
from relay.core.domain_types import VerificationStatus
from relay.core.errors import GroupAccessError
from relay.infrastructure.database import get_db
from relay.models.group import Group
from relay.services.broadcast_store import BroadcastStore
from relay.services.mailbox_store import MailboxStore


async def get_mailbox_store(db: AsyncSession = Depends(get_db)) -> MailboxStore:
    return MailboxStore(db)


async def get_broadcast_store(db: AsyncSession = Depends(get_db)) -> BroadcastStore:
    return BroadcastStore(db, ttl_days=get_settings().broadcast_ttl_days)


async def get_coordinator_group(
    x_group_id: UUID | None = Header(None),
    db: AsyncSession = Depends(get_db),
) -> Group:
    """The verified group the caller coordinates."""
    if x_group_id is None:
        raise GroupAccessError()
    group = (await db.execute(
        select(Group).where(
            Group.id == x_group_id,
            Group.verification_status == VerificationStatus.VERIFIED.value,
        ),
    )).scalar_one_or_none()
    if group is None:
        raise GroupAccessError()
    return group
