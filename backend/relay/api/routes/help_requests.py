"""Help Request Routes: group coordinators browsing and answering mailboxes.

Invariants:
    - Scoped to the coordinator's service area: a mailbox elsewhere is a 404,
      never a 403 (no region enumeration)
    - Public keys are fetched one mailbox at a time, never in listings
    - Replies are ciphertext only; the server cannot read them
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, status

from relay.api.dependencies import get_coordinator_group, get_mailbox_store
from relay.core.domain_types import AidCategory, GroupId
from relay.models.group import Group
from relay.schemas.mailbox import (
    HelpRequestListResponse, MailboxTombstoneListResponse,
    PublicKeyResponse, ReplyCreate, ReplyResponse,
)
from relay.services.mailbox_store import MailboxStore

router = APIRouter(prefix="/api/v1/help-requests", tags=["help-requests"])


@router.get("", response_model=HelpRequestListResponse)
async def list_help_requests(
    category: AidCategory | None = Query(None),
    group: Group = Depends(get_coordinator_group),
    store: MailboxStore = Depends(get_mailbox_store),
):
    """Open mailboxes in the group's service area."""
    requests = await store.list_help_requests(group.service_area, category)
    return {"help_requests": requests}


@router.get("/tombstones", response_model=MailboxTombstoneListResponse)
async def list_tombstones(
    group: Group = Depends(get_coordinator_group),
    store: MailboxStore = Depends(get_mailbox_store),
):
    """Deleted mailboxes this group had replied to."""
    tombstones = await store.list_group_tombstones(
        GroupId(group.id), group.service_area,
    )
    return {"tombstones": tombstones}


@router.get("/{mailbox_id}/public-key", response_model=PublicKeyResponse)
async def get_public_key(
    mailbox_id: UUID,
    group: Group = Depends(get_coordinator_group),
    store: MailboxStore = Depends(get_mailbox_store),
):
    public_key = await store.get_public_key(mailbox_id, group.service_area)
    return {"public_key": public_key}


@router.post(
    "/{mailbox_id}/reply", response_model=ReplyResponse,
    status_code=status.HTTP_201_CREATED,
)
async def send_reply(
    mailbox_id: UUID,
    body: ReplyCreate,
    group: Group = Depends(get_coordinator_group),
    store: MailboxStore = Depends(get_mailbox_store),
):
    """Store an encrypted reply from the group."""
    message_id = await store.send_reply(
        mailbox_id, GroupId(group.id), group.service_area, body.ciphertext,
    )
    return ReplyResponse(id=message_id)
