"""Mailbox Routes: anonymous mailbox lifecycle for the individual who opened it.

Invariants:
    - No authentication, no cookies, no logging of ids, addresses or payloads
    - General anonymous limiter on every route; creation limiter on POST
    - 404 is identical for never-existed and already-deleted mailboxes
    - DELETE is irreversible: tombstone written, messages and key destroyed
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status

from relay.api.dependencies import get_mailbox_store
from relay.api.rate_limit import anonymous_rate_limit, mailbox_creation_rate_limit
from relay.core.domain_types import PUBLIC_KEY_BYTES
from relay.core.errors import RelayValidationError, ResourceNotFoundError
from relay.schemas.common import decode_base64
from relay.schemas.mailbox import MailboxCreate, MailboxIdResponse, MailboxResponse
from relay.services.mailbox_store import MailboxStore

router = APIRouter(
    prefix="/api/v1/mailbox",
    tags=["mailbox"],
    dependencies=[Depends(anonymous_rate_limit)],
)


@router.post(
    "", response_model=MailboxIdResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(mailbox_creation_rate_limit)],
)
async def create_mailbox(
    body: MailboxCreate, store: MailboxStore = Depends(get_mailbox_store),
):
    """Open an anonymous mailbox. Returns only its random id."""
    mailbox_id = await store.create_mailbox(
        body.public_key, body.help_category, body.region,
    )
    return MailboxIdResponse(id=mailbox_id)


@router.get("/lookup", response_model=MailboxIdResponse)
async def lookup_mailbox(
    public_key: str = Query(alias="publicKey"),
    store: MailboxStore = Depends(get_mailbox_store),
):
    """Recover a mailbox id from its public key (owner on a new device)."""
    try:
        key = decode_base64(public_key, exact_bytes=PUBLIC_KEY_BYTES)
    except ValueError as e:
        raise RelayValidationError(f"publicKey {e}", "publicKey")
    mailbox_id = await store.get_mailbox_by_public_key(key)
    return MailboxIdResponse(id=mailbox_id)


@router.get("/{mailbox_id}", response_model=MailboxResponse)
async def get_mailbox(
    mailbox_id: UUID, store: MailboxStore = Depends(get_mailbox_store),
):
    """Mailbox metadata and encrypted replies. Refreshes last access."""
    return await store.get_mailbox(mailbox_id)


@router.delete("/{mailbox_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_mailbox(
    mailbox_id: UUID, store: MailboxStore = Depends(get_mailbox_store),
):
    if not await store.delete_mailbox(mailbox_id):
        raise ResourceNotFoundError("Mailbox")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
