"""Invite Routes: group coordinators receiving, opening and retiring broadcasts.

Invariants:
    - Every operation is scoped to the coordinator's own group
    - An invite mid-deletion may list and then 404 on fetch; that is the
      normal not-found path
    - decrypt starts the grace window once (pending -> decrypted only)
    - DELETE runs the cascade protocol: the last invite takes the broadcast with it
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Response, status

from relay.api.dependencies import get_broadcast_store, get_coordinator_group
from relay.core.domain_types import GroupId
from relay.core.errors import ResourceNotFoundError
from relay.models.group import Group
from relay.schemas.broadcast import CiphertextResponse, DecryptResponse, InviteListResponse
from relay.services.broadcast_store import BroadcastStore

router = APIRouter(prefix="/api/v1/invites", tags=["invites"])


@router.get("", response_model=InviteListResponse)
async def list_invites(
    group: Group = Depends(get_coordinator_group),
    store: BroadcastStore = Depends(get_broadcast_store),
):
    """Pending invites for the group, oldest first."""
    return {"invites": await store.get_invites_for_group(GroupId(group.id))}


@router.get("/{invite_id}/ciphertext", response_model=CiphertextResponse)
async def get_invite_ciphertext(
    invite_id: UUID,
    group: Group = Depends(get_coordinator_group),
    store: BroadcastStore = Depends(get_broadcast_store),
):
    """Broadcast ciphertext and nonce for an invite the group holds."""
    invite = await store.get_invite_for_group(invite_id, GroupId(group.id))
    return await store.get_ciphertext_for_broadcast(invite["broadcast_id"])


@router.post("/{invite_id}/decrypt", response_model=DecryptResponse)
async def mark_decrypted(
    invite_id: UUID,
    group: Group = Depends(get_coordinator_group),
    store: BroadcastStore = Depends(get_broadcast_store),
):
    """Record that the group opened the invite; the auto-delete countdown starts."""
    if not await store.mark_invite_decrypted(invite_id, GroupId(group.id)):
        raise ResourceNotFoundError("Invite")
    return DecryptResponse(success=True)


@router.delete("/{invite_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_invite(
    invite_id: UUID,
    group: Group = Depends(get_coordinator_group),
    store: BroadcastStore = Depends(get_broadcast_store),
):
    if not await store.delete_invite(invite_id, GroupId(group.id)):
        raise ResourceNotFoundError("Invite")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
