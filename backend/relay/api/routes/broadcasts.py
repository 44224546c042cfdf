"""Broadcast Routes: anonymous one-shot encrypted broadcast submission.

Invariants:
    - No authentication, no cookies, no logging of addresses or payloads
    - General anonymous limiter plus the broadcast-creation limiter
    - Bot-filtered submissions get 201 with a decoy id and persist nothing;
      the response is indistinguishable in shape from a real one
"""

from fastapi import APIRouter, Depends, status

from relay.api.dependencies import get_broadcast_store
from relay.api.rate_limit import anonymous_rate_limit, broadcast_creation_rate_limit
from relay.config import get_settings
from relay.core.bot_filter import decoy_broadcast_id, is_bot_submission
from relay.core.domain_types import GroupId
from relay.schemas.broadcast import BroadcastCreate, BroadcastCreatedResponse
from relay.services.broadcast_store import BroadcastStore, InviteGrant

router = APIRouter(
    prefix="/api/v1/broadcasts",
    tags=["broadcasts"],
    dependencies=[Depends(anonymous_rate_limit)],
)


@router.post(
    "", response_model=BroadcastCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(broadcast_creation_rate_limit)],
)
async def create_broadcast(
    body: BroadcastCreate, store: BroadcastStore = Depends(get_broadcast_store),
):
    """Create a broadcast with one wrapped-key invite per recipient group."""
    if is_bot_submission(
        body.honeypot, body.elapsed, get_settings().bot_min_elapsed_ms,
    ):
        return BroadcastCreatedResponse(broadcast_id=decoy_broadcast_id())

    broadcast_id = await store.create_broadcast(
        ciphertext=body.ciphertext_payload,
        nonce=body.nonce,
        region=body.region,
        categories=body.categories,
        invites=[
            InviteGrant(GroupId(invite.group_id), invite.wrapped_key)
            for invite in body.invites
        ],
    )
    return BroadcastCreatedResponse(broadcast_id=broadcast_id)
