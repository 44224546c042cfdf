"""Broadcast Schemas: anonymous broadcast submission and group invite contracts.

Invariants:
    - At least one category and one invite; each group invited at most once
    - ciphertextPayload, nonce and every wrappedKey are strict base64
    - honeypot and elapsed are accepted so the bot filter can run after
      validation, never rejected on their own

Design Decisions:
    - Categories de-duplicated here, order preserved: routing metadata only
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_serializer, field_validator, model_validator

from relay.core.domain_types import BroadcastCategory, InviteStatus, REGION_MAX_LENGTH
from relay.schemas.common import CamelModel, decode_base64, encode_base64

MAX_BROADCAST_PAYLOAD_BYTES = 48 * 1024
MAX_NONCE_BYTES = 64
MAX_WRAPPED_KEY_BYTES = 1024
MAX_INVITES = 200


class InviteCreate(CamelModel):
    """One recipient group and its individually wrapped content key."""
    group_id: UUID
    wrapped_key: bytes

    @field_validator("wrapped_key", mode="before")
    @classmethod
    def decode_wrapped_key(cls, v: object) -> bytes:
        return decode_base64(v, max_bytes=MAX_WRAPPED_KEY_BYTES)


class BroadcastCreate(CamelModel):
    ciphertext_payload: bytes
    nonce: bytes
    region: str = Field(min_length=1, max_length=REGION_MAX_LENGTH)
    categories: list[BroadcastCategory] = Field(min_length=1)
    invites: list[InviteCreate] = Field(min_length=1, max_length=MAX_INVITES)
    # Bot protection: decoy field and form fill time in milliseconds
    honeypot: str | None = None
    elapsed: float | None = None

    @field_validator("ciphertext_payload", mode="before")
    @classmethod
    def decode_payload(cls, v: object) -> bytes:
        return decode_base64(v, max_bytes=MAX_BROADCAST_PAYLOAD_BYTES)

    @field_validator("nonce", mode="before")
    @classmethod
    def decode_nonce(cls, v: object) -> bytes:
        return decode_base64(v, max_bytes=MAX_NONCE_BYTES)

    @field_validator("region")
    @classmethod
    def strip_region(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("region cannot be empty or whitespace")
        return v

    @field_validator("categories")
    @classmethod
    def dedupe_categories(cls, v: list[BroadcastCategory]) -> list[BroadcastCategory]:
        return list(dict.fromkeys(v))

    @model_validator(mode="after")
    def validate_unique_groups(self):
        group_ids = [invite.group_id for invite in self.invites]
        if len(set(group_ids)) != len(group_ids):
            raise ValueError("each group may be invited only once")
        return self


class BroadcastCreatedResponse(CamelModel):
    broadcast_id: UUID


class InviteResponse(CamelModel):
    """Pending invite joined with its broadcast's routing metadata."""
    invite_id: UUID
    broadcast_id: UUID
    wrapped_key: bytes
    region: str
    categories: list[BroadcastCategory]
    status: InviteStatus
    created_at: datetime
    expires_at: datetime

    @field_serializer("wrapped_key")
    def serialize_wrapped_key(self, v: bytes) -> str:
        return encode_base64(v)


class InviteListResponse(CamelModel):
    invites: list[InviteResponse]


class CiphertextResponse(CamelModel):
    ciphertext_payload: bytes
    nonce: bytes

    @field_serializer("ciphertext_payload", "nonce")
    def serialize_binary(self, v: bytes) -> str:
        return encode_base64(v)


class DecryptResponse(CamelModel):
    success: bool
