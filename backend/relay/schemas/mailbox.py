"""Mailbox Schemas: anonymous mailbox and group-reply contracts.

Invariants:
    - MailboxCreate.public_key decodes to exactly 32 bytes (NaCl box key)
    - ReplyCreate.ciphertext decodes to at least 40 bytes (nonce + auth tag)
    - region: 1-255 chars after stripping
    - HelpRequestResponse never carries the public key (fetched separately,
      need-to-know)
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_serializer, field_validator

from relay.core.domain_types import (
    AidCategory, DeletionType,
    PUBLIC_KEY_BYTES, MIN_REPLY_CIPHERTEXT_BYTES, REGION_MAX_LENGTH,
)
from relay.schemas.common import CamelModel, decode_base64, encode_base64

MAX_REPLY_CIPHERTEXT_BYTES = 16 * 1024


class MailboxCreate(CamelModel):
    """Anonymous mailbox creation."""
    public_key: bytes
    help_category: AidCategory
    region: str = Field(min_length=1, max_length=REGION_MAX_LENGTH)

    @field_validator("public_key", mode="before")
    @classmethod
    def decode_public_key(cls, v: object) -> bytes:
        return decode_base64(v, exact_bytes=PUBLIC_KEY_BYTES)

    @field_validator("region")
    @classmethod
    def strip_region(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("region cannot be empty or whitespace")
        return v


class MailboxIdResponse(CamelModel):
    id: UUID


class MailboxMessageResponse(CamelModel):
    id: UUID
    group_id: UUID
    group_name: str
    ciphertext: bytes
    created_at: datetime

    @field_serializer("ciphertext")
    def serialize_ciphertext(self, v: bytes) -> str:
        return encode_base64(v)


class MailboxResponse(CamelModel):
    """Owner view: metadata plus every reply, oldest first."""
    id: UUID
    help_category: AidCategory
    region: str
    created_at: datetime
    messages: list[MailboxMessageResponse]


class ReplyCreate(CamelModel):
    """Group reply, encrypted client-side to the mailbox public key."""
    ciphertext: bytes

    @field_validator("ciphertext", mode="before")
    @classmethod
    def decode_ciphertext(cls, v: object) -> bytes:
        return decode_base64(
            v,
            min_bytes=MIN_REPLY_CIPHERTEXT_BYTES,
            max_bytes=MAX_REPLY_CIPHERTEXT_BYTES,
        )


class ReplyResponse(CamelModel):
    id: UUID


class HelpRequestResponse(CamelModel):
    id: UUID
    help_category: AidCategory
    region: str
    created_at: datetime


class HelpRequestListResponse(CamelModel):
    help_requests: list[HelpRequestResponse]


class PublicKeyResponse(CamelModel):
    public_key: bytes

    @field_serializer("public_key")
    def serialize_public_key(self, v: bytes) -> str:
        return encode_base64(v)


class MailboxTombstoneResponse(CamelModel):
    help_category: AidCategory
    region: str
    deleted_at: datetime
    deletion_type: DeletionType


class MailboxTombstoneListResponse(CamelModel):
    tombstones: list[MailboxTombstoneResponse]
