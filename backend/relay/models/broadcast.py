"""Broadcast ORM: one-shot encrypted message fanned out to several groups.

Invariants:
    - ciphertext_payload and nonce are opaque; the content key only exists
      wrapped per recipient inside BroadcastInvite rows
    - Alive iff at least one BroadcastInvite references it
    - recipient_group_ids records every group ever invited, so the tombstone
      can name them after their invites are gone
    - Default expires_at is created_at + 7 days

Design Decisions:
    - region/categories stored outside the ciphertext: routing metadata only
    - JSON lists for categories and recipients (portable across PostgreSQL/SQLite)
"""

import uuid
from datetime import datetime, timedelta, timezone

from sqlalchemy import String, DateTime, LargeBinary, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from relay.db.base import Base


class Broadcast(Base):
    """Encrypted broadcast payload plus routing metadata."""
    __tablename__ = "broadcasts"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    ciphertext_payload: Mapped[bytes] = mapped_column(
        LargeBinary, nullable=False,
    )
    nonce: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    region: Mapped[str] = mapped_column(String(255), nullable=False)
    categories: Mapped[list] = mapped_column(JSON, nullable=False)
    recipient_group_ids: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        index=True,
        default=lambda: datetime.now(timezone.utc) + timedelta(days=7),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
