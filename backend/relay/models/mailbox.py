"""Mailbox ORM: anonymous, persistent inbox opened by an individual.

Invariants:
    - id is a random UUID4 (never sequential: resists enumeration)
    - public_key is exactly 32 bytes; the only key material stored
    - last_accessed_at refreshed on every owner read; drives the inactivity sweep
    - No column holds sender-identifying data

Design Decisions:
    - deleted_at/deletion_type kept for schema parity; rows are hard-deleted,
      so live queries still filter deleted_at IS NULL
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, LargeBinary, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from relay.db.base import Base


class Mailbox(Base):
    """Anonymous inbox that verified groups can reply into."""
    __tablename__ = "mailboxes"
    __table_args__ = (
        Index("mailboxes_region_idx", "region"),
        Index("mailboxes_help_category_idx", "help_category"),
        Index("mailboxes_last_accessed_at_idx", "last_accessed_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    public_key: Mapped[bytes] = mapped_column(LargeBinary, nullable=False)
    help_category: Mapped[str] = mapped_column(String(20), nullable=False)
    region: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    last_accessed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True,
    )
    deletion_type: Mapped[str | None] = mapped_column(
        String(20), nullable=True,
    )
