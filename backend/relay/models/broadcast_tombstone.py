"""BroadcastTombstone ORM: aggregate-only record left when a broadcast's last invite goes.

Invariants:
    - original_broadcast_id is NOT a foreign key; unique, so a second
      tombstone for the same broadcast is a constraint violation
    - group_ids is the union of every group that ever held an invite
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from relay.db.base import Base


class BroadcastTombstone(Base):
    __tablename__ = "broadcast_tombstones"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    original_broadcast_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, unique=True,
    )
    region: Mapped[str] = mapped_column(String(255), nullable=False)
    categories: Mapped[list] = mapped_column(JSON, nullable=False)
    group_ids: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    # Original broadcast creation time
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    deleted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
