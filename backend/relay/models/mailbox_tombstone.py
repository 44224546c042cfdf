"""MailboxTombstone ORM: aggregate-only record left behind by a deleted mailbox.

Invariants:
    - original_mailbox_id is NOT a foreign key (the mailbox row is gone)
    - Created exactly once per mailbox, at deletion time
    - responding_group_ids is a distinct list; no sender identity anywhere

Design Decisions:
    - JSON list of group ids instead of a PostgreSQL array: same model runs on SQLite
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from relay.db.base import Base


class MailboxTombstone(Base):
    __tablename__ = "mailbox_tombstones"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    original_mailbox_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), nullable=False, unique=True,
    )
    help_category: Mapped[str] = mapped_column(String(20), nullable=False)
    region: Mapped[str] = mapped_column(
        String(255), nullable=False, index=True,
    )
    had_responses: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False,
    )
    responding_group_ids: Mapped[list] = mapped_column(
        JSON, nullable=False, default=list,
    )
    deletion_type: Mapped[str] = mapped_column(String(20), nullable=False)
    # Original mailbox creation time
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
    )
    deleted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
