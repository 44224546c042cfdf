"""Group ORM: read-only view of the verified organizations that receive requests.

Invariants:
    - Rows are owned by the group directory service; Relay never writes them
      outside tests and seed scripts
    - service_area is compared verbatim with mailbox/broadcast regions

Design Decisions:
    - Mapped here only for the joins Relay needs (reply display names,
      coordinator lookup, invite target validation)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import UUID

from relay.db.base import Base


class Group(Base):
    """Verified organization that can reply to mailboxes and receive broadcasts."""
    __tablename__ = "groups"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    service_area: Mapped[str] = mapped_column(String(255), nullable=False)
    verification_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default="pending",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
