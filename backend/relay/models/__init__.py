"""ORM Models: SQLAlchemy declarative models for all Relay entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - No model stores sender-identifying data
    - No ORM relationships or ON DELETE CASCADE: child rows are removed
      explicitly by services/cascade.py so tombstones are written first

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
"""

from relay.models.group import Group  # noqa: F401
from relay.models.mailbox import Mailbox  # noqa: F401
from relay.models.mailbox_message import MailboxMessage  # noqa: F401
from relay.models.mailbox_tombstone import MailboxTombstone  # noqa: F401
from relay.models.broadcast import Broadcast  # noqa: F401
from relay.models.broadcast_invite import BroadcastInvite  # noqa: F401
from relay.models.broadcast_tombstone import BroadcastTombstone  # noqa: F401
