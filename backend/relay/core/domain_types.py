"""Domain Types: rich types that replace bare primitives across the codebase.

Invariants:
    - MailboxId, BroadcastId, InviteId, GroupId wrap UUIDs
    - All valid states encoded as Enums, no raw string matching
    - Key and ciphertext size floors are NaCl box constants

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and store in String columns without custom encoders
"""

from enum import Enum
from typing import NewType
from uuid import UUID


# ─── Identity Types ──────────────────────────────────────────────

MailboxId = NewType("MailboxId", UUID)
MessageId = NewType("MessageId", UUID)
BroadcastId = NewType("BroadcastId", UUID)
InviteId = NewType("InviteId", UUID)
GroupId = NewType("GroupId", UUID)


# ─── Size Constants ──────────────────────────────────────────────

PUBLIC_KEY_BYTES = 32           # NaCl box public key
MIN_REPLY_CIPHERTEXT_BYTES = 40  # 24-byte nonce + 16-byte auth tag
REGION_MAX_LENGTH = 255


# ─── Enums ───────────────────────────────────────────────────────

class AidCategory(str, Enum):
    """Help categories a mailbox can be opened under."""
    RENT = "rent"
    FOOD = "food"
    UTILITIES = "utilities"
    OTHER = "other"


class BroadcastCategory(str, Enum):
    """Routing categories a broadcast can target."""
    FOOD = "food"
    SHELTER_HOUSING = "shelter_housing"
    TRANSPORTATION = "transportation"
    MEDICAL = "medical"
    SAFETY_ESCORT = "safety_escort"
    CHILDCARE = "childcare"
    LEGAL = "legal"
    SUPPLIES = "supplies"
    OTHER = "other"


class InviteStatus(str, Enum):
    """Invite lifecycle. decrypted is only reachable from pending."""
    PENDING = "pending"
    DECRYPTED = "decrypted"
    EXPIRED = "expired"


class DeletionType(str, Enum):
    """How a mailbox was retired; recorded on its tombstone."""
    MANUAL = "manual"
    AUTO_INACTIVITY = "auto_inactivity"


class VerificationStatus(str, Enum):
    """Group verification states (owned by the group directory)."""
    PENDING = "pending"
    VERIFIED = "verified"
    REVOKED = "revoked"
