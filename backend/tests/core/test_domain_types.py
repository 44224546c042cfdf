"""Domain Types: verifies enum values match the stored and wire strings.

Tests:
    - NewType wrappers are callable over UUIDs
    - Aid and broadcast categories are the closed sets the clients send
    - Invite and deletion states serialize to their stored strings
"""

from uuid import uuid4

from relay.core.domain_types import (
    MailboxId, BroadcastId, InviteId, GroupId,
    AidCategory, BroadcastCategory, InviteStatus, DeletionType, VerificationStatus,
    PUBLIC_KEY_BYTES, MIN_REPLY_CIPHERTEXT_BYTES,
)


def test_identity_types_wrap_uuid():
    uid = uuid4()
    assert MailboxId(uid) == uid
    assert BroadcastId(uid) == uid
    assert InviteId(uid) == uid
    assert GroupId(uid) == uid


def test_aid_categories():
    assert {c.value for c in AidCategory} == {"rent", "food", "utilities", "other"}


def test_broadcast_categories():
    assert {c.value for c in BroadcastCategory} == {
        "food", "shelter_housing", "transportation", "medical",
        "safety_escort", "childcare", "legal", "supplies", "other",
    }


def test_state_enums_are_strings():
    assert InviteStatus.PENDING == "pending"
    assert InviteStatus("decrypted") is InviteStatus.DECRYPTED
    assert DeletionType.AUTO_INACTIVITY.value == "auto_inactivity"
    assert VerificationStatus.VERIFIED.value == "verified"


def test_nacl_size_constants():
    assert PUBLIC_KEY_BYTES == 32
    assert MIN_REPLY_CIPHERTEXT_BYTES == 40
