"""Initial schema: groups, mailboxes, messages, broadcasts, invites, tombstones.

Revision ID: 001_initial
Revises: None
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID

revision: str = "001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "groups",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("service_area", sa.String(255), nullable=False),
        sa.Column("verification_status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )

    op.create_table(
        "mailboxes",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("public_key", sa.LargeBinary, nullable=False),
        sa.Column("help_category", sa.String(20), nullable=False),
        sa.Column("region", sa.String(255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deletion_type", sa.String(20), nullable=True),
    )
    op.create_index("mailboxes_region_idx", "mailboxes", ["region"])
    op.create_index("mailboxes_help_category_idx", "mailboxes", ["help_category"])
    op.create_index("mailboxes_last_accessed_at_idx", "mailboxes", ["last_accessed_at"])

    op.create_table(
        "mailbox_messages",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("mailbox_id", UUID(as_uuid=True), sa.ForeignKey("mailboxes.id"), nullable=False),
        sa.Column("group_id", UUID(as_uuid=True), sa.ForeignKey("groups.id"), nullable=False),
        sa.Column("ciphertext", sa.LargeBinary, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_mailbox_messages_mailbox_id", "mailbox_messages", ["mailbox_id"])

    op.create_table(
        "mailbox_tombstones",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("original_mailbox_id", UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column("help_category", sa.String(20), nullable=False),
        sa.Column("region", sa.String(255), nullable=False),
        sa.Column("had_responses", sa.Boolean, nullable=False, server_default="false"),
        sa.Column("responding_group_ids", sa.JSON, nullable=False),
        sa.Column("deletion_type", sa.String(20), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_mailbox_tombstones_region", "mailbox_tombstones", ["region"])

    op.create_table(
        "broadcasts",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("ciphertext_payload", sa.LargeBinary, nullable=False),
        sa.Column("nonce", sa.LargeBinary, nullable=False),
        sa.Column("region", sa.String(255), nullable=False),
        sa.Column("categories", sa.JSON, nullable=False),
        sa.Column("recipient_group_ids", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_broadcasts_expires_at", "broadcasts", ["expires_at"])

    op.create_table(
        "broadcast_invites",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("broadcast_id", UUID(as_uuid=True), sa.ForeignKey("broadcasts.id"), nullable=False),
        sa.Column("group_id", UUID(as_uuid=True), sa.ForeignKey("groups.id"), nullable=False),
        sa.Column("wrapped_key", sa.LargeBinary, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="pending"),
        sa.Column("decrypted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )
    op.create_index("ix_broadcast_invites_broadcast_id", "broadcast_invites", ["broadcast_id"])
    op.create_index("ix_broadcast_invites_expires_at", "broadcast_invites", ["expires_at"])
    op.create_index("broadcast_invites_group_status_idx", "broadcast_invites", ["group_id", "status"])

    op.create_table(
        "broadcast_tombstones",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        sa.Column("original_broadcast_id", UUID(as_uuid=True), nullable=False, unique=True),
        sa.Column("region", sa.String(255), nullable=False),
        sa.Column("categories", sa.JSON, nullable=False),
        sa.Column("group_ids", sa.JSON, nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("broadcast_tombstones")
    op.drop_table("broadcast_invites")
    op.drop_table("broadcasts")
    op.drop_table("mailbox_tombstones")
    op.drop_table("mailbox_messages")
    op.drop_table("mailboxes")
    op.drop_table("groups")
