"""Create the sync change log, entity state and bookkeeping tables.

Revision ID: 0001_sync_schema
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

from mintsync.adapters.sqlalchemy.mappings import ENUM_LENGTH, ID_LENGTH, UTCDateTime

revision = "0001_sync_schema"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "sync_change",
        sa.Column("seq", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(ID_LENGTH), nullable=False),
        sa.Column("change_id", sa.String(ID_LENGTH), nullable=False),
        sa.Column("entity_type", sa.String(ENUM_LENGTH), nullable=False),
        sa.Column("entity_id", sa.String(ID_LENGTH), nullable=False),
        sa.Column("operation", sa.String(ENUM_LENGTH), nullable=False),
        sa.Column("origin", sa.String(ENUM_LENGTH), nullable=False),
        sa.Column("device_id", sa.String(ID_LENGTH), nullable=True),
        sa.Column("timestamp", UTCDateTime(), nullable=False),
        sa.Column("recorded_at", UTCDateTime(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("seq", name=op.f("pk_sync_change")),
        sa.UniqueConstraint("user_id", "change_id", name=op.f("uq_sync_change_user_id")),
    )
    op.create_index(
        "ix_sync_change_user_type_recorded",
        "sync_change",
        ["user_id", "entity_type", "recorded_at"],
    )

    op.create_table(
        "entity_state",
        sa.Column("user_id", sa.String(ID_LENGTH), nullable=False),
        sa.Column("entity_type", sa.String(ENUM_LENGTH), nullable=False),
        sa.Column("entity_id", sa.String(ID_LENGTH), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("deleted", sa.Boolean(), nullable=False),
        sa.Column("updated_at", UTCDateTime(), nullable=False),
        sa.Column("last_change_id", sa.String(ID_LENGTH), nullable=False),
        sa.PrimaryKeyConstraint(
            "user_id", "entity_type", "entity_id", name=op.f("pk_entity_state")
        ),
    )

    op.create_table(
        "sync_round",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(ID_LENGTH), nullable=False),
        sa.Column("device_id", sa.String(ID_LENGTH), nullable=False),
        sa.Column("entity_type", sa.String(ENUM_LENGTH), nullable=False),
        sa.Column("status", sa.String(ENUM_LENGTH), nullable=False),
        sa.Column("started_at", UTCDateTime(), nullable=False),
        sa.Column("finished_at", UTCDateTime(), nullable=True),
        sa.Column("resolved_count", sa.Integer(), nullable=False),
        sa.Column("conflict_count", sa.Integer(), nullable=False),
        sa.Column("error", sa.Text(), nullable=True),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_sync_round")),
    )
    op.create_index("ix_sync_round_user_started", "sync_round", ["user_id", "started_at"])

    op.create_table(
        "local_mutation",
        sa.Column("sequence", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("entity_type", sa.String(ENUM_LENGTH), nullable=False),
        sa.Column("entity_id", sa.String(ID_LENGTH), nullable=False),
        sa.Column("operation", sa.String(ENUM_LENGTH), nullable=False),
        sa.Column("recorded_at", UTCDateTime(), nullable=False),
        sa.Column("payload", sa.JSON(), nullable=False),
        sa.Column("synced", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("sequence", name=op.f("pk_local_mutation")),
    )
    op.create_index(
        "ix_local_mutation_type_synced", "local_mutation", ["entity_type", "synced"]
    )

    op.create_table(
        "sync_checkpoint",
        sa.Column("entity_type", sa.String(ENUM_LENGTH), nullable=False),
        sa.Column("last_sync_timestamp", UTCDateTime(), nullable=False),
        sa.PrimaryKeyConstraint("entity_type", name=op.f("pk_sync_checkpoint")),
    )


def downgrade() -> None:
    op.drop_table("sync_checkpoint")
    op.drop_index("ix_local_mutation_type_synced", table_name="local_mutation")
    op.drop_table("local_mutation")
    op.drop_index("ix_sync_round_user_started", table_name="sync_round")
    op.drop_table("sync_round")
    op.drop_table("entity_state")
    op.drop_index("ix_sync_change_user_type_recorded", table_name="sync_change")
    op.drop_table("sync_change")
