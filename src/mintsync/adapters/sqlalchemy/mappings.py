"""SQLAlchemy table metadata for the sync stores."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Final

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Dialect,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    TypeDecorator,
    UniqueConstraint,
)

ENUM_LENGTH: Final[int] = 16
ID_LENGTH: Final[int] = 64


class UTCDateTime(TypeDecorator[datetime]):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.astimezone(UTC)

    def process_result_value(self, value: datetime | None, dialect: Dialect) -> datetime | None:
        _ = dialect
        if value is None:
            return None
        return value if value.tzinfo else value.replace(tzinfo=UTC)


metadata = MetaData(
    naming_convention={
        "ix": "ix_%(column_0_label)s",
        "uq": "uq_%(table_name)s_%(column_0_label)s",
        "ck": "ck_%(table_name)s_%(constraint_name)s",
        "fk": "fk_%(table_name)s_%(column_0_label)s_%(referred_table_name)s",
        "pk": "pk_%(table_name)s",
    }
)

# append-only; ``seq`` preserves recording order for equal timestamps
change_table = Table(
    "sync_change",
    metadata,
    Column("seq", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(ID_LENGTH), nullable=False),
    Column("change_id", String(ID_LENGTH), nullable=False),
    Column("entity_type", String(ENUM_LENGTH), nullable=False),
    Column("entity_id", String(ID_LENGTH), nullable=False),
    Column("operation", String(ENUM_LENGTH), nullable=False),
    Column("origin", String(ENUM_LENGTH), nullable=False),
    Column("device_id", String(ID_LENGTH), nullable=True),
    Column("timestamp", UTCDateTime(), nullable=False),
    Column("recorded_at", UTCDateTime(), nullable=False),
    Column("payload", JSON, nullable=False),
    UniqueConstraint("user_id", "change_id"),
    Index("ix_sync_change_user_type_recorded", "user_id", "entity_type", "recorded_at"),
)

entity_state_table = Table(
    "entity_state",
    metadata,
    Column("user_id", String(ID_LENGTH), primary_key=True),
    Column("entity_type", String(ENUM_LENGTH), primary_key=True),
    Column("entity_id", String(ID_LENGTH), primary_key=True),
    Column("payload", JSON, nullable=False),
    Column("deleted", Boolean, nullable=False, default=False),
    Column("updated_at", UTCDateTime(), nullable=False),
    Column("last_change_id", String(ID_LENGTH), nullable=False),
)

sync_round_table = Table(
    "sync_round",
    metadata,
    Column("id", String(36), primary_key=True),
    Column("user_id", String(ID_LENGTH), nullable=False),
    Column("device_id", String(ID_LENGTH), nullable=False),
    Column("entity_type", String(ENUM_LENGTH), nullable=False),
    Column("status", String(ENUM_LENGTH), nullable=False),
    Column("started_at", UTCDateTime(), nullable=False),
    Column("finished_at", UTCDateTime(), nullable=True),
    Column("resolved_count", Integer, nullable=False, default=0),
    Column("conflict_count", Integer, nullable=False, default=0),
    Column("error", Text, nullable=True),
    Index("ix_sync_round_user_started", "user_id", "started_at"),
)

local_mutation_table = Table(
    "local_mutation",
    metadata,
    Column("sequence", Integer, primary_key=True, autoincrement=True),
    Column("entity_type", String(ENUM_LENGTH), nullable=False),
    Column("entity_id", String(ID_LENGTH), nullable=False),
    Column("operation", String(ENUM_LENGTH), nullable=False),
    Column("recorded_at", UTCDateTime(), nullable=False),
    Column("payload", JSON, nullable=False),
    Column("synced", Boolean, nullable=False, default=False),
    Index("ix_local_mutation_type_synced", "entity_type", "synced"),
)

sync_checkpoint_table = Table(
    "sync_checkpoint",
    metadata,
    Column("entity_type", String(ENUM_LENGTH), primary_key=True),
    Column("last_sync_timestamp", UTCDateTime(), nullable=False),
)
