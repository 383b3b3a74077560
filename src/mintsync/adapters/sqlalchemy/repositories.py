"""Repository implementations backed by SQLAlchemy sessions."""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from sqlalchemy import insert, select, update

from mintsync.adapters.sqlalchemy.mappings import (
    change_table,
    entity_state_table,
    local_mutation_table,
    sync_checkpoint_table,
    sync_round_table,
)
from mintsync.domain.model import (
    Change,
    ChangeOperation,
    ChangeOrigin,
    EntityState,
    EntityType,
    LocalMutation,
    SyncRound,
    SyncRoundStatus,
    latest_per_entity,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from sqlalchemy import Row
    from sqlalchemy.orm import Session


class SqlAlchemyChangeRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def changes_since(
        self,
        *,
        user_id: str,
        entity_type: EntityType,
        since: datetime,
    ) -> list[Change]:
        stmt = (
            select(change_table)
            .where(change_table.c.user_id == user_id)
            .where(change_table.c.entity_type == str(entity_type))
            .where(change_table.c.recorded_at > since)
            .order_by(change_table.c.seq)
        )
        rows = self.session.execute(stmt).all()
        return latest_per_entity(_row_to_change(row) for row in rows)

    def get(self, *, user_id: str, change_id: str) -> Change | None:
        stmt = (
            select(change_table)
            .where(change_table.c.user_id == user_id)
            .where(change_table.c.change_id == change_id)
        )
        row = self.session.execute(stmt).one_or_none()
        return _row_to_change(row) if row is not None else None

    def contains(self, *, user_id: str, change_id: str) -> bool:
        stmt = (
            select(change_table.c.seq)
            .where(change_table.c.user_id == user_id)
            .where(change_table.c.change_id == change_id)
            .limit(1)
        )
        return self.session.execute(stmt).scalar_one_or_none() is not None

    def append(self, change: Change, *, user_id: str, recorded_at: datetime) -> None:
        self.session.execute(
            insert(change_table).values(
                user_id=user_id,
                change_id=change.id,
                entity_type=str(change.entity_type),
                entity_id=change.entity_id,
                operation=str(change.operation),
                origin=str(change.origin),
                device_id=change.device_id,
                timestamp=change.timestamp,
                recorded_at=recorded_at,
                payload=change.payload_dict(),
            )
        )


class SqlAlchemyEntityStateRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(
        self,
        *,
        user_id: str,
        entity_type: EntityType,
        entity_id: str,
    ) -> EntityState | None:
        stmt = select(entity_state_table).where(
            *self._key(user_id, entity_type, entity_id),
        )
        row = self.session.execute(stmt).one_or_none()
        return _row_to_state(row) if row is not None else None

    def get_many(
        self,
        *,
        user_id: str,
        entity_type: EntityType,
        entity_ids: Iterable[str],
    ) -> dict[str, EntityState]:
        ids = list(dict.fromkeys(entity_ids))
        if not ids:
            return {}
        stmt = (
            select(entity_state_table)
            .where(entity_state_table.c.user_id == user_id)
            .where(entity_state_table.c.entity_type == str(entity_type))
            .where(entity_state_table.c.entity_id.in_(ids))
        )
        states = (_row_to_state(row) for row in self.session.execute(stmt).all())
        return {state.entity_id: state for state in states}

    def save(self, state: EntityState, *, user_id: str) -> None:
        values = {
            "payload": state.payload_dict(),
            "deleted": state.deleted,
            "updated_at": state.updated_at,
            "last_change_id": state.last_change_id,
        }
        key = self._key(user_id, state.entity_type, state.entity_id)
        result = self.session.execute(update(entity_state_table).where(*key).values(**values))
        if result.rowcount == 0:
            self.session.execute(
                insert(entity_state_table).values(
                    user_id=user_id,
                    entity_type=str(state.entity_type),
                    entity_id=state.entity_id,
                    **values,
                )
            )

    def list_states(
        self,
        *,
        user_id: str,
        entity_type: EntityType,
        include_deleted: bool = False,
    ) -> list[EntityState]:
        stmt = (
            select(entity_state_table)
            .where(entity_state_table.c.user_id == user_id)
            .where(entity_state_table.c.entity_type == str(entity_type))
            .order_by(entity_state_table.c.entity_id)
        )
        if not include_deleted:
            stmt = stmt.where(entity_state_table.c.deleted.is_(False))
        return [_row_to_state(row) for row in self.session.execute(stmt).all()]

    @staticmethod
    def _key(user_id: str, entity_type: EntityType, entity_id: str) -> tuple[object, ...]:
        return (
            entity_state_table.c.user_id == user_id,
            entity_state_table.c.entity_type == str(entity_type),
            entity_state_table.c.entity_id == entity_id,
        )


class SqlAlchemySyncRoundRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def add(self, sync_round: SyncRound) -> None:
        self.session.execute(
            insert(sync_round_table).values(
                id=str(sync_round.id),
                user_id=sync_round.user_id,
                device_id=sync_round.device_id,
                entity_type=str(sync_round.entity_type),
                status=str(sync_round.status),
                started_at=sync_round.started_at,
                finished_at=sync_round.finished_at,
                resolved_count=sync_round.resolved_count,
                conflict_count=sync_round.conflict_count,
                error=sync_round.error,
            )
        )

    def recent(
        self,
        *,
        user_id: str,
        device_id: str | None = None,
        limit: int = 5,
    ) -> Sequence[SyncRound]:
        stmt = select(sync_round_table).where(sync_round_table.c.user_id == user_id)
        if device_id is not None:
            stmt = stmt.where(sync_round_table.c.device_id == device_id)
        stmt = stmt.order_by(sync_round_table.c.started_at.desc()).limit(limit)
        return [_row_to_round(row) for row in self.session.execute(stmt).all()]

    def last_completed(
        self,
        *,
        user_id: str,
        device_id: str,
        entity_type: EntityType,
    ) -> SyncRound | None:
        stmt = (
            select(sync_round_table)
            .where(sync_round_table.c.user_id == user_id)
            .where(sync_round_table.c.device_id == device_id)
            .where(sync_round_table.c.entity_type == str(entity_type))
            .where(sync_round_table.c.status == str(SyncRoundStatus.COMPLETED))
            .order_by(sync_round_table.c.finished_at.desc())
            .limit(1)
        )
        row = self.session.execute(stmt).one_or_none()
        return _row_to_round(row) if row is not None else None


class SqlAlchemyLocalMutationRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def record(self, mutation: LocalMutation) -> LocalMutation:
        result = self.session.execute(
            insert(local_mutation_table).values(
                entity_type=str(mutation.entity_type),
                entity_id=mutation.entity_id,
                operation=str(mutation.operation),
                recorded_at=mutation.recorded_at,
                payload=dict(mutation.payload),
                synced=False,
            )
        )
        sequence = result.inserted_primary_key[0] if result.inserted_primary_key else None
        return LocalMutation(
            entity_type=mutation.entity_type,
            entity_id=mutation.entity_id,
            operation=mutation.operation,
            recorded_at=mutation.recorded_at,
            payload=mutation.payload,
            sequence=sequence,
        )

    def pending(self, entity_type: EntityType) -> list[LocalMutation]:
        stmt = (
            select(local_mutation_table)
            .where(local_mutation_table.c.entity_type == str(entity_type))
            .where(local_mutation_table.c.synced.is_(False))
            .order_by(local_mutation_table.c.sequence)
        )
        return [
            LocalMutation(
                entity_type=EntityType(row.entity_type),
                entity_id=row.entity_id,
                operation=ChangeOperation(row.operation),
                recorded_at=row.recorded_at,
                payload=row.payload or {},
                sequence=row.sequence,
            )
            for row in self.session.execute(stmt).all()
        ]

    def mark_synced(self, sequences: Iterable[int]) -> None:
        ids = list(sequences)
        if not ids:
            return
        self.session.execute(
            update(local_mutation_table)
            .where(local_mutation_table.c.sequence.in_(ids))
            .values(synced=True)
        )


class SqlAlchemySyncCheckpointRepository:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get(self, entity_type: EntityType) -> datetime | None:
        stmt = select(sync_checkpoint_table.c.last_sync_timestamp).where(
            sync_checkpoint_table.c.entity_type == str(entity_type)
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def set(self, entity_type: EntityType, timestamp: datetime) -> None:
        result = self.session.execute(
            update(sync_checkpoint_table)
            .where(sync_checkpoint_table.c.entity_type == str(entity_type))
            .values(last_sync_timestamp=timestamp)
        )
        if result.rowcount == 0:
            self.session.execute(
                insert(sync_checkpoint_table).values(
                    entity_type=str(entity_type), last_sync_timestamp=timestamp
                )
            )


def _row_to_change(row: Row[tuple[object, ...]]) -> Change:
    mapping = row._mapping  # noqa: SLF001
    return Change(
        id=mapping["change_id"],
        entity_id=mapping["entity_id"],
        entity_type=EntityType(mapping["entity_type"]),
        operation=ChangeOperation(mapping["operation"]),
        origin=ChangeOrigin(mapping["origin"]),
        device_id=mapping["device_id"],
        timestamp=mapping["timestamp"],
        payload=mapping["payload"] or {},
    )


def _row_to_state(row: Row[tuple[object, ...]]) -> EntityState:
    mapping = row._mapping  # noqa: SLF001
    return EntityState(
        entity_type=EntityType(mapping["entity_type"]),
        entity_id=mapping["entity_id"],
        payload=mapping["payload"] or {},
        deleted=bool(mapping["deleted"]),
        updated_at=mapping["updated_at"],
        last_change_id=mapping["last_change_id"],
    )


def _row_to_round(row: Row[tuple[object, ...]]) -> SyncRound:
    return SyncRound(
        id=uuid.UUID(row.id),
        user_id=row.user_id,
        device_id=row.device_id,
        entity_type=EntityType(row.entity_type),
        status=SyncRoundStatus(row.status),
        started_at=row.started_at,
        finished_at=row.finished_at,
        resolved_count=row.resolved_count,
        conflict_count=row.conflict_count,
        error=row.error,
    )
