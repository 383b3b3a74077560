"""Ports for persisting changes, entity state and sync bookkeeping."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from mintsync.domain.model import (
        Change,
        EntityState,
        EntityType,
        LocalMutation,
        SyncRound,
    )


@runtime_checkable
class ChangeRepository(Protocol):
    """Append-only change log scoped by owner."""

    def changes_since(
        self,
        *,
        user_id: str,
        entity_type: EntityType,
        since: datetime,
    ) -> list[Change]:
        """Return the newest change per entity recorded after ``since``.

        ``since`` is compared with the server-side recording time, not with the
        client-supplied change timestamp.
        """
        ...

    def get(self, *, user_id: str, change_id: str) -> Change | None: ...

    def contains(self, *, user_id: str, change_id: str) -> bool: ...

    def append(self, change: Change, *, user_id: str, recorded_at: datetime) -> None: ...


@runtime_checkable
class EntityStateRepository(Protocol):
    """Current materialised state of synced entities."""

    def get(
        self,
        *,
        user_id: str,
        entity_type: EntityType,
        entity_id: str,
    ) -> EntityState | None: ...

    def get_many(
        self,
        *,
        user_id: str,
        entity_type: EntityType,
        entity_ids: Iterable[str],
    ) -> dict[str, EntityState]: ...

    def save(self, state: EntityState, *, user_id: str) -> None: ...

    def list_states(
        self,
        *,
        user_id: str,
        entity_type: EntityType,
        include_deleted: bool = False,
    ) -> list[EntityState]: ...


@runtime_checkable
class SyncRoundRepository(Protocol):
    """Audit trail of orchestrator invocations."""

    def add(self, sync_round: SyncRound) -> None: ...

    def recent(
        self,
        *,
        user_id: str,
        device_id: str | None = None,
        limit: int = 5,
    ) -> Sequence[SyncRound]: ...

    def last_completed(
        self,
        *,
        user_id: str,
        device_id: str,
        entity_type: EntityType,
    ) -> SyncRound | None: ...


@runtime_checkable
class LocalMutationRepository(Protocol):
    """Pending mutations recorded on a device."""

    def record(self, mutation: LocalMutation) -> LocalMutation:
        """Persist ``mutation`` and return it with its assigned sequence."""
        ...

    def pending(self, entity_type: EntityType) -> list[LocalMutation]: ...

    def mark_synced(self, sequences: Iterable[int]) -> None: ...


@runtime_checkable
class SyncCheckpointRepository(Protocol):
    """Per entity type ``last_sync_timestamp`` kept by a device."""

    def get(self, entity_type: EntityType) -> datetime | None: ...

    def set(self, entity_type: EntityType, timestamp: datetime) -> None: ...
