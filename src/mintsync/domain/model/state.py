"""Materialised entity state and the rule for folding changes into it."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from .enums import ChangeOperation, EntityType

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from .change import Change


@dataclass(frozen=True, slots=True, kw_only=True)
class EntityState:
    entity_type: EntityType
    entity_id: str
    updated_at: datetime
    last_change_id: str
    payload: Mapping[str, object] = field(default_factory=dict)
    deleted: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "entity_type", EntityType(self.entity_type))
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    def payload_dict(self) -> dict[str, object]:
        return dict(self.payload)


def apply_change(state: EntityState | None, change: Change) -> EntityState:
    """Return the state that results from applying ``change`` to ``state``.

    CREATE replaces the payload, UPDATE merges into it and DELETE leaves a
    tombstone carrying the last known payload. Changes older than the current
    state, or already applied, leave the state untouched, which makes replaying
    a batch idempotent.
    """

    if state is not None:
        if state.last_change_id == change.id:
            return state
        if change.timestamp < state.updated_at:
            return state

    if change.operation is ChangeOperation.CREATE:
        payload = change.payload_dict()
        deleted = False
    elif change.operation is ChangeOperation.UPDATE:
        payload = state.payload_dict() if state is not None else {}
        payload.update(change.payload)
        deleted = False
    else:
        payload = state.payload_dict() if state is not None else change.payload_dict()
        deleted = True

    return EntityState(
        entity_type=change.entity_type,
        entity_id=change.entity_id,
        payload=payload,
        deleted=deleted,
        updated_at=change.timestamp,
        last_change_id=change.id,
    )
