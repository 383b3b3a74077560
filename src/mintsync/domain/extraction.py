"""Fold a device's pending mutation log into one change per entity."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from mintsync.domain.model import Change, ChangeOperation, ChangeOrigin

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from datetime import datetime

    from mintsync.domain.model import EntityType, LocalMutation

_CHANGE_NAMESPACE = uuid.UUID("5b0f3d7e-6f0c-4f43-9c47-1c2f8f9b8a11")


@dataclass(slots=True)
class _Fold:
    entity_type: EntityType
    entity_id: str
    operation: ChangeOperation | None = None
    payload: dict[str, object] = field(default_factory=dict)
    timestamp: datetime | None = None
    keys: list[str] = field(default_factory=list)

    def push(self, mutation: LocalMutation) -> None:
        self.keys.append(_mutation_key(mutation))
        self.timestamp = mutation.recorded_at
        later = mutation.operation
        earlier = self.operation

        if earlier is None:
            self.operation = later
            self.payload = {} if later is ChangeOperation.DELETE else dict(mutation.payload)
        elif later is ChangeOperation.DELETE:
            # a create that is deleted again never has to leave the device
            self.operation = None if earlier is ChangeOperation.CREATE else ChangeOperation.DELETE
            self.payload = {}
        elif earlier is ChangeOperation.DELETE:
            self.operation = later
            self.payload = dict(mutation.payload)
        elif earlier is ChangeOperation.CREATE:
            self.payload.update(mutation.payload)
        else:
            self.operation = later
            self.payload.update(mutation.payload)


@dataclass(frozen=True, slots=True)
class ExtractedChanges:
    """Changes ready to push, plus every mutation sequence they account for."""

    changes: tuple[Change, ...]
    sequences: tuple[int, ...]


def extract_changes(
    mutations: Iterable[LocalMutation],
    *,
    device_id: str,
) -> ExtractedChanges:
    """Normalise pending mutations into client-origin changes.

    Mutations are folded per entity in recording order. The folded change takes
    the timestamp of the entity's latest mutation and the result is ordered by
    that timestamp. Change ids are derived from the folded mutations, so
    extracting the same pending log twice yields the same ids.
    """

    ordered = sorted(mutations, key=_mutation_order)
    folds: dict[str, _Fold] = {}
    sequences: list[int] = []
    for mutation in ordered:
        fold = folds.get(mutation.entity_id)
        if fold is None:
            fold = _Fold(entity_type=mutation.entity_type, entity_id=mutation.entity_id)
            folds[mutation.entity_id] = fold
        fold.push(mutation)
        if mutation.sequence is not None:
            sequences.append(mutation.sequence)

    changes: list[Change] = []
    for fold in folds.values():
        change = _to_change(fold, device_id=device_id)
        if change is not None:
            changes.append(change)
    changes.sort(key=lambda change: change.timestamp)
    return ExtractedChanges(changes=tuple(changes), sequences=tuple(sequences))


def derive_change_id(device_id: str, entity_id: str, mutation_keys: Sequence[str]) -> str:
    name = "|".join((device_id, entity_id, *mutation_keys))
    return str(uuid.uuid5(_CHANGE_NAMESPACE, name))


def _to_change(fold: _Fold, *, device_id: str) -> Change | None:
    if fold.operation is None or fold.timestamp is None:
        return None
    return Change(
        id=derive_change_id(device_id, fold.entity_id, fold.keys),
        entity_id=fold.entity_id,
        entity_type=fold.entity_type,
        operation=fold.operation,
        timestamp=fold.timestamp,
        payload=fold.payload,
        origin=ChangeOrigin.CLIENT,
        device_id=device_id,
    )


def _mutation_order(mutation: LocalMutation) -> tuple[datetime, int]:
    return (mutation.recorded_at, mutation.sequence if mutation.sequence is not None else 0)


def _mutation_key(mutation: LocalMutation) -> str:
    if mutation.sequence is not None:
        return str(mutation.sequence)
    return f"{mutation.operation}@{mutation.recorded_at.isoformat()}"
