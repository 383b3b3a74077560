"""Immutable change records exchanged between clients, server and providers."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from types import MappingProxyType
from typing import TYPE_CHECKING

from .enums import ChangeOperation, ChangeOrigin, EntityType

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)


class InvalidChangeError(ValueError):
    """Raised when a change record violates its structural invariants."""


@dataclass(frozen=True, slots=True, kw_only=True)
class Change:
    """One atomic mutation of a domain entity.

    Timestamps are normalised to UTC and the payload is frozen behind a read-only
    mapping, so a recorded change cannot be altered after construction.
    """

    id: str
    entity_id: str
    entity_type: EntityType
    operation: ChangeOperation
    timestamp: datetime
    payload: Mapping[str, object] = field(default_factory=dict)
    origin: ChangeOrigin = ChangeOrigin.CLIENT
    device_id: str | None = None

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise InvalidChangeError("Change id must not be blank")
        if not self.entity_id or not self.entity_id.strip():
            raise InvalidChangeError(f"Change {self.id}: entity_id must not be blank")
        if self.timestamp.tzinfo is None:
            raise InvalidChangeError(f"Change {self.id}: timestamp must include a timezone")
        object.__setattr__(self, "entity_type", EntityType(self.entity_type))
        object.__setattr__(self, "operation", ChangeOperation(self.operation))
        object.__setattr__(self, "origin", ChangeOrigin(self.origin))
        object.__setattr__(self, "timestamp", self.timestamp.astimezone(UTC))
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))

    @property
    def is_delete(self) -> bool:
        return self.operation is ChangeOperation.DELETE

    def payload_dict(self) -> dict[str, object]:
        return dict(self.payload)

    def with_origin(self, origin: ChangeOrigin) -> Change:
        return replace(self, origin=origin)


def latest_per_entity(changes: Iterable[Change]) -> list[Change]:
    """Collapse a change log into the newest change per entity.

    Later log entries win ties so that append order breaks equal timestamps.
    The result keeps the order in which each entity was first seen.
    """

    latest: dict[str, Change] = {}
    for change in changes:
        current = latest.get(change.entity_id)
        if current is None or change.timestamp >= current.timestamp:
            latest[change.entity_id] = change
    return list(latest.values())
