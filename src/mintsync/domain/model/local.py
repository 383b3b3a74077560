"""Client-side pending mutation log entries."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING

from .enums import ChangeOperation, EntityType

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime


@dataclass(frozen=True, slots=True, kw_only=True)
class LocalMutation:
    """A mutation recorded on the device while it may be offline.

    ``sequence`` is assigned by the local store and orders mutations that share
    a timestamp.
    """

    entity_type: EntityType
    entity_id: str
    operation: ChangeOperation
    recorded_at: datetime
    payload: Mapping[str, object] = field(default_factory=dict)
    sequence: int | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "entity_type", EntityType(self.entity_type))
        object.__setattr__(self, "operation", ChangeOperation(self.operation))
        object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))
