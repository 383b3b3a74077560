"""Request/response records for a single sync round."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from .enums import EntityType, Resolution, SyncRoundStatus

if TYPE_CHECKING:
    from datetime import datetime

    from .change import Change

DEFAULT_USER_ID: Final[str] = "default"


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncRequest:
    """Changes a device submits for one entity type since its last sync."""

    device_id: str
    entity_type: EntityType
    last_sync_timestamp: datetime
    changes: tuple[Change, ...] = ()
    client_version: str | None = None
    user_id: str = DEFAULT_USER_ID

    def __post_init__(self) -> None:
        object.__setattr__(self, "entity_type", EntityType(self.entity_type))
        object.__setattr__(self, "changes", tuple(self.changes))

    @property
    def serialization_key(self) -> tuple[str, EntityType]:
        return (self.user_id, self.entity_type)


@dataclass(frozen=True, slots=True, kw_only=True)
class Conflict:
    client_change: Change
    server_change: Change
    resolution: Resolution

    @property
    def entity_id(self) -> str:
        return self.client_change.entity_id


@dataclass(frozen=True, slots=True)
class ConflictResolution:
    resolved: tuple[Change, ...] = ()
    conflicts: tuple[Conflict, ...] = ()

    @property
    def has_conflicts(self) -> bool:
        return bool(self.conflicts)


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncResponse:
    """Outcome returned to the device after a round.

    ``changes`` holds the authoritative changes the device has not seen yet; the
    device applies them locally to converge with the server.
    """

    success: bool
    timestamp: datetime
    entity_type: EntityType
    changes: tuple[Change, ...] = ()
    conflicts: tuple[Conflict, ...] = ()


@dataclass(slots=True, kw_only=True)
class SyncRound:
    """Audit record for one orchestrator invocation."""

    user_id: str
    device_id: str
    entity_type: EntityType
    started_at: datetime
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    status: SyncRoundStatus = SyncRoundStatus.STARTED
    finished_at: datetime | None = None
    resolved_count: int = 0
    conflict_count: int = 0
    error: str | None = None
