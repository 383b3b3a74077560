"""Pydantic schemas for the sync HTTP endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

from mintsync.domain.model import (
    Change,
    ChangeOperation,
    ChangeOrigin,
    Conflict,
    EntityType,
    Resolution,
    SyncRequest,
    SyncResponse,
    SyncRound,
    SyncRoundStatus,
)


class ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ChangeModel(ApiModel):
    id: str = Field(min_length=1, max_length=64)
    entity_id: str = Field(min_length=1, max_length=64)
    entity_type: EntityType
    operation: ChangeOperation
    timestamp: AwareDatetime
    payload: dict[str, Any] = Field(default_factory=dict)
    origin: ChangeOrigin = ChangeOrigin.CLIENT
    device_id: str | None = None

    def to_domain(self, *, origin: ChangeOrigin | None = None) -> Change:
        return Change(
            id=self.id,
            entity_id=self.entity_id,
            entity_type=self.entity_type,
            operation=self.operation,
            timestamp=self.timestamp,
            payload=self.payload,
            origin=origin or self.origin,
            device_id=self.device_id,
        )

    @classmethod
    def from_domain(cls, change: Change) -> ChangeModel:
        return cls(
            id=change.id,
            entity_id=change.entity_id,
            entity_type=change.entity_type,
            operation=change.operation,
            timestamp=change.timestamp,
            payload=change.payload_dict(),
            origin=change.origin,
            device_id=change.device_id,
        )


class SyncRequestModel(ApiModel):
    device_id: str = Field(min_length=1, max_length=64)
    entity_type: EntityType
    last_sync_timestamp: AwareDatetime
    changes: list[ChangeModel] = Field(default_factory=list, max_length=1000)
    client_version: str | None = Field(default=None, max_length=32)

    def to_domain(self, *, user_id: str) -> SyncRequest:
        # devices always push as clients, whatever origin they claim
        return SyncRequest(
            device_id=self.device_id,
            user_id=user_id,
            entity_type=self.entity_type,
            last_sync_timestamp=self.last_sync_timestamp,
            changes=tuple(change.to_domain(origin=ChangeOrigin.CLIENT) for change in self.changes),
            client_version=self.client_version,
        )


class ConflictModel(ApiModel):
    entity_id: str
    resolution: Resolution
    client_change: ChangeModel
    server_change: ChangeModel

    @classmethod
    def from_domain(cls, conflict: Conflict) -> ConflictModel:
        return cls(
            entity_id=conflict.entity_id,
            resolution=conflict.resolution,
            client_change=ChangeModel.from_domain(conflict.client_change),
            server_change=ChangeModel.from_domain(conflict.server_change),
        )


class SyncResponseModel(ApiModel):
    success: bool
    timestamp: datetime
    entity_type: EntityType
    changes: list[ChangeModel] = Field(default_factory=list)
    conflicts: list[ConflictModel] = Field(default_factory=list)

    @classmethod
    def from_domain(cls, response: SyncResponse) -> SyncResponseModel:
        return cls(
            success=response.success,
            timestamp=response.timestamp,
            entity_type=response.entity_type,
            changes=[ChangeModel.from_domain(change) for change in response.changes],
            conflicts=[ConflictModel.from_domain(conflict) for conflict in response.conflicts],
        )


class FinancialSyncRequestModel(ApiModel):
    access_token: str = Field(min_length=1)
    lookback_days: int | None = Field(default=None, ge=1, le=730)


class EntitySyncSummaryModel(ApiModel):
    entity_type: EntityType
    fetched: int
    submitted: int
    returned: int
    conflicts: int


class FinancialSyncResponseModel(ApiModel):
    success: bool = True
    provider: str
    fetched_at: datetime
    results: list[EntitySyncSummaryModel] = Field(default_factory=list)


class SyncRoundModel(ApiModel):
    id: uuid.UUID
    device_id: str
    entity_type: EntityType
    status: SyncRoundStatus
    started_at: datetime
    finished_at: datetime | None = None
    resolved_count: int = 0
    conflict_count: int = 0
    error: str | None = None

    @classmethod
    def from_domain(cls, sync_round: SyncRound) -> SyncRoundModel:
        return cls(
            id=sync_round.id,
            device_id=sync_round.device_id,
            entity_type=sync_round.entity_type,
            status=sync_round.status,
            started_at=sync_round.started_at,
            finished_at=sync_round.finished_at,
            resolved_count=sync_round.resolved_count,
            conflict_count=sync_round.conflict_count,
            error=sync_round.error,
        )


class SyncStatusModel(ApiModel):
    user_id: str
    device_id: str | None = None
    last_completed_at: datetime | None = None
    rounds: list[SyncRoundModel] = Field(default_factory=list)
