"""Sync endpoints consumed by devices and the provider link flow."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Query

from mintsync.api.deps import Config, Orchestrator, SnapshotFetcher, UserId
from mintsync.api.schemas import (
    EntitySyncSummaryModel,
    FinancialSyncRequestModel,
    FinancialSyncResponseModel,
    SyncRequestModel,
    SyncResponseModel,
    SyncRoundModel,
    SyncStatusModel,
)
from mintsync.domain.ingestion import ingest_provider_snapshot
from mintsync.domain.time_windows import TimeWindow

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("", response_model=SyncResponseModel)
def sync_changes(
    body: SyncRequestModel,
    user_id: UserId,
    orchestrator: Orchestrator,
) -> SyncResponseModel:
    """Run one sync round for the submitted entity type.

    The response carries the changes the device has not seen yet and any
    conflicts that need manual resolution.
    """
    response = orchestrator.synchronize(body.to_domain(user_id=user_id))
    return SyncResponseModel.from_domain(response)


@router.post("/financial", response_model=FinancialSyncResponseModel)
def sync_financial(
    body: FinancialSyncRequestModel,
    user_id: UserId,
    orchestrator: Orchestrator,
    fetcher: SnapshotFetcher,
    config: Config,
) -> FinancialSyncResponseModel:
    """Pull accounts and transactions from the linked aggregator item."""
    days = body.lookback_days or config.provider_lookback_days
    result = ingest_provider_snapshot(
        fetcher=fetcher,
        orchestrator=orchestrator,
        access_token=body.access_token,
        user_id=user_id,
        window=TimeWindow.trailing_days(days),
        clock=orchestrator.clock,
    )
    return FinancialSyncResponseModel(
        provider=result.provider,
        fetched_at=result.fetched_at,
        results=[
            EntitySyncSummaryModel(
                entity_type=entity_type,
                fetched=result.fetched.get(entity_type, 0),
                submitted=result.submitted.get(entity_type, 0),
                returned=len(response.changes),
                conflicts=len(response.conflicts),
            )
            for entity_type, response in result.responses.items()
        ],
    )


@router.get("/status", response_model=SyncStatusModel)
def sync_status(
    user_id: UserId,
    orchestrator: Orchestrator,
    device_id: Annotated[str | None, Query(max_length=64)] = None,
    limit: Annotated[int, Query(ge=1, le=50)] = 5,
) -> SyncStatusModel:
    status = orchestrator.sync_status(user_id=user_id, device_id=device_id, limit=limit)
    last_completed = status.last_completed
    return SyncStatusModel(
        user_id=status.user_id,
        device_id=status.device_id,
        last_completed_at=last_completed.finished_at if last_completed else None,
        rounds=[SyncRoundModel.from_domain(sync_round) for sync_round in status.rounds],
    )
