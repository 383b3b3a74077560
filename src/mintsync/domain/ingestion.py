"""Replay aggregator snapshots through the regular sync pipeline."""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from mintsync.domain.model import (
    DEFAULT_USER_ID,
    EPOCH,
    Change,
    ChangeOperation,
    ChangeOrigin,
    EntityType,
    SyncRequest,
)
from mintsync.domain.time_windows import Clock, TimeWindow, utcnow

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime

    from mintsync.domain.model import EntityState, SyncResponse, SyncRound
    from mintsync.domain.ports.fetching import ProviderRecord, ProviderSnapshotFetcher
    from mintsync.domain.synchronization import SyncOrchestrator

DEFAULT_LOOKBACK_DAYS = 30

_PROVIDER_NAMESPACE = uuid.UUID("0d6c8a52-3f4e-4b8e-8f71-7a1e2d9c4b30")

log = getLogger(__name__)


@dataclass(slots=True)
class IngestionResult:
    provider: str
    fetched_at: datetime
    fetched: dict[EntityType, int] = field(default_factory=dict)
    submitted: dict[EntityType, int] = field(default_factory=dict)
    responses: dict[EntityType, SyncResponse] = field(default_factory=dict)


def ingest_provider_snapshot(
    *,
    fetcher: ProviderSnapshotFetcher,
    orchestrator: SyncOrchestrator,
    access_token: str,
    user_id: str = DEFAULT_USER_ID,
    window: TimeWindow | None = None,
    clock: Clock = utcnow,
) -> IngestionResult:
    """Fetch a provider snapshot and submit it as provider-origin changes.

    The fetch completes before any sync round starts, so a ``ProviderError``
    leaves the store untouched. Accounts are synchronized before transactions,
    one round per entity type. Like a device, the provider resolves against
    everything recorded since its previous completed round.
    """

    since, until = (window or TimeWindow.trailing_days(DEFAULT_LOOKBACK_DAYS)).resolve(clock=clock)
    snapshot = fetcher(access_token=access_token, since=since, until=until)
    result = IngestionResult(provider=snapshot.provider, fetched_at=snapshot.fetched_at)

    device_id = f"provider:{snapshot.provider}"
    for entity_type, records in (
        (EntityType.ACCOUNTS, snapshot.accounts),
        (EntityType.TRANSACTIONS, snapshot.transactions),
    ):
        with orchestrator.unit_of_work_factory() as uow:
            repositories = uow.repositories
            current = repositories.states.get_many(
                user_id=user_id,
                entity_type=entity_type,
                entity_ids=[record.entity_id for record in records],
            )
            previous = repositories.rounds.last_completed(
                user_id=user_id, device_id=device_id, entity_type=entity_type
            )
        changes = normalize_records(
            records,
            current,
            provider=snapshot.provider,
            fetched_at=snapshot.fetched_at,
        )
        request = SyncRequest(
            device_id=device_id,
            user_id=user_id,
            entity_type=entity_type,
            last_sync_timestamp=_checkpoint(previous),
            changes=tuple(changes),
        )
        result.fetched[entity_type] = len(records)
        result.submitted[entity_type] = len(changes)
        result.responses[entity_type] = orchestrator.synchronize(request)
        log.info(
            "Ingested %s %s from %s (%s changed)",
            len(records),
            entity_type,
            snapshot.provider,
            len(changes),
        )

    return result


def normalize_records(
    records: Sequence[ProviderRecord],
    current: Mapping[str, EntityState],
    *,
    provider: str,
    fetched_at: datetime,
) -> list[Change]:
    """Map provider records onto changes against current entity state.

    Unknown or deleted entities become CREATE, entities whose fields differ
    become UPDATE and unchanged entities produce nothing.
    """

    changes: list[Change] = []
    seen: set[str] = set()
    for record in records:
        if record.entity_id in seen:
            log.debug("Skipping repeated %s %s in snapshot", record.entity_type, record.entity_id)
            continue
        seen.add(record.entity_id)

        state = current.get(record.entity_id)
        if state is None or state.deleted:
            operation = ChangeOperation.CREATE
        elif _differs(record.payload, state.payload):
            operation = ChangeOperation.UPDATE
        else:
            continue

        changes.append(
            Change(
                id=_provider_change_id(provider, record, fetched_at),
                entity_id=record.entity_id,
                entity_type=record.entity_type,
                operation=operation,
                timestamp=fetched_at,
                payload=record.payload,
                origin=ChangeOrigin.PROVIDER,
            )
        )
    return changes


def _checkpoint(previous: SyncRound | None) -> datetime:
    if previous is None or previous.finished_at is None:
        return EPOCH
    return previous.finished_at


def _differs(incoming: Mapping[str, object], existing: Mapping[str, object]) -> bool:
    return any(existing.get(key) != value for key, value in incoming.items())


def _provider_change_id(provider: str, record: ProviderRecord, fetched_at: datetime) -> str:
    name = f"{provider}|{record.entity_type}|{record.entity_id}|{fetched_at.isoformat()}"
    return str(uuid.uuid5(_PROVIDER_NAMESPACE, name))
