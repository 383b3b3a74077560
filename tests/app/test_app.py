from __future__ import annotations

from typing import TYPE_CHECKING

from mintsync.app import build_orchestrator, push_changes, sync_plaid_snapshot, sync_status
from mintsync.config import SyncConfig
from mintsync.domain.model import EPOCH, EntityType, SyncRequest
from mintsync.domain.ports.fetching import ProviderRecord, ProviderSnapshot
from tests.helpers.sync import FakeSnapshotFetcher, at, make_change

if TYPE_CHECKING:
    from collections.abc import Callable

    from mintsync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork
    from mintsync.domain.synchronization import SyncOrchestrator


def test_build_orchestrator_applies_configured_timeout(
    sync_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
) -> None:
    orchestrator = build_orchestrator(
        unit_of_work_factory=sync_unit_of_work,
        sync_config=SyncConfig(timeout_seconds=4.5),
    )

    assert orchestrator.timeout_seconds == 4.5
    assert orchestrator.unit_of_work_factory is sync_unit_of_work


def test_push_changes_and_status(orchestrator: SyncOrchestrator) -> None:
    request = SyncRequest(
        device_id="phone",
        entity_type=EntityType.ACCOUNTS,
        last_sync_timestamp=EPOCH,
        changes=(make_change("a", seconds=1),),
    )

    response = push_changes(request, orchestrator=orchestrator)
    status = sync_status(orchestrator=orchestrator)

    assert response.success is True
    assert [sync_round.device_id for sync_round in status.rounds] == ["phone"]


def test_sync_plaid_snapshot_uses_configured_lookback(orchestrator: SyncOrchestrator) -> None:
    fetcher = FakeSnapshotFetcher(
        snapshot=ProviderSnapshot(
            provider="plaid",
            fetched_at=at(50),
            accounts=(
                ProviderRecord(
                    entity_type=EntityType.ACCOUNTS,
                    entity_id="acc-1",
                    payload={"name": "Checking"},
                ),
            ),
        )
    )

    result = sync_plaid_snapshot(
        access_token="access-sandbox-1",
        fetcher=fetcher,
        orchestrator=orchestrator,
        sync_config=SyncConfig(provider_lookback_days=10),
    )

    assert result.submitted[EntityType.ACCOUNTS] == 1
    (call,) = fetcher.calls
    assert (call["until"] - call["since"]).days == 10  # type: ignore[operator]
