from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from mintsync.domain.errors import ProviderError
from mintsync.domain.ingestion import ingest_provider_snapshot, normalize_records
from mintsync.domain.model import (
    EPOCH,
    ChangeOperation,
    ChangeOrigin,
    EntityState,
    EntityType,
    SyncRequest,
)
from mintsync.domain.ports.fetching import ProviderRecord, ProviderSnapshot
from mintsync.domain.time_windows import TimeWindow
from tests.helpers.sync import FakeSnapshotFetcher, at, make_change

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mintsync.domain.ingestion import IngestionResult
    from mintsync.domain.synchronization import SyncOrchestrator


def _account(entity_id: str, **payload: object) -> ProviderRecord:
    return ProviderRecord(
        entity_type=EntityType.ACCOUNTS,
        entity_id=entity_id,
        payload={"name": f"Account {entity_id}", **payload},
    )


def _transaction(entity_id: str, amount: float) -> ProviderRecord:
    return ProviderRecord(
        entity_type=EntityType.TRANSACTIONS,
        entity_id=entity_id,
        payload={"account_id": "acc-1", "amount": amount, "date": "2025-01-03"},
    )


def _snapshot(
    seconds: float,
    *accounts: ProviderRecord,
    transactions: Sequence[ProviderRecord] = (),
) -> ProviderSnapshot:
    return ProviderSnapshot(
        provider="plaid",
        fetched_at=at(seconds),
        accounts=accounts,
        transactions=tuple(transactions),
    )


def _ingest(orchestrator: SyncOrchestrator, fetcher: FakeSnapshotFetcher) -> IngestionResult:
    return ingest_provider_snapshot(
        fetcher=fetcher,
        orchestrator=orchestrator,
        access_token="access-sandbox-1",
        window=TimeWindow(start=at(0), end=at(100)),
    )


def test_normalize_records_classifies_against_current_state() -> None:
    current = {
        "same": EntityState(
            entity_type=EntityType.ACCOUNTS,
            entity_id="same",
            updated_at=at(0),
            last_change_id="c1",
            payload={"name": "Account same", "balance": 1.0},
        ),
        "changed": EntityState(
            entity_type=EntityType.ACCOUNTS,
            entity_id="changed",
            updated_at=at(0),
            last_change_id="c2",
            payload={"name": "Account changed", "balance": 1.0},
        ),
        "gone": EntityState(
            entity_type=EntityType.ACCOUNTS,
            entity_id="gone",
            updated_at=at(0),
            last_change_id="c3",
            deleted=True,
        ),
    }
    records = [
        _account("same", balance=1.0),
        _account("changed", balance=2.0),
        _account("gone"),
        _account("new"),
        _account("new", balance=9.0),
    ]

    changes = normalize_records(records, current, provider="plaid", fetched_at=at(50))

    assert [(change.entity_id, change.operation) for change in changes] == [
        ("changed", ChangeOperation.UPDATE),
        ("gone", ChangeOperation.CREATE),
        ("new", ChangeOperation.CREATE),
    ]
    assert all(change.origin is ChangeOrigin.PROVIDER for change in changes)
    assert all(change.timestamp == at(50) for change in changes)


def test_provider_change_ids_are_deterministic() -> None:
    first = normalize_records([_account("a")], {}, provider="plaid", fetched_at=at(1))
    second = normalize_records([_account("a")], {}, provider="plaid", fetched_at=at(1))
    later = normalize_records([_account("a")], {}, provider="plaid", fetched_at=at(2))

    assert first[0].id == second[0].id
    assert first[0].id != later[0].id


def test_ingest_snapshot_creates_then_skips_then_updates(orchestrator: SyncOrchestrator) -> None:
    fetcher = FakeSnapshotFetcher(
        snapshot=_snapshot(
            10,
            _account("acc-1", balance=100.0),
            transactions=[_transaction("tx-1", 12.5)],
        )
    )

    first = _ingest(orchestrator, fetcher)

    assert first.provider == "plaid"
    assert first.fetched == {EntityType.ACCOUNTS: 1, EntityType.TRANSACTIONS: 1}
    assert first.submitted == {EntityType.ACCOUNTS: 1, EntityType.TRANSACTIONS: 1}
    assert fetcher.calls == [
        {"access_token": "access-sandbox-1", "since": at(0), "until": at(100)}
    ]

    fetcher.snapshot = _snapshot(20, _account("acc-1", balance=100.0))
    unchanged = _ingest(orchestrator, fetcher)
    assert unchanged.submitted == {EntityType.ACCOUNTS: 0, EntityType.TRANSACTIONS: 0}

    fetcher.snapshot = _snapshot(30, _account("acc-1", balance=80.0))
    updated = _ingest(orchestrator, fetcher)
    assert updated.submitted[EntityType.ACCOUNTS] == 1

    with orchestrator.unit_of_work_factory() as uow:
        account = uow.repositories.states.get(
            user_id="default", entity_type=EntityType.ACCOUNTS, entity_id="acc-1"
        )
        transaction = uow.repositories.states.get(
            user_id="default", entity_type=EntityType.TRANSACTIONS, entity_id="tx-1"
        )
    assert account is not None
    assert account.payload_dict()["balance"] == 80.0
    assert account.updated_at == at(30)
    assert transaction is not None
    assert transaction.payload_dict()["amount"] == 12.5


def test_ingested_changes_reach_devices_as_provider_origin(
    orchestrator: SyncOrchestrator,
) -> None:
    _ingest(orchestrator, FakeSnapshotFetcher(snapshot=_snapshot(10, _account("acc-1"))))

    response = orchestrator.synchronize(
        SyncRequest(
            device_id="phone",
            entity_type=EntityType.ACCOUNTS,
            last_sync_timestamp=EPOCH,
        )
    )

    (change,) = response.changes
    assert change.origin is ChangeOrigin.PROVIDER
    assert change.device_id == "provider:plaid"


def test_provider_error_leaves_store_untouched(orchestrator: SyncOrchestrator) -> None:
    fetcher = FakeSnapshotFetcher(error=ProviderError("item login required"))

    with pytest.raises(ProviderError):
        _ingest(orchestrator, fetcher)

    assert orchestrator.sync_status().rounds == []


def _push_balance(orchestrator: SyncOrchestrator, seconds: float, balance: float) -> None:
    orchestrator.synchronize(
        SyncRequest(
            device_id="phone",
            entity_type=EntityType.ACCOUNTS,
            last_sync_timestamp=EPOCH,
            changes=(make_change("acc-1", seconds=seconds, payload={"balance": balance}),),
        )
    )


def _account_balance(orchestrator: SyncOrchestrator) -> object:
    with orchestrator.unit_of_work_factory() as uow:
        state = uow.repositories.states.get(
            user_id="default", entity_type=EntityType.ACCOUNTS, entity_id="acc-1"
        )
    assert state is not None
    return state.payload_dict()["balance"]


def test_provider_and_client_edit_with_equal_timestamps_conflict(
    orchestrator: SyncOrchestrator,
) -> None:
    fetcher = FakeSnapshotFetcher(snapshot=_snapshot(10, _account("acc-1", balance=100.0)))
    _ingest(orchestrator, fetcher)
    _push_balance(orchestrator, 20, 90.0)

    fetcher.snapshot = _snapshot(20, _account("acc-1", balance=80.0))
    result = _ingest(orchestrator, fetcher)

    response = result.responses[EntityType.ACCOUNTS]
    (conflict,) = response.conflicts
    assert conflict.client_change.origin is ChangeOrigin.PROVIDER
    assert conflict.server_change.device_id == "phone"
    assert response.changes == ()
    assert _account_balance(orchestrator) == 90.0


def test_newer_client_edit_beats_later_snapshot_of_older_data(
    orchestrator: SyncOrchestrator,
) -> None:
    fetcher = FakeSnapshotFetcher(snapshot=_snapshot(10, _account("acc-1", balance=100.0)))
    _ingest(orchestrator, fetcher)
    _push_balance(orchestrator, 30, 90.0)

    fetcher.snapshot = _snapshot(25, _account("acc-1", balance=80.0))
    result = _ingest(orchestrator, fetcher)

    response = result.responses[EntityType.ACCOUNTS]
    assert response.conflicts == ()
    (returned,) = response.changes
    assert returned.device_id == "phone"
    assert _account_balance(orchestrator) == 90.0


def test_provider_rounds_resume_from_their_previous_round(
    orchestrator: SyncOrchestrator,
) -> None:
    fetcher = FakeSnapshotFetcher(snapshot=_snapshot(10, _account("acc-1", balance=100.0)))
    _ingest(orchestrator, fetcher)

    second = _ingest(orchestrator, fetcher)

    assert second.submitted == {EntityType.ACCOUNTS: 0, EntityType.TRANSACTIONS: 0}
    assert second.responses[EntityType.ACCOUNTS].changes == ()
