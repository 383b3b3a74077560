from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from mintsync.domain.errors import SyncTimeoutError, SyncValidationError
from mintsync.domain.events import SyncEventKind
from mintsync.domain.model import (
    EPOCH,
    ChangeOperation,
    EntityType,
    Resolution,
    SyncRequest,
    SyncRoundStatus,
)
from mintsync.domain.synchronization import SyncOrchestrator
from tests.helpers.sync import at, make_change

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from mintsync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork
    from mintsync.domain.model import Change, EntityState
    from tests.helpers.sync import RecordingEventSink, TickingClock


def _request(
    device_id: str,
    *changes: Change,
    since: datetime = EPOCH,
    entity_type: EntityType = EntityType.ACCOUNTS,
) -> SyncRequest:
    return SyncRequest(
        device_id=device_id,
        entity_type=entity_type,
        last_sync_timestamp=since,
        changes=changes,
    )


def _states(
    uow_factory: Callable[[], SqlAlchemySyncUnitOfWork],
    entity_type: EntityType = EntityType.ACCOUNTS,
) -> dict[str, EntityState]:
    with uow_factory() as uow:
        states = uow.repositories.states.list_states(user_id="default", entity_type=entity_type)
    return {state.entity_id: state for state in states}


def test_first_push_creates_state_and_returns_nothing(orchestrator: SyncOrchestrator) -> None:
    change = make_change(
        "acc-1",
        seconds=5,
        operation=ChangeOperation.CREATE,
        payload={"name": "Checking", "balance": 120.5},
    )

    response = orchestrator.synchronize(_request("phone", change))

    assert response.success is True
    assert response.changes == ()
    assert response.conflicts == ()
    state = _states(orchestrator.unit_of_work_factory)["acc-1"]
    assert state.payload_dict() == {"name": "Checking", "balance": 120.5}
    assert state.last_change_id == change.id


def test_newer_client_change_wins(orchestrator: SyncOrchestrator) -> None:
    orchestrator.synchronize(
        _request("web", make_change("a", seconds=5, change_id="web-a", payload={"name": "Web"}))
    )

    response = orchestrator.synchronize(
        _request("phone", make_change("a", seconds=10, payload={"name": "Phone"}))
    )

    assert response.changes == ()
    assert _states(orchestrator.unit_of_work_factory)["a"].payload_dict() == {"name": "Phone"}


def test_newer_server_change_is_returned_to_the_device(orchestrator: SyncOrchestrator) -> None:
    orchestrator.synchronize(
        _request("web", make_change("a", seconds=10, change_id="web-a", payload={"name": "Web"}))
    )

    response = orchestrator.synchronize(
        _request("phone", make_change("a", seconds=5, payload={"name": "Phone"}))
    )

    (returned,) = response.changes
    assert returned.id == "web-a"
    assert returned.device_id == "web"
    assert _states(orchestrator.unit_of_work_factory)["a"].payload_dict() == {"name": "Web"}


def test_equal_timestamps_are_reported_and_not_applied(
    orchestrator: SyncOrchestrator,
    event_sink: RecordingEventSink,
) -> None:
    orchestrator.synchronize(
        _request("web", make_change("a", seconds=5, change_id="web-a", payload={"name": "Web"}))
    )
    event_sink.events.clear()

    response = orchestrator.synchronize(
        _request("phone", make_change("a", seconds=5, payload={"name": "Phone"}))
    )

    (conflict,) = response.conflicts
    assert conflict.resolution is Resolution.MANUAL_REQUIRED
    assert conflict.server_change.id == "web-a"
    assert response.changes == ()
    assert _states(orchestrator.unit_of_work_factory)["a"].payload_dict() == {"name": "Web"}
    assert event_sink.kinds() == [
        SyncEventKind.STARTED,
        SyncEventKind.CONFLICT,
        SyncEventKind.COMPLETED,
    ]
    assert event_sink.events[1].detail["entity_ids"] == ["a"]


def test_delta_only_covers_changes_recorded_after_checkpoint(
    orchestrator: SyncOrchestrator,
) -> None:
    first = orchestrator.synchronize(_request("web", make_change("a", seconds=1)))
    orchestrator.synchronize(_request("web", make_change("b", seconds=2), since=first.timestamp))

    response = orchestrator.synchronize(_request("phone", since=first.timestamp))

    assert [change.entity_id for change in response.changes] == ["b"]
    everything = orchestrator.synchronize(_request("phone"))
    assert sorted(change.entity_id for change in everything.changes) == ["a", "b"]


def test_resubmitting_an_applied_change_is_idempotent(orchestrator: SyncOrchestrator) -> None:
    change = make_change("a", seconds=3, change_id="phone-a")
    orchestrator.synchronize(_request("phone", change))

    response = orchestrator.synchronize(_request("phone", change))

    assert response.changes == ()
    assert response.conflicts == ()
    with orchestrator.unit_of_work_factory() as uow:
        logged = uow.repositories.changes.changes_since(
            user_id="default", entity_type=EntityType.ACCOUNTS, since=EPOCH
        )
    assert [entry.id for entry in logged] == ["phone-a"]


def test_device_id_is_stamped_on_client_changes(orchestrator: SyncOrchestrator) -> None:
    orchestrator.synchronize(_request("phone", make_change("a", seconds=1)))

    response = orchestrator.synchronize(_request("tablet"))

    (change,) = response.changes
    assert change.device_id == "phone"


def test_invalid_payload_rejects_the_whole_request(
    orchestrator: SyncOrchestrator,
    event_sink: RecordingEventSink,
) -> None:
    valid = make_change("a", seconds=1, operation=ChangeOperation.CREATE)
    invalid = make_change("b", seconds=2, operation=ChangeOperation.CREATE, payload={"mask": "1"})

    with pytest.raises(SyncValidationError, match=r"changes\[1\].*requires name"):
        orchestrator.synchronize(_request("phone", valid, invalid))

    assert _states(orchestrator.unit_of_work_factory) == {}
    assert event_sink.kinds() == [SyncEventKind.STARTED, SyncEventKind.FAILED]
    assert orchestrator.sync_status().rounds == []


@pytest.mark.parametrize("seconds", [5, 10], ids=["conflicting", "losing"])
def test_malformed_change_is_rejected_even_when_it_would_not_be_applied(
    orchestrator: SyncOrchestrator,
    seconds: float,
) -> None:
    orchestrator.synchronize(
        _request("web", make_change("a", seconds=10, change_id="web-a", payload={"name": "Web"}))
    )
    malformed = make_change("a", seconds=seconds, payload={"balance": "not-a-number"})

    with pytest.raises(SyncValidationError, match="balance"):
        orchestrator.synchronize(_request("phone", malformed))

    assert orchestrator.sync_status(device_id="phone").rounds == []


def test_stale_change_after_checkpoint_loses_to_current_state(
    orchestrator: SyncOrchestrator,
) -> None:
    orchestrator.synchronize(
        _request("web", make_change("a", seconds=10, change_id="web-a", payload={"name": "Web"}))
    )
    pulled = orchestrator.synchronize(_request("phone"))

    response = orchestrator.synchronize(
        _request(
            "phone",
            make_change("a", seconds=5, payload={"name": "Phone"}),
            since=pulled.timestamp,
        )
    )

    assert [change.id for change in response.changes] == ["web-a"]
    assert response.conflicts == ()
    assert _states(orchestrator.unit_of_work_factory)["a"].payload_dict() == {"name": "Web"}


def test_equal_timestamp_after_checkpoint_is_still_a_conflict(
    orchestrator: SyncOrchestrator,
) -> None:
    orchestrator.synchronize(
        _request("web", make_change("a", seconds=5, change_id="web-a", payload={"name": "Web"}))
    )
    pulled = orchestrator.synchronize(_request("phone"))

    response = orchestrator.synchronize(
        _request(
            "phone",
            make_change("a", seconds=5, payload={"name": "Phone"}),
            since=pulled.timestamp,
        )
    )

    (conflict,) = response.conflicts
    assert conflict.resolution is Resolution.MANUAL_REQUIRED
    assert conflict.server_change.id == "web-a"
    assert response.changes == ()
    assert _states(orchestrator.unit_of_work_factory)["a"].payload_dict() == {"name": "Web"}


def test_newer_change_after_checkpoint_is_applied(orchestrator: SyncOrchestrator) -> None:
    orchestrator.synchronize(
        _request("web", make_change("a", seconds=5, change_id="web-a", payload={"name": "Web"}))
    )
    pulled = orchestrator.synchronize(_request("phone"))

    response = orchestrator.synchronize(
        _request(
            "phone",
            make_change("a", seconds=6, payload={"name": "Phone"}),
            since=pulled.timestamp,
        )
    )

    assert response.changes == ()
    assert response.conflicts == ()
    assert _states(orchestrator.unit_of_work_factory)["a"].payload_dict() == {"name": "Phone"}



def test_validation_error_is_raised_before_store_access(
    orchestrator: SyncOrchestrator,
    event_sink: RecordingEventSink,
) -> None:
    request = _request(
        "phone",
        make_change("t", seconds=1, entity_type=EntityType.TRANSACTIONS),
    )

    with pytest.raises(SyncValidationError):
        orchestrator.synchronize(request)

    assert event_sink.kinds() == [SyncEventKind.STARTED, SyncEventKind.FAILED]
    assert orchestrator.sync_status().rounds == []


def test_round_exceeding_deadline_is_rolled_back(
    sync_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    clock: TickingClock,
    event_sink: RecordingEventSink,
) -> None:
    readings = iter([0.0, 100.0])
    orchestrator = SyncOrchestrator(
        unit_of_work_factory=sync_unit_of_work,
        events=event_sink,
        clock=clock,
        timeout_seconds=30,
        monotonic=lambda: next(readings),
    )

    with pytest.raises(SyncTimeoutError):
        orchestrator.synchronize(_request("phone", make_change("a", seconds=1)))

    assert _states(sync_unit_of_work) == {}
    assert orchestrator.sync_status().rounds[0].status is SyncRoundStatus.FAILED


def test_concurrent_round_on_same_key_times_out(
    sync_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    clock: TickingClock,
    event_sink: RecordingEventSink,
) -> None:
    orchestrator = SyncOrchestrator(
        unit_of_work_factory=sync_unit_of_work,
        events=event_sink,
        clock=clock,
        timeout_seconds=0.05,
        monotonic=lambda: 0.0,
    )

    with orchestrator.locks.hold(("default", EntityType.ACCOUNTS)):
        with pytest.raises(SyncTimeoutError):
            orchestrator.synchronize(_request("phone", make_change("a", seconds=1)))
        goal = make_change(
            "g",
            seconds=1,
            entity_type=EntityType.GOALS,
            payload={"name": "Trip", "target_amount": 900},
        )
        other = orchestrator.synchronize(_request("phone", goal, entity_type=EntityType.GOALS))

    assert other.success is True


def test_sync_status_lists_recent_rounds_newest_first(orchestrator: SyncOrchestrator) -> None:
    orchestrator.synchronize(_request("phone", make_change("a", seconds=1)))
    orchestrator.synchronize(_request("tablet", make_change("b", seconds=2)))

    status = orchestrator.sync_status()
    phone_only = orchestrator.sync_status(device_id="phone")

    assert [sync_round.device_id for sync_round in status.rounds] == ["tablet", "phone"]
    assert [sync_round.device_id for sync_round in phone_only.rounds] == ["phone"]
    assert status.last_completed is not None
    assert status.last_completed.device_id == "tablet"
    assert status.rounds[0].resolved_count == 1


def test_response_timestamp_is_not_before_changes_it_covers(
    orchestrator: SyncOrchestrator,
) -> None:
    response = orchestrator.synchronize(_request("phone", make_change("a", seconds=1)))

    assert response.timestamp > at(1)
