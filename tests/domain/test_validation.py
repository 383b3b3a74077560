from __future__ import annotations

from datetime import datetime

import pytest

from mintsync.domain.errors import SyncValidationError
from mintsync.domain.model import EntityType, SyncRequest
from mintsync.domain.validation import validate_sync_request
from tests.helpers.sync import at, make_change


def _request(**overrides: object) -> SyncRequest:
    values: dict[str, object] = {
        "device_id": "phone",
        "entity_type": EntityType.ACCOUNTS,
        "last_sync_timestamp": at(0),
        "changes": (make_change("a", seconds=1),),
    }
    values.update(overrides)
    return SyncRequest(**values)  # type: ignore[arg-type]


def test_valid_request_passes() -> None:
    validate_sync_request(_request())


def test_all_problems_are_reported_together() -> None:
    request = _request(
        device_id=" ",
        last_sync_timestamp=datetime(2025, 1, 1),  # noqa: DTZ001
        changes=(
            make_change("a", seconds=1, change_id="dup"),
            make_change("b", seconds=2, change_id="dup"),
        ),
    )

    with pytest.raises(SyncValidationError) as exc:
        validate_sync_request(request)

    messages = exc.value.errors
    assert any("device_id" in message for message in messages)
    assert any("timezone" in message for message in messages)
    assert any("duplicate change id dup" in message for message in messages)


def test_entity_type_mismatch_is_rejected() -> None:
    request = _request(
        changes=(make_change("t", seconds=1, entity_type=EntityType.TRANSACTIONS),),
    )

    with pytest.raises(SyncValidationError, match="does not match"):
        validate_sync_request(request)


def test_entity_changed_twice_is_rejected() -> None:
    request = _request(changes=(make_change("a", seconds=1), make_change("a", seconds=2)))

    with pytest.raises(SyncValidationError, match="changed more than once"):
        validate_sync_request(request)


def test_blank_user_is_rejected() -> None:
    with pytest.raises(SyncValidationError, match="user_id"):
        validate_sync_request(_request(user_id=""))
