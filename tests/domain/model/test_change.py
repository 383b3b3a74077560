from __future__ import annotations

from datetime import UTC, datetime, timedelta, timezone

import pytest

from mintsync.domain.model import (
    Change,
    ChangeOperation,
    ChangeOrigin,
    EntityType,
    InvalidChangeError,
    latest_per_entity,
)
from tests.helpers.sync import at, make_change


def test_change_normalises_timestamp_to_utc() -> None:
    local = datetime(2025, 1, 1, 12, tzinfo=timezone(timedelta(hours=2)))

    change = Change(
        id="c1",
        entity_id="acc-1",
        entity_type="accounts",  # type: ignore[arg-type]
        operation="UPDATE",  # type: ignore[arg-type]
        timestamp=local,
    )

    assert change.timestamp == datetime(2025, 1, 1, 10, tzinfo=UTC)
    assert change.timestamp.tzinfo is UTC
    assert change.entity_type is EntityType.ACCOUNTS
    assert change.operation is ChangeOperation.UPDATE
    assert change.origin is ChangeOrigin.CLIENT


def test_change_rejects_naive_timestamp() -> None:
    with pytest.raises(InvalidChangeError, match="timezone"):
        Change(
            id="c1",
            entity_id="acc-1",
            entity_type=EntityType.ACCOUNTS,
            operation=ChangeOperation.CREATE,
            timestamp=datetime(2025, 1, 1),  # noqa: DTZ001
        )


@pytest.mark.parametrize(("change_id", "entity_id"), [("", "acc"), ("  ", "acc"), ("c1", " ")])
def test_change_rejects_blank_identifiers(change_id: str, entity_id: str) -> None:
    with pytest.raises(InvalidChangeError):
        Change(
            id=change_id,
            entity_id=entity_id,
            entity_type=EntityType.ACCOUNTS,
            operation=ChangeOperation.CREATE,
            timestamp=at(0),
        )


def test_change_payload_is_read_only() -> None:
    source = {"name": "Checking"}
    change = make_change("acc-1", payload=source)
    source["name"] = "mutated"

    assert change.payload["name"] == "Checking"
    with pytest.raises(TypeError):
        change.payload["name"] = "other"  # type: ignore[index]


def test_with_origin_returns_copy() -> None:
    change = make_change("acc-1")

    provider_change = change.with_origin(ChangeOrigin.PROVIDER)

    assert provider_change.origin is ChangeOrigin.PROVIDER
    assert change.origin is ChangeOrigin.CLIENT
    assert provider_change.id == change.id


def test_latest_per_entity_keeps_newest_and_first_seen_order() -> None:
    older_a = make_change("a", seconds=1)
    b = make_change("b", seconds=5)
    newer_a = make_change("a", seconds=3)

    assert latest_per_entity([older_a, b, newer_a]) == [newer_a, b]


def test_latest_per_entity_prefers_later_entry_on_tie() -> None:
    first = make_change("a", seconds=1, change_id="first")
    second = make_change("a", seconds=1, change_id="second")

    assert latest_per_entity([first, second]) == [second]
