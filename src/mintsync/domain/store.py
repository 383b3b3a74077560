"""Apply a batch of changes to a store's change log and current state."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from mintsync.domain.model import apply_change

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    from mintsync.domain.model import Change
    from mintsync.domain.ports.persistence import ChangeRepository, EntityStateRepository

log = getLogger(__name__)


@dataclass(slots=True)
class ApplyResult:
    appended: int = 0
    skipped: int = 0
    state_updates: int = 0


def apply_changes(
    changes: Iterable[Change],
    *,
    change_log: ChangeRepository,
    states: EntityStateRepository,
    user_id: str,
    recorded_at: datetime,
) -> ApplyResult:
    """Record ``changes`` and fold them into current state.

    Changes already present in the log are skipped, so replaying a batch is
    harmless. The caller owns the transaction and decides when to commit.
    """

    result = ApplyResult()
    for change in changes:
        if change_log.contains(user_id=user_id, change_id=change.id):
            result.skipped += 1
            continue
        change_log.append(change, user_id=user_id, recorded_at=recorded_at)
        result.appended += 1

        current = states.get(
            user_id=user_id, entity_type=change.entity_type, entity_id=change.entity_id
        )
        updated = apply_change(current, change)
        if updated is not current:
            states.save(updated, user_id=user_id)
            result.state_updates += 1

    log.debug(
        "Applied changes for %s: appended=%s skipped=%s state_updates=%s",
        user_id,
        result.appended,
        result.skipped,
        result.state_updates,
    )
    return result
