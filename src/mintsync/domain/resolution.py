"""Timestamp-based conflict resolution between client and server change-sets.

Responsibilities of this stage:
- pair client and server changes by ``entity_id``
- classify each pair as CLIENT_WIN, SERVER_WIN or MANUAL_REQUIRED
- produce one outcome per entity without touching persistence

Equal timestamps are never guessed: the pair is surfaced as a conflict and
neither side is applied. Deletes follow the same timestamp rule as updates.
"""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from mintsync.domain.errors import ResolutionError
from mintsync.domain.model import Conflict, ConflictResolution, Resolution

if TYPE_CHECKING:
    from collections.abc import Sequence

    from mintsync.domain.model import Change

log = getLogger(__name__)


def determine_resolution(client_change: Change, server_change: Change) -> Resolution:
    if client_change.timestamp > server_change.timestamp:
        return Resolution.CLIENT_WIN
    if server_change.timestamp > client_change.timestamp:
        return Resolution.SERVER_WIN
    return Resolution.MANUAL_REQUIRED


def resolve_conflicts(
    client_changes: Sequence[Change],
    server_changes: Sequence[Change],
) -> ConflictResolution:
    """Merge two change-sets into a conflict-free set plus unresolved conflicts.

    Client changes keep their submission order, followed by server changes that
    have no client counterpart. A client change carrying the same id as the
    server change is one change observed twice and is accepted once.
    """

    client_by_entity = _index_by_entity(client_changes, side="client")
    server_by_entity = _index_by_entity(server_changes, side="server")

    resolved: list[Change] = []
    conflicts: list[Conflict] = []

    for client_change in client_changes:
        server_change = server_by_entity.get(client_change.entity_id)
        if server_change is None:
            resolved.append(client_change)
            continue

        if server_change.id == client_change.id:
            resolved.append(server_change)
            continue

        resolution = determine_resolution(client_change, server_change)
        if resolution is Resolution.CLIENT_WIN:
            resolved.append(client_change)
        elif resolution is Resolution.SERVER_WIN:
            resolved.append(server_change)
        else:
            log.info(
                "Equal timestamps for %s %s; manual resolution required",
                client_change.entity_type,
                client_change.entity_id,
            )
            conflicts.append(
                Conflict(
                    client_change=client_change,
                    server_change=server_change,
                    resolution=resolution,
                )
            )

    for server_change in server_changes:
        if server_change.entity_id not in client_by_entity:
            resolved.append(server_change)

    return ConflictResolution(resolved=tuple(resolved), conflicts=tuple(conflicts))


def _index_by_entity(changes: Sequence[Change], *, side: str) -> dict[str, Change]:
    index: dict[str, Change] = {}
    for change in changes:
        if change.entity_id in index:
            raise ResolutionError(
                f"Duplicate {side} change for entity {change.entity_id} in one change-set"
            )
        index[change.entity_id] = change
    return index
