"""Client-side sync: record mutations, push them and apply the server's answer."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from mintsync.domain.extraction import derive_change_id, extract_changes
from mintsync.domain.model import (
    DEFAULT_USER_ID,
    EPOCH,
    Change,
    ChangeOrigin,
    SyncRequest,
    apply_change,
)
from mintsync.domain.store import apply_changes

if TYPE_CHECKING:
    from collections.abc import Callable

    from mintsync.domain.model import Conflict, EntityType, LocalMutation, SyncResponse
    from mintsync.domain.ports.unit_of_work import LocalStoreUnitOfWork

log = getLogger(__name__)

type SyncTransport = Callable[[SyncRequest], SyncResponse]


@dataclass(frozen=True, slots=True)
class PreparedPush:
    request: SyncRequest
    sequences: tuple[int, ...]


@dataclass(slots=True)
class LocalSyncResult:
    entity_type: EntityType
    pushed: int
    received: int
    conflicts: tuple[Conflict, ...]


def record_mutation(
    uow: LocalStoreUnitOfWork,
    mutation: LocalMutation,
    *,
    device_id: str,
    user_id: str = DEFAULT_USER_ID,
) -> LocalMutation:
    """Append ``mutation`` to the pending log and fold it into local state."""

    repositories = uow.repositories
    recorded = repositories.mutations.record(mutation)
    if recorded.sequence is not None:
        key = str(recorded.sequence)
    else:
        key = recorded.recorded_at.isoformat()
    local_change = Change(
        id=derive_change_id(device_id, recorded.entity_id, (key,)),
        entity_id=recorded.entity_id,
        entity_type=recorded.entity_type,
        operation=recorded.operation,
        timestamp=recorded.recorded_at,
        payload=recorded.payload,
        origin=ChangeOrigin.CLIENT,
        device_id=device_id,
    )
    current = repositories.states.get(
        user_id=user_id, entity_type=recorded.entity_type, entity_id=recorded.entity_id
    )
    updated = apply_change(current, local_change)
    if updated is not current:
        repositories.states.save(updated, user_id=user_id)
    return recorded


def prepare_push(
    uow: LocalStoreUnitOfWork,
    entity_type: EntityType,
    *,
    device_id: str,
    user_id: str = DEFAULT_USER_ID,
    client_version: str | None = None,
) -> PreparedPush:
    repositories = uow.repositories
    extracted = extract_changes(repositories.mutations.pending(entity_type), device_id=device_id)
    since = repositories.checkpoints.get(entity_type) or EPOCH
    request = SyncRequest(
        device_id=device_id,
        user_id=user_id,
        entity_type=entity_type,
        last_sync_timestamp=since,
        changes=extracted.changes,
        client_version=client_version,
    )
    return PreparedPush(request=request, sequences=extracted.sequences)


def apply_sync_response(
    uow: LocalStoreUnitOfWork,
    push: PreparedPush,
    response: SyncResponse,
) -> None:
    """Converge the local store with ``response``.

    Pushed mutations are marked synced except those behind a conflicting
    change, which stay pending until the conflict is settled on the device.
    Replaying the same response is harmless.
    """

    repositories = uow.repositories
    request = push.request
    conflicted = {conflict.entity_id for conflict in response.conflicts}
    if conflicted:
        synced = [
            mutation.sequence
            for mutation in repositories.mutations.pending(request.entity_type)
            if mutation.sequence in push.sequences and mutation.entity_id not in conflicted
        ]
    else:
        synced = list(push.sequences)

    apply_changes(
        response.changes,
        change_log=repositories.changes,
        states=repositories.states,
        user_id=request.user_id,
        recorded_at=response.timestamp,
    )
    repositories.mutations.mark_synced(seq for seq in synced if seq is not None)
    repositories.checkpoints.set(request.entity_type, response.timestamp)


def sync_local_store(
    *,
    unit_of_work_factory: Callable[[], LocalStoreUnitOfWork],
    transport: SyncTransport,
    entity_type: EntityType,
    device_id: str,
    user_id: str = DEFAULT_USER_ID,
    client_version: str | None = None,
) -> LocalSyncResult:
    """Push pending mutations for one entity type and apply the server's answer.

    ``transport`` delivers the request to the server; a failure there leaves
    the local store untouched so the same mutations are pushed next time.
    """

    with unit_of_work_factory() as uow:
        push = prepare_push(
            uow,
            entity_type,
            device_id=device_id,
            user_id=user_id,
            client_version=client_version,
        )

    response = transport(push.request)

    with unit_of_work_factory() as uow:
        apply_sync_response(uow, push, response)
        uow.commit()

    if response.conflicts:
        log.warning(
            "%s %s conflict(s) need manual resolution on device %s",
            len(response.conflicts),
            entity_type,
            device_id,
        )
    return LocalSyncResult(
        entity_type=entity_type,
        pushed=len(push.request.changes),
        received=len(response.changes),
        conflicts=response.conflicts,
    )
