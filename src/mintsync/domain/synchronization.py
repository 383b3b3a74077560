"""Application service running one sync round for one entity type.

A round validates the request, serializes against other rounds for the same
owner and entity type, resolves the client change-set against the server delta
and applies the merged result inside a single unit of work.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

from mintsync.domain.errors import SyncTimeoutError, SyncValidationError
from mintsync.domain.events import (
    LoggingEventSink,
    SyncEvent,
    SyncEventKind,
    SyncEventSink,
    emit_safely,
)
from mintsync.domain.locking import KeyedLocks
from mintsync.domain.model import (
    DEFAULT_USER_ID,
    SyncResponse,
    SyncRound,
    SyncRoundStatus,
    validate_change_payload,
)
from mintsync.domain.resolution import resolve_conflicts
from mintsync.domain.store import apply_changes
from mintsync.domain.time_windows import Clock, utcnow
from mintsync.domain.validation import validate_sync_request

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence

    from mintsync.domain.model import Change, ConflictResolution, SyncRequest
    from mintsync.domain.ports.unit_of_work import SyncRepositories, SyncUnitOfWork

DEFAULT_TIMEOUT_SECONDS = 30.0

log = getLogger(__name__)


@dataclass(slots=True)
class SyncStatus:
    """Recent sync activity for one owner, optionally narrowed to a device."""

    user_id: str
    device_id: str | None
    rounds: Sequence[SyncRound]

    @property
    def last_completed(self) -> SyncRound | None:
        for sync_round in self.rounds:
            if sync_round.status is SyncRoundStatus.COMPLETED:
                return sync_round
        return None


@dataclass(slots=True)
class SyncOrchestrator:
    unit_of_work_factory: Callable[[], SyncUnitOfWork]
    events: SyncEventSink = field(default_factory=LoggingEventSink)
    locks: KeyedLocks = field(default_factory=KeyedLocks)
    clock: Clock = utcnow
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    monotonic: Callable[[], float] = time.monotonic

    def synchronize(self, request: SyncRequest) -> SyncResponse:
        """Run one sync round and return the changes the device must apply.

        Raises ``SyncValidationError`` before touching the store,
        ``SyncTimeoutError`` when the lock wait or commit deadline is exceeded,
        and ``ResolutionError`` when the merged result cannot be applied. A
        failed round leaves the store unchanged.
        """

        self._emit(SyncEventKind.STARTED, request)
        try:
            validate_sync_request(request)
        except SyncValidationError as exc:
            self._emit(SyncEventKind.FAILED, request, error=exc)
            raise

        sync_round = SyncRound(
            user_id=request.user_id,
            device_id=request.device_id,
            entity_type=request.entity_type,
            started_at=self.clock(),
        )
        try:
            response, resolution = self._run_round(request, sync_round)
        except Exception as exc:
            self._record_failure(sync_round, exc)
            self._emit(SyncEventKind.FAILED, request, error=exc)
            raise

        if resolution.has_conflicts:
            self._emit(
                SyncEventKind.CONFLICT,
                request,
                detail={
                    "count": len(resolution.conflicts),
                    "entity_ids": [conflict.entity_id for conflict in resolution.conflicts],
                },
            )
        self._emit(
            SyncEventKind.COMPLETED,
            request,
            detail={
                "resolved": len(resolution.resolved),
                "conflicts": len(resolution.conflicts),
                "returned": len(response.changes),
            },
        )
        return response

    def sync_status(
        self,
        *,
        user_id: str = DEFAULT_USER_ID,
        device_id: str | None = None,
        limit: int = 5,
    ) -> SyncStatus:
        with self.unit_of_work_factory() as uow:
            rounds = uow.repositories.rounds.recent(
                user_id=user_id, device_id=device_id, limit=limit
            )
            return SyncStatus(user_id=user_id, device_id=device_id, rounds=list(rounds))

    def _run_round(
        self,
        request: SyncRequest,
        sync_round: SyncRound,
    ) -> tuple[SyncResponse, ConflictResolution]:
        deadline = self.monotonic() + self.timeout_seconds
        client_changes = tuple(
            _stamp_device(change, request.device_id) for change in request.changes
        )

        with self.locks.hold(request.serialization_key, timeout=self.timeout_seconds):
            with self.unit_of_work_factory() as uow:
                repositories = uow.repositories
                server_changes = repositories.changes.changes_since(
                    user_id=request.user_id,
                    entity_type=request.entity_type,
                    since=request.last_sync_timestamp,
                )
                server_changes.extend(
                    _settled_counterparts(
                        repositories,
                        request=request,
                        client_changes=client_changes,
                        delta=server_changes,
                    )
                )
                resolution = resolve_conflicts(client_changes, server_changes)
                for change in resolution.resolved:
                    validate_change_payload(change)

                recorded_at = self.clock()
                apply_changes(
                    resolution.resolved,
                    change_log=repositories.changes,
                    states=repositories.states,
                    user_id=request.user_id,
                    recorded_at=recorded_at,
                )

                sync_round.status = SyncRoundStatus.COMPLETED
                sync_round.finished_at = recorded_at
                sync_round.resolved_count = len(resolution.resolved)
                sync_round.conflict_count = len(resolution.conflicts)
                repositories.rounds.add(sync_round)

                if self.monotonic() > deadline:
                    raise SyncTimeoutError(
                        f"Sync round for device {request.device_id} ({request.entity_type}) "
                        f"exceeded {self.timeout_seconds:g}s"
                    )
                uow.commit()

        submitted = {change.id for change in client_changes}
        response = SyncResponse(
            success=True,
            timestamp=recorded_at,
            entity_type=request.entity_type,
            changes=tuple(change for change in resolution.resolved if change.id not in submitted),
            conflicts=resolution.conflicts,
        )
        log.info(
            "Sync round %s for %s/%s (%s): resolved=%s conflicts=%s returned=%s",
            sync_round.id,
            request.user_id,
            request.device_id,
            request.entity_type,
            sync_round.resolved_count,
            sync_round.conflict_count,
            len(response.changes),
        )
        return response, resolution

    def _record_failure(self, sync_round: SyncRound, error: BaseException) -> None:
        sync_round.status = SyncRoundStatus.FAILED
        sync_round.finished_at = self.clock()
        sync_round.resolved_count = 0
        sync_round.conflict_count = 0
        sync_round.error = f"{type(error).__name__}: {error}"
        try:
            with self.unit_of_work_factory() as uow:
                uow.repositories.rounds.add(sync_round)
                uow.commit()
        except Exception:
            log.exception("Could not record failed sync round %s", sync_round.id)

    def _emit(
        self,
        kind: SyncEventKind,
        request: SyncRequest,
        *,
        detail: Mapping[str, object] | None = None,
        error: BaseException | None = None,
    ) -> None:
        event = SyncEvent(
            kind=kind,
            user_id=request.user_id,
            device_id=request.device_id,
            entity_type=request.entity_type,
            detail=detail or {},
            error=error,
        )
        emit_safely(self.events, event)


def _stamp_device(change: Change, device_id: str) -> Change:
    if change.device_id:
        return change
    return replace(change, device_id=device_id)


def _settled_counterparts(
    repositories: SyncRepositories,
    *,
    request: SyncRequest,
    client_changes: Sequence[Change],
    delta: Sequence[Change],
) -> list[Change]:
    """Return logged changes that still compete with client changes outside ``delta``.

    A device that already received a server change (or a conflict on it) no
    longer sees it in its delta. Current state still carries it, so a client
    change that is not newer than that state is compared with the logged
    change instead of being accepted unopposed.
    """

    in_delta = {change.entity_id for change in delta}
    candidates = {
        change.entity_id: change for change in client_changes if change.entity_id not in in_delta
    }
    if not candidates:
        return []

    states = repositories.states.get_many(
        user_id=request.user_id,
        entity_type=request.entity_type,
        entity_ids=candidates,
    )
    counterparts: list[Change] = []
    for entity_id, state in states.items():
        change = candidates[entity_id]
        if state.last_change_id == change.id or state.updated_at < change.timestamp:
            continue
        logged = repositories.changes.get(user_id=request.user_id, change_id=state.last_change_id)
        if logged is not None:
            counterparts.append(logged)
    return counterparts
