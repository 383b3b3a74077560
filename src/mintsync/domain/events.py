"""Lifecycle notifications for sync rounds.

Sinks are passed explicitly to the services that emit events. Emission is
fire-and-forget: a failing sink is logged and never changes a round's outcome.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from mintsync.domain.model import EntityType

log = getLogger(__name__)


class SyncEventKind(StrEnum):
    STARTED = "sync:started"
    COMPLETED = "sync:completed"
    CONFLICT = "sync:conflict"
    FAILED = "sync:error"


@dataclass(frozen=True, slots=True, kw_only=True)
class SyncEvent:
    kind: SyncEventKind
    user_id: str
    device_id: str
    entity_type: EntityType
    detail: Mapping[str, object] = field(default_factory=dict)
    error: BaseException | None = None


@runtime_checkable
class SyncEventSink(Protocol):
    def emit(self, event: SyncEvent) -> None: ...


class LoggingEventSink:
    """Write lifecycle events to the standard logging tree."""

    def __init__(self, logger_name: str = "mintsync.sync") -> None:
        self._log = getLogger(logger_name)

    def emit(self, event: SyncEvent) -> None:
        if event.kind is SyncEventKind.FAILED:
            self._log.error(
                "Sync error for device %s (%s): %s",
                event.device_id,
                event.entity_type,
                event.error,
            )
        elif event.kind is SyncEventKind.CONFLICT:
            self._log.warning(
                "Sync conflict detected for device %s (%s): %s",
                event.device_id,
                event.entity_type,
                dict(event.detail),
            )
        elif event.kind is SyncEventKind.COMPLETED:
            self._log.info(
                "Sync completed for device %s (%s): %s",
                event.device_id,
                event.entity_type,
                dict(event.detail),
            )
        else:
            self._log.debug("Sync started for device %s (%s)", event.device_id, event.entity_type)


class CompositeEventSink:
    def __init__(self, *sinks: SyncEventSink) -> None:
        self.sinks = sinks

    def emit(self, event: SyncEvent) -> None:
        for sink in self.sinks:
            emit_safely(sink, event)


def emit_safely(sink: SyncEventSink, event: SyncEvent) -> None:
    try:
        sink.emit(event)
    except Exception:
        log.exception("Event sink %r failed while handling %s", sink, event.kind)
