from __future__ import annotations

import os
from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from mintsync.adapters.sqlalchemy.migrations import upgrade_head
from mintsync.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyLocalStoreUnitOfWork,
    SqlAlchemySyncUnitOfWork,
    shutdown,
    startup,
)
from mintsync.domain.synchronization import SyncOrchestrator
from tests.helpers.sync import RecordingEventSink, TickingClock

os.environ.setdefault("DATABASE_URI", "sqlite+pysqlite:///:memory:")

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

    from sqlalchemy.engine import Engine


def _memory_engine() -> Engine:
    # one shared connection so every session (and the API worker thread) sees the same database
    return create_engine(
        "sqlite+pysqlite:///:memory:",
        future=True,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


@pytest.fixture
def sqlite_engine() -> Iterator[Engine]:
    engine = _memory_engine()
    upgrade_head(engine=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def sync_unit_of_work(sqlite_engine: Engine) -> Iterator[Callable[[], SqlAlchemySyncUnitOfWork]]:
    startup(engine=sqlite_engine, force=True)

    def factory() -> SqlAlchemySyncUnitOfWork:
        return SqlAlchemySyncUnitOfWork()

    try:
        yield factory
    finally:
        shutdown()


@pytest.fixture
def local_unit_of_work() -> Iterator[Callable[[], SqlAlchemyLocalStoreUnitOfWork]]:
    engine = _memory_engine()
    upgrade_head(engine=engine)

    def factory() -> SqlAlchemyLocalStoreUnitOfWork:
        return SqlAlchemyLocalStoreUnitOfWork(engine=engine)

    try:
        yield factory
    finally:
        engine.dispose()


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def event_sink() -> RecordingEventSink:
    return RecordingEventSink()


@pytest.fixture
def orchestrator(
    sync_unit_of_work: Callable[[], SqlAlchemySyncUnitOfWork],
    clock: TickingClock,
    event_sink: RecordingEventSink,
) -> SyncOrchestrator:
    return SyncOrchestrator(
        unit_of_work_factory=sync_unit_of_work,
        events=event_sink,
        clock=clock,
    )
