"""SQLAlchemy-backed units of work for the server and device stores."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from mintsync.adapters.sqlalchemy.migrations import upgrade_head
from mintsync.adapters.sqlalchemy.repositories import (
    SqlAlchemyChangeRepository,
    SqlAlchemyEntityStateRepository,
    SqlAlchemyLocalMutationRepository,
    SqlAlchemySyncCheckpointRepository,
    SqlAlchemySyncRoundRepository,
)
from mintsync.config.storage import get_database_uri
from mintsync.domain.ports.unit_of_work import (
    LocalStoreRepositories,
    RepositoryCollection,
    SyncRepositories,
)

if TYPE_CHECKING:
    from types import TracebackType

    from sqlalchemy.engine import Engine


class StartupError(RuntimeError):
    """Raised when a SQLAlchemy unit of work is used before initialisation."""


@dataclass(slots=True)
class _AdapterState:
    _engine: Engine | None = None
    _session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine | None:
        return self._engine

    @engine.setter
    def engine(self, value: Engine | None) -> None:
        self._session_factory = None
        self._engine = value

    @property
    def session_factory(self) -> sessionmaker[Session]:
        if self._engine is None:
            raise StartupError(
                "SQLAlchemy adapter not initialised. Call mintsync.adapters.sqlalchemy."
                "unit_of_work.startup() before requesting a unit of work."
            )
        if self._session_factory is None:
            self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        return self._session_factory


_STATE = _AdapterState()


def startup(
    *,
    engine: Engine | None = None,
    database_uri: str | None = None,
    force: bool = False,
) -> Engine:
    """Initialise the SQLAlchemy engine and bring its schema to the latest revision."""

    if _STATE.engine is not None and not force:
        raise StartupError(
            "SQLAlchemy adapter already initialised. Pass force=True to reconfigure."
        )

    resolved_engine = engine or create_engine(database_uri or get_database_uri(), future=True)
    upgrade_head(engine=resolved_engine)
    _STATE.engine = resolved_engine
    return resolved_engine


def configured_engine() -> Engine | None:
    """Return the engine currently managed by the adapter (if any)."""

    return _STATE.engine


def is_started() -> bool:
    return _STATE.engine is not None


def shutdown() -> None:
    """Dispose the managed engine and reset state (primarily for tests)."""

    if _STATE.engine is not None:
        _STATE.engine.dispose()
    _STATE.engine = None


class BaseSqlAlchemyUnitOfWork[TRepositories: RepositoryCollection](ABC):
    """Generic SQLAlchemy unit of work with pluggable repository collections.

    Binds to the adapter-managed engine unless ``engine`` is given, which lets
    a device store live in its own database next to the server store.
    """

    def __init__(self, *, engine: Engine | None = None) -> None:
        self.session_factory: sessionmaker[Session] = (
            sessionmaker(bind=engine, expire_on_commit=False)
            if engine is not None
            else _STATE.session_factory
        )
        self._session: Session | None = None

    @abstractmethod
    def _build_repositories(self, session: Session) -> TRepositories: ...

    def __enter__(self) -> BaseSqlAlchemyUnitOfWork[TRepositories]:
        self.session = self.session_factory()
        self._repositories = self._build_repositories(self.session)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        if exc_type is not None:
            self.rollback()
        self.session.close()
        self.session = None
        return False

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()

    @property
    def repositories(self) -> TRepositories:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._repositories

    @property
    def session(self) -> Session:
        if self._session is None:
            raise StartupError("Unit of work session not initialised")
        return self._session

    @session.setter
    def session(self, session: Session | None) -> None:
        if self._session is not None and session is not None:
            raise StartupError("Unit of work session already initialised")
        self._session = session


class SqlAlchemySyncUnitOfWork(BaseSqlAlchemyUnitOfWork[SyncRepositories]):
    """Unit of work over the authoritative server store."""

    def _build_repositories(self, session: Session) -> SyncRepositories:
        return SyncRepositories(
            changes=SqlAlchemyChangeRepository(session),
            states=SqlAlchemyEntityStateRepository(session),
            rounds=SqlAlchemySyncRoundRepository(session),
        )


class SqlAlchemyLocalStoreUnitOfWork(BaseSqlAlchemyUnitOfWork[LocalStoreRepositories]):
    """Unit of work over a device's local store."""

    def _build_repositories(self, session: Session) -> LocalStoreRepositories:
        return LocalStoreRepositories(
            changes=SqlAlchemyChangeRepository(session),
            states=SqlAlchemyEntityStateRepository(session),
            mutations=SqlAlchemyLocalMutationRepository(session),
            checkpoints=SqlAlchemySyncCheckpointRepository(session),
        )


if TYPE_CHECKING:
    from mintsync.domain.ports.unit_of_work import LocalStoreUnitOfWork, SyncUnitOfWork

    _uow_sync_check: SyncUnitOfWork = SqlAlchemySyncUnitOfWork()
    _uow_local_check: LocalStoreUnitOfWork = SqlAlchemyLocalStoreUnitOfWork()
