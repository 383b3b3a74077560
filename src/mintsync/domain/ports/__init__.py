"""Domain port definitions for adapters."""

from __future__ import annotations

from .fetching import ProviderRecord, ProviderSnapshot, ProviderSnapshotFetcher
from .persistence import (
    ChangeRepository,
    EntityStateRepository,
    LocalMutationRepository,
    SyncCheckpointRepository,
    SyncRoundRepository,
)
from .unit_of_work import (
    LocalStoreRepositories,
    LocalStoreUnitOfWork,
    RepositoryCollection,
    SyncRepositories,
    SyncUnitOfWork,
    UnitOfWork,
)

__all__ = [
    "ChangeRepository",
    "EntityStateRepository",
    "LocalMutationRepository",
    "LocalStoreRepositories",
    "LocalStoreUnitOfWork",
    "ProviderRecord",
    "ProviderSnapshot",
    "ProviderSnapshotFetcher",
    "RepositoryCollection",
    "SyncCheckpointRepository",
    "SyncRepositories",
    "SyncRoundRepository",
    "SyncUnitOfWork",
    "UnitOfWork",
]
