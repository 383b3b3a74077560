"""SQLAlchemy adapter package for the sync stores."""

from __future__ import annotations

from .mappings import (
    UTCDateTime,
    change_table,
    entity_state_table,
    local_mutation_table,
    metadata,
    sync_checkpoint_table,
    sync_round_table,
)
from .repositories import (
    SqlAlchemyChangeRepository,
    SqlAlchemyEntityStateRepository,
    SqlAlchemyLocalMutationRepository,
    SqlAlchemySyncCheckpointRepository,
    SqlAlchemySyncRoundRepository,
)
from .unit_of_work import (
    SqlAlchemyLocalStoreUnitOfWork,
    SqlAlchemySyncUnitOfWork,
    StartupError,
    shutdown,
    startup,
)

__all__ = [
    "SqlAlchemyChangeRepository",
    "SqlAlchemyEntityStateRepository",
    "SqlAlchemyLocalMutationRepository",
    "SqlAlchemyLocalStoreUnitOfWork",
    "SqlAlchemySyncCheckpointRepository",
    "SqlAlchemySyncRoundRepository",
    "SqlAlchemySyncUnitOfWork",
    "StartupError",
    "UTCDateTime",
    "change_table",
    "entity_state_table",
    "local_mutation_table",
    "metadata",
    "shutdown",
    "startup",
    "sync_checkpoint_table",
    "sync_round_table",
]
