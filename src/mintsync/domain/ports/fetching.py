"""Ports for fetching snapshots from the external aggregator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from datetime import datetime

    from mintsync.domain.model import EntityType


@dataclass(frozen=True, slots=True, kw_only=True)
class ProviderRecord:
    """One provider entity already mapped onto the local payload vocabulary."""

    entity_type: EntityType
    entity_id: str
    payload: Mapping[str, object]


@dataclass(slots=True)
class ProviderSnapshot:
    """Accounts and transactions fetched from the provider in one pass."""

    provider: str
    fetched_at: datetime
    accounts: Sequence[ProviderRecord] = field(default_factory=tuple)
    transactions: Sequence[ProviderRecord] = field(default_factory=tuple)


@runtime_checkable
class ProviderSnapshotFetcher(Protocol):
    """Callable port for retrieving a snapshot for one linked item."""

    def __call__(
        self,
        *,
        access_token: str,
        since: datetime,
        until: datetime,
    ) -> ProviderSnapshot:
        ...


__all__ = ["ProviderRecord", "ProviderSnapshot", "ProviderSnapshotFetcher"]
