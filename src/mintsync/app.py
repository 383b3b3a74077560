"""Application composition: wire configured adapters into the sync services."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from mintsync.adapters.plaid import PlaidSnapshotFetcher
from mintsync.adapters.sqlalchemy.unit_of_work import SqlAlchemySyncUnitOfWork, is_started, startup
from mintsync.config import get_sync_config
from mintsync.domain.events import LoggingEventSink
from mintsync.domain.ingestion import ingest_provider_snapshot
from mintsync.domain.model import DEFAULT_USER_ID
from mintsync.domain.synchronization import SyncOrchestrator
from mintsync.domain.time_windows import TimeWindow

if TYPE_CHECKING:
    from collections.abc import Callable

    from mintsync.config import SyncConfig
    from mintsync.domain.events import SyncEventSink
    from mintsync.domain.ingestion import IngestionResult
    from mintsync.domain.model import SyncRequest, SyncResponse
    from mintsync.domain.ports.fetching import ProviderSnapshotFetcher
    from mintsync.domain.ports.unit_of_work import SyncUnitOfWork
    from mintsync.domain.synchronization import SyncStatus

log = getLogger(__name__)


def build_orchestrator(
    *,
    unit_of_work_factory: Callable[[], SyncUnitOfWork] | None = None,
    events: SyncEventSink | None = None,
    sync_config: SyncConfig | None = None,
) -> SyncOrchestrator:
    """Return an orchestrator over the configured server store.

    Without an explicit factory the SQLAlchemy adapter is started on demand
    from ``DATABASE_URI`` / ``MINTSYNC_DATA_DIR``.
    """

    config = sync_config or get_sync_config()
    if unit_of_work_factory is None:
        if not is_started():
            startup()
        unit_of_work_factory = SqlAlchemySyncUnitOfWork
    return SyncOrchestrator(
        unit_of_work_factory=unit_of_work_factory,
        events=events or LoggingEventSink(),
        timeout_seconds=config.timeout_seconds,
    )


def push_changes(
    request: SyncRequest,
    *,
    orchestrator: SyncOrchestrator | None = None,
) -> SyncResponse:
    active = orchestrator or build_orchestrator()
    log.info(
        "Pushing %s %s change(s) for device %s",
        len(request.changes),
        request.entity_type,
        request.device_id,
    )
    return active.synchronize(request)


def sync_plaid_snapshot(
    *,
    access_token: str,
    user_id: str = DEFAULT_USER_ID,
    lookback_days: int | None = None,
    fetcher: ProviderSnapshotFetcher | None = None,
    orchestrator: SyncOrchestrator | None = None,
    sync_config: SyncConfig | None = None,
) -> IngestionResult:
    """Fetch the linked Plaid item and replay it through the sync pipeline."""

    config = sync_config or get_sync_config()
    active = orchestrator or build_orchestrator(sync_config=config)
    days = lookback_days or config.provider_lookback_days
    effective_fetcher = fetcher or PlaidSnapshotFetcher(page_size=config.transaction_page_size)
    log.info("Starting Plaid sync for %s: lookback_days=%s", user_id, days)

    result = ingest_provider_snapshot(
        fetcher=effective_fetcher,
        orchestrator=active,
        access_token=access_token,
        user_id=user_id,
        window=TimeWindow.trailing_days(days),
        clock=active.clock,
    )

    log.info(
        "Finished Plaid sync for %s: fetched=%s submitted=%s",
        user_id,
        {str(key): value for key, value in result.fetched.items()},
        {str(key): value for key, value in result.submitted.items()},
    )
    return result


def sync_status(
    *,
    user_id: str = DEFAULT_USER_ID,
    device_id: str | None = None,
    limit: int = 5,
    orchestrator: SyncOrchestrator | None = None,
) -> SyncStatus:
    active = orchestrator or build_orchestrator()
    return active.sync_status(user_id=user_id, device_id=device_id, limit=limit)
