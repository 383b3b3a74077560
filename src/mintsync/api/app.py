"""FastAPI application factory for the sync service."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

from mintsync import __version__
from mintsync.adapters.plaid import PlaidSnapshotFetcher
from mintsync.api.errors import register_error_handlers
from mintsync.api.routes import router
from mintsync.app import build_orchestrator
from mintsync.config import get_sync_config

if TYPE_CHECKING:
    from collections.abc import Callable

    from mintsync.config import SyncConfig
    from mintsync.domain.ports.fetching import ProviderSnapshotFetcher
    from mintsync.domain.synchronization import SyncOrchestrator

API_PREFIX = "/api/v1"


def create_app(
    *,
    orchestrator: SyncOrchestrator | None = None,
    snapshot_fetcher: ProviderSnapshotFetcher | None = None,
    snapshot_fetcher_factory: Callable[[], ProviderSnapshotFetcher] | None = None,
    sync_config: SyncConfig | None = None,
) -> FastAPI:
    config = sync_config or get_sync_config()
    app = FastAPI(title="mintsync", version=__version__)
    app.state.sync_config = config
    app.state.orchestrator = orchestrator or build_orchestrator(sync_config=config)
    app.state.snapshot_fetcher = snapshot_fetcher
    app.state.snapshot_fetcher_factory = snapshot_fetcher_factory or (
        lambda: PlaidSnapshotFetcher(page_size=config.transaction_page_size)
    )
    register_error_handlers(app)
    app.include_router(router, prefix=API_PREFIX)
    return app
