"""FastAPI dependencies resolving caller identity and shared services."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status

from mintsync.config import SyncConfig  # noqa: TC001
from mintsync.domain.ports.fetching import ProviderSnapshotFetcher  # noqa: TC001
from mintsync.domain.synchronization import SyncOrchestrator  # noqa: TC001


def get_user_id(x_user_id: Annotated[str | None, Header()] = None) -> str:
    """Identity set by the upstream authentication layer."""

    if x_user_id is None or not x_user_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-User-ID header",
        )
    return x_user_id.strip()


def get_orchestrator(request: Request) -> SyncOrchestrator:
    return request.app.state.orchestrator


def get_sync_config(request: Request) -> SyncConfig:
    return request.app.state.sync_config


def get_snapshot_fetcher(request: Request) -> ProviderSnapshotFetcher:
    state = request.app.state
    fetcher = getattr(state, "snapshot_fetcher", None)
    if fetcher is None:
        # built on first use so the API starts without provider credentials
        fetcher = state.snapshot_fetcher_factory()
        state.snapshot_fetcher = fetcher
    return fetcher


UserId = Annotated[str, Depends(get_user_id)]
Orchestrator = Annotated[SyncOrchestrator, Depends(get_orchestrator)]
Config = Annotated[SyncConfig, Depends(get_sync_config)]
SnapshotFetcher = Annotated[ProviderSnapshotFetcher, Depends(get_snapshot_fetcher)]
