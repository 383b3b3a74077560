"""Synchronization defaults for the orchestrator and provider ingestion."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_float_env, optional_int_env

DEFAULT_SYNC_TIMEOUT_SECONDS = 30.0
DEFAULT_PROVIDER_LOOKBACK_DAYS = 30
DEFAULT_TRANSACTION_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class SyncConfig:
    timeout_seconds: float = DEFAULT_SYNC_TIMEOUT_SECONDS
    provider_lookback_days: int = DEFAULT_PROVIDER_LOOKBACK_DAYS
    transaction_page_size: int = DEFAULT_TRANSACTION_PAGE_SIZE


def get_sync_config() -> SyncConfig:
    return SyncConfig(
        timeout_seconds=optional_float_env(
            "MINTSYNC_SYNC_TIMEOUT_SECONDS", DEFAULT_SYNC_TIMEOUT_SECONDS
        ),
        provider_lookback_days=optional_int_env(
            "MINTSYNC_PROVIDER_LOOKBACK_DAYS", DEFAULT_PROVIDER_LOOKBACK_DAYS
        ),
        transaction_page_size=optional_int_env(
            "MINTSYNC_TRANSACTION_PAGE_SIZE", DEFAULT_TRANSACTION_PAGE_SIZE
        ),
    )
