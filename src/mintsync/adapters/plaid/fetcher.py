"""Snapshot fetcher combining Plaid accounts and transactions."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from mintsync.adapters.http_resilience import ResilientClient
from mintsync.config.plaid import get_plaid_config
from mintsync.domain.ports.fetching import ProviderSnapshot, ProviderSnapshotFetcher
from mintsync.domain.time_windows import utcnow

from .client import DEFAULT_PAGE_SIZE, PlaidClient
from .translator import translate_account, translate_transaction

if TYPE_CHECKING:
    from collections.abc import Callable
    from datetime import datetime

    from mintsync.config.http_resilience import ResilienceConfig
    from mintsync.config.plaid import PlaidConfig
    from mintsync.domain.time_windows import Clock

log = getLogger(__name__)

PROVIDER_NAME = "plaid"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class PlaidSnapshotFetcher:
    config: PlaidConfig = field(default_factory=get_plaid_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )
    page_size: int = DEFAULT_PAGE_SIZE
    clock: Clock = utcnow

    def __call__(
        self,
        *,
        access_token: str,
        since: datetime,
        until: datetime,
    ) -> ProviderSnapshot:
        return asyncio.run(
            self._fetch_snapshot_async(access_token=access_token, since=since, until=until)
        )

    async def _fetch_snapshot_async(
        self,
        *,
        access_token: str,
        since: datetime,
        until: datetime,
    ) -> ProviderSnapshot:
        async with PlaidClient(
            config=self.config,
            client_factory=self.client_factory,
            page_size=self.page_size,
        ) as client:
            accounts_response = await client.get_account_snapshot(access_token)
            transactions = await client.get_transactions(access_token, since.date(), until.date())

        fetched_at = self.clock()
        log.info(
            "Fetched %s accounts and %s transactions from Plaid (%s to %s)",
            len(accounts_response.accounts),
            len(transactions),
            since.date(),
            until.date(),
        )
        return ProviderSnapshot(
            provider=PROVIDER_NAME,
            fetched_at=fetched_at,
            accounts=tuple(
                translate_account(account, item=accounts_response.item)
                for account in accounts_response.accounts
            ),
            transactions=tuple(translate_transaction(transaction) for transaction in transactions),
        )


if TYPE_CHECKING:
    _fetcher_check: ProviderSnapshotFetcher = PlaidSnapshotFetcher()
