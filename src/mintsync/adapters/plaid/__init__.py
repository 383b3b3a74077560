"""Public interface for the Plaid adapter."""

from __future__ import annotations

from .client import PlaidAPIError, PlaidClient
from .fetcher import PROVIDER_NAME, PlaidSnapshotFetcher
from .schema import AccountsGetResponse, ErrorResponse, TransactionsGetResponse
from .translator import translate_account, translate_transaction

__all__ = [
    "PROVIDER_NAME",
    "AccountsGetResponse",
    "ErrorResponse",
    "PlaidAPIError",
    "PlaidClient",
    "PlaidSnapshotFetcher",
    "TransactionsGetResponse",
    "translate_account",
    "translate_transaction",
]
