"""Translate Plaid payloads into provider records for ingestion."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mintsync.domain.model import EntityType
from mintsync.domain.ports.fetching import ProviderRecord

if TYPE_CHECKING:
    from .schema import AccountPayload, ItemPayload, TransactionPayload


def translate_account(
    account: AccountPayload,
    *,
    item: ItemPayload | None = None,
) -> ProviderRecord:
    balances = account.balances
    payload: dict[str, object] = {
        "name": account.name,
        "official_name": account.official_name,
        "type": account.type,
        "subtype": account.subtype,
        "mask": account.mask,
        "balance": balances.current,
        "available_balance": balances.available,
        "credit_limit": balances.limit,
        "currency": balances.currency,
    }
    if item is not None and item.institution_id:
        payload["institution_id"] = item.institution_id
    return ProviderRecord(
        entity_type=EntityType.ACCOUNTS,
        entity_id=account.account_id,
        payload=payload,
    )


def translate_transaction(transaction: TransactionPayload) -> ProviderRecord:
    category = " > ".join(transaction.category) if transaction.category else None
    return ProviderRecord(
        entity_type=EntityType.TRANSACTIONS,
        entity_id=transaction.transaction_id,
        payload={
            "account_id": transaction.account_id,
            "amount": transaction.amount,
            "date": transaction.date.isoformat(),
            "description": transaction.name,
            "merchant_name": transaction.merchant_name,
            "category": category,
            "pending": transaction.pending,
            "currency": transaction.iso_currency_code or transaction.unofficial_currency_code,
        },
    )
