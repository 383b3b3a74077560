"""Pydantic models describing the Plaid API payloads used for ingestion."""

from __future__ import annotations

import datetime as dt

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class PlaidBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class AccountBalances(PlaidBaseModel):
    available: float | None = None
    current: float | None = None
    limit: float | None = None
    iso_currency_code: str | None = None
    unofficial_currency_code: str | None = None

    @property
    def currency(self) -> str | None:
        return self.iso_currency_code or self.unofficial_currency_code


class AccountPayload(PlaidBaseModel):
    account_id: str
    name: str
    official_name: str | None = None
    type: str | None = None
    subtype: str | None = None
    mask: str | None = None
    balances: AccountBalances = Field(default_factory=AccountBalances)

    _normalize_mask = field_validator("mask", "official_name", mode="before")(_blank_to_none)


class ItemPayload(PlaidBaseModel):
    item_id: str
    institution_id: str | None = None


class TransactionPayload(PlaidBaseModel):
    transaction_id: str
    account_id: str
    amount: float
    date: dt.date
    name: str | None = None
    merchant_name: str | None = None
    category: list[str] | None = None
    pending: bool = False
    iso_currency_code: str | None = None
    unofficial_currency_code: str | None = None

    _normalize_merchant = field_validator("merchant_name", mode="before")(_blank_to_none)


class AccountsGetResponse(PlaidBaseModel):
    accounts: list[AccountPayload] = Field(default_factory=list)
    item: ItemPayload | None = None
    request_id: str | None = None


class TransactionsGetResponse(PlaidBaseModel):
    accounts: list[AccountPayload] = Field(default_factory=list)
    transactions: list[TransactionPayload] = Field(default_factory=list)
    total_transactions: int = 0
    item: ItemPayload | None = None
    request_id: str | None = None


class ErrorResponse(PlaidBaseModel):
    error_type: str
    error_code: str
    error_message: str
    display_message: str | None = None
    request_id: str | None = None
