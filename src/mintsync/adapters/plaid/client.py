"""HTTP client for the Plaid accounts and transactions endpoints."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import BaseModel, ValidationError

from mintsync.adapters.http_resilience import ResilientClient
from mintsync.domain.errors import ProviderError

from .schema import AccountsGetResponse, ErrorResponse, TransactionPayload, TransactionsGetResponse

if TYPE_CHECKING:
    import datetime as dt
    from collections.abc import Callable
    from types import TracebackType

    from mintsync.config.http_resilience import ResilienceConfig
    from mintsync.config.plaid import PlaidConfig

log = getLogger(__name__)

DEFAULT_PAGE_SIZE: Final[int] = 100


class PlaidAPIError(ProviderError):
    """Raised when Plaid is unreachable or answers with an error payload."""

    def __init__(
        self,
        message: str,
        *,
        error_code: str | None = None,
        error_type: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.error_code = error_code
        self.error_type = error_type
        self.status_code = status_code


class PlaidClient:
    """Async Plaid client bound to one ``ResilientClient`` session.

    Use as an async context manager so every request of one fetch shares the
    connection pool and rate limiter.
    """

    def __init__(
        self,
        *,
        config: PlaidConfig,
        client_factory: Callable[[ResilienceConfig], ResilientClient] | None = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._config = config
        self._client_factory = client_factory or ResilientClient
        self._page_size = page_size
        self._http: ResilientClient | None = None

    async def __aenter__(self) -> PlaidClient:
        self._http = self._client_factory(self._config.resilience)
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._http is not None:
            await self._http.aclose()
            self._http = None

    async def get_account_snapshot(self, access_token: str) -> AccountsGetResponse:
        return await self._post(
            "/accounts/get",
            {"access_token": access_token},
            AccountsGetResponse,
        )

    async def get_transactions(
        self,
        access_token: str,
        start: dt.date,
        end: dt.date,
    ) -> list[TransactionPayload]:
        """Return every transaction between ``start`` and ``end`` (inclusive dates)."""

        transactions: list[TransactionPayload] = []
        while True:
            page = await self._post(
                "/transactions/get",
                {
                    "access_token": access_token,
                    "start_date": start.isoformat(),
                    "end_date": end.isoformat(),
                    "options": {"count": self._page_size, "offset": len(transactions)},
                },
                TransactionsGetResponse,
            )
            transactions.extend(page.transactions)
            if len(transactions) >= page.total_transactions:
                break
            if not page.transactions:
                log.warning(
                    "Plaid returned an empty page at offset %s of %s transactions",
                    len(transactions),
                    page.total_transactions,
                )
                break
        return transactions

    async def _post[ModelT: BaseModel](
        self,
        path: str,
        body: dict[str, object],
        model: type[ModelT],
    ) -> ModelT:
        if self._http is None:
            raise RuntimeError("PlaidClient must be used as an async context manager")

        base_url = (self._config.resilience.base_url or "").rstrip("/")
        request_body = {
            "client_id": self._config.client_id,
            "secret": self._config.secret,
            **body,
        }
        try:
            response = await self._http.post(f"{base_url}{path}", json=request_body)
        except httpx.HTTPError as exc:
            raise PlaidAPIError(f"Plaid request {path} failed: {exc}") from exc

        payload = _json_or_none(response)
        if response.is_error:
            if isinstance(payload, dict) and "error_code" in payload:
                error = ErrorResponse.model_validate(payload)
                log.error(
                    "Plaid API error %s (%s): %s",
                    error.error_code,
                    error.error_type,
                    error.error_message,
                )
                raise PlaidAPIError(
                    error.error_message,
                    error_code=error.error_code,
                    error_type=error.error_type,
                    status_code=response.status_code,
                )
            raise PlaidAPIError(
                f"Plaid request {path} failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

        if not isinstance(payload, dict):
            raise PlaidAPIError(f"Unexpected Plaid response payload for {path}")
        try:
            return model.model_validate(payload)
        except ValidationError as exc:
            raise PlaidAPIError(f"Malformed Plaid response payload for {path}") from exc


def _json_or_none(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError:
        return None
