"""Exception handlers mapping sync failures onto structured JSON errors.

Every error body has the shape ``{"success": false, "error": {"code",
"message", "details"?}}``. Internal details are logged, not returned.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from mintsync.adapters.plaid import PlaidAPIError
from mintsync.config import ConfigurationError
from mintsync.domain.errors import (
    ChangePayloadError,
    ProviderError,
    ResolutionError,
    SyncTimeoutError,
    SyncValidationError,
)
from mintsync.domain.model import InvalidChangeError

if TYPE_CHECKING:
    from fastapi import FastAPI

log = logging.getLogger(__name__)


def _error_response(
    status_code: int,
    code: str,
    message: str,
    details: list[dict[str, object]] | None = None,
) -> JSONResponse:
    error: dict[str, object] = {"code": code, "message": message}
    if details:
        error["details"] = details
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _error_response(exc.status_code, f"HTTP_{exc.status_code}", detail)


async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    details: list[dict[str, object]] = [
        {
            "field": " -> ".join(str(part) for part in err.get("loc", [])),
            "message": err.get("msg", "Invalid value"),
            "type": err.get("type", "value_error"),
        }
        for err in exc.errors()
    ]
    return _error_response(
        422,
        "VALIDATION_ERROR",
        "Request validation failed. Check the details for specific field errors.",
        details,
    )


async def sync_validation_handler(request: Request, exc: SyncValidationError) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "SYNC_VALIDATION_ERROR",
        "Sync request rejected.",
        [{"message": message} for message in exc.errors],
    )


async def invalid_change_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(status.HTTP_400_BAD_REQUEST, "INVALID_CHANGE", str(exc))


async def change_payload_handler(request: Request, exc: ChangePayloadError) -> JSONResponse:
    return _error_response(
        status.HTTP_400_BAD_REQUEST,
        "INVALID_PAYLOAD",
        str(exc),
        [{"change_id": exc.change_id, "entity_id": exc.entity_id}],
    )


async def resolution_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("Resolution failed on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "RESOLUTION_ERROR",
        "The sync round could not be applied.",
    )


async def sync_timeout_handler(request: Request, exc: Exception) -> JSONResponse:
    return _error_response(status.HTTP_504_GATEWAY_TIMEOUT, "SYNC_TIMEOUT", str(exc))


async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    details: list[dict[str, object]] | None = None
    if isinstance(exc, PlaidAPIError) and exc.error_code is not None:
        details = [{"error_code": exc.error_code, "error_type": exc.error_type}]
    return _error_response(status.HTTP_502_BAD_GATEWAY, "PROVIDER_ERROR", str(exc), details)


async def configuration_error_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("Configuration error on %s %s: %s", request.method, request.url.path, exc)
    return _error_response(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "NOT_CONFIGURED",
        "This endpoint is not configured on the server.",
    )


async def sqlalchemy_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error(
        "Database error on %s %s: %s",
        request.method,
        request.url.path,
        exc,
        exc_info=exc,
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "DATABASE_ERROR",
        "A database error occurred. Please try again later.",
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    log.error("Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc)
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "INTERNAL_ERROR",
        "An unexpected error occurred. Please try again later.",
    )


def register_error_handlers(app: FastAPI) -> None:
    """Register the handlers; the most specific exception class wins."""

    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SyncValidationError, sync_validation_handler)
    app.add_exception_handler(InvalidChangeError, invalid_change_handler)
    app.add_exception_handler(ChangePayloadError, change_payload_handler)
    app.add_exception_handler(ResolutionError, resolution_error_handler)
    app.add_exception_handler(SyncTimeoutError, sync_timeout_handler)
    app.add_exception_handler(ProviderError, provider_error_handler)
    app.add_exception_handler(ConfigurationError, configuration_error_handler)
    app.add_exception_handler(SQLAlchemyError, sqlalchemy_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
