"""Plaid configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .env import require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig

PLAID_BASE_URLS: Final[dict[str, str]] = {
    "sandbox": "https://sandbox.plaid.com",
    "development": "https://development.plaid.com",
    "production": "https://production.plaid.com",
}
PLAID_TIMEOUT_SECONDS = 15.0


@dataclass(frozen=True)
class PlaidConfig:
    """Holds Plaid API credentials and transport settings."""

    client_id: str
    secret: str
    environment: str
    resilience: ResilienceConfig


def plaid_resilience(environment: str) -> ResilienceConfig:
    try:
        base_url = PLAID_BASE_URLS[environment]
    except KeyError:
        valid = ", ".join(sorted(PLAID_BASE_URLS))
        raise ConfigurationError(
            f"PLAID_ENV must be one of {valid}, got {environment!r}"
        ) from None
    return ResilienceConfig(
        name="plaid",
        base_url=base_url,
        timeout_seconds=PLAID_TIMEOUT_SECONDS,
        ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
        default_headers={"Content-Type": "application/json"},
    )


def get_plaid_config(*, resilience: ResilienceConfig | None = None) -> PlaidConfig:
    values = require_env_vars(("PLAID_CLIENT_ID", "PLAID_SECRET"))
    environment = os.getenv("PLAID_ENV", "sandbox").strip() or "sandbox"
    return PlaidConfig(
        client_id=values["PLAID_CLIENT_ID"],
        secret=values["PLAID_SECRET"],
        environment=environment,
        resilience=resilience or plaid_resilience(environment),
    )
