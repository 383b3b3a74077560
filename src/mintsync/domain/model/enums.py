"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class EntityType(StrEnum):
    """Synchronised entity families; one sync round covers exactly one."""

    ACCOUNTS = "accounts"
    TRANSACTIONS = "transactions"
    BUDGETS = "budgets"
    GOALS = "goals"


class ChangeOperation(StrEnum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class ChangeOrigin(StrEnum):
    CLIENT = "client"
    SERVER = "server"
    PROVIDER = "provider"


class Resolution(StrEnum):
    CLIENT_WIN = "CLIENT_WIN"
    SERVER_WIN = "SERVER_WIN"
    MANUAL_REQUIRED = "MANUAL_REQUIRED"


class SyncRoundStatus(StrEnum):
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
