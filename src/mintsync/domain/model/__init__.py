"""Domain model for the sync engine."""

from __future__ import annotations

from .change import EPOCH, Change, InvalidChangeError, latest_per_entity
from .enums import ChangeOperation, ChangeOrigin, EntityType, Resolution, SyncRoundStatus
from .local import LocalMutation
from .payloads import PAYLOAD_MODELS, EntityPayload, validate_change_payload
from .state import EntityState, apply_change
from .sync import (
    DEFAULT_USER_ID,
    Conflict,
    ConflictResolution,
    SyncRequest,
    SyncResponse,
    SyncRound,
)

__all__ = [
    "DEFAULT_USER_ID",
    "EPOCH",
    "PAYLOAD_MODELS",
    "Change",
    "ChangeOperation",
    "ChangeOrigin",
    "Conflict",
    "ConflictResolution",
    "EntityPayload",
    "EntityState",
    "EntityType",
    "InvalidChangeError",
    "LocalMutation",
    "Resolution",
    "SyncRequest",
    "SyncResponse",
    "SyncRound",
    "SyncRoundStatus",
    "apply_change",
    "latest_per_entity",
    "validate_change_payload",
]
