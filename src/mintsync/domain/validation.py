"""Structural checks applied to a sync request before any store access."""

from __future__ import annotations

from typing import TYPE_CHECKING

from mintsync.domain.errors import ChangePayloadError, SyncValidationError
from mintsync.domain.model import validate_change_payload

if TYPE_CHECKING:
    from mintsync.domain.model import SyncRequest


def validate_sync_request(request: SyncRequest) -> None:
    """Raise ``SyncValidationError`` listing every problem found in ``request``.

    A single malformed change rejects the whole request, including one whose
    payload does not satisfy its entity schema.
    """

    errors: list[str] = []
    if not request.device_id.strip():
        errors.append("device_id must not be blank")
    if not request.user_id.strip():
        errors.append("user_id must not be blank")
    if request.last_sync_timestamp.tzinfo is None:
        errors.append("last_sync_timestamp must include a timezone")

    seen_change_ids: set[str] = set()
    seen_entity_ids: set[str] = set()
    for position, change in enumerate(request.changes):
        label = f"changes[{position}]"
        if change.entity_type is not request.entity_type:
            errors.append(
                f"{label}: entity_type {change.entity_type} does not match "
                f"request entity_type {request.entity_type}"
            )
        if change.id in seen_change_ids:
            errors.append(f"{label}: duplicate change id {change.id}")
        if change.entity_id in seen_entity_ids:
            errors.append(f"{label}: entity {change.entity_id} changed more than once")
        try:
            validate_change_payload(change)
        except ChangePayloadError as exc:
            errors.append(f"{label}: {exc}")
        seen_change_ids.add(change.id)
        seen_entity_ids.add(change.entity_id)

    if errors:
        raise SyncValidationError(errors)
