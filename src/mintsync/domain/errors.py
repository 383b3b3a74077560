"""Error taxonomy for sync rounds and provider ingestion."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class SyncError(RuntimeError):
    """Base class for failures of a sync round."""


class SyncValidationError(SyncError):
    """Raised when a sync request is malformed; no resolution work has started."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = tuple(errors)
        super().__init__("Invalid sync request: " + "; ".join(self.errors))


class ResolutionError(SyncError):
    """Raised when an internal invariant fails while resolving or applying changes."""


class ChangePayloadError(ResolutionError):
    """Raised when a change payload does not satisfy its entity schema."""

    def __init__(self, message: str, *, change_id: str, entity_id: str) -> None:
        super().__init__(message)
        self.change_id = change_id
        self.entity_id = entity_id


class SyncTimeoutError(SyncError, TimeoutError):
    """Raised when a round exceeds its request-level deadline."""


class ProviderError(SyncError):
    """Raised when the external aggregator cannot deliver a snapshot."""
