"""Clock and time window helpers shared by sync services."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def __call__(self) -> datetime: ...


def utcnow() -> datetime:
    return datetime.now(UTC)


def _ensure_aware(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        raise ValueError("Time window values must include timezone information")
    return value.astimezone(UTC)


@dataclass(frozen=True)
class TimeWindow:
    """Describe the temporal bounds for a provider fetch."""

    start: datetime | None = None
    end: datetime | None = None
    lookback: timedelta | None = None

    @classmethod
    def trailing_days(cls, days: int) -> TimeWindow:
        if days <= 0:
            raise ValueError("Lookback days must be positive")
        return cls(lookback=timedelta(days=days))

    def resolve(self, *, clock: Clock = utcnow) -> tuple[datetime, datetime]:
        """Resolve the window into concrete UTC timestamps.

        An open end is anchored at ``clock()``. An open start falls back to the
        lookback, or to the end itself when no lookback is set.
        """

        resolved_end = _ensure_aware(self.end) or clock().astimezone(UTC)
        resolved_start = _ensure_aware(self.start)

        if self.lookback is not None:
            if self.lookback < timedelta(0):
                raise ValueError("Lookback duration must be non-negative")
            start_from_lookback = resolved_end - self.lookback
            if resolved_start is None:
                resolved_start = start_from_lookback
            else:
                resolved_start = max(resolved_start, start_from_lookback)

        if resolved_start is None:
            resolved_start = resolved_end

        if resolved_start > resolved_end:
            raise ValueError("Time window start must be before end")

        return resolved_start, resolved_end


__all__ = ["Clock", "TimeWindow", "utcnow"]
