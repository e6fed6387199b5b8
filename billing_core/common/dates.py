"""Time helpers and the effective-window value type."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Annotated, Callable, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, model_validator


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and normalize aware ones to UTC."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


UtcDatetime = Annotated[datetime, AfterValidator(ensure_utc)]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def current_time(clock: Optional[Callable[[], datetime]] = None) -> datetime:
    if clock is None:
        return utcnow()
    return ensure_utc(clock())


class DateRange(BaseModel):
    """Window of time bounded on at least one side, inclusive on both ends."""

    start: Optional[UtcDatetime] = None
    end: Optional[UtcDatetime] = None

    model_config = ConfigDict(frozen=True)

    @model_validator(mode="after")
    def _validate_bounds(self) -> "DateRange":
        if self.start is None and self.end is None:
            raise ValueError("At least one date must be present")
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValueError("Start date cannot be after end date")
        return self

    @classmethod
    def between(cls, start: datetime, end: datetime) -> "DateRange":
        return cls(start=start, end=end)

    @classmethod
    def starting(cls, start: datetime) -> "DateRange":
        return cls(start=start)

    @classmethod
    def until(cls, end: datetime) -> "DateRange":
        return cls(end=end)

    def contains(self, moment: datetime) -> bool:
        moment = ensure_utc(moment)
        if self.start is not None and moment < self.start:
            return False
        if self.end is not None and moment > self.end:
            return False
        return True

    is_in_range = contains


__all__ = ["DateRange", "UtcDatetime", "current_time", "ensure_utc", "utcnow"]
