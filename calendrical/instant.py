"""Absolute points in time.

An Instant is a count of seconds (with a fractional part) since the Unix
epoch. It carries no calendar or time zone; use a Calendar to turn it into
year/month/day fields.
"""

import logging
import math
import time
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone, tzinfo
from enum import IntEnum
from threading import Lock
from typing import Callable, overload

from calendrical.duration import Duration
from calendrical.util import (
    EPOCH,
    MAX_OFFSET,
    MAX_YEAR,
    MIN_OFFSET,
    MIN_YEAR,
    REFERENCE_OFFSET,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


class Ordering(IntEnum):
    """Result of comparing two values in time order."""

    BEFORE = -1
    SAME = 0
    AFTER = 1

    @classmethod
    def of(cls, left: float, right: float) -> "Ordering":
        if left < right:
            return cls.BEFORE
        if left > right:
            return cls.AFTER
        return cls.SAME


class _SystemClock:
    """Wall clock reader with a monotonic fallback.

    If the wall clock raises, the last good wall reading is advanced by the
    monotonic clock's elapsed time. With no prior wall reading the raw
    monotonic value is returned, which only preserves ordering.
    """

    def __init__(self) -> None:
        self._lock: Lock = Lock()
        self._anchor: tuple[float, float] | None = None

    def __call__(self) -> float:
        try:
            wall = time.time()
        except OSError:
            logger.debug("wall clock unavailable, using monotonic fallback")
            with self._lock:
                anchor = self._anchor
            if anchor is None:
                return time.monotonic()
            wall_then, mono_then = anchor
            return wall_then + (time.monotonic() - mono_then)
        with self._lock:
            self._anchor = (wall, time.monotonic())
        return wall


system_clock: Clock = _SystemClock()


@dataclass(frozen=True, order=True)
class Instant:
    offset: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.offset):
            raise ValueError(
                f"Instant offset must be a finite number of seconds, "
                f"got {self.offset!r}"
            )
        if not MIN_OFFSET <= self.offset <= MAX_OFFSET:
            raise ValueError(
                f"Instant offset {self.offset!r} is outside the supported range "
                f"({MIN_YEAR:04d}-01-01 to {MAX_YEAR + 1:04d}-01-01 UTC).\n"
                f"Hint: offsets are seconds since 1970-01-01T00:00:00Z; "
                f"use Instant.from_datetime for calendar dates"
            )
        object.__setattr__(self, "offset", float(self.offset))

    @classmethod
    def now(cls, clock: Clock | None = None) -> "Instant":
        """Return the current instant, read from ``clock`` or the system clock."""
        return cls((clock or system_clock)())

    @classmethod
    def from_epoch_offset(cls, seconds: float) -> "Instant":
        return cls(seconds)

    @classmethod
    def from_reference_offset(cls, seconds: float) -> "Instant":
        """Build an instant from seconds since 2001-01-01T00:00:00Z."""
        return cls(seconds + REFERENCE_OFFSET)

    @classmethod
    def from_datetime(cls, dt: datetime) -> "Instant":
        if dt.tzinfo is None:
            raise TypeError(
                f"Instant.from_datetime() requires a timezone-aware datetime.\n"
                f"Got naive datetime: {dt!r}\n"
                f"Hint: Add timezone info:\n"
                f"  from zoneinfo import ZoneInfo\n"
                f"  dt = datetime(..., tzinfo=ZoneInfo('UTC'))  "
                f"# or 'US/Pacific', etc."
            )
        return cls((dt - EPOCH) / timedelta(seconds=1))

    def to_datetime(self, tz: tzinfo = timezone.utc) -> datetime:
        """Return this instant as an aware datetime (microsecond precision)."""
        return (EPOCH + timedelta(seconds=self.offset)).astimezone(tz)

    @property
    def since_epoch(self) -> float:
        return self.offset

    @property
    def since_reference_date(self) -> float:
        return self.offset - REFERENCE_OFFSET

    def compare(self, other: "Instant") -> Ordering:
        return Ordering.of(self.offset, other.offset)

    def time_since_now(self, clock: Clock | None = None) -> Duration:
        """Signed span from now to this instant, positive for the future."""
        return self - Instant.now(clock)

    def truncated(self, step: Duration) -> "Instant":
        """Round down to a whole multiple of ``step`` since the epoch."""
        if step.seconds <= 0:
            raise ValueError(f"Truncation step must be positive, got {step}")
        return Instant(math.floor(self.offset / step.seconds) * step.seconds)

    def __add__(self, other: Duration) -> "Instant":
        if not isinstance(other, Duration):
            return NotImplemented
        return Instant(self.offset + other.seconds)

    def __radd__(self, other: Duration) -> "Instant":
        return self.__add__(other)

    @overload
    def __sub__(self, other: "Instant") -> Duration: ...

    @overload
    def __sub__(self, other: Duration) -> "Instant": ...

    def __sub__(self, other: "Instant | Duration") -> "Duration | Instant":
        if isinstance(other, Instant):
            return Duration(self.offset - other.offset)
        if isinstance(other, Duration):
            return Instant(self.offset - other.seconds)
        return NotImplemented

    def __str__(self) -> str:
        return f"Instant({self.to_datetime().isoformat()})"
