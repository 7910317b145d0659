"""Signed spans of elapsed time."""

import math
from dataclasses import dataclass
from typing import TYPE_CHECKING, overload

from calendrical.util import DAY, HOUR, MINUTE

if TYPE_CHECKING:
    from calendrical.instant import Instant, Ordering
    from calendrical.quantity import Quantity
    from calendrical.units import Time


@dataclass(frozen=True, order=True)
class Duration:
    seconds: float

    def __post_init__(self) -> None:
        if not math.isfinite(self.seconds):
            raise ValueError(f"Duration must be finite, got {self.seconds!r}")
        object.__setattr__(self, "seconds", float(self.seconds))

    @classmethod
    def of(
        cls,
        *,
        days: float = 0,
        hours: float = 0,
        minutes: float = 0,
        seconds: float = 0,
    ) -> "Duration":
        """Build a duration from fixed-length units (a day is 86400 s here)."""
        return cls(days * DAY + hours * HOUR + minutes * MINUTE + seconds)

    @classmethod
    def between(cls, start: "Instant", end: "Instant") -> "Duration":
        """Span from ``start`` to ``end``; negative when ``end`` is earlier."""
        return end - start

    @classmethod
    def from_quantity(cls, quantity: "Quantity[Time]") -> "Duration":
        from calendrical.units import Time

        return cls(quantity.convert(Time.seconds).value)

    def as_quantity(self) -> "Quantity[Time]":
        from calendrical.quantity import Quantity
        from calendrical.units import Time

        return Quantity(self.seconds, Time.seconds)

    def in_minutes(self) -> float:
        return self.seconds / MINUTE

    def in_hours(self) -> float:
        return self.seconds / HOUR

    def in_days(self) -> float:
        return self.seconds / DAY

    def compare(self, other: "Duration") -> "Ordering":
        from calendrical.instant import Ordering

        return Ordering.of(self.seconds, other.seconds)

    def __add__(self, other: "Duration") -> "Duration":
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(self.seconds + other.seconds)

    def __sub__(self, other: "Duration") -> "Duration":
        if not isinstance(other, Duration):
            return NotImplemented
        return Duration(self.seconds - other.seconds)

    def __neg__(self) -> "Duration":
        return Duration(-self.seconds)

    def __pos__(self) -> "Duration":
        return self

    def __abs__(self) -> "Duration":
        return Duration(abs(self.seconds))

    def __mul__(self, factor: float) -> "Duration":
        if not isinstance(factor, (int, float)):
            return NotImplemented
        return Duration(self.seconds * factor)

    def __rmul__(self, factor: float) -> "Duration":
        return self.__mul__(factor)

    @overload
    def __truediv__(self, other: "Duration") -> float: ...

    @overload
    def __truediv__(self, other: float) -> "Duration": ...

    def __truediv__(self, other: "Duration | float") -> "float | Duration":
        if isinstance(other, Duration):
            return self.seconds / other.seconds
        if isinstance(other, (int, float)):
            return Duration(self.seconds / other)
        return NotImplemented

    def __bool__(self) -> bool:
        return self.seconds != 0

    def __str__(self) -> str:
        return f"Duration({self.seconds:g}s)"
