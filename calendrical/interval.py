from dataclasses import dataclass

from calendrical.duration import Duration
from calendrical.instant import Instant


@dataclass(frozen=True, kw_only=True, order=True)
class Interval:
    """A non-negative span anchored at a start instant.

    Intervals are closed: both ``start`` and ``end`` are contained. Ordering
    is by start, then duration, so two intervals are equal only when both
    match exactly.
    """

    start: Instant
    duration: Duration

    def __post_init__(self) -> None:
        if self.duration.seconds < 0:
            raise ValueError(
                f"Interval duration must be >= 0, got {self.duration}.\n"
                f"Hint: use Interval.between(earlier, later) to build from two instants"
            )

    @classmethod
    def between(cls, start: Instant, end: Instant) -> "Interval":
        if end < start:
            raise ValueError(
                f"Interval start ({start}) must be <= end ({end})"
            )
        return cls(start=start, duration=end - start)

    @property
    def end(self) -> Instant:
        return self.start + self.duration

    def contains(self, instant: Instant) -> bool:
        return self.start <= instant <= self.end

    def __contains__(self, instant: object) -> bool:
        return isinstance(instant, Instant) and self.contains(instant)

    def intersects(self, other: "Interval") -> bool:
        """True if the intervals share at least one instant (touching counts)."""
        return self.start <= other.end and other.start <= self.end

    def intersection(self, other: "Interval") -> "Interval | None":
        if not self.intersects(other):
            return None
        return Interval.between(max(self.start, other.start), min(self.end, other.end))

    def __str__(self) -> str:
        """Human-friendly string showing range and duration."""
        return (
            f"Interval({self.start.to_datetime().isoformat()}→"
            f"{self.end.to_datetime().isoformat()}, {self.duration.seconds:g}s)"
        )
