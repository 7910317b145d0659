"""Sparse date/time field sets.

A CalendarFields value is a bag of optional integers (year, month, day, ...).
On its own it means nothing: only a Calendar can say whether day=31,
month=2 is a real date. The same type doubles as an additive span for
Calendar.add_fields (e.g. month=1, hour=2).
"""

from dataclasses import dataclass
from datetime import tzinfo
from enum import IntEnum, StrEnum
from typing import TYPE_CHECKING, Iterator

from calendrical.errors import FieldsInvalid

if TYPE_CHECKING:
    from calendrical.calendar import Calendar
    from calendrical.instant import Instant


class Field(StrEnum):
    """Named calendar units, from coarsest to finest."""

    ERA = "era"
    YEAR = "year"
    YEAR_FOR_WEEK_OF_YEAR = "year_for_week_of_year"
    QUARTER = "quarter"
    MONTH = "month"
    WEEK_OF_YEAR = "week_of_year"
    WEEK_OF_MONTH = "week_of_month"
    WEEKDAY_ORDINAL = "weekday_ordinal"
    WEEKDAY = "weekday"
    DAY = "day"
    HOUR = "hour"
    MINUTE = "minute"
    SECOND = "second"
    NANOSECOND = "nanosecond"


class Weekday(IntEnum):
    """ISO weekday numbering: Monday is 1, Sunday is 7.

    This matches ``date.isoweekday()``. Platforms that count from Sunday
    (Sunday is 1, Monday is 2, Saturday is 7) need converting with
    ``Weekday(n - 1 or 7)``. The numbering does not depend on which day a
    calendar's week starts on.
    """

    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6
    SUNDAY = 7

    @classmethod
    def parse(cls, name: "str | int | Weekday") -> "Weekday":
        """Accept a Weekday, an ISO number, or a case-insensitive day name."""
        if isinstance(name, int):
            return cls(name)
        try:
            return cls[name.upper()]
        except KeyError:
            valid = ", ".join(day.name.lower() for day in cls)
            raise ValueError(
                f"Invalid day name: '{name}'\nValid days: {valid}\n"
            ) from None


@dataclass(kw_only=True)
class CalendarFields:
    era: int | None = None
    year: int | None = None
    year_for_week_of_year: int | None = None
    quarter: int | None = None
    month: int | None = None
    week_of_year: int | None = None
    week_of_month: int | None = None
    weekday_ordinal: int | None = None
    weekday: int | None = None
    day: int | None = None
    hour: int | None = None
    minute: int | None = None
    second: int | None = None
    nanosecond: int | None = None
    calendar: "Calendar | None" = None
    time_zone: "str | tzinfo | None" = None

    def get(self, field: Field) -> int | None:
        return getattr(self, Field(field).value)

    def set(self, field: Field, value: int | None) -> "CalendarFields":
        setattr(self, Field(field).value, value)
        return self

    def __getitem__(self, field: Field) -> int | None:
        return self.get(field)

    def __setitem__(self, field: Field, value: int | None) -> None:
        self.set(field, value)

    def __iter__(self) -> Iterator[Field]:
        """Iterate over the fields that hold a value, coarsest first."""
        return (field for field in Field if self.get(field) is not None)

    def __contains__(self, field: object) -> bool:
        try:
            return self.get(Field(field)) is not None
        except ValueError:
            return False

    def set_fields(self) -> dict[Field, int]:
        return {field: value for field in Field if (value := self.get(field)) is not None}

    def is_empty(self) -> bool:
        return not self.set_fields()

    def is_valid(self, calendar: "Calendar | None" = None) -> bool:
        """Ask ``calendar`` (or the bound one) whether these fields name a date."""
        target = calendar or self.calendar
        if target is None:
            return False
        return target.is_valid(self)

    def instant(self) -> "Instant":
        """Resolve through the bound calendar.

        Raises:
            FieldsInvalid: If no calendar is bound or the fields name no date
        """
        if self.calendar is None:
            raise FieldsInvalid(
                f"Cannot resolve fields without a calendar.\n"
                f"Got: {self}\n"
                f"Hint: bind one, e.g. CalendarFields(month=2, day=1, "
                f"calendar=Calendar('gregorian'))\n"
                f"      or call calendar.date_from_fields(fields)"
            )
        return self.calendar.date_from_fields(self)

    def __str__(self) -> str:
        parts = ", ".join(f"{field}={value}" for field, value in self.set_fields().items())
        return f"CalendarFields({parts})"

