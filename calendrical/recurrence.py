"""Finding the next instant that matches a set of calendar fields.

Candidate days are generated by python-dateutil's rrule; fields that rrule
cannot express directly (week numbers, weekday ordinals, era) are checked
against the calendar afterwards, and only accepted days are expanded into
times of day.

Unset fields finer than the finest set field are pinned to their minimum,
so matching ``weekday=Monday`` finds the next Monday at 00:00:00 and
matching ``minute=30`` finds the next hh:30:00. A week-year given without a
month pins to the first day of its week 1.
"""

import logging
from calendar import monthrange
from collections.abc import Iterator
from datetime import date, datetime, time, timedelta
from itertools import product
from typing import Any

from dateutil import tz
from dateutil.relativedelta import relativedelta
from dateutil.rrule import (
    DAILY,
    FR,
    HOURLY,
    MINUTELY,
    MO,
    MONTHLY,
    SA,
    SECONDLY,
    SU,
    TH,
    TU,
    WE,
    YEARLY,
    rrule,
    weekday,
)

from calendrical.calendar import Calendar, MatchingPolicy
from calendrical.errors import FieldsInvalid, NotFound
from calendrical.fields import CalendarFields, Field, Weekday
from calendrical.instant import Instant
from calendrical.util import MAX_OFFSET, MAX_YEAR, MIN_YEAR, NANOSECONDS_PER_SECOND
from calendrical.week import ordinal_matches

logger = logging.getLogger(__name__)

# One full Gregorian cycle: any satisfiable pattern without a year repeats
# within it.
SEARCH_YEARS = 400

_ONE_SECOND = timedelta(seconds=1)

_YEAR, _MONTH, _DAY, _HOUR, _MINUTE, _SECOND, _SUBSECOND = range(7)

_FREQ_MAP = {
    _YEAR: YEARLY,
    _MONTH: MONTHLY,
    _DAY: DAILY,
    _HOUR: HOURLY,
    _MINUTE: MINUTELY,
    _SECOND: SECONDLY,
}

_LEVELS = {
    Field.ERA: _YEAR,
    Field.YEAR: _YEAR,
    Field.YEAR_FOR_WEEK_OF_YEAR: _YEAR,
    Field.QUARTER: _MONTH,
    Field.MONTH: _MONTH,
    Field.WEEK_OF_YEAR: _DAY,
    Field.WEEK_OF_MONTH: _DAY,
    Field.WEEKDAY_ORDINAL: _DAY,
    Field.WEEKDAY: _DAY,
    Field.DAY: _DAY,
    Field.HOUR: _HOUR,
    Field.MINUTE: _MINUTE,
    Field.SECOND: _SECOND,
    Field.NANOSECOND: _SUBSECOND,
}

_RANGES = {
    Field.QUARTER: (1, 4),
    Field.MONTH: (1, 12),
    Field.WEEK_OF_YEAR: (1, 53),
    Field.WEEK_OF_MONTH: (0, 6),
    Field.WEEKDAY_ORDINAL: (-5, 5),
    Field.WEEKDAY: (1, 7),
    Field.DAY: (1, 31),
    Field.HOUR: (0, 23),
    Field.MINUTE: (0, 59),
    Field.SECOND: (0, 59),
    Field.NANOSECOND: (0, NANOSECONDS_PER_SECOND - 1),
}

# Mapping from ISO weekday numbers to dateutil weekday constants
_DAY_MAP: dict[Weekday, weekday] = {
    Weekday.MONDAY: MO,
    Weekday.TUESDAY: TU,
    Weekday.WEDNESDAY: WE,
    Weekday.THURSDAY: TH,
    Weekday.FRIDAY: FR,
    Weekday.SATURDAY: SA,
    Weekday.SUNDAY: SU,
}

# Fields the rrule arguments cannot fully express
_CHECKED = (
    Field.ERA,
    Field.YEAR,
    Field.YEAR_FOR_WEEK_OF_YEAR,
    Field.QUARTER,
    Field.WEEK_OF_YEAR,
    Field.WEEK_OF_MONTH,
    Field.WEEKDAY_ORDINAL,
)


class FieldPattern:
    """A field match translated into rrule arguments plus a residual check."""

    def __init__(self, calendar: Calendar, matching: CalendarFields):
        self.calendar: Calendar = calendar
        self.values: dict[Field, int] = matching.set_fields()
        if not self.values:
            raise FieldsInvalid(
                "Cannot search for an empty field set.\n"
                "Example: CalendarFields(weekday=Weekday.MONDAY)"
            )
        for field, value in self.values.items():
            bounds = _RANGES.get(field)
            if bounds is not None and not bounds[0] <= value <= bounds[1]:
                raise FieldsInvalid(
                    f"{field}={value} is outside {bounds[0]}..{bounds[1]} "
                    f"in {matching}"
                )
        if self.values.get(Field.WEEKDAY_ORDINAL) == 0:
            raise FieldsInvalid(f"weekday_ordinal cannot be 0 in {matching}")
        if Field.WEEKDAY_ORDINAL in self.values and Field.WEEKDAY not in self.values:
            raise FieldsInvalid(
                f"weekday_ordinal needs a weekday in {matching}\n"
                f"Example: CalendarFields(weekday=Weekday.FRIDAY, weekday_ordinal=-1)"
            )

        specified = {_LEVELS[field] for field in self.values}
        finest = max(specified)
        free = [
            level
            for level in range(_YEAR, _SUBSECOND)
            if level < finest and level not in specified
        ]
        pinned = {
            level
            for level in range(_MONTH, _SUBSECOND)
            if level > finest and level not in specified
        }
        self.freq_level: int = max(free) if free else _YEAR
        self.nanosecond: int = self.values.get(Field.NANOSECOND, 0)
        self.checks: dict[Field, int] = {
            field: value for field, value in self.values.items() if field in _CHECKED
        }

        # A week-year without month or day pins to the start of its week 1
        week_based = Field.YEAR_FOR_WEEK_OF_YEAR in self.values and not (
            Field.MONTH in self.values or Field.QUARTER in self.values
        )

        rrule_kwargs: dict[str, Any] = {"freq": _FREQ_MAP[self.freq_level]}

        # Month
        self.months: list[int] | None = None
        if Field.MONTH in self.values:
            self.months = [self.values[Field.MONTH]]
        elif Field.QUARTER in self.values:
            first = (self.values[Field.QUARTER] - 1) * 3 + 1
            self.months = [first] if finest == _MONTH else [first, first + 1, first + 2]
        elif _MONTH in pinned and not week_based:
            self.months = [1]
        if self.months is not None:
            rrule_kwargs["bymonth"] = self.months

        # Day
        if Field.DAY in self.values:
            rrule_kwargs["bymonthday"] = [self.values[Field.DAY]]
        if Field.WEEKDAY in self.values:
            rrule_kwargs["byweekday"] = [_DAY_MAP[Weekday(self.values[Field.WEEKDAY])]]
        elif Field.DAY not in self.values and (
            Field.WEEK_OF_YEAR in self.values or Field.WEEK_OF_MONTH in self.values
        ):
            rrule_kwargs["byweekday"] = [_DAY_MAP[calendar.first_weekday]]
        if _DAY in pinned:
            if week_based:
                rrule_kwargs["byweekday"] = [_DAY_MAP[calendar.first_weekday]]
                self.checks.setdefault(Field.WEEK_OF_YEAR, 1)
            else:
                rrule_kwargs["bymonthday"] = [1]

        # Days are generated first; the time of day is expanded per matching day
        self.day_kwargs: dict[str, Any] = {
            **rrule_kwargs,
            "freq": _FREQ_MAP[min(self.freq_level, _DAY)],
        }

        # Time of day
        self.times: list[list[int]] = []
        for field, level, key, count in (
            (Field.HOUR, _HOUR, "byhour", 24),
            (Field.MINUTE, _MINUTE, "byminute", 60),
            (Field.SECOND, _SECOND, "bysecond", 60),
        ):
            if field in self.values:
                rrule_kwargs[key] = [self.values[field]]
                self.times.append([self.values[field]])
            elif level in pinned:
                rrule_kwargs[key] = [0]
                self.times.append([0])
            else:
                self.times.append(list(range(count)))

        self.rrule_kwargs: dict[str, Any] = rrule_kwargs

    @property
    def recurrence_rule(self) -> rrule:
        """A fresh rrule for this pattern (dtstart is set at search time)."""
        return rrule(**self.rrule_kwargs)

    def is_satisfiable(self) -> bool:
        """False for field combinations that no date can have."""
        day = self.values.get(Field.DAY)
        month = self.values.get(Field.MONTH)
        quarter = self.values.get(Field.QUARTER)
        ordinal = self.values.get(Field.WEEKDAY_ORDINAL)
        week_of_month = self.values.get(Field.WEEK_OF_MONTH)

        if month is not None and quarter is not None and (month - 1) // 3 + 1 != quarter:
            return False
        # February is checked against a leap year
        if day is not None and self.months is not None:
            if not any(day <= monthrange(2000, m)[1] for m in self.months):
                return False
        if ordinal is not None and day is not None:
            if ordinal > 0 and not (ordinal - 1) * 7 < day <= ordinal * 7:
                return False
            # Months of 28..31 days bound where the nth-from-last weekday falls
            if ordinal < 0 and not 29 + 7 * ordinal <= day <= 38 + 7 * ordinal:
                return False
        # Week 1 of a month starts within six days of the 1st
        if ordinal is not None and ordinal > 0 and week_of_month is not None:
            if abs(week_of_month - ordinal) > 1:
                return False
        if day is not None and week_of_month is not None:
            if not (day - 7) // 7 + 1 <= week_of_month <= (day + 5) // 7 + 1:
                return False
        return True

    def _accepts(self, day: datetime) -> bool:
        derived = self.calendar._fields_at(day, self.nanosecond)
        for field, expected in self.checks.items():
            if field == Field.WEEKDAY_ORDINAL and expected < 0:
                if not ordinal_matches(day.date(), expected):
                    return False
            elif derived[field] != expected:
                return False
        return True

    def walls(self, after: Instant) -> Iterator[datetime]:
        """Yield matching naive wall times at or after the wall time of ``after``.

        Candidate days come from the day-level rrule and the residual field
        check; only accepted days are expanded into times of day.
        """
        calendar = self.calendar
        start = calendar._local(after)[0].replace(tzinfo=None)
        until = calendar._local(Instant(MAX_OFFSET))[0].replace(tzinfo=None)
        if start.year + SEARCH_YEARS < until.year:
            until = start + relativedelta(years=SEARCH_YEARS)

        year = self.values.get(Field.YEAR)
        if year is not None:
            gregorian = year - calendar._year_offset
            if not MIN_YEAR <= gregorian <= MAX_YEAR:
                return
            start = max(start, datetime(gregorian, 1, 1))
            until = min(until, datetime(gregorian, 12, 31, 23, 59, 59))

        week_year = self.values.get(Field.YEAR_FOR_WEEK_OF_YEAR)
        if week_year is not None:
            gregorian = week_year - calendar._year_offset
            if not MIN_YEAR <= gregorian <= MAX_YEAR:
                return
            rules = calendar.week_rules
            first = rules.first_week_start(date(gregorian, 1, 1))
            following = rules.first_week_start(date(gregorian + 1, 1, 1))
            start = max(start, datetime.combine(first, time.min))
            until = min(until, datetime.combine(following, time.min) - _ONE_SECOND)

        if start > until:
            return

        first_day = datetime.combine(start.date(), time.min)
        for day in rrule(dtstart=first_day, until=until, **self.day_kwargs):
            if not self._accepts(day):
                continue
            for hour, minute, second in product(*self.times):
                wall = day.replace(hour=hour, minute=minute, second=second)
                if wall > until:
                    return
                if wall >= start:
                    yield wall


def _instants(
    calendar: Calendar,
    pattern: FieldPattern,
    after: Instant,
    policy: MatchingPolicy,
    strict_raises: bool,
) -> Iterator[Instant]:
    zone = calendar.zone
    fraction = pattern.nanosecond / NANOSECONDS_PER_SECOND
    for wall in pattern.walls(after):
        aware = wall.replace(tzinfo=zone)
        if not tz.datetime_exists(aware):
            if policy == MatchingPolicy.STRICT:
                if strict_raises:
                    raise NotFound(
                        f"The earliest match for {pattern.values} after {after} is "
                        f"{wall}, which is skipped by a daylight-saving transition "
                        f"in {calendar.time_zone}.\n"
                        f"Hint: pass policy=MatchingPolicy.NEXT_VALID_TIME to get "
                        f"the first valid instant after the gap"
                    )
                logger.debug("skipping nonexistent wall time %s", wall)
                continue
            instant = calendar._instant(calendar._gap_end(wall, zone))
            if instant > after:
                yield instant
            continue
        options = [aware]
        if tz.datetime_ambiguous(aware):
            options.append(aware.replace(fold=1))
        for option in options:
            instant = calendar._instant(option, fraction)
            if instant > after:
                yield instant
                break


def next_occurrence(
    calendar: Calendar,
    after: Instant,
    matching: CalendarFields,
    policy: MatchingPolicy,
) -> Instant:
    pattern = FieldPattern(calendar, matching)
    if pattern.is_satisfiable():
        for instant in _instants(calendar, pattern, after, policy, strict_raises=True):
            return instant
    raise NotFound(
        f"No instant after {after} matches {matching} in the "
        f"{calendar.identifier} calendar ({calendar.time_zone}) "
        f"within {SEARCH_YEARS} years"
    )


def occurrences(
    calendar: Calendar,
    after: Instant,
    matching: CalendarFields,
    policy: MatchingPolicy,
) -> Iterator[Instant]:
    pattern = FieldPattern(calendar, matching)
    if not pattern.is_satisfiable():
        return
    last = after
    for instant in _instants(calendar, pattern, after, policy, strict_raises=False):
        # Several skipped wall times can resolve to the same gap end
        if instant <= last:
            continue
        last = instant
        yield instant
