"""Calendars: the rules that map instants to fields and back.

A Calendar binds a calendar system (gregorian, iso8601, buddhist), a time
zone and a set of regional week rules. It is the only component allowed to
decide whether a CalendarFields value names a real date, and it does all
arithmetic that depends on month lengths or daylight-saving transitions.
"""

import logging
import math
from calendar import monthrange
from collections.abc import Iterable, Iterator
from datetime import date, datetime, time, timedelta, tzinfo
from enum import StrEnum
from typing import Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dateutil import tz
from dateutil.relativedelta import relativedelta

from calendrical.duration import Duration
from calendrical.errors import FieldsInvalid
from calendrical.fields import CalendarFields, Field, Weekday
from calendrical.instant import Clock, Instant, Ordering
from calendrical.interval import Interval
from calendrical.util import (
    EPOCH,
    HOUR,
    MAX_YEAR,
    MIN_YEAR,
    MINUTE,
    NANOSECONDS_PER_SECOND,
)
from calendrical.week import ISO_RULES, WeekRules, ordinal_matches, rules_for_locale

logger = logging.getLogger(__name__)

_ONE_SECOND = timedelta(seconds=1)

# Calendar systems built on proleptic Gregorian months and days. The year
# offset shifts the year numbering; each system has a single supported era.
_YEAR_OFFSETS = {"gregorian": 0, "iso8601": 0, "buddhist": 543}
_ERAS = {"gregorian": 1, "iso8601": 1, "buddhist": 0}

# Fields derived from a resolved date; when set they must agree with it.
_DERIVED = (
    Field.ERA,
    Field.YEAR_FOR_WEEK_OF_YEAR,
    Field.QUARTER,
    Field.WEEK_OF_YEAR,
    Field.WEEK_OF_MONTH,
    Field.WEEKDAY_ORDINAL,
    Field.WEEKDAY,
)


class MatchingPolicy(StrEnum):
    """What next_occurrence does when a match falls in a skipped wall time."""

    STRICT = "strict"
    NEXT_VALID_TIME = "next_valid_time"


def _load_zone(zone: "str | tzinfo") -> tzinfo:
    if not isinstance(zone, str):
        return zone
    try:
        return ZoneInfo(zone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(
            f"Unknown time zone: {zone!r}\n"
            f"Use an IANA name such as 'UTC', 'Europe/London' or 'America/New_York'"
        ) from exc


def _zone_name(zone: tzinfo) -> str:
    return getattr(zone, "key", None) or str(zone)


class Calendar:
    """Calendar system + time zone + week rules.

    Args:
        identifier: "gregorian", "iso8601" (Gregorian with ISO week rules) or
            "buddhist" (Gregorian months, year numbered from 543 BCE)
        tz: IANA time zone name or a tzinfo instance
        locale: Locale identifier ("en_US", "de-DE", ...) used to pick week
            rules when ``week_rules`` is not given
        week_rules: Explicit week rules, overriding the locale lookup
        clock: Function returning epoch seconds, used by is_today and friends

    Example:
        >>> cal = Calendar("gregorian", tz="America/New_York", locale="en_US")
        >>> jan31 = cal.date_from_fields(CalendarFields(year=2023, month=1, day=31))
        >>> cal.fields_from_instant(cal.add(Field.MONTH, 1, jan31)).day
        28
    """

    def __init__(
        self,
        identifier: str = "gregorian",
        tz: "str | tzinfo" = "UTC",
        *,
        locale: str | None = None,
        week_rules: WeekRules | None = None,
        clock: Clock | None = None,
    ):
        identifier = identifier.lower()
        if identifier not in _YEAR_OFFSETS:
            valid = ", ".join(sorted(_YEAR_OFFSETS))
            raise ValueError(
                f"Unsupported calendar identifier: {identifier!r}\n"
                f"Supported: {valid}"
            )
        self.identifier: str = identifier
        self.zone: tzinfo = _load_zone(tz)
        self.locale: str | None = locale
        if week_rules is None:
            week_rules = ISO_RULES if identifier == "iso8601" else rules_for_locale(locale)
        self.week_rules: WeekRules = week_rules
        self.clock: Clock | None = clock
        self._year_offset: int = _YEAR_OFFSETS[identifier]
        self._era: int = _ERAS[identifier]

    @property
    def time_zone(self) -> str:
        return _zone_name(self.zone)

    @property
    def first_weekday(self) -> Weekday:
        return self.week_rules.first_weekday

    @property
    def epoch_year(self) -> int:
        """Calendar year containing the Instant epoch; the default for unset years."""
        return EPOCH.year + self._year_offset

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Calendar):
            return NotImplemented
        return (self.identifier, self.time_zone, self.week_rules) == (
            other.identifier,
            other.time_zone,
            other.week_rules,
        )

    def __hash__(self) -> int:
        return hash((self.identifier, self.time_zone, self.week_rules))

    def __repr__(self) -> str:
        return (
            f"Calendar({self.identifier!r}, tz={self.time_zone!r}, "
            f"first_weekday={self.first_weekday.name.lower()})"
        )

    # -- instant <-> local wall time -------------------------------------

    def _local(self, instant: Instant, zone: tzinfo | None = None) -> tuple[datetime, float]:
        """Split an instant into a whole-second local datetime and a fraction."""
        whole = math.floor(instant.offset)
        local = (EPOCH + timedelta(seconds=whole)).astimezone(zone or self.zone)
        return local, instant.offset - whole

    @staticmethod
    def _instant(local: datetime, fraction: float = 0.0) -> Instant:
        return Instant((local - EPOCH) // _ONE_SECOND + fraction)

    def _wall_at(self, seconds: int, zone: tzinfo) -> datetime:
        return (EPOCH + timedelta(seconds=seconds)).astimezone(zone).replace(tzinfo=None)

    def _gap_end(self, wall: datetime, zone: tzinfo) -> datetime:
        """First valid local time at or after a wall time skipped by a transition."""
        before = (wall.replace(tzinfo=zone, fold=0) - EPOCH) // _ONE_SECOND
        after = (wall.replace(tzinfo=zone, fold=1) - EPOCH) // _ONE_SECOND
        lo, hi = min(before, after), max(before, after)
        while lo < hi:
            mid = (lo + hi) // 2
            if self._wall_at(mid, zone) >= wall:
                hi = mid
            else:
                lo = mid + 1
        return (EPOCH + timedelta(seconds=lo)).astimezone(zone)

    def _resolve(
        self,
        wall: datetime,
        *,
        gap: Literal["reject", "shift", "next_valid"],
        zone: tzinfo | None = None,
        prefer_offset: timedelta | None = None,
    ) -> datetime | None:
        """Attach the zone to a naive wall time.

        ``gap`` picks the handling of skipped wall times: "reject" returns
        None, "shift" moves forward by the length of the gap and "next_valid"
        returns the first valid time after it. Repeated wall times resolve to
        the earlier instant unless ``prefer_offset`` matches the later one.
        """
        zone = zone or self.zone
        aware = wall.replace(tzinfo=zone, fold=0)
        if not tz.datetime_exists(aware):
            if gap == "reject":
                return None
            if gap == "shift":
                shifted = tz.resolve_imaginary(aware)
                logger.debug("shifted skipped wall time %s to %s", wall, shifted)
                return shifted
            resolved = self._gap_end(wall, zone)
            logger.debug("moved skipped wall time %s to %s", wall, resolved)
            return resolved
        if tz.datetime_ambiguous(aware):
            later = aware.replace(fold=1)
            if prefer_offset is not None and later.utcoffset() == prefer_offset:
                return later
        return aware

    # -- fields ----------------------------------------------------------

    def _fields_at(self, local: datetime, nanosecond: int) -> dict[Field, int]:
        day = local.date()
        rules = self.week_rules
        return {
            Field.ERA: self._era,
            Field.YEAR: day.year + self._year_offset,
            Field.YEAR_FOR_WEEK_OF_YEAR: rules.year_for_week_of_year(day) + self._year_offset,
            Field.QUARTER: (day.month - 1) // 3 + 1,
            Field.MONTH: day.month,
            Field.WEEK_OF_YEAR: rules.week_of_year(day),
            Field.WEEK_OF_MONTH: rules.week_of_month(day),
            Field.WEEKDAY_ORDINAL: (day.day - 1) // 7 + 1,
            Field.WEEKDAY: day.isoweekday(),
            Field.DAY: day.day,
            Field.HOUR: local.hour,
            Field.MINUTE: local.minute,
            Field.SECOND: local.second,
            Field.NANOSECOND: nanosecond,
        }

    def fields_from_instant(
        self, instant: Instant, fields: Iterable[Field] | None = None
    ) -> CalendarFields:
        """Break an instant into calendar fields in this calendar's zone.

        Args:
            instant: The instant to describe
            fields: Fields to fill in (all of them when None)

        Returns:
            CalendarFields bound to this calendar and its time zone
        """
        local, fraction = self._local(instant)
        nanosecond = min(round(fraction * NANOSECONDS_PER_SECOND), NANOSECONDS_PER_SECOND - 1)
        values = self._fields_at(local, nanosecond)
        wanted = set(Field) if fields is None else {Field(f) for f in fields}
        result = CalendarFields(calendar=self, time_zone=self.zone)
        for field in wanted:
            result.set(field, values[field])
        return result

    def component(self, field: Field, instant: Instant) -> int:
        value = self.fields_from_instant(instant, [field]).get(field)
        assert value is not None
        return value

    def _invalid(self, fields: CalendarFields, reason: str) -> FieldsInvalid:
        return FieldsInvalid(
            f"{fields} does not name a date in the {self.identifier} calendar "
            f"({self.time_zone}).\n"
            f"Reason: {reason}"
        )

    def _gregorian_year(self, fields: CalendarFields, year: int) -> int:
        gregorian = year - self._year_offset
        if not MIN_YEAR - 1 <= gregorian <= MAX_YEAR + 1:
            raise self._invalid(fields, f"year {year} is outside the supported range")
        return gregorian

    def _resolve_day(self, fields: CalendarFields, values: dict[Field, int]) -> date:
        rules = self.week_rules
        era = values.get(Field.ERA)
        if era is not None and era != self._era:
            raise self._invalid(fields, f"era {era} is not supported (only {self._era})")

        month = values.get(Field.MONTH)
        quarter = values.get(Field.QUARTER)
        if month is None and quarter is not None:
            if not 1 <= quarter <= 4:
                raise self._invalid(fields, f"quarter {quarter} is out of range 1..4")
            month = (quarter - 1) * 3 + 1

        weekday = values.get(Field.WEEKDAY)
        if weekday is not None and not 1 <= weekday <= 7:
            raise self._invalid(fields, f"weekday {weekday} is out of range 1..7")

        # Week-based date: year-for-week-of-year + week + weekday
        week_of_year = values.get(Field.WEEK_OF_YEAR)
        if Field.DAY not in values and month is None and week_of_year is not None:
            week_year = values.get(Field.YEAR_FOR_WEEK_OF_YEAR, values.get(Field.YEAR))
            if week_year is None:
                week_year = self.epoch_year
            gregorian = self._gregorian_year(fields, week_year)
            if not 1 <= week_of_year <= rules.weeks_in_year(gregorian):
                raise self._invalid(
                    fields, f"week {week_of_year} does not exist in week-year {week_year}"
                )
            day_of_week = Weekday(weekday) if weekday is not None else rules.first_weekday
            try:
                return rules.date_from_week(gregorian, week_of_year, day_of_week)
            except (OverflowError, ValueError):
                raise self._invalid(fields, "week date is outside the supported range") from None

        year = values.get(Field.YEAR)
        gregorian = self._gregorian_year(fields, self.epoch_year if year is None else year)
        month = 1 if month is None else month
        if not 1 <= month <= 12:
            raise self._invalid(fields, f"month {month} is out of range 1..12")
        days_in_month = monthrange(gregorian, month)[1]

        day = values.get(Field.DAY)
        if day is None:
            ordinal = values.get(Field.WEEKDAY_ORDINAL)
            week_of_month = values.get(Field.WEEK_OF_MONTH)
            first = date(gregorian, month, 1)
            if weekday is not None and ordinal is not None:
                # nth weekday of the month, negative counts from the end
                if ordinal > 0:
                    lead = (weekday - first.isoweekday()) % 7
                    day = 1 + lead + (ordinal - 1) * 7
                elif ordinal < 0:
                    last = first.replace(day=days_in_month)
                    lag = (last.isoweekday() - weekday) % 7
                    day = days_in_month - lag + (ordinal + 1) * 7
                else:
                    raise self._invalid(fields, "weekday_ordinal cannot be 0")
            elif week_of_month is not None:
                day_of_week = Weekday(weekday) if weekday is not None else rules.first_weekday
                start = rules.first_week_start(first)
                offset = (week_of_month - 1) * 7 + (day_of_week - rules.first_weekday) % 7
                day = (start + timedelta(days=offset) - first).days + 1
            else:
                day = 1

        if not 1 <= day <= days_in_month:
            raise self._invalid(
                fields, f"day {day} is out of range 1..{days_in_month} for month {month}"
            )
        return date(gregorian, month, day)

    def date_from_fields(self, fields: CalendarFields) -> Instant:
        """Resolve a field set to an instant.

        Unset fields take calendar defaults: year defaults to the calendar's
        epoch year, month and day to 1, time fields to 0. The day may also be
        given as weekday + weekday_ordinal, weekday + week_of_month, or
        year_for_week_of_year + week_of_year (+ weekday). Any other derived
        field that is set (weekday, quarter, week numbers, era) must agree
        with the resolved date.

        A wall time skipped by a daylight-saving transition is invalid; a
        repeated wall time resolves to its earlier instant.

        Raises:
            FieldsInvalid: If the fields name no instant under this calendar
        """
        zone = self.zone if fields.time_zone is None else _load_zone(fields.time_zone)
        values = fields.set_fields()
        day = self._resolve_day(fields, values)

        hour = values.get(Field.HOUR, 0)
        minute = values.get(Field.MINUTE, 0)
        second = values.get(Field.SECOND, 0)
        nanosecond = values.get(Field.NANOSECOND, 0)
        if not (0 <= hour <= 23 and 0 <= minute <= 59 and 0 <= second <= 59):
            raise self._invalid(fields, f"time {hour}:{minute}:{second} is out of range")
        if not 0 <= nanosecond < NANOSECONDS_PER_SECOND:
            raise self._invalid(fields, f"nanosecond {nanosecond} is out of range")

        wall = datetime.combine(day, time(hour, minute, second))
        local = self._resolve(wall, gap="reject", zone=zone)
        if local is None:
            raise self._invalid(
                fields, f"{wall} is skipped by a daylight-saving transition in {_zone_name(zone)}"
            )

        derived = self._fields_at(local, nanosecond)
        for field in _DERIVED:
            expected = values.get(field)
            if expected is None or field == Field.ERA:
                continue
            if field == Field.WEEKDAY_ORDINAL and expected < 0:
                matches = ordinal_matches(day, expected)
            else:
                matches = derived[field] == expected
            if not matches:
                raise self._invalid(
                    fields, f"{field} is {expected} but the date has {field}={derived[field]}"
                )

        try:
            return self._instant(local, nanosecond / NANOSECONDS_PER_SECOND)
        except ValueError:
            raise self._invalid(fields, f"{local} is outside the supported range") from None

    def is_valid(self, fields: CalendarFields) -> bool:
        try:
            self.date_from_fields(fields)
        except FieldsInvalid:
            return False
        return True

    # -- arithmetic ------------------------------------------------------

    def add(self, field: Field, count: int, to: Instant) -> Instant:
        """Add ``count`` units of ``field`` to an instant.

        Calendar units (year, quarter, month, week, day) move the wall clock
        and keep the time of day; a day that is too large for the target
        month is clamped to the month's last day, so Jan 31 + 1 month is the
        last day of February. Time units (hour, minute, second, nanosecond)
        add elapsed time.
        """
        return self.add_fields(CalendarFields().set(field, count), to)

    def add_fields(self, span: CalendarFields, to: Instant) -> Instant:
        """Add every set field of ``span``, calendar units first.

        A resulting wall time skipped by a daylight-saving transition moves
        forward by the length of the gap; a repeated one keeps the starting
        UTC offset when it can.
        """
        values = span.set_fields()
        if Field.ERA in values:
            raise ValueError(
                "Cannot add eras.\n"
                "Hint: add years instead, e.g. calendar.add(Field.YEAR, 100, instant)"
            )
        delta = relativedelta(
            years=values.get(Field.YEAR, 0) + values.get(Field.YEAR_FOR_WEEK_OF_YEAR, 0),
            months=values.get(Field.MONTH, 0) + 3 * values.get(Field.QUARTER, 0),
            weeks=(
                values.get(Field.WEEK_OF_YEAR, 0)
                + values.get(Field.WEEK_OF_MONTH, 0)
                + values.get(Field.WEEKDAY_ORDINAL, 0)
            ),
            days=values.get(Field.DAY, 0) + values.get(Field.WEEKDAY, 0),
        )
        elapsed = Duration(
            values.get(Field.HOUR, 0) * HOUR
            + values.get(Field.MINUTE, 0) * MINUTE
            + values.get(Field.SECOND, 0)
            + values.get(Field.NANOSECOND, 0) / NANOSECONDS_PER_SECOND
        )

        result = to
        if delta:
            local, fraction = self._local(to)
            moved = local.replace(tzinfo=None) + delta
            resolved = self._resolve(moved, gap="shift", prefer_offset=local.utcoffset())
            assert resolved is not None
            result = self._instant(resolved, fraction)
        return result + elapsed

    def next_day(self, instant: Instant) -> Instant:
        return self.add(Field.DAY, 1, instant)

    def previous_day(self, instant: Instant) -> Instant:
        """Same wall-clock time one calendar day earlier.

        Unlike subtracting 86400 seconds, this never lands two calendar days
        back when the previous day was 23 or 25 hours long.
        """
        return self.add(Field.DAY, -1, instant)

    # -- searching -------------------------------------------------------

    def next_occurrence(
        self,
        after: Instant,
        matching: CalendarFields,
        policy: MatchingPolicy = MatchingPolicy.STRICT,
    ) -> Instant:
        """Earliest instant strictly after ``after`` whose fields match.

        Raises:
            NotFound: If nothing matches, or (STRICT) the earliest match is a
                wall time skipped by a daylight-saving transition
        """
        from calendrical.recurrence import next_occurrence

        return next_occurrence(self, after, matching, MatchingPolicy(policy))

    def occurrences(
        self,
        after: Instant,
        matching: CalendarFields,
        policy: MatchingPolicy = MatchingPolicy.STRICT,
    ) -> Iterator[Instant]:
        """Yield successive matches after ``after`` (see next_occurrence).

        Under STRICT, skipped wall times are left out of the sequence.
        """
        from calendrical.recurrence import occurrences

        return occurrences(self, after, matching, MatchingPolicy(policy))

    # -- truncation and comparison ---------------------------------------

    def _period(self, field: Field, day: date) -> tuple[date, date]:
        """First day of the period containing ``day`` and of the next one."""
        rules = self.week_rules
        if field == Field.YEAR:
            start = day.replace(month=1, day=1)
            return start, start + relativedelta(years=1)
        if field == Field.YEAR_FOR_WEEK_OF_YEAR:
            year = rules.year_for_week_of_year(day)
            return (
                rules.first_week_start(date(year, 1, 1)),
                rules.first_week_start(date(year + 1, 1, 1)),
            )
        if field == Field.QUARTER:
            start = day.replace(month=(day.month - 1) // 3 * 3 + 1, day=1)
            return start, start + relativedelta(months=3)
        if field == Field.MONTH:
            start = day.replace(day=1)
            return start, start + relativedelta(months=1)
        if field in (Field.WEEK_OF_YEAR, Field.WEEK_OF_MONTH):
            start = rules.week_start(day)
            return start, start + timedelta(days=7)
        start = day
        return start, start + timedelta(days=1)

    def interval_of(self, field: Field, instant: Instant) -> Interval:
        """The span of the ``field`` unit (month, day, hour, ...) containing an instant.

        Day-sized and larger spans run from local midnight to the next
        period's local midnight, so a day may last 23 or 25 hours.
        """
        field = Field(field)
        if field == Field.ERA:
            raise ValueError("Eras have no finite interval in this calendar")
        local, fraction = self._local(instant)
        whole = self._instant(local)

        if field == Field.NANOSECOND:
            return Interval(start=instant, duration=Duration(0))
        if field == Field.SECOND:
            return Interval(start=whole, duration=Duration(1))
        if field == Field.MINUTE:
            return Interval(start=whole - Duration(local.second), duration=Duration(MINUTE))
        if field == Field.HOUR:
            into_hour = local.minute * MINUTE + local.second
            return Interval(start=whole - Duration(into_hour), duration=Duration(HOUR))

        first, following = self._period(field, local.date())
        start = self._start_of(first)
        return Interval.between(start, self._start_of(following))

    def _start_of(self, day: date) -> Instant:
        resolved = self._resolve(datetime.combine(day, time.min), gap="next_valid")
        assert resolved is not None
        return self._instant(resolved)

    def start_of_day(self, instant: Instant) -> Instant:
        """Local midnight of the day containing ``instant``.

        In zones where a transition skips midnight, the first valid instant
        of the day is returned instead.
        """
        local, _ = self._local(instant)
        return self._start_of(local.date())

    def day_interval(self, instant: Instant) -> Interval:
        return self.interval_of(Field.DAY, instant)

    def compare(self, a: Instant, b: Instant, granularity: Field) -> Ordering:
        """Compare two instants after truncating both to ``granularity``.

        Two instants on the same local day compare SAME at Field.DAY even if
        their times differ.
        """
        granularity = Field(granularity)
        if granularity == Field.NANOSECOND:
            return a.compare(b)
        if granularity == Field.ERA:
            return Ordering.SAME
        return Ordering.of(
            self.interval_of(granularity, a).start.offset,
            self.interval_of(granularity, b).start.offset,
        )

    # -- predicates ------------------------------------------------------

    def _now(self) -> Instant:
        return Instant.now(self.clock)

    def is_in_same_day(self, a: Instant, b: Instant) -> bool:
        return self.compare(a, b, Field.DAY) == Ordering.SAME

    def is_today(self, instant: Instant) -> bool:
        return self.is_in_same_day(instant, self._now())

    def is_tomorrow(self, instant: Instant) -> bool:
        return self.is_in_same_day(instant, self.next_day(self._now()))

    def is_yesterday(self, instant: Instant) -> bool:
        return self.is_in_same_day(instant, self.previous_day(self._now()))

    def is_weekend(self, instant: Instant) -> bool:
        """True if the local day is a weekend day under this calendar's week rules."""
        local, _ = self._local(instant)
        return self.week_rules.is_weekend(local.date())

    def with_zone(self, tz: "str | tzinfo") -> "Calendar":
        return Calendar(
            self.identifier, tz, locale=self.locale, week_rules=self.week_rules, clock=self.clock
        )

    def with_clock(self, clock: Clock | None) -> "Calendar":
        return Calendar(
            self.identifier,
            self.zone,
            locale=self.locale,
            week_rules=self.week_rules,
            clock=clock,
        )

