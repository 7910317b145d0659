"""Tests for calendar arithmetic, truncation, comparison and predicates."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from calendrical import DAY, HOUR, Calendar, CalendarFields, Duration, Field, Instant, Ordering


def utc(*args) -> Instant:
    return Instant.from_datetime(datetime(*args, tzinfo=timezone.utc))


def new_york(*args) -> Instant:
    return Instant.from_datetime(datetime(*args, tzinfo=ZoneInfo("America/New_York")))


def wall(calendar: Calendar, instant: Instant) -> tuple[int, ...]:
    f = calendar.fields_from_instant(instant)
    return (f.year, f.month, f.day, f.hour, f.minute)


def test_add_month_clamps_to_end_of_month():
    """Jan 31 + 1 month is the last day of February, never March."""
    calendar = Calendar()

    assert calendar.add(Field.MONTH, 1, utc(2023, 1, 31, 9)) == utc(2023, 2, 28, 9)
    assert calendar.add(Field.MONTH, 1, utc(2024, 1, 31, 9)) == utc(2024, 2, 29, 9)
    assert calendar.add(Field.MONTH, -1, utc(2024, 3, 31)) == utc(2024, 2, 29)
    assert calendar.add(Field.YEAR, 1, utc(2024, 2, 29)) == utc(2025, 2, 28)
    assert calendar.add(Field.QUARTER, 1, utc(2025, 11, 30)) == utc(2026, 2, 28)


def test_add_time_units_is_elapsed_time():
    calendar = Calendar("gregorian", tz="America/New_York")

    # 1:30 EST + 1 hour crosses the spring-forward gap and lands on 3:30 EDT
    result = calendar.add(Field.HOUR, 1, new_york(2025, 3, 9, 1, 30))
    assert wall(calendar, result) == (2025, 3, 9, 3, 30)

    assert calendar.add(Field.MINUTE, 90, utc(2025, 1, 1)) == utc(2025, 1, 1, 1, 30)
    assert calendar.add(Field.NANOSECOND, 500_000_000, Instant(0)) == Instant(0.5)


def test_add_day_keeps_wall_time_across_dst():
    calendar = Calendar("gregorian", tz="America/New_York")
    start = new_york(2025, 3, 8, 12)

    result = calendar.next_day(start)

    assert wall(calendar, result) == (2025, 3, 9, 12, 0)
    assert result - start == Duration(23 * HOUR)


def test_add_day_into_gap_shifts_forward():
    calendar = Calendar("gregorian", tz="America/New_York")

    result = calendar.add(Field.DAY, 1, new_york(2025, 3, 8, 2, 30))

    assert wall(calendar, result) == (2025, 3, 9, 3, 30)


def test_previous_day_versus_flat_subtraction():
    """Subtracting 86400 s is not "yesterday" when yesterday had 23 hours."""
    calendar = Calendar("gregorian", tz="America/New_York")
    start = new_york(2025, 3, 10, 0, 30)

    flat = start - Duration(DAY)
    assert wall(calendar, flat) == (2025, 3, 8, 23, 30)

    previous = calendar.previous_day(start)
    assert wall(calendar, previous) == (2025, 3, 9, 0, 30)
    assert start - previous == Duration(23 * HOUR)


def test_add_fields_combines_units():
    calendar = Calendar()
    span = CalendarFields(month=1, day=1, hour=2)

    assert calendar.add_fields(span, utc(2025, 1, 31, 22)) == utc(2025, 3, 2)


def test_add_era_rejected():
    with pytest.raises(ValueError, match="Cannot add eras"):
        Calendar().add(Field.ERA, 1, Instant(0))


def test_day_interval_follows_dst():
    """A day runs midnight to midnight, so it may last 23 or 25 hours."""
    calendar = Calendar("gregorian", tz="America/New_York")

    spring = calendar.interval_of(Field.DAY, new_york(2025, 3, 9, 12))
    assert spring.start == new_york(2025, 3, 9)
    assert spring.duration == Duration(23 * HOUR)

    fall = calendar.day_interval(new_york(2025, 11, 2, 12))
    assert fall.duration == Duration(25 * HOUR)

    assert calendar.start_of_day(new_york(2025, 7, 4, 18, 45)) == new_york(2025, 7, 4)


def test_interval_of_larger_units():
    calendar = Calendar()
    instant = utc(2024, 2, 14, 10, 20, 30)

    month = calendar.interval_of(Field.MONTH, instant)
    assert month.start == utc(2024, 2, 1)
    assert month.duration == Duration(29 * DAY)

    year = calendar.interval_of(Field.YEAR, instant)
    assert year.duration == Duration(366 * DAY)

    quarter = calendar.interval_of(Field.QUARTER, instant)
    assert (quarter.start, quarter.end) == (utc(2024, 1, 1), utc(2024, 4, 1))

    # 2024-02-14 is a Wednesday; default weeks start Monday
    week = calendar.interval_of(Field.WEEK_OF_YEAR, instant)
    assert week.start == utc(2024, 2, 12)
    assert week.duration == Duration(7 * DAY)


def test_interval_of_time_units():
    calendar = Calendar()
    instant = Instant(utc(2025, 1, 1, 10, 20, 30).offset + 0.75)

    hour = calendar.interval_of(Field.HOUR, instant)
    assert hour.start == utc(2025, 1, 1, 10)
    assert hour.duration == Duration(HOUR)
    assert instant in hour

    assert calendar.interval_of(Field.MINUTE, instant).start == utc(2025, 1, 1, 10, 20)
    assert calendar.interval_of(Field.SECOND, instant).start == utc(2025, 1, 1, 10, 20, 30)
    assert calendar.interval_of(Field.NANOSECOND, instant).duration == Duration(0)

    with pytest.raises(ValueError, match="Eras"):
        calendar.interval_of(Field.ERA, instant)


def test_interval_of_in_half_hour_zone():
    """Hours are aligned to the local clock, not to UTC."""
    calendar = Calendar("gregorian", tz="Asia/Kolkata")
    hour = calendar.interval_of(Field.HOUR, utc(2025, 1, 1, 10, 45))

    assert hour.start == utc(2025, 1, 1, 10, 30)


def test_compare_with_granularity():
    calendar = Calendar()
    morning = utc(2025, 1, 1, 8)
    evening = utc(2025, 1, 1, 20)

    assert calendar.compare(morning, evening, Field.DAY) == Ordering.SAME
    assert calendar.compare(morning, evening, Field.HOUR) == Ordering.BEFORE
    assert calendar.compare(evening, morning, Field.HOUR) == Ordering.AFTER
    assert calendar.compare(morning, evening, Field.NANOSECOND) == Ordering.BEFORE
    assert calendar.compare(morning, utc(2025, 2, 1), Field.YEAR) == Ordering.SAME


def test_compare_depends_on_zone():
    late = utc(2025, 1, 1, 23, 30)
    early = utc(2025, 1, 2, 0, 30)

    assert Calendar("gregorian", "UTC").compare(late, early, Field.DAY) == Ordering.BEFORE
    assert Calendar("gregorian", "Asia/Tokyo").compare(late, early, Field.DAY) == Ordering.SAME


def test_day_predicates_with_injected_clock():
    now = utc(2025, 6, 15, 12)
    calendar = Calendar("gregorian", "UTC", clock=lambda: now.offset)

    assert calendar.is_today(utc(2025, 6, 15, 0, 5))
    assert calendar.is_tomorrow(utc(2025, 6, 16, 23))
    assert calendar.is_yesterday(utc(2025, 6, 14, 1))
    assert not calendar.is_today(utc(2025, 6, 16))
    assert calendar.is_in_same_day(utc(2025, 6, 15), utc(2025, 6, 15, 23, 59, 59))


def test_with_clock():
    calendar = Calendar("gregorian", "UTC")
    pinned = calendar.with_clock(lambda: 0.0)

    assert pinned.is_today(utc(1970, 1, 1, 18))
    assert pinned == calendar


def test_is_weekend_uses_regional_rules():
    sunday = utc(2025, 6, 15, 12)

    assert Calendar().is_weekend(sunday)
    assert not Calendar(locale="he_IL").is_weekend(sunday)
    assert Calendar(locale="he_IL").is_weekend(utc(2025, 6, 13, 12))
