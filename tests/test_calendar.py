"""Tests for converting between instants and calendar fields."""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from calendrical import Calendar, CalendarFields, Field, FieldsInvalid, Instant, Weekday
from calendrical.util import MAX_OFFSET, MAX_YEAR, MIN_OFFSET, MIN_YEAR


def utc(*args) -> Instant:
    return Instant.from_datetime(datetime(*args, tzinfo=timezone.utc))


def local(zone: str, *args, fold: int = 0) -> Instant:
    return Instant.from_datetime(datetime(*args, tzinfo=ZoneInfo(zone), fold=fold))


def test_fields_roundtrip():
    """date_from_fields(fields_from_instant(i)) == i."""
    calendar = Calendar("gregorian", tz="America/New_York")
    for instant in (
        utc(2024, 2, 29, 13, 45, 30),
        utc(1999, 12, 31, 23, 59, 59),
        Instant(utc(2025, 7, 4, 12).offset + 0.5),
    ):
        fields = calendar.fields_from_instant(instant)
        assert calendar.date_from_fields(fields) == instant


def test_sparse_fields_survive_the_round_trip():
    """Every set field reads back unchanged after fields -> instant -> fields."""
    cases = [
        (Calendar("gregorian", tz="America/New_York"), dict(year=2024, month=3, day=10, hour=15)),
        (Calendar("gregorian", tz="America/New_York"), dict(year=2025, month=11, day=2, hour=1)),
        (Calendar(), dict(year=2025, month=7, day=4)),
        (Calendar("gregorian", tz="Asia/Tokyo"), dict(year=2024, month=12, day=31, second=59)),
        (Calendar(), dict(year=2025, month=5, weekday=Weekday.FRIDAY, weekday_ordinal=2)),
        (Calendar("buddhist", tz="Asia/Bangkok"), dict(year=2568, month=4, day=13, minute=45)),
        (
            Calendar("iso8601"),
            dict(year_for_week_of_year=2021, week_of_year=1, weekday=Weekday.MONDAY),
        ),
    ]
    for calendar, values in cases:
        fields = CalendarFields(**values)
        back = calendar.fields_from_instant(calendar.date_from_fields(fields))
        for field, value in fields.set_fields().items():
            assert back.get(field) == value, (calendar, field)


def test_fields_at_the_edges_of_the_supported_range():
    """The first and last supported instants have fields in every zone."""
    for zone in ("Pacific/Kiritimati", "Etc/GMT+12", "UTC"):
        calendar = Calendar("gregorian", tz=zone, locale="en_US")
        for instant in (Instant(MIN_OFFSET), Instant(MAX_OFFSET)):
            fields = calendar.fields_from_instant(instant)
            assert MIN_YEAR - 1 <= fields.year <= MAX_YEAR + 1
            assert calendar.date_from_fields(fields) == instant
            calendar.is_weekend(instant)

    calendar = Calendar()
    assert calendar.start_of_day(Instant(MIN_OFFSET)) == Instant(MIN_OFFSET)
    assert calendar.day_interval(Instant(MAX_OFFSET - 1)).end == Instant(MAX_OFFSET)
    assert calendar.is_in_same_day(Instant(MAX_OFFSET - 1), Instant(MAX_OFFSET - 86400))


def test_dates_outside_the_supported_range_are_invalid():
    calendar = Calendar()

    with pytest.raises(FieldsInvalid, match="outside the supported range"):
        calendar.date_from_fields(CalendarFields(year=1, month=1, day=1))
    with pytest.raises(FieldsInvalid, match="outside the supported range"):
        calendar.date_from_fields(CalendarFields(year=MAX_YEAR + 1, month=1, day=1, hour=1))


def test_fields_from_instant_values():
    calendar = Calendar("gregorian", tz="Asia/Tokyo")
    fields = calendar.fields_from_instant(utc(2024, 12, 31, 15, 30))

    assert (fields.year, fields.month, fields.day) == (2025, 1, 1)
    assert (fields.hour, fields.minute, fields.second) == (0, 30, 0)
    assert fields.weekday == Weekday.WEDNESDAY
    assert fields.quarter == 1
    assert fields.era == 1
    assert fields.calendar is calendar


def test_fields_from_instant_subset():
    calendar = Calendar()
    fields = calendar.fields_from_instant(utc(2025, 5, 17, 8), [Field.MONTH, Field.HOUR])

    assert fields.set_fields() == {Field.MONTH: 5, Field.HOUR: 8}
    assert calendar.component(Field.DAY, utc(2025, 5, 17, 8)) == 17


def test_nanoseconds_survive():
    calendar = Calendar()
    instant = calendar.date_from_fields(
        CalendarFields(year=2025, month=1, day=1, nanosecond=250_000_000)
    )

    assert instant == Instant(utc(2025, 1, 1).offset + 0.25)
    assert calendar.component(Field.NANOSECOND, instant) == 250_000_000


def test_february_30_and_31_are_invalid_every_year():
    """Leap or not, February never reaches day 30."""
    calendar = Calendar()

    for year in range(MIN_YEAR, MAX_YEAR + 1):
        assert not calendar.is_valid(CalendarFields(year=year, month=2, day=31)), year
        assert not calendar.is_valid(CalendarFields(year=year, month=2, day=30)), year

    for year in (1900, 2000, 2023, 2024):
        with pytest.raises(FieldsInvalid, match="day 31 is out of range"):
            calendar.date_from_fields(CalendarFields(year=year, month=2, day=31))


def test_february_29_only_in_leap_years():
    calendar = Calendar()

    assert calendar.is_valid(CalendarFields(year=2024, month=2, day=29))
    assert not calendar.is_valid(CalendarFields(year=2023, month=2, day=29))


def test_out_of_range_time_is_invalid():
    calendar = Calendar()

    assert not calendar.is_valid(CalendarFields(year=2025, month=1, day=1, hour=24))
    assert not calendar.is_valid(CalendarFields(year=2025, month=13, day=1))


def test_skipped_wall_time_is_invalid():
    """2:30 AM does not exist in New York on 2025-03-09."""
    calendar = Calendar("gregorian", tz="America/New_York")
    fields = CalendarFields(year=2025, month=3, day=9, hour=2, minute=30)

    with pytest.raises(FieldsInvalid, match="daylight-saving"):
        calendar.date_from_fields(fields)


def test_repeated_wall_time_resolves_to_earlier_instant():
    """1:30 AM happens twice in New York on 2025-11-02; the first one wins."""
    calendar = Calendar("gregorian", tz="America/New_York")
    instant = calendar.date_from_fields(
        CalendarFields(year=2025, month=11, day=2, hour=1, minute=30)
    )

    assert instant == utc(2025, 11, 2, 5, 30)


def test_field_time_zone_overrides_calendar_zone():
    calendar = Calendar("gregorian", tz="UTC")
    fields = CalendarFields(year=2025, month=1, day=1, time_zone="Asia/Tokyo")

    assert calendar.date_from_fields(fields) == utc(2024, 12, 31, 15)


def test_unset_fields_take_defaults():
    """Year defaults to the calendar's epoch year, month/day to 1, time to 0."""
    assert Calendar().date_from_fields(CalendarFields()) == Instant(0)
    assert Calendar().date_from_fields(CalendarFields(day=2)) == Instant(86_400)
    assert Calendar("buddhist").date_from_fields(CalendarFields()) == Instant(0)


def test_buddhist_year_numbering():
    calendar = Calendar("buddhist")
    instant = utc(2024, 6, 1)

    fields = calendar.fields_from_instant(instant)
    assert fields.year == 2567
    assert fields.era == 0
    assert calendar.epoch_year == 2513
    assert calendar.date_from_fields(CalendarFields(year=2567, month=6, day=1)) == instant


def test_unsupported_era():
    with pytest.raises(FieldsInvalid, match="era"):
        Calendar().date_from_fields(CalendarFields(era=0, year=2025))


def test_iso_week_date():
    calendar = Calendar("iso8601")

    monday = calendar.date_from_fields(
        CalendarFields(year_for_week_of_year=2021, week_of_year=1, weekday=Weekday.MONDAY)
    )
    assert monday == utc(2021, 1, 4)

    # 2021 has only 52 ISO weeks
    assert not calendar.is_valid(CalendarFields(year_for_week_of_year=2021, week_of_year=53))


def test_nth_weekday_of_month():
    calendar = Calendar()

    thanksgiving = CalendarFields(
        year=2025, month=11, weekday=Weekday.THURSDAY, weekday_ordinal=4
    )
    assert calendar.date_from_fields(thanksgiving) == utc(2025, 11, 27)

    memorial_day = CalendarFields(year=2025, month=5, weekday=Weekday.MONDAY, weekday_ordinal=-1)
    assert calendar.date_from_fields(memorial_day) == utc(2025, 5, 26)

    # January 2025 has only four Mondays
    fifth_monday = CalendarFields(year=2025, month=1, weekday=Weekday.MONDAY, weekday_ordinal=5)
    assert not calendar.is_valid(fifth_monday)


def test_week_of_month_date():
    calendar = Calendar(locale="en_US")

    # Second week of March 2025 (weeks start Sunday, March 1 is a Saturday)
    fields = CalendarFields(year=2025, month=3, week_of_month=2, weekday=Weekday.TUESDAY)
    assert calendar.date_from_fields(fields) == utc(2025, 3, 4)


def test_inconsistent_derived_fields_are_invalid():
    """Jan 1, 2025 is a Wednesday, not a Monday."""
    calendar = Calendar()
    fields = CalendarFields(year=2025, month=1, day=1, weekday=Weekday.MONDAY)

    with pytest.raises(FieldsInvalid, match="weekday"):
        calendar.date_from_fields(fields)

    fields.weekday = Weekday.WEDNESDAY
    assert calendar.is_valid(fields)


def test_quarter_selects_first_month():
    calendar = Calendar()

    assert calendar.date_from_fields(CalendarFields(year=2025, quarter=3)) == utc(2025, 7, 1)


def test_calendar_construction():
    assert Calendar(locale="en_US").first_weekday == Weekday.SUNDAY
    assert Calendar("iso8601", locale="en_US").first_weekday == Weekday.MONDAY
    assert Calendar("Gregorian").identifier == "gregorian"
    assert Calendar(tz=ZoneInfo("Europe/Paris")).time_zone == "Europe/Paris"

    with pytest.raises(ValueError, match="Unsupported calendar"):
        Calendar("hebrew")
    with pytest.raises(ValueError, match="Unknown time zone"):
        Calendar(tz="Mars/Olympus_Mons")


def test_calendar_equality():
    assert Calendar("gregorian", "UTC") == Calendar("gregorian", "UTC")
    assert Calendar("gregorian", "UTC") != Calendar("buddhist", "UTC")
    assert Calendar("gregorian", "UTC") != Calendar("gregorian", "UTC", locale="en_US")
    assert len({Calendar(), Calendar()}) == 1


def test_with_zone_keeps_rules():
    calendar = Calendar("gregorian", "UTC", locale="en_US")
    moved = calendar.with_zone("Asia/Tokyo")

    assert moved.time_zone == "Asia/Tokyo"
    assert moved.week_rules == calendar.week_rules
    assert calendar.time_zone == "UTC"
