"""Tests for week rules and week numbering."""

from datetime import date

import pytest

from calendrical import ISO_RULES, Weekday, WeekRules, rules_for_locale, rules_for_region
from calendrical.week import ordinal_matches, region_of


def test_iso_week_numbers():
    """ISO weeks start Monday and week 1 holds the first Thursday."""
    # Friday Jan 1, 2021 still belongs to week 53 of 2020
    assert ISO_RULES.year_for_week_of_year(date(2021, 1, 1)) == 2020
    assert ISO_RULES.week_of_year(date(2021, 1, 1)) == 53
    # Monday Dec 30, 2024 starts week 1 of 2025
    assert ISO_RULES.year_for_week_of_year(date(2024, 12, 30)) == 2025
    assert ISO_RULES.week_of_year(date(2024, 12, 30)) == 1

    assert ISO_RULES.weeks_in_year(2020) == 53
    assert ISO_RULES.weeks_in_year(2021) == 52


def test_date_from_week():
    assert ISO_RULES.date_from_week(2021, 1, Weekday.MONDAY) == date(2021, 1, 4)
    assert ISO_RULES.date_from_week(2020, 53, Weekday.SUNDAY) == date(2021, 1, 3)


def test_us_rules():
    rules = rules_for_locale("en_US.UTF-8")

    assert rules.first_weekday == Weekday.SUNDAY
    assert rules.minimum_days_in_first_week == 1
    assert rules.week_of_year(date(2025, 1, 1)) == 1
    assert rules.week_start(date(2025, 1, 1)) == date(2024, 12, 29)


def test_week_of_month_can_be_zero():
    """Days before the first full-enough week of a month are in week 0."""
    # March 1, 2025 is a Saturday
    us = rules_for_region("US")
    assert us.week_of_month(date(2025, 3, 1)) == 1
    assert us.week_of_month(date(2025, 3, 2)) == 2

    assert ISO_RULES.week_of_month(date(2025, 3, 1)) == 0
    assert ISO_RULES.week_of_month(date(2025, 3, 3)) == 1


def test_regional_rules():
    germany = rules_for_locale("de_DE")
    assert germany.first_weekday == Weekday.MONDAY
    assert germany.minimum_days_in_first_week == 4

    egypt = rules_for_locale("ar-EG")
    assert egypt.first_weekday == Weekday.SATURDAY
    assert egypt.weekend == {Weekday.FRIDAY, Weekday.SATURDAY}

    assert rules_for_locale("zh-Hans-CN").first_weekday == Weekday.SUNDAY


def test_locale_without_region_gets_default():
    for locale in (None, "", "C", "POSIX", "fr"):
        assert rules_for_locale(locale) == WeekRules()


def test_region_of():
    assert region_of("en_GB.UTF-8") == "GB"
    assert region_of("sr-Latn-RS") == "RS"
    assert region_of("pt") is None


def test_weekend():
    rules = WeekRules()
    assert rules.is_weekend(date(2025, 6, 14))  # Saturday
    assert not rules.is_weekend(date(2025, 6, 16))  # Monday

    israel = rules_for_region("IL")
    assert israel.is_weekend(date(2025, 6, 13))  # Friday
    assert not israel.is_weekend(date(2025, 6, 15))  # Sunday


def test_rules_accept_day_names():
    rules = WeekRules(first_weekday="sunday", weekend=frozenset({"friday"}))

    assert rules.first_weekday == Weekday.SUNDAY
    assert rules.weekend == {Weekday.FRIDAY}


def test_invalid_minimum_days():
    with pytest.raises(ValueError, match="minimum_days_in_first_week"):
        WeekRules(minimum_days_in_first_week=0)


def test_ordinal_matches():
    # Jan 31, 2025 is the last Friday of the month
    assert ordinal_matches(date(2025, 1, 31), -1)
    assert ordinal_matches(date(2025, 1, 31), 5)
    assert ordinal_matches(date(2025, 1, 24), -2)
    assert not ordinal_matches(date(2025, 1, 24), -1)
    assert ordinal_matches(date(2025, 1, 3), 1)
