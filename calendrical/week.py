"""Regional week conventions and week numbering.

Which weekday starts the week, how many days the first week of a year must
have, and which days form the weekend all vary by region. The table below is
a small extract of the CLDR week data; callers with a full locale database
can build their own WeekRules and hand them to a Calendar.
"""

import re
from calendar import monthrange
from dataclasses import dataclass, field
from datetime import date, timedelta

from calendrical.fields import Weekday

MON, TUE, WED, THU, FRI, SAT, SUN = Weekday


@dataclass(frozen=True, kw_only=True)
class WeekRules:
    first_weekday: Weekday = Weekday.MONDAY
    minimum_days_in_first_week: int = 1
    weekend: frozenset[Weekday] = field(default_factory=lambda: frozenset({SAT, SUN}))

    def __post_init__(self) -> None:
        if not 1 <= self.minimum_days_in_first_week <= 7:
            raise ValueError(
                f"minimum_days_in_first_week must be in 1..7, "
                f"got {self.minimum_days_in_first_week}"
            )
        object.__setattr__(self, "first_weekday", Weekday.parse(self.first_weekday))
        object.__setattr__(
            self, "weekend", frozenset(Weekday.parse(day) for day in self.weekend)
        )

    def is_weekend(self, day: date) -> bool:
        return Weekday(day.isoweekday()) in self.weekend

    def days_into_week(self, day: date) -> int:
        """Position of ``day`` within its week, 0 for the first weekday."""
        return (day.isoweekday() - self.first_weekday) % 7

    def week_start(self, day: date) -> date:
        return day - timedelta(days=self.days_into_week(day))

    def first_week_start(self, anchor: date) -> date:
        """Start of week 1 of the period (year or month) beginning at ``anchor``.

        The week containing ``anchor`` counts as week 1 only when at least
        ``minimum_days_in_first_week`` of its days fall inside the period.
        """
        start = self.week_start(anchor)
        if 7 - self.days_into_week(anchor) < self.minimum_days_in_first_week:
            start += timedelta(days=7)
        return start

    def year_for_week_of_year(self, day: date) -> int:
        if day < self.first_week_start(date(day.year, 1, 1)):
            return day.year - 1
        if day.year < date.max.year and day >= self.first_week_start(
            date(day.year + 1, 1, 1)
        ):
            return day.year + 1
        return day.year

    def week_of_year(self, day: date) -> int:
        start = self.first_week_start(date(self.year_for_week_of_year(day), 1, 1))
        return (day - start).days // 7 + 1

    def week_of_month(self, day: date) -> int:
        """Week number within the month; days before week 1 are in week 0."""
        start = self.first_week_start(day.replace(day=1))
        return (day - start).days // 7 + 1

    def date_from_week(self, year: int, week: int, weekday: Weekday) -> date:
        """Resolve (year-for-week-of-year, week, weekday) to a date."""
        start = self.first_week_start(date(year, 1, 1))
        return start + timedelta(days=(week - 1) * 7 + (weekday - self.first_weekday) % 7)

    def weeks_in_year(self, year: int) -> int:
        start = self.first_week_start(date(year, 1, 1))
        following = self.first_week_start(date(year + 1, 1, 1))
        return (following - start).days // 7


DEFAULT_RULES = WeekRules()
ISO_RULES = WeekRules(first_weekday=MON, minimum_days_in_first_week=4)

_SUNDAY_FIRST = set(
    "AG AS BD BR BS BT BW BZ CA CN CO DM DO ET GT GU HK HN ID IL IN JM JP KE "
    "KH KR LA MH MM MO MT MX MZ NI NP PA PE PH PK PR PT PY SA SG SV TH TT TW "
    "UM US VE VI WS YE ZA ZW".split()
)
_SATURDAY_FIRST = set("AE AF BH DJ DZ EG IQ IR JO KW LY OM QA SD SY".split())
_FRIDAY_FIRST = {"MV"}
_FOUR_DAY_FIRST_WEEK = set(
    "AD AN AT AX BE BG CH CZ DE DK EE ES FI FJ FO FR GB GF GG GI GP GR HU IE "
    "IM IS IT JE LI LT LU MC MQ NL NO PL RE RU SE SJ SK SM VA".split()
)
_FRI_SAT_WEEKEND = set("BH DZ EG IL IQ JO KW LY OM QA SA SD SY YE".split())
_WEEKENDS: dict[str, frozenset[Weekday]] = {
    **{region: frozenset({FRI, SAT}) for region in _FRI_SAT_WEEKEND},
    "AF": frozenset({THU, FRI}),
    "IR": frozenset({FRI}),
    "IN": frozenset({SUN}),
    "UG": frozenset({SUN}),
}

_LOCALE_RE = re.compile(
    r"^(?P<language>[A-Za-z]{2,3})(?:[-_](?P<script>[A-Za-z]{4}))?"
    r"(?:[-_](?P<region>[A-Za-z]{2}|\d{3}))?(?:[.@].*)?$"
)


def region_of(locale: str | None) -> str | None:
    """Extract the region subtag from identifiers like 'en_US.UTF-8' or 'zh-Hans-CN'."""
    if not locale:
        return None
    match = _LOCALE_RE.match(locale.strip())
    if match is None or match.group("region") is None:
        return None
    return match.group("region").upper()


def rules_for_region(region: str | None) -> WeekRules:
    if region is None:
        return DEFAULT_RULES
    region = region.upper()
    if region in _SUNDAY_FIRST:
        first = SUN
    elif region in _SATURDAY_FIRST:
        first = SAT
    elif region in _FRIDAY_FIRST:
        first = FRI
    else:
        first = MON
    return WeekRules(
        first_weekday=first,
        minimum_days_in_first_week=4 if region in _FOUR_DAY_FIRST_WEEK else 1,
        weekend=_WEEKENDS.get(region, frozenset({SAT, SUN})),
    )


def rules_for_locale(locale: str | None) -> WeekRules:
    """Week rules for a POSIX or BCP 47 locale identifier.

    Identifiers without a region (including 'C' and 'POSIX') get the world
    default: Monday start, one-day first week, Saturday/Sunday weekend.
    """
    return rules_for_region(region_of(locale))


def ordinal_matches(day: date, ordinal: int) -> bool:
    """True if ``day`` is the ``ordinal``-th of its weekday in the month.

    Negative ordinals count from the end of the month (-1 is the last).
    """
    if ordinal > 0:
        return (day.day - 1) // 7 + 1 == ordinal
    days_in_month = monthrange(day.year, day.month)[1]
    return -((days_in_month - day.day) // 7 + 1) == ordinal
