from .calendar import Calendar, MatchingPolicy
from .current import Settings, current, current_settings, override
from .duration import Duration
from .errors import CalendricalError, DimensionMismatch, FieldsInvalid, NotFound
from .fields import CalendarFields, Field, Weekday
from .instant import Clock, Instant, Ordering, system_clock
from .interval import Interval
from .quantity import Quantity
from .units import (
    Angle,
    Area,
    Converter,
    Dimension,
    Energy,
    Length,
    Mass,
    Power,
    Speed,
    Temperature,
    Time,
    Unit,
    UnitRegistry,
    Volume,
    registry,
)
from .util import DAY, HOUR, MINUTE, SECOND, WEEK
from .week import ISO_RULES, WeekRules, rules_for_locale, rules_for_region

__all__ = [
    "Instant",
    "Duration",
    "Ordering",
    "Clock",
    "system_clock",
    "CalendarFields",
    "Field",
    "Weekday",
    "Calendar",
    "MatchingPolicy",
    "WeekRules",
    "ISO_RULES",
    "rules_for_locale",
    "rules_for_region",
    "Interval",
    "current",
    "current_settings",
    "override",
    "Settings",
    "Quantity",
    "Unit",
    "UnitRegistry",
    "Converter",
    "registry",
    "Dimension",
    "Length",
    "Area",
    "Volume",
    "Mass",
    "Speed",
    "Power",
    "Energy",
    "Angle",
    "Time",
    "Temperature",
    "CalendricalError",
    "FieldsInvalid",
    "NotFound",
    "DimensionMismatch",
    "SECOND",
    "MINUTE",
    "HOUR",
    "DAY",
    "WEEK",
]
