"""Physical dimensions, units and the registry of conversion factors.

Every dimension has one base unit. A unit converts to its base through an
affine ``Converter``: ``base = value * scale + offset``. Only temperatures
use a non-zero offset.

Units are looked up through a registry. Each dimension class also declares
its default units as typed class attributes, which the default registry
binds, so both spellings work:

    >>> registry.unit(Length, "centimeters") is Length.centimeters
    True
"""

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from typing import Any, ClassVar, Generic, TypeVar

from typing_extensions import override

from calendrical.errors import DimensionMismatch
from calendrical.util import HOUR, MINUTE


class Dimension:
    """Tag base for a physical dimension. Never instantiated."""

    label: ClassVar[str] = "dimension"

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        cls.label = cls.__name__.lower()


class Length(Dimension):
    meters: ClassVar["Unit[Length]"]
    kilometers: ClassVar["Unit[Length]"]
    centimeters: ClassVar["Unit[Length]"]
    millimeters: ClassVar["Unit[Length]"]
    inches: ClassVar["Unit[Length]"]
    feet: ClassVar["Unit[Length]"]
    yards: ClassVar["Unit[Length]"]
    miles: ClassVar["Unit[Length]"]
    nautical_miles: ClassVar["Unit[Length]"]


class Area(Dimension):
    square_meters: ClassVar["Unit[Area]"]
    square_kilometers: ClassVar["Unit[Area]"]
    square_centimeters: ClassVar["Unit[Area]"]
    square_inches: ClassVar["Unit[Area]"]
    square_feet: ClassVar["Unit[Area]"]
    square_miles: ClassVar["Unit[Area]"]
    acres: ClassVar["Unit[Area]"]
    hectares: ClassVar["Unit[Area]"]


class Volume(Dimension):
    liters: ClassVar["Unit[Volume]"]
    milliliters: ClassVar["Unit[Volume]"]
    cubic_meters: ClassVar["Unit[Volume]"]
    cups: ClassVar["Unit[Volume]"]
    tablespoons: ClassVar["Unit[Volume]"]
    teaspoons: ClassVar["Unit[Volume]"]
    fluid_ounces: ClassVar["Unit[Volume]"]
    pints: ClassVar["Unit[Volume]"]
    quarts: ClassVar["Unit[Volume]"]
    gallons: ClassVar["Unit[Volume]"]


class Mass(Dimension):
    kilograms: ClassVar["Unit[Mass]"]
    grams: ClassVar["Unit[Mass]"]
    milligrams: ClassVar["Unit[Mass]"]
    ounces: ClassVar["Unit[Mass]"]
    pounds: ClassVar["Unit[Mass]"]
    stones: ClassVar["Unit[Mass]"]
    metric_tons: ClassVar["Unit[Mass]"]


class Speed(Dimension):
    meters_per_second: ClassVar["Unit[Speed]"]
    kilometers_per_hour: ClassVar["Unit[Speed]"]
    miles_per_hour: ClassVar["Unit[Speed]"]
    knots: ClassVar["Unit[Speed]"]


class Power(Dimension):
    watts: ClassVar["Unit[Power]"]
    milliwatts: ClassVar["Unit[Power]"]
    kilowatts: ClassVar["Unit[Power]"]
    megawatts: ClassVar["Unit[Power]"]
    horsepower: ClassVar["Unit[Power]"]


class Energy(Dimension):
    joules: ClassVar["Unit[Energy]"]
    kilojoules: ClassVar["Unit[Energy]"]
    calories: ClassVar["Unit[Energy]"]
    kilocalories: ClassVar["Unit[Energy]"]
    kilowatt_hours: ClassVar["Unit[Energy]"]


class Angle(Dimension):
    degrees: ClassVar["Unit[Angle]"]
    radians: ClassVar["Unit[Angle]"]
    revolutions: ClassVar["Unit[Angle]"]
    arc_minutes: ClassVar["Unit[Angle]"]
    arc_seconds: ClassVar["Unit[Angle]"]


class Time(Dimension):
    seconds: ClassVar["Unit[Time]"]
    milliseconds: ClassVar["Unit[Time]"]
    minutes: ClassVar["Unit[Time]"]
    hours: ClassVar["Unit[Time]"]


class Temperature(Dimension):
    kelvin: ClassVar["Unit[Temperature]"]
    celsius: ClassVar["Unit[Temperature]"]
    fahrenheit: ClassVar["Unit[Temperature]"]


D = TypeVar("D", bound=Dimension)


@dataclass(frozen=True)
class Converter:
    """Affine map between a unit and its dimension's base unit."""

    scale: float
    offset: float = 0.0

    def __post_init__(self) -> None:
        if self.scale == 0 or not math.isfinite(self.scale):
            raise ValueError(f"Converter scale must be finite and non-zero, got {self.scale}")

    def to_base(self, value: float) -> float:
        return value * self.scale + self.offset

    def from_base(self, value: float) -> float:
        return (value - self.offset) / self.scale


@dataclass(frozen=True)
class Unit(Generic[D]):
    """A named unit of one dimension."""

    dimension: type[D]
    name: str
    symbol: str
    converter: Converter

    @override
    def __str__(self) -> str:
        return self.symbol

    @override
    def __repr__(self) -> str:
        return f"{self.dimension.__name__}.{self.name}"


class UnitRegistry:
    """Conversion factors per dimension, keyed by unit name.

    The first unit registered for a dimension is its base unit and must have
    an identity converter.
    """

    def __init__(self) -> None:
        self._units: dict[type[Dimension], dict[str, Unit[Any]]] = {}

    def register(self, unit: Unit[D]) -> Unit[D]:
        table = self._units.setdefault(unit.dimension, {})
        if not table and unit.converter != Converter(1.0):
            raise ValueError(
                f"The base unit of {unit.dimension.label} must convert with scale 1 "
                f"and offset 0, got {unit.converter} for {unit.name!r}"
            )
        if unit.name in table and table[unit.name] != unit:
            raise ValueError(f"{unit!r} is already registered with a different definition")
        table[unit.name] = unit
        return unit

    def unit(self, dimension: type[D], name: str) -> Unit[D]:
        try:
            return self._units[dimension][name]
        except KeyError:
            known = ", ".join(sorted(self._units.get(dimension, {})))
            raise KeyError(
                f"No {dimension.label} unit named {name!r}.\n"
                f"Known units: {known or '(none)'}"
            ) from None

    def units(self, dimension: type[D]) -> list[Unit[D]]:
        return list(self._units.get(dimension, {}).values())

    def base_unit(self, dimension: type[D]) -> Unit[D]:
        table = self._units.get(dimension)
        if not table:
            raise KeyError(f"No units registered for {dimension.label}")
        return next(iter(table.values()))

    def dimensions(self) -> Iterator[type[Dimension]]:
        return iter(self._units)

    def load(
        self, dimension: type[D], rows: Iterable[tuple[str, str, float, float]]
    ) -> list[Unit[D]]:
        """Register ``(name, symbol, scale, offset)`` rows for a dimension."""
        return [
            self.register(Unit(dimension, name, symbol, Converter(scale, offset)))
            for name, symbol, scale, offset in rows
        ]

    def bind(self) -> None:
        """Expose every registered unit as a class attribute of its dimension."""
        for dimension, table in self._units.items():
            for name, unit in table.items():
                setattr(dimension, name, unit)


def check_dimension(unit: Unit[Any], dimension: type[Dimension]) -> None:
    if unit.dimension is not dimension:
        raise DimensionMismatch(
            f"Cannot use {unit.dimension.label} unit {unit!r} as a {dimension.label} unit.\n"
            f"Hint: pick a unit from registry.units({dimension.__name__})"
        )


# Base unit first: (name, symbol, scale, offset)
_TABLE: dict[type[Dimension], list[tuple[str, str, float, float]]] = {
    Length: [
        ("meters", "m", 1.0, 0.0),
        ("kilometers", "km", 1000.0, 0.0),
        ("centimeters", "cm", 0.01, 0.0),
        ("millimeters", "mm", 0.001, 0.0),
        ("inches", "in", 0.0254, 0.0),
        ("feet", "ft", 0.3048, 0.0),
        ("yards", "yd", 0.9144, 0.0),
        ("miles", "mi", 1609.344, 0.0),
        ("nautical_miles", "NM", 1852.0, 0.0),
    ],
    Area: [
        ("square_meters", "m²", 1.0, 0.0),
        ("square_kilometers", "km²", 1e6, 0.0),
        ("square_centimeters", "cm²", 1e-4, 0.0),
        ("square_inches", "in²", 0.00064516, 0.0),
        ("square_feet", "ft²", 0.09290304, 0.0),
        ("square_miles", "mi²", 2589988.110336, 0.0),
        ("acres", "ac", 4046.8564224, 0.0),
        ("hectares", "ha", 10000.0, 0.0),
    ],
    Volume: [
        ("liters", "L", 1.0, 0.0),
        ("milliliters", "mL", 0.001, 0.0),
        ("cubic_meters", "m³", 1000.0, 0.0),
        ("cups", "cup", 0.24, 0.0),
        ("tablespoons", "tbsp", 0.0147868, 0.0),
        ("teaspoons", "tsp", 0.00492892, 0.0),
        ("fluid_ounces", "fl oz", 0.0295735, 0.0),
        ("pints", "pt", 0.473176, 0.0),
        ("quarts", "qt", 0.946353, 0.0),
        ("gallons", "gal", 3.78541, 0.0),
    ],
    Mass: [
        ("kilograms", "kg", 1.0, 0.0),
        ("grams", "g", 0.001, 0.0),
        ("milligrams", "mg", 1e-6, 0.0),
        ("ounces", "oz", 0.0283495, 0.0),
        ("pounds", "lb", 0.453592, 0.0),
        ("stones", "st", 6.35029, 0.0),
        ("metric_tons", "t", 1000.0, 0.0),
    ],
    Speed: [
        ("meters_per_second", "m/s", 1.0, 0.0),
        ("kilometers_per_hour", "km/h", 1000.0 / HOUR, 0.0),
        ("miles_per_hour", "mph", 0.44704, 0.0),
        ("knots", "kn", 1852.0 / HOUR, 0.0),
    ],
    Power: [
        ("watts", "W", 1.0, 0.0),
        ("milliwatts", "mW", 0.001, 0.0),
        ("kilowatts", "kW", 1000.0, 0.0),
        ("megawatts", "MW", 1e6, 0.0),
        ("horsepower", "hp", 745.69987, 0.0),
    ],
    Energy: [
        ("joules", "J", 1.0, 0.0),
        ("kilojoules", "kJ", 1000.0, 0.0),
        ("calories", "cal", 4.184, 0.0),
        ("kilocalories", "kcal", 4184.0, 0.0),
        ("kilowatt_hours", "kWh", 3.6e6, 0.0),
    ],
    Angle: [
        ("degrees", "°", 1.0, 0.0),
        ("radians", "rad", 180.0 / math.pi, 0.0),
        ("revolutions", "rev", 360.0, 0.0),
        ("arc_minutes", "ʹ", 1.0 / 60.0, 0.0),
        ("arc_seconds", "ʺ", 1.0 / 3600.0, 0.0),
    ],
    Time: [
        ("seconds", "s", 1.0, 0.0),
        ("milliseconds", "ms", 0.001, 0.0),
        ("minutes", "min", float(MINUTE), 0.0),
        ("hours", "hr", float(HOUR), 0.0),
    ],
    Temperature: [
        ("kelvin", "K", 1.0, 0.0),
        ("celsius", "°C", 1.0, 273.15),
        ("fahrenheit", "°F", 5.0 / 9.0, 459.67 * 5.0 / 9.0),
    ],
}

registry = UnitRegistry()
for _dimension, _rows in _TABLE.items():
    registry.load(_dimension, _rows)
registry.bind()
