import math
from dataclasses import dataclass
from functools import total_ordering
from numbers import Real
from typing import Any, Generic

from typing_extensions import override

from calendrical.errors import DimensionMismatch
from calendrical.units import D, Unit, check_dimension, registry


@total_ordering
@dataclass(frozen=True, eq=False)
class Quantity(Generic[D]):
    """A value measured in a unit of dimension ``D``.

    Quantities of the same dimension compare and hash by their base-unit
    value, so ``Quantity(1, Length.kilometers) == Quantity(1000, Length.meters)``.

    Addition and subtraction keep the unit when both operands share it;
    otherwise the result is expressed in the dimension's base unit:

        >>> (Quantity(20, Length.kilometers) + Quantity(5, Length.miles)).unit
        Length.meters
    """

    value: float
    unit: Unit[D]

    def __post_init__(self) -> None:
        if not isinstance(self.unit, Unit):
            raise TypeError(
                f"Quantity unit must be a Unit, got {type(self.unit).__name__}.\n"
                f"Example: Quantity(120, Length.centimeters)"
            )
        object.__setattr__(self, "value", float(self.value))

    @property
    def dimension(self) -> type[D]:
        return self.unit.dimension

    @property
    def base_value(self) -> float:
        return self.unit.converter.to_base(self.value)

    def convert(self, unit: Unit[D]) -> "Quantity[D]":
        """Express this quantity in another unit of the same dimension."""
        check_dimension(unit, self.dimension)
        if unit == self.unit:
            return self
        return Quantity(unit.converter.from_base(self.base_value), unit)

    def to_base(self) -> "Quantity[D]":
        return self.convert(registry.base_unit(self.dimension))

    def is_close(
        self, other: "Quantity[D]", *, rel_tol: float = 1e-9, abs_tol: float = 0.0
    ) -> bool:
        return math.isclose(
            self.base_value, self._other_base(other), rel_tol=rel_tol, abs_tol=abs_tol
        )

    def _other_base(self, other: "Quantity[Any]") -> float:
        check_dimension(other.unit, self.dimension)
        return other.base_value

    def _combine(self, other: "Quantity[D]", sign: int) -> "Quantity[D]":
        if not isinstance(other, Quantity):
            return NotImplemented
        if other.unit == self.unit:
            return Quantity(self.value + sign * other.value, self.unit)
        base = registry.base_unit(self.dimension)
        total = self.base_value + sign * self._other_base(other)
        return Quantity(base.converter.from_base(total), base)

    def __add__(self, other: "Quantity[D]") -> "Quantity[D]":
        return self._combine(other, 1)

    def __sub__(self, other: "Quantity[D]") -> "Quantity[D]":
        return self._combine(other, -1)

    def __mul__(self, factor: float) -> "Quantity[D]":
        if not isinstance(factor, Real):
            return NotImplemented
        return Quantity(self.value * float(factor), self.unit)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> "Quantity[D]":
        if not isinstance(divisor, Real):
            return NotImplemented
        return Quantity(self.value / float(divisor), self.unit)

    def __neg__(self) -> "Quantity[D]":
        return Quantity(-self.value, self.unit)

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        if other.dimension is not self.dimension:
            return False
        return self.base_value == other.base_value

    def __lt__(self, other: "Quantity[D]") -> bool:
        if not isinstance(other, Quantity):
            return NotImplemented
        if other.dimension is not self.dimension:
            raise DimensionMismatch(
                f"Cannot compare {self.dimension.label} with {other.dimension.label}: "
                f"{self} < {other}"
            )
        return self.base_value < other.base_value

    @override
    def __hash__(self) -> int:
        return hash((self.dimension, self.base_value))

    @override
    def __str__(self) -> str:
        return f"{self.value:g} {self.unit}"

    @override
    def __repr__(self) -> str:
        return f"Quantity({self.value:g}, {self.unit!r})"
