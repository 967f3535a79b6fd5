"""
Units of measure.

Each unit stores the multiplier to the base unit of its kind: metre for
lengths, radian for angles, unity for scales and second for time.
"""

import math
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import ClassVar

from crskit.core.errors import UnitError
from crskit.models.info import Authority, Info


class UnitKind(str, Enum):
    """Quantity measured by a unit."""

    LINEAR = "linear"
    ANGULAR = "angular"
    SCALE = "scale"
    TIME = "time"


# DDD.MMSSsss values are decoded on a grid of 1e-8 to avoid binary rounding
_DMS_SCALE = 10**8


def dms_to_degrees(value: float, scale: float = 1.0) -> float:
    """
    Decode a sexagesimal DDD.MMSSsss value into decimal degrees.

    Args:
        value: Sexagesimal angle (e.g., 52.3 for 52°30')
        scale: Multiplier of the packed form; 10000 for DDDMMSS.ss values
            such as 523000 for 52°30'

    Returns:
        Angle in decimal degrees
    """
    sign = -1.0 if value < 0 else 1.0
    packed = round(abs(value) * _DMS_SCALE / scale)
    degrees, rest = divmod(packed, _DMS_SCALE)
    minutes, seconds = divmod(rest, 10**6)
    if minutes >= 60 or seconds >= 60 * 10**4:
        raise UnitError(f"Invalid sexagesimal angle: {value}", unit="sexagesimal DMS")
    return sign * (degrees + minutes / 60.0 + seconds / 10**4 / 3600.0)


def degrees_to_dms(value: float, scale: float = 1.0) -> float:
    """Encode decimal degrees as a sexagesimal DDD.MMSSsss value, times ``scale``."""
    sign = -1.0 if value < 0 else 1.0
    # Work in 1e-4 arc-seconds so carries propagate through minutes and degrees
    total = round(abs(value) * 3600 * 10**4)
    degrees, rest = divmod(total, 3600 * 10**4)
    minutes, seconds = divmod(rest, 60 * 10**4)
    return sign * (degrees * scale + minutes * scale / 100.0 + seconds * scale / 10**8)


@dataclass(frozen=True)
class Unit(Info):
    """
    Unit of measure.

    Attributes:
        kind: Quantity measured by this unit
        factor: Multiplier converting a value in this unit to the base unit
        sexagesimal: True for the DDD.MMSSsss angle encoding, which can't be
            expressed with a plain factor
        sexagesimal_scale: Multiplier of the sexagesimal encoding; 10000
            packs degrees, minutes and seconds as DDDMMSS.ss
    """

    kind: UnitKind
    factor: float
    sexagesimal: bool = field(default=False, kw_only=True)
    sexagesimal_scale: float = field(default=1.0, kw_only=True)

    METRE: ClassVar["Unit"]
    FOOT: ClassVar["Unit"]
    KILOMETRE: ClassVar["Unit"]
    RADIAN: ClassVar["Unit"]
    DEGREE: ClassVar["Unit"]
    GRAD: ClassVar["Unit"]
    ARC_MINUTE: ClassVar["Unit"]
    ARC_SECOND: ClassVar["Unit"]
    SEXAGESIMAL_DMS: ClassVar["Unit"]
    DMS: ClassVar["Unit"]
    UNITY: ClassVar["Unit"]
    PPM: ClassVar["Unit"]
    SECOND: ClassVar["Unit"]

    def __post_init__(self) -> None:
        super().__post_init__()
        object.__setattr__(self, "kind", UnitKind(self.kind))
        factor = float(self.factor)
        if not math.isfinite(factor) or factor <= 0:
            raise ValueError(f"Unit factor must be positive and finite, got {self.factor}")
        object.__setattr__(self, "factor", factor)
        if self.sexagesimal and self.kind != UnitKind.ANGULAR:
            raise ValueError("Only angular units can be sexagesimal")
        if self.sexagesimal_scale != 1.0 and not (self.sexagesimal and self.sexagesimal_scale > 0):
            raise ValueError(
                f"Invalid sexagesimal scale {self.sexagesimal_scale} for unit {self.name}"
            )

    def to_base(self, value: float) -> float:
        """Convert a value in this unit to the base unit of its kind."""
        if self.sexagesimal:
            return dms_to_degrees(value, self.sexagesimal_scale) * (math.pi / 180.0)
        return value * self.factor

    def from_base(self, value: float) -> float:
        """Convert a value in the base unit of this kind to this unit."""
        if self.sexagesimal:
            return degrees_to_dms(value * (180.0 / math.pi), self.sexagesimal_scale)
        return value / self.factor

    def is_compatible(self, other: "Unit") -> bool:
        """Tell whether values can be converted between the two units."""
        return self.kind == other.kind

    def convert(self, value: float, source: "Unit") -> float:
        """
        Convert a value expressed in ``source`` into this unit.

        Args:
            value: Value in the source unit
            source: Unit the value is expressed in

        Returns:
            Value in this unit

        Raises:
            UnitError: If the units measure different quantities
        """
        if not self.is_compatible(source):
            raise UnitError(
                f"Can't convert from {source.name} ({source.kind.value}) "
                f"to {self.name} ({self.kind.value})",
                unit=self.name,
            )
        if source == self:
            return value
        return self.from_base(source.to_base(value))

    def scaled(self, factor: float, name: str) -> "Unit":
        """Derive a unit of the same kind, ``factor`` times this one."""
        if self.sexagesimal:
            raise UnitError("A sexagesimal unit can't be scaled", unit=self.name)
        return Unit(name, self.kind, self.factor * factor)

    def with_authority(self, authority: Authority) -> "Unit":
        """Copy of this unit bound to an authority code."""
        return replace(self, authority=authority)


def linear(name: str, factor: float) -> Unit:
    """Create a linear unit from its size in metres."""
    return Unit(name, UnitKind.LINEAR, factor)


def angular(name: str, factor: float) -> Unit:
    """Create an angular unit from its size in radians."""
    return Unit(name, UnitKind.ANGULAR, factor)


METRE = linear("metre", 1.0)
FOOT = linear("foot", 0.3048)
KILOMETRE = linear("kilometre", 1000.0)

RADIAN = angular("radian", 1.0)
DEGREE = angular("degree", math.pi / 180.0)
GRAD = angular("grad", math.pi / 200.0)
ARC_MINUTE = angular("arc-minute", math.pi / (180.0 * 60.0))
ARC_SECOND = angular("arc-second", math.pi / (180.0 * 3600.0))
SEXAGESIMAL_DMS = Unit(
    "sexagesimal DMS", UnitKind.ANGULAR, math.pi / 180.0, sexagesimal=True
)
DMS = Unit(
    "degree minute second",
    UnitKind.ANGULAR,
    math.pi / 180.0,
    sexagesimal=True,
    sexagesimal_scale=10000.0,
)

UNITY = Unit("unity", UnitKind.SCALE, 1.0)
PPM = Unit("parts per million", UnitKind.SCALE, 1e-6)

SECOND = Unit("second", UnitKind.TIME, 1.0)

# Base unit per kind
BASE_UNITS = {
    UnitKind.LINEAR: METRE,
    UnitKind.ANGULAR: RADIAN,
    UnitKind.SCALE: UNITY,
    UnitKind.TIME: SECOND,
}

Unit.METRE = METRE
Unit.FOOT = FOOT
Unit.KILOMETRE = KILOMETRE
Unit.RADIAN = RADIAN
Unit.DEGREE = DEGREE
Unit.GRAD = GRAD
Unit.ARC_MINUTE = ARC_MINUTE
Unit.ARC_SECOND = ARC_SECOND
Unit.SEXAGESIMAL_DMS = SEXAGESIMAL_DMS
Unit.DMS = DMS
Unit.UNITY = UNITY
Unit.PPM = PPM
Unit.SECOND = SECOND
