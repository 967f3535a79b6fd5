"""
Enumerations for axis orientations and datum types.
"""

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import ClassVar, Dict


class AxisOrientation(IntEnum):
    """Orientation of a coordinate system axis (OGC numbering)."""

    OTHER = 0
    NORTH = 1
    SOUTH = 2
    EAST = 3
    WEST = 4
    UP = 5
    DOWN = 6
    FUTURE = 7
    PAST = 8

    @classmethod
    def from_name(cls, name: str) -> "AxisOrientation":
        """
        Look up an orientation by name, ignoring case and surrounding spaces.

        Raises:
            ValueError: If the name is not a known orientation
        """
        key = name.strip().upper()
        try:
            return cls[key]
        except KeyError:
            raise ValueError(f"Unknown axis orientation: {name!r}") from None

    @property
    def opposite(self) -> "AxisOrientation":
        """Orientation pointing the other way (OTHER for OTHER)."""
        return _OPPOSITES[self]

    @property
    def absolute(self) -> "AxisOrientation":
        """Positive orientation of the same direction (NORTH for SOUTH)."""
        return _ABSOLUTES[self]


_OPPOSITES = {
    AxisOrientation.OTHER: AxisOrientation.OTHER,
    AxisOrientation.NORTH: AxisOrientation.SOUTH,
    AxisOrientation.SOUTH: AxisOrientation.NORTH,
    AxisOrientation.EAST: AxisOrientation.WEST,
    AxisOrientation.WEST: AxisOrientation.EAST,
    AxisOrientation.UP: AxisOrientation.DOWN,
    AxisOrientation.DOWN: AxisOrientation.UP,
    AxisOrientation.FUTURE: AxisOrientation.PAST,
    AxisOrientation.PAST: AxisOrientation.FUTURE,
}

_ABSOLUTES = {
    AxisOrientation.OTHER: AxisOrientation.OTHER,
    AxisOrientation.NORTH: AxisOrientation.NORTH,
    AxisOrientation.SOUTH: AxisOrientation.NORTH,
    AxisOrientation.EAST: AxisOrientation.EAST,
    AxisOrientation.WEST: AxisOrientation.EAST,
    AxisOrientation.UP: AxisOrientation.UP,
    AxisOrientation.DOWN: AxisOrientation.UP,
    AxisOrientation.FUTURE: AxisOrientation.FUTURE,
    AxisOrientation.PAST: AxisOrientation.FUTURE,
}


class DatumFamily(str, Enum):
    """Family a datum type belongs to, decided by its numeric range."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"
    TEMPORAL = "temporal"
    LOCAL = "local"


# Inclusive numeric range of each family
_FAMILY_RANGES = (
    (DatumFamily.HORIZONTAL, 1000, 1999),
    (DatumFamily.VERTICAL, 2000, 2999),
    (DatumFamily.TEMPORAL, 3000, 3999),
    (DatumFamily.LOCAL, 10000, 32767),
)


@dataclass(frozen=True)
class DatumType:
    """
    Type of a datum.

    Unlike a closed enumeration, any value inside one of the OGC ranges is
    valid; values with no named constant become ``CUSTOM`` members.

    Attributes:
        name: Constant name (e.g., 'GEOCENTRIC')
        value: OGC numeric code (e.g., 1002)
    """

    name: str
    value: int

    HD_OTHER: ClassVar["DatumType"]
    CLASSIC: ClassVar["DatumType"]
    GEOCENTRIC: ClassVar["DatumType"]
    VD_OTHER: ClassVar["DatumType"]
    ORTHOMETRIC: ClassVar["DatumType"]
    ELLIPSOIDAL: ClassVar["DatumType"]
    ALTITUDE_BAROMETRIC: ClassVar["DatumType"]
    NORMAL: ClassVar["DatumType"]
    GEOID_MODEL_DERIVED: ClassVar["DatumType"]
    DEPTH: ClassVar["DatumType"]
    UTC: ClassVar["DatumType"]
    GMT: ClassVar["DatumType"]
    LOCAL_OTHER: ClassVar["DatumType"]

    def __post_init__(self) -> None:
        # Raises for values outside every range
        _family_of(self.value)

    @property
    def family(self) -> DatumFamily:
        return _family_of(self.value)

    @property
    def is_horizontal(self) -> bool:
        return self.family == DatumFamily.HORIZONTAL

    @property
    def is_vertical(self) -> bool:
        return self.family == DatumFamily.VERTICAL

    @property
    def is_temporal(self) -> bool:
        return self.family == DatumFamily.TEMPORAL

    @property
    def is_local(self) -> bool:
        return self.family == DatumFamily.LOCAL

    @classmethod
    def from_value(cls, value: int) -> "DatumType":
        """
        Get the datum type for a numeric code.

        Args:
            value: OGC datum type code

        Returns:
            The named constant, or a CUSTOM member for other in-range values

        Raises:
            ValueError: If the value lies outside every datum type range
        """
        value = int(value)
        known = _BY_VALUE.get(value)
        if known is not None:
            return known
        return cls("CUSTOM", value)

    @classmethod
    def from_name(cls, name: str) -> "DatumType":
        """
        Get the datum type for a constant name.

        Case is ignored and spaces are read as underscores, so
        'geoid model derived' finds GEOID_MODEL_DERIVED.

        Raises:
            ValueError: If no constant has that name
        """
        key = name.strip().upper().replace(" ", "_")
        try:
            return _BY_NAME[key]
        except KeyError:
            raise ValueError(f"Unknown datum type: {name!r}") from None

    def __str__(self) -> str:
        return self.name


def _family_of(value: int) -> DatumFamily:
    for family, low, high in _FAMILY_RANGES:
        if low <= value <= high:
            return family
    raise ValueError(f"Datum type value {value} is outside every datum type range")


DatumType.HD_OTHER = DatumType("HD_OTHER", 1000)
DatumType.CLASSIC = DatumType("CLASSIC", 1001)
DatumType.GEOCENTRIC = DatumType("GEOCENTRIC", 1002)
DatumType.VD_OTHER = DatumType("VD_OTHER", 2000)
DatumType.ORTHOMETRIC = DatumType("ORTHOMETRIC", 2001)
DatumType.ELLIPSOIDAL = DatumType("ELLIPSOIDAL", 2002)
DatumType.ALTITUDE_BAROMETRIC = DatumType("ALTITUDE_BAROMETRIC", 2003)
DatumType.NORMAL = DatumType("NORMAL", 2004)
DatumType.GEOID_MODEL_DERIVED = DatumType("GEOID_MODEL_DERIVED", 2005)
DatumType.DEPTH = DatumType("DEPTH", 2006)
DatumType.UTC = DatumType("UTC", 3001)
DatumType.GMT = DatumType("GMT", 3002)
DatumType.LOCAL_OTHER = DatumType("LOCAL_OTHER", 10000)

_BY_VALUE: Dict[int, DatumType] = {
    t.value: t
    for t in (
        DatumType.HD_OTHER,
        DatumType.CLASSIC,
        DatumType.GEOCENTRIC,
        DatumType.VD_OTHER,
        DatumType.ORTHOMETRIC,
        DatumType.ELLIPSOIDAL,
        DatumType.ALTITUDE_BAROMETRIC,
        DatumType.NORMAL,
        DatumType.GEOID_MODEL_DERIVED,
        DatumType.DEPTH,
        DatumType.UTC,
        DatumType.GMT,
        DatumType.LOCAL_OTHER,
    )
}
_BY_NAME: Dict[str, DatumType] = {t.name: t for t in _BY_VALUE.values()}
