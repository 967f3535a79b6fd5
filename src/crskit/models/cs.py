"""
Coordinate systems.

Each concrete class maps onto one WKT element (GEOGCS, PROJCS, GEOCCS,
VERT_CS, LOCAL_CS, COMPD_CS).
"""

from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Tuple

from crskit.models.datum import HorizontalDatum, LocalDatum, PrimeMeridian, VerticalDatum
from crskit.models.enums import AxisOrientation
from crskit.models.info import Info
from crskit.models.units import DEGREE, Unit, UnitKind


@dataclass(frozen=True)
class AxisInfo:
    """
    Name and orientation of a coordinate system axis.

    Attributes:
        name: Axis name (e.g., 'Lat')
        orientation: Direction of increasing values
    """

    name: str
    orientation: AxisOrientation

    LONGITUDE: ClassVar["AxisInfo"]
    LATITUDE: ClassVar["AxisInfo"]
    X: ClassVar["AxisInfo"]
    Y: ClassVar["AxisInfo"]
    ALTITUDE: ClassVar["AxisInfo"]
    GEOCENTRIC_X: ClassVar["AxisInfo"]
    GEOCENTRIC_Y: ClassVar["AxisInfo"]
    GEOCENTRIC_Z: ClassVar["AxisInfo"]

    def __post_init__(self) -> None:
        object.__setattr__(self, "orientation", AxisOrientation(self.orientation))

    def __str__(self) -> str:
        return f"{self.name} ({self.orientation.name})"


AxisInfo.LONGITUDE = AxisInfo("Lon", AxisOrientation.EAST)
AxisInfo.LATITUDE = AxisInfo("Lat", AxisOrientation.NORTH)
AxisInfo.X = AxisInfo("X", AxisOrientation.EAST)
AxisInfo.Y = AxisInfo("Y", AxisOrientation.NORTH)
AxisInfo.ALTITUDE = AxisInfo("Altitude", AxisOrientation.UP)
AxisInfo.GEOCENTRIC_X = AxisInfo("X", AxisOrientation.OTHER)
AxisInfo.GEOCENTRIC_Y = AxisInfo("Y", AxisOrientation.EAST)
AxisInfo.GEOCENTRIC_Z = AxisInfo("Z", AxisOrientation.NORTH)


def _as_parameters(parameters: Any) -> Tuple[Tuple[str, float], ...]:
    if parameters is None:
        return ()
    items = parameters.items() if hasattr(parameters, "items") else parameters
    return tuple((str(name), float(value)) for name, value in items)


@dataclass(frozen=True)
class Projection(Info):
    """
    Map projection: an OGC classification plus its parameter values.

    Attributes:
        classification: OGC projection name (e.g., 'Transverse_Mercator')
        parameters: Ordered (name, value) pairs; linear values in metres,
            angular values in degrees
    """

    classification: str
    parameters: Tuple[Tuple[str, float], ...] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.classification or not self.classification.strip():
            raise ValueError("Projection classification must not be blank")
        object.__setattr__(self, "parameters", _as_parameters(self.parameters))

    def get(self, name: str, default: Optional[float] = None) -> Optional[float]:
        """Value of a parameter, or ``default`` when absent."""
        for key, value in self.parameters:
            if key == name:
                return value
        return default

    @property
    def parameter_names(self) -> Tuple[str, ...]:
        return tuple(name for name, _ in self.parameters)


@dataclass(frozen=True)
class CoordinateSystem(Info):
    """
    Base class of coordinate systems.

    Subclasses fill ``axes`` with their default axes when none are given.
    """

    axes: Tuple[AxisInfo, ...] = field(default=(), kw_only=True)

    DEFAULT_AXES: ClassVar[Tuple[AxisInfo, ...]] = ()

    def __post_init__(self) -> None:
        super().__post_init__()
        axes = tuple(self.axes) if self.axes else self.DEFAULT_AXES
        object.__setattr__(self, "axes", axes)

    @property
    def dimension(self) -> int:
        return len(self.axes)

    def axis(self, dimension: int) -> AxisInfo:
        return self.axes[dimension]

    def units(self, dimension: int) -> Unit:
        """Unit of the values along one dimension."""
        raise NotImplementedError

    def _check_dimension(self, dimension: int) -> None:
        if not 0 <= dimension < self.dimension:
            raise IndexError(f"Dimension {dimension} out of range for {self.dimension}D system")

    def _check_axis_count(self, *allowed: int) -> None:
        if len(self.axes) not in allowed:
            expected = " or ".join(str(n) for n in allowed)
            raise ValueError(
                f"{type(self).__name__} requires {expected} axes, got {len(self.axes)}"
            )


@dataclass(frozen=True)
class HorizontalCoordinateSystem(CoordinateSystem):
    """Marker base of two-dimensional systems on a horizontal datum."""


def _require_unit(unit: Unit, kind: UnitKind, owner: str) -> None:
    if not isinstance(unit, Unit) or unit.kind != kind:
        raise ValueError(f"{owner} requires a {kind.value} unit, got {unit!r}")


@dataclass(frozen=True)
class GeographicCoordinateSystem(HorizontalCoordinateSystem):
    """
    Longitude/latitude system on an ellipsoid.

    Attributes:
        angular_unit: Unit of both axes
        horizontal_datum: Datum the coordinates refer to
        prime_meridian: Zero longitude
    """

    angular_unit: Unit
    horizontal_datum: HorizontalDatum
    prime_meridian: PrimeMeridian = PrimeMeridian.GREENWICH

    DEFAULT_AXES: ClassVar[Tuple[AxisInfo, ...]] = (AxisInfo.LONGITUDE, AxisInfo.LATITUDE)
    WGS84: ClassVar["GeographicCoordinateSystem"]

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_unit(self.angular_unit, UnitKind.ANGULAR, "Geographic coordinate system")
        if not isinstance(self.horizontal_datum, HorizontalDatum):
            raise ValueError("Geographic coordinate system requires a horizontal datum")
        if not isinstance(self.prime_meridian, PrimeMeridian):
            raise ValueError("Geographic coordinate system requires a prime meridian")
        self._check_axis_count(2)

    def units(self, dimension: int) -> Unit:
        self._check_dimension(dimension)
        return self.angular_unit


@dataclass(frozen=True)
class ProjectedCoordinateSystem(HorizontalCoordinateSystem):
    """
    Easting/northing system obtained by projecting a geographic system.

    Attributes:
        geographic_cs: Underlying geographic coordinate system
        projection: Map projection and parameters
        linear_unit: Unit of both axes
        extensions: (name, value) pairs of vendor extensions (e.g., PROJ4)
    """

    geographic_cs: GeographicCoordinateSystem
    projection: Projection
    linear_unit: Unit
    extensions: Tuple[Tuple[str, str], ...] = field(default=(), kw_only=True)

    DEFAULT_AXES: ClassVar[Tuple[AxisInfo, ...]] = (AxisInfo.X, AxisInfo.Y)

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.geographic_cs, GeographicCoordinateSystem):
            raise ValueError("Projected coordinate system requires a geographic coordinate system")
        if not isinstance(self.projection, Projection):
            raise ValueError("Projected coordinate system requires a projection")
        _require_unit(self.linear_unit, UnitKind.LINEAR, "Projected coordinate system")
        object.__setattr__(
            self, "extensions", tuple((str(k), str(v)) for k, v in self.extensions)
        )
        self._check_axis_count(2)

    @property
    def horizontal_datum(self) -> HorizontalDatum:
        return self.geographic_cs.horizontal_datum

    def units(self, dimension: int) -> Unit:
        self._check_dimension(dimension)
        return self.linear_unit


@dataclass(frozen=True)
class GeocentricCoordinateSystem(CoordinateSystem):
    """
    Earth-centred cartesian system.

    Attributes:
        linear_unit: Unit of the three axes
        horizontal_datum: Datum defining the ellipsoid and its position
        prime_meridian: Meridian of the X axis
    """

    linear_unit: Unit
    horizontal_datum: HorizontalDatum
    prime_meridian: PrimeMeridian = PrimeMeridian.GREENWICH

    DEFAULT_AXES: ClassVar[Tuple[AxisInfo, ...]] = (
        AxisInfo.GEOCENTRIC_X,
        AxisInfo.GEOCENTRIC_Y,
        AxisInfo.GEOCENTRIC_Z,
    )

    def __post_init__(self) -> None:
        super().__post_init__()
        _require_unit(self.linear_unit, UnitKind.LINEAR, "Geocentric coordinate system")
        if not isinstance(self.horizontal_datum, HorizontalDatum):
            raise ValueError("Geocentric coordinate system requires a horizontal datum")
        if not isinstance(self.prime_meridian, PrimeMeridian):
            raise ValueError("Geocentric coordinate system requires a prime meridian")
        self._check_axis_count(3)

    def units(self, dimension: int) -> Unit:
        self._check_dimension(dimension)
        return self.linear_unit


@dataclass(frozen=True)
class VerticalCoordinateSystem(CoordinateSystem):
    """One-dimensional system for heights or depths."""

    vertical_datum: VerticalDatum
    linear_unit: Unit

    DEFAULT_AXES: ClassVar[Tuple[AxisInfo, ...]] = (AxisInfo.ALTITUDE,)

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.vertical_datum, VerticalDatum):
            raise ValueError("Vertical coordinate system requires a vertical datum")
        _require_unit(self.linear_unit, UnitKind.LINEAR, "Vertical coordinate system")
        self._check_axis_count(1)

    def units(self, dimension: int) -> Unit:
        self._check_dimension(dimension)
        return self.linear_unit


@dataclass(frozen=True)
class LocalCoordinateSystem(CoordinateSystem):
    """Engineering system with no relation to the Earth; at least one axis."""

    local_datum: LocalDatum
    unit: Unit

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.local_datum, LocalDatum):
            raise ValueError("Local coordinate system requires a local datum")
        if not isinstance(self.unit, Unit):
            raise ValueError("Local coordinate system requires a unit")
        if not self.axes:
            raise ValueError("Local coordinate system requires at least one axis")

    def units(self, dimension: int) -> Unit:
        self._check_dimension(dimension)
        return self.unit


@dataclass(frozen=True)
class CompoundCoordinateSystem(CoordinateSystem):
    """
    Concatenation of two coordinate systems, usually horizontal + vertical.

    The axes are always those of ``head`` followed by those of ``tail``.
    """

    head: CoordinateSystem
    tail: CoordinateSystem

    def __post_init__(self) -> None:
        Info.__post_init__(self)
        if not isinstance(self.head, CoordinateSystem) or not isinstance(
            self.tail, CoordinateSystem
        ):
            raise ValueError("Compound coordinate system requires head and tail systems")
        combined = self.head.axes + self.tail.axes
        if self.axes and tuple(self.axes) != combined:
            raise ValueError("Compound coordinate system axes must match head and tail axes")
        object.__setattr__(self, "axes", combined)

    def units(self, dimension: int) -> Unit:
        self._check_dimension(dimension)
        if dimension < self.head.dimension:
            return self.head.units(dimension)
        return self.tail.units(dimension - self.head.dimension)


GeographicCoordinateSystem.WGS84 = GeographicCoordinateSystem(
    "WGS 84",
    DEGREE,
    HorizontalDatum.WGS84,
    PrimeMeridian.GREENWICH,
)
