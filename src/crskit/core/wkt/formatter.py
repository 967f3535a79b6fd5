"""
Well-Known Text formatter.

Writes objects in the same WKT dialect the parser reads, so that parsing
formatted text gives back an equal object.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Union

from crskit.models.cs import (
    AxisInfo,
    CompoundCoordinateSystem,
    GeocentricCoordinateSystem,
    GeographicCoordinateSystem,
    LocalCoordinateSystem,
    ProjectedCoordinateSystem,
    Projection,
    VerticalCoordinateSystem,
)
from crskit.models.datum import (
    BursaWolfParameters,
    Ellipsoid,
    HorizontalDatum,
    LocalDatum,
    PrimeMeridian,
    VerticalDatum,
)
from crskit.models.info import Authority
from crskit.models.units import BASE_UNITS, DEGREE, METRE, Unit


@dataclass
class _Node:
    """Element waiting to be rendered."""

    keyword: str
    params: List[Union[str, float, "_Node"]] = field(default_factory=list)
    void: bool = False


class WKTFormatter:
    """
    Formats coordinate system objects as WKT.

    Args:
        indent: Spaces per nesting level; None writes a single line
        precision: Decimal places numbers are rounded to; None keeps
            full precision
    """

    def __init__(self, indent: Optional[int] = None, precision: Optional[int] = None):
        if indent is not None and indent < 0:
            raise ValueError("indent must be positive")
        self.indent = indent
        self.precision = precision

    def format(self, obj: Any) -> str:
        """
        Format an object as WKT.

        Raises:
            TypeError: If the object has no WKT representation
        """
        return self._render(self._node(obj), 0)

    def _node(self, obj: Any) -> _Node:
        if isinstance(obj, ProjectedCoordinateSystem):
            return self._projcs(obj)
        if isinstance(obj, GeographicCoordinateSystem):
            return self._geogcs(obj)
        if isinstance(obj, GeocentricCoordinateSystem):
            return self._geoccs(obj)
        if isinstance(obj, VerticalCoordinateSystem):
            return self._vert_cs(obj)
        if isinstance(obj, LocalCoordinateSystem):
            return self._local_cs(obj)
        if isinstance(obj, CompoundCoordinateSystem):
            return self._compd_cs(obj)
        if isinstance(obj, HorizontalDatum):
            return self._datum(obj)
        if isinstance(obj, VerticalDatum):
            return self._typed_datum("VERT_DATUM", obj)
        if isinstance(obj, LocalDatum):
            return self._typed_datum("LOCAL_DATUM", obj)
        if isinstance(obj, Ellipsoid):
            return self._spheroid(obj)
        if isinstance(obj, PrimeMeridian):
            return self._primem(obj, obj.angular_unit)
        if isinstance(obj, Unit):
            return self._unit(obj)
        if isinstance(obj, AxisInfo):
            return self._axis(obj)
        if isinstance(obj, BursaWolfParameters):
            return _Node("TOWGS84", list(obj.as_tuple()))
        if isinstance(obj, Projection):
            return self._projection(obj)
        if isinstance(obj, Authority):
            return self._authority(obj)
        raise TypeError(f"Can't format {type(obj).__name__} as WKT")

    # Elements

    def _authority(self, authority: Authority) -> _Node:
        return _Node("AUTHORITY", [authority.name, authority.code])

    def _with_authority(self, node: _Node, obj: Any) -> _Node:
        if obj.authority is not None:
            node.params.append(self._authority(obj.authority))
        return node

    def _unit(self, unit: Unit) -> _Node:
        # Factors are written relative to metre, radian, unity or second
        factor = unit.factor / BASE_UNITS[unit.kind].factor
        return self._with_authority(_Node("UNIT", [unit.name, factor]), unit)

    def _axis(self, axis: AxisInfo) -> _Node:
        return _Node("AXIS", [axis.name, _Node(axis.orientation.name, void=True)])

    def _axes(self, node: _Node, axes: Any) -> None:
        node.params.extend(self._axis(axis) for axis in axes)

    def _spheroid(self, ellipsoid: Ellipsoid) -> _Node:
        # Axes are always written in metres; 0 stands for an infinite flattening
        semi_major = METRE.convert(ellipsoid.semi_major_axis, ellipsoid.axis_unit)
        ivf = 0.0 if ellipsoid.is_sphere else ellipsoid.inverse_flattening
        return self._with_authority(_Node("SPHEROID", [ellipsoid.name, semi_major, ivf]), ellipsoid)

    def _primem(self, prime_meridian: PrimeMeridian, unit: Unit) -> _Node:
        longitude = prime_meridian.longitude_in(unit)
        return self._with_authority(_Node("PRIMEM", [prime_meridian.name, longitude]), prime_meridian)

    def _datum(self, datum: HorizontalDatum) -> _Node:
        node = _Node("DATUM", [datum.name, self._spheroid(datum.ellipsoid)])
        if datum.to_wgs84 is not None:
            node.params.append(_Node("TOWGS84", list(datum.to_wgs84.as_tuple())))
        return self._with_authority(node, datum)

    def _typed_datum(self, keyword: str, datum: Any) -> _Node:
        node = _Node(keyword, [datum.name, float(datum.datum_type.value)])
        return self._with_authority(node, datum)

    def _projection(self, projection: Projection) -> _Node:
        return self._with_authority(_Node("PROJECTION", [projection.classification]), projection)

    def _geogcs(self, cs: GeographicCoordinateSystem) -> _Node:
        node = _Node(
            "GEOGCS",
            [
                cs.name,
                self._datum(cs.horizontal_datum),
                self._primem(cs.prime_meridian, cs.angular_unit),
                self._unit(cs.angular_unit),
            ],
        )
        self._axes(node, cs.axes)
        return self._with_authority(node, cs)

    def _projcs(self, cs: ProjectedCoordinateSystem) -> _Node:
        node = _Node(
            "PROJCS", [cs.name, self._geogcs(cs.geographic_cs), self._projection(cs.projection)]
        )
        node.params.extend(
            _Node("PARAMETER", [name, value]) for name, value in cs.projection.parameters
        )
        node.params.append(self._unit(cs.linear_unit))
        self._axes(node, cs.axes)
        node.params.extend(_Node("EXTENSION", [name, value]) for name, value in cs.extensions)
        return self._with_authority(node, cs)

    def _geoccs(self, cs: GeocentricCoordinateSystem) -> _Node:
        node = _Node(
            "GEOCCS",
            [
                cs.name,
                self._datum(cs.horizontal_datum),
                self._primem(cs.prime_meridian, DEGREE),
                self._unit(cs.linear_unit),
            ],
        )
        self._axes(node, cs.axes)
        return self._with_authority(node, cs)

    def _vert_cs(self, cs: VerticalCoordinateSystem) -> _Node:
        node = _Node(
            "VERT_CS",
            [
                cs.name,
                self._typed_datum("VERT_DATUM", cs.vertical_datum),
                self._unit(cs.linear_unit),
            ],
        )
        self._axes(node, cs.axes)
        return self._with_authority(node, cs)

    def _local_cs(self, cs: LocalCoordinateSystem) -> _Node:
        node = _Node(
            "LOCAL_CS",
            [cs.name, self._typed_datum("LOCAL_DATUM", cs.local_datum), self._unit(cs.unit)],
        )
        self._axes(node, cs.axes)
        return self._with_authority(node, cs)

    def _compd_cs(self, cs: CompoundCoordinateSystem) -> _Node:
        node = _Node("COMPD_CS", [cs.name, self._node(cs.head), self._node(cs.tail)])
        return self._with_authority(node, cs)

    # Rendering

    def _number(self, value: float) -> str:
        if self.precision is not None:
            value = round(value, self.precision)
        value = float(value)
        if value.is_integer() and abs(value) < 1e15:
            return str(int(value))
        return repr(value)

    def _render(self, node: _Node, depth: int) -> str:
        if node.void:
            return node.keyword
        parts = []
        for param in node.params:
            if isinstance(param, _Node):
                text = self._render(param, depth + 1)
                if self.indent is not None and not param.void:
                    text = "\n" + " " * (self.indent * (depth + 1)) + text
                parts.append(text)
            elif isinstance(param, str):
                parts.append(f'"{param}"')
            else:
                parts.append(self._number(param))
        return f"{node.keyword}[{','.join(parts)}]"


def format_wkt(obj: Any, indent: Optional[int] = None) -> str:
    """Format an object as WKT with default settings."""
    return WKTFormatter(indent=indent).format(obj)
