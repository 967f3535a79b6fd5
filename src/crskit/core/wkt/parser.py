"""
Well-Known Text parser.

Builds coordinate system objects from OGC WKT (version 1), including the
GDAL flavour written by PROJ.
"""

import logging
import math
from typing import Any, Callable, Dict, List, Optional, Tuple

from crskit.core.errors import FactoryError
from crskit.core.factory import CoordinateSystemFactory, get_default_factory
from crskit.core.wkt.element import WKTElement
from crskit.models.cs import (
    AxisInfo,
    CompoundCoordinateSystem,
    CoordinateSystem,
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
from crskit.models.enums import AxisOrientation, DatumType
from crskit.models.info import Authority
from crskit.models.units import DEGREE, METRE, RADIAN, Unit

logger = logging.getLogger(__name__)

COORDINATE_SYSTEM_KEYWORDS = ("GEOGCS", "PROJCS", "GEOCCS", "VERT_CS", "LOCAL_CS", "COMPD_CS")

_TOWGS84_NAMES = ("dx", "dy", "dz", "ex", "ey", "ez", "ppm")


class WKTParser:
    """
    Parser turning WKT strings into objects created by a factory.

    Example:
        >>> parser = WKTParser()
        >>> cs = parser.parse_coordinate_system(text)
    """

    def __init__(self, factory: Optional[CoordinateSystemFactory] = None):
        self.factory = factory or get_default_factory()
        self._handlers: Dict[str, Callable[[WKTElement], Any]] = {
            "GEOGCS": self._parse_geogcs,
            "PROJCS": self._parse_projcs,
            "GEOCCS": self._parse_geoccs,
            "VERT_CS": self._parse_vert_cs,
            "LOCAL_CS": self._parse_local_cs,
            "COMPD_CS": self._parse_compd_cs,
            "AXIS": self._parse_axis,
            "PRIMEM": lambda e: self._parse_primem(e, DEGREE),
            "TOWGS84": self._parse_towgs84,
            "SPHEROID": self._parse_spheroid,
            "DATUM": self._parse_datum,
            "VERT_DATUM": self._parse_vert_datum,
            "LOCAL_DATUM": self._parse_local_datum,
            "UNIT": lambda e: self._parse_unit(e, METRE),
        }

    def parse(self, text: str) -> Any:
        """
        Parse any supported WKT element.

        A root UNIT is read as a linear unit and a root PRIMEM longitude
        as degrees.

        Raises:
            WKTParseError: If the text is malformed or not a supported element
        """
        root = WKTElement.parse_tree(text)
        handler = self._handlers.get(root.keyword)
        if handler is None:
            raise root.error("Unknown element type")
        logger.debug("Parsing %s element", root.keyword)
        return handler(root)

    def parse_coordinate_system(self, text: str) -> CoordinateSystem:
        """
        Parse WKT that must describe a coordinate system.

        Raises:
            WKTParseError: If the text is malformed or not a coordinate system
        """
        root = WKTElement.parse_tree(text)
        if root.keyword not in COORDINATE_SYSTEM_KEYWORDS:
            raise root.error("Not a coordinate system")
        return self._parse_cs(root)

    def _create(self, element: WKTElement, method: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        try:
            return method(*args, **kwargs)
        except FactoryError as exc:
            raise element.error(exc.message) from exc

    def _parse_cs(self, element: WKTElement) -> CoordinateSystem:
        return self._handlers[element.keyword](element)

    def _parse_authority(self, parent: WKTElement) -> Dict[str, Any]:
        """Pull the optional AUTHORITY element as factory keyword arguments."""
        element = parent.pull_optional_element("AUTHORITY")
        if element is None:
            return {}
        name = element.pull_string("name")
        # Some writers emit the code as a number
        if isinstance(element.peek(), float):
            code = str(element.pull_integer("code"))
        else:
            code = element.pull_string("code")
        element.close()
        return {"authority": Authority(name, code)}

    def _parse_unit(self, element: WKTElement, base: Unit) -> Unit:
        """UNIT["<name>", <factor to base> {,<authority>}]"""
        name = element.pull_string("name")
        factor = element.pull_double("factor")
        info = self._parse_authority(element)
        element.close()
        try:
            return Unit(name, base.kind, factor * base.factor, **info)
        except ValueError as exc:
            raise element.error(str(exc)) from exc

    def _parse_axis(self, element: WKTElement) -> AxisInfo:
        """AXIS["<name>", NORTH|SOUTH|EAST|WEST|UP|DOWN|OTHER]"""
        name = element.pull_string("name")
        orientation = element.pull_void_element("orientation")
        element.close()
        try:
            return AxisInfo(name, AxisOrientation.from_name(orientation.keyword))
        except ValueError:
            raise element.error(
                f'Unknown axis orientation "{orientation.keyword}"', offset=orientation.offset
            ) from None

    def _parse_axes(self, parent: WKTElement, count: int) -> Tuple[AxisInfo, ...]:
        """Pull either no AXIS or exactly ``count`` of them."""
        first = parent.pull_optional_element("AXIS")
        if first is None:
            return ()
        axes = [self._parse_axis(first)]
        for _ in range(count - 1):
            axes.append(self._parse_axis(parent.pull_element("AXIS")))
        return tuple(axes)

    def _parse_primem(self, element: WKTElement, angular_unit: Unit) -> PrimeMeridian:
        """PRIMEM["<name>", <longitude> {,<authority>}]"""
        name = element.pull_string("name")
        longitude = element.pull_double("longitude")
        info = self._parse_authority(element)
        element.close()
        return self._create(
            element, self.factory.create_prime_meridian, name, longitude, angular_unit, **info
        )

    def _parse_towgs84(self, element: WKTElement) -> BursaWolfParameters:
        """TOWGS84[<dx>, <dy>, <dz>, <ex>, <ey>, <ez>, <ppm>]"""
        values = [element.pull_double(name) for name in _TOWGS84_NAMES[:3]]
        # Rotations and scale may be omitted
        if element.children:
            values.extend(element.pull_double(name) for name in _TOWGS84_NAMES[3:])
        element.close()
        return BursaWolfParameters(*values)

    def _parse_spheroid(self, element: WKTElement) -> Ellipsoid:
        """SPHEROID["<name>", <semi-major axis>, <inverse flattening> {,<authority>}]"""
        name = element.pull_string("name")
        semi_major = element.pull_double("semi-major axis")
        inverse_flattening = element.pull_double("inverse flattening")
        info = self._parse_authority(element)
        element.close()
        if inverse_flattening == 0:
            inverse_flattening = math.inf
        return self._create(
            element,
            self.factory.create_flattened_sphere,
            name,
            semi_major,
            inverse_flattening,
            METRE,
            **info,
        )

    def _parse_datum(self, element: WKTElement) -> HorizontalDatum:
        """DATUM["<name>", <spheroid> {,<to wgs84>} {,<authority>}]"""
        name = element.pull_string("name")
        ellipsoid = self._parse_spheroid(element.pull_element("SPHEROID"))
        towgs84 = element.pull_optional_element("TOWGS84")
        to_wgs84 = self._parse_towgs84(towgs84) if towgs84 is not None else None
        info = self._parse_authority(element)
        element.close()
        return self._create(
            element,
            self.factory.create_horizontal_datum,
            name,
            DatumType.GEOCENTRIC,
            ellipsoid,
            to_wgs84,
            **info,
        )

    def _parse_datum_type(self, element: WKTElement) -> DatumType:
        try:
            if isinstance(element.peek(), float):
                return DatumType.from_value(element.pull_integer("datum type"))
            keyword = element.pull_void_element("datum type")
            return DatumType.from_name(keyword.keyword)
        except ValueError as exc:
            raise element.error(f"Unknown datum type: {exc}") from exc

    def _parse_vert_datum(self, element: WKTElement) -> VerticalDatum:
        """VERT_DATUM["<name>", <datum type> {,<authority>}]"""
        name = element.pull_string("name")
        datum_type = self._parse_datum_type(element)
        info = self._parse_authority(element)
        element.close()
        return self._create(
            element, self.factory.create_vertical_datum, name, datum_type, **info
        )

    def _parse_local_datum(self, element: WKTElement) -> LocalDatum:
        """LOCAL_DATUM["<name>", <datum type> {,<authority>}]"""
        name = element.pull_string("name")
        datum_type = self._parse_datum_type(element)
        info = self._parse_authority(element)
        element.close()
        return self._create(element, self.factory.create_local_datum, name, datum_type, **info)

    def _parse_geogcs(self, element: WKTElement) -> GeographicCoordinateSystem:
        """
        GEOGCS["<name>", <datum>, <prime meridian>, <angular unit> {,<twin axes>} {,<authority>}]

        The unit factor is relative to the radian, and the prime meridian
        longitude is expressed in that unit.
        """
        name = element.pull_string("name")
        datum = self._parse_datum(element.pull_element("DATUM"))
        primem = element.pull_element("PRIMEM")
        unit = self._parse_unit(element.pull_element("UNIT"), RADIAN)
        prime_meridian = self._parse_primem(primem, unit)
        axes = self._parse_axes(element, 2)
        info = self._parse_authority(element)
        element.close()
        return self._create(
            element,
            self.factory.create_geographic_coordinate_system,
            name,
            unit,
            datum,
            prime_meridian,
            axes,
            **info,
        )

    def _parse_projcs(self, element: WKTElement) -> ProjectedCoordinateSystem:
        """
        PROJCS["<name>", <geographic cs>, <projection>, {<parameter>,}* <linear unit>
               {,<twin axes>} {,<extension>} {,<authority>}]
        """
        name = element.pull_string("name")
        geographic_cs = self._parse_geogcs(element.pull_element("GEOGCS"))
        projection = self._parse_projection(element, element.pull_element("PROJECTION"))
        unit = self._parse_unit(element.pull_element("UNIT"), METRE)
        axes = self._parse_axes(element, 2)
        extensions: List[Tuple[str, str]] = []
        while True:
            extension = element.pull_optional_element("EXTENSION")
            if extension is None:
                break
            extensions.append(
                (extension.pull_string("name"), extension.pull_string("value"))
            )
            extension.close()
        info = self._parse_authority(element)
        element.close()
        return self._create(
            element,
            self.factory.create_projected_coordinate_system,
            name,
            geographic_cs,
            projection,
            unit,
            axes,
            extensions,
            **info,
        )

    def _parse_projection(self, parent: WKTElement, element: WKTElement) -> Projection:
        """
        PROJECTION["<name>" {,<authority>}]

        The PARAMETER["<name>", <value>] elements are pulled from the
        enclosing PROJCS.
        """
        classification = element.pull_string("name")
        info = self._parse_authority(element)
        element.close()

        parameters: List[Tuple[str, float]] = []
        while True:
            parameter = parent.pull_optional_element("PARAMETER")
            if parameter is None:
                break
            parameters.append(
                (parameter.pull_string("name"), parameter.pull_double("value"))
            )
            parameter.close()

        return self._create(
            element,
            self.factory.create_projection,
            classification,
            classification,
            parameters,
            **info,
        )

    def _parse_geoccs(self, element: WKTElement) -> GeocentricCoordinateSystem:
        """
        GEOCCS["<name>", <datum>, <prime meridian>, <linear unit>
               {,<axis>, <axis>, <axis>} {,<authority>}]
        """
        name = element.pull_string("name")
        datum = self._parse_datum(element.pull_element("DATUM"))
        prime_meridian = self._parse_primem(element.pull_element("PRIMEM"), DEGREE)
        unit = self._parse_unit(element.pull_element("UNIT"), METRE)
        axes = self._parse_axes(element, 3)
        info = self._parse_authority(element)
        element.close()
        return self._create(
            element,
            self.factory.create_geocentric_coordinate_system,
            name,
            unit,
            datum,
            prime_meridian,
            axes,
            **info,
        )

    def _parse_vert_cs(self, element: WKTElement) -> VerticalCoordinateSystem:
        """VERT_CS["<name>", <vert datum>, <linear unit>, {<axis>,} {,<authority>}]"""
        name = element.pull_string("name")
        datum = self._parse_vert_datum(element.pull_element("VERT_DATUM"))
        unit = self._parse_unit(element.pull_element("UNIT"), METRE)
        axis_element = element.pull_optional_element("AXIS")
        axis = self._parse_axis(axis_element) if axis_element is not None else None
        info = self._parse_authority(element)
        element.close()
        return self._create(
            element,
            self.factory.create_vertical_coordinate_system,
            name,
            datum,
            unit,
            axis,
            **info,
        )

    def _parse_local_cs(self, element: WKTElement) -> LocalCoordinateSystem:
        """LOCAL_CS["<name>", <local datum>, <unit>, <axis>, {,<axis>}* {,<authority>}]"""
        name = element.pull_string("name")
        datum = self._parse_local_datum(element.pull_element("LOCAL_DATUM"))
        unit = self._parse_unit(element.pull_element("UNIT"), METRE)
        axes = [self._parse_axis(element.pull_element("AXIS"))]
        while True:
            axis = element.pull_optional_element("AXIS")
            if axis is None:
                break
            axes.append(self._parse_axis(axis))
        info = self._parse_authority(element)
        element.close()
        return self._create(
            element,
            self.factory.create_local_coordinate_system,
            name,
            datum,
            unit,
            axes,
            **info,
        )

    def _parse_compd_cs(self, element: WKTElement) -> CompoundCoordinateSystem:
        """COMPD_CS["<name>", <head cs>, <tail cs> {,<authority>}]"""
        name = element.pull_string("name")
        head = self._parse_cs(element.pull_element(*COORDINATE_SYSTEM_KEYWORDS))
        tail = self._parse_cs(element.pull_element(*COORDINATE_SYSTEM_KEYWORDS))
        info = self._parse_authority(element)
        element.close()
        return self._create(
            element, self.factory.create_compound_coordinate_system, name, head, tail, **info
        )


def parse_wkt(text: str) -> Any:
    """Parse WKT with the default factory."""
    return WKTParser().parse(text)
