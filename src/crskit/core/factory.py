"""
Factory for validated coordinate system objects.

Every ``create_*`` method turns invalid arguments into a ``FactoryError``
with the underlying error chained, so callers deal with a single exception
type whatever the cause.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple, Type, TypeVar

from crskit.core.errors import FactoryError, UnitError
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
from crskit.models.enums import DatumType
from crskit.models.units import DEGREE, METRE, Unit

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Default parameters of the OGC projection classifications, in WKT order.
# Linear values in metres, angular values in degrees.
KNOWN_PROJECTIONS: Dict[str, Tuple[Tuple[str, float], ...]] = {
    "Transverse_Mercator": (
        ("latitude_of_origin", 0.0),
        ("central_meridian", 0.0),
        ("scale_factor", 1.0),
        ("false_easting", 0.0),
        ("false_northing", 0.0),
    ),
    "Mercator_1SP": (
        ("latitude_of_origin", 0.0),
        ("central_meridian", 0.0),
        ("scale_factor", 1.0),
        ("false_easting", 0.0),
        ("false_northing", 0.0),
    ),
    "Mercator_2SP": (
        ("standard_parallel_1", 0.0),
        ("central_meridian", 0.0),
        ("false_easting", 0.0),
        ("false_northing", 0.0),
    ),
    "Lambert_Conformal_Conic_1SP": (
        ("latitude_of_origin", 0.0),
        ("central_meridian", 0.0),
        ("scale_factor", 1.0),
        ("false_easting", 0.0),
        ("false_northing", 0.0),
    ),
    "Lambert_Conformal_Conic_2SP": (
        ("standard_parallel_1", 0.0),
        ("standard_parallel_2", 0.0),
        ("latitude_of_origin", 0.0),
        ("central_meridian", 0.0),
        ("false_easting", 0.0),
        ("false_northing", 0.0),
    ),
    "Albers_Conic_Equal_Area": (
        ("standard_parallel_1", 0.0),
        ("standard_parallel_2", 0.0),
        ("latitude_of_center", 0.0),
        ("longitude_of_center", 0.0),
        ("false_easting", 0.0),
        ("false_northing", 0.0),
    ),
    "Polar_Stereographic": (
        ("latitude_of_origin", 90.0),
        ("central_meridian", 0.0),
        ("scale_factor", 1.0),
        ("false_easting", 0.0),
        ("false_northing", 0.0),
    ),
    "Oblique_Stereographic": (
        ("latitude_of_origin", 0.0),
        ("central_meridian", 0.0),
        ("scale_factor", 1.0),
        ("false_easting", 0.0),
        ("false_northing", 0.0),
    ),
    "Lambert_Azimuthal_Equal_Area": (
        ("latitude_of_center", 0.0),
        ("longitude_of_center", 0.0),
        ("false_easting", 0.0),
        ("false_northing", 0.0),
    ),
    "Orthographic": (
        ("latitude_of_origin", 0.0),
        ("central_meridian", 0.0),
        ("false_easting", 0.0),
        ("false_northing", 0.0),
    ),
}


class CoordinateSystemFactory:
    """
    Builds coordinate system objects from their components.

    Keyword arguments accepted by every ``create_*`` method (``authority``,
    ``alias``, ``abbreviation``, ``remarks``) are passed through as object
    metadata.
    """

    def _build(self, kind: str, cls: Type[T], *args: Any, **kwargs: Any) -> T:
        for arg in args:
            if arg is None:
                raise FactoryError(f"Missing component while creating {kind}")
        try:
            return cls(*args, **kwargs)
        except (ValueError, TypeError, UnitError) as exc:
            raise FactoryError(f"Invalid {kind}: {exc}") from exc

    def create_ellipsoid(
        self,
        name: str,
        semi_major_axis: float,
        semi_minor_axis: float,
        linear_unit: Unit = METRE,
        **info: Any,
    ) -> Ellipsoid:
        return self._build(
            "ellipsoid",
            Ellipsoid.create_ellipsoid,
            name,
            semi_major_axis,
            semi_minor_axis,
            linear_unit,
            **info,
        )

    def create_flattened_sphere(
        self,
        name: str,
        semi_major_axis: float,
        inverse_flattening: float,
        linear_unit: Unit = METRE,
        **info: Any,
    ) -> Ellipsoid:
        return self._build(
            "ellipsoid",
            Ellipsoid.create_flattened_sphere,
            name,
            semi_major_axis,
            inverse_flattening,
            linear_unit,
            **info,
        )

    def create_prime_meridian(
        self, name: str, longitude: float, angular_unit: Unit = DEGREE, **info: Any
    ) -> PrimeMeridian:
        return self._build(
            "prime meridian", PrimeMeridian, name, longitude, angular_unit, **info
        )

    def create_horizontal_datum(
        self,
        name: str,
        datum_type: DatumType,
        ellipsoid: Ellipsoid,
        to_wgs84: Optional[BursaWolfParameters] = None,
        **info: Any,
    ) -> HorizontalDatum:
        return self._build(
            "horizontal datum",
            HorizontalDatum,
            name,
            datum_type,
            ellipsoid,
            to_wgs84=to_wgs84,
            **info,
        )

    def create_vertical_datum(
        self, name: str, datum_type: DatumType, **info: Any
    ) -> VerticalDatum:
        return self._build("vertical datum", VerticalDatum, name, datum_type, **info)

    def create_local_datum(self, name: str, datum_type: DatumType, **info: Any) -> LocalDatum:
        return self._build("local datum", LocalDatum, name, datum_type, **info)

    def create_projection(
        self,
        name: str,
        classification: str,
        parameters: Optional[Iterable[Tuple[str, float]]] = None,
        **info: Any,
    ) -> Projection:
        """
        Create a projection, checking parameters against the classification.

        For a known classification, parameter names outside its default set
        are rejected and missing ones are appended with their default
        values. Unknown classifications accept any parameters.

        Raises:
            FactoryError: On unknown or duplicated parameter names
        """
        if parameters is not None and hasattr(parameters, "items"):
            parameters = parameters.items()
        try:
            given = [(str(k), float(v)) for k, v in (parameters or ())]
        except (ValueError, TypeError) as exc:
            raise FactoryError(f"Invalid projection: {exc}") from exc

        seen = set()
        for key, _ in given:
            if key in seen:
                raise FactoryError(f'Duplicated parameter "{key}" for projection {name}')
            seen.add(key)

        defaults = KNOWN_PROJECTIONS.get(classification)
        if defaults is not None:
            known = {key for key, _ in defaults}
            for key, _ in given:
                if key not in known:
                    raise FactoryError(
                        f'Parameter "{key}" is not valid for {classification} projection',
                        details={"classification": classification, "parameter": key},
                    )
            missing = [(key, value) for key, value in defaults if key not in seen]
            if missing:
                logger.debug(
                    "Projection %s: using defaults for %s",
                    name,
                    ", ".join(key for key, _ in missing),
                )
            given.extend(missing)

        return self._build(
            "projection", Projection, name, classification, tuple(given), **info
        )

    def is_parameter_known(self, classification: str, parameter: str) -> bool:
        """Tell whether ``create_projection`` would accept the parameter."""
        defaults = KNOWN_PROJECTIONS.get(classification)
        if defaults is None:
            return True
        return any(key == parameter for key, _ in defaults)

    def create_geographic_coordinate_system(
        self,
        name: str,
        angular_unit: Unit,
        horizontal_datum: HorizontalDatum,
        prime_meridian: PrimeMeridian,
        axes: Optional[Sequence[AxisInfo]] = None,
        **info: Any,
    ) -> GeographicCoordinateSystem:
        return self._build(
            "geographic coordinate system",
            GeographicCoordinateSystem,
            name,
            angular_unit,
            horizontal_datum,
            prime_meridian,
            axes=tuple(axes or ()),
            **info,
        )

    def create_projected_coordinate_system(
        self,
        name: str,
        geographic_cs: GeographicCoordinateSystem,
        projection: Projection,
        linear_unit: Unit,
        axes: Optional[Sequence[AxisInfo]] = None,
        extensions: Optional[Iterable[Tuple[str, str]]] = None,
        **info: Any,
    ) -> ProjectedCoordinateSystem:
        return self._build(
            "projected coordinate system",
            ProjectedCoordinateSystem,
            name,
            geographic_cs,
            projection,
            linear_unit,
            axes=tuple(axes or ()),
            extensions=tuple(extensions or ()),
            **info,
        )

    def create_geocentric_coordinate_system(
        self,
        name: str,
        linear_unit: Unit,
        horizontal_datum: HorizontalDatum,
        prime_meridian: PrimeMeridian,
        axes: Optional[Sequence[AxisInfo]] = None,
        **info: Any,
    ) -> GeocentricCoordinateSystem:
        return self._build(
            "geocentric coordinate system",
            GeocentricCoordinateSystem,
            name,
            linear_unit,
            horizontal_datum,
            prime_meridian,
            axes=tuple(axes or ()),
            **info,
        )

    def create_vertical_coordinate_system(
        self,
        name: str,
        vertical_datum: VerticalDatum,
        linear_unit: Unit,
        axis: Optional[AxisInfo] = None,
        **info: Any,
    ) -> VerticalCoordinateSystem:
        return self._build(
            "vertical coordinate system",
            VerticalCoordinateSystem,
            name,
            vertical_datum,
            linear_unit,
            axes=(axis,) if axis else (),
            **info,
        )

    def create_local_coordinate_system(
        self,
        name: str,
        local_datum: LocalDatum,
        unit: Unit,
        axes: Sequence[AxisInfo],
        **info: Any,
    ) -> LocalCoordinateSystem:
        return self._build(
            "local coordinate system",
            LocalCoordinateSystem,
            name,
            local_datum,
            unit,
            axes=tuple(axes or ()),
            **info,
        )

    def create_compound_coordinate_system(
        self, name: str, head: CoordinateSystem, tail: CoordinateSystem, **info: Any
    ) -> CompoundCoordinateSystem:
        return self._build(
            "compound coordinate system", CompoundCoordinateSystem, name, head, tail, **info
        )

    def wkt_parser(self):
        """WKT parser creating its objects through this factory."""
        from crskit.core.wkt.parser import WKTParser

        return WKTParser(self)

    def create_from_wkt(self, text: str) -> CoordinateSystem:
        """
        Create a coordinate system from its Well-Known Text.

        Raises:
            WKTParseError: If the text is malformed or describes an invalid system
        """
        return self.wkt_parser().parse_coordinate_system(text)


_default_factory: Optional[CoordinateSystemFactory] = None


def get_default_factory() -> CoordinateSystemFactory:
    """Shared factory instance."""
    global _default_factory
    if _default_factory is None:
        _default_factory = CoordinateSystemFactory()
    return _default_factory
