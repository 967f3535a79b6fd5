"""
Coordinate system value objects.
"""

from .cs import (
    AxisInfo,
    CompoundCoordinateSystem,
    CoordinateSystem,
    GeocentricCoordinateSystem,
    GeographicCoordinateSystem,
    HorizontalCoordinateSystem,
    LocalCoordinateSystem,
    ProjectedCoordinateSystem,
    Projection,
    VerticalCoordinateSystem,
)
from .datum import (
    BursaWolfParameters,
    Datum,
    Ellipsoid,
    HorizontalDatum,
    LocalDatum,
    PrimeMeridian,
    VerticalDatum,
)
from .enums import AxisOrientation, DatumFamily, DatumType
from .info import Authority, Info
from .units import Unit, UnitKind

__all__ = [
    # Metadata
    "Authority",
    "Info",
    # Units and enums
    "Unit",
    "UnitKind",
    "AxisOrientation",
    "DatumFamily",
    "DatumType",
    # Datums
    "BursaWolfParameters",
    "Datum",
    "Ellipsoid",
    "HorizontalDatum",
    "LocalDatum",
    "PrimeMeridian",
    "VerticalDatum",
    # Coordinate systems
    "AxisInfo",
    "CompoundCoordinateSystem",
    "CoordinateSystem",
    "GeocentricCoordinateSystem",
    "GeographicCoordinateSystem",
    "HorizontalCoordinateSystem",
    "LocalCoordinateSystem",
    "ProjectedCoordinateSystem",
    "Projection",
    "VerticalCoordinateSystem",
]
