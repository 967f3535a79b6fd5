"""
Datum shifts between horizontal datums.

Coordinates are converted to geocentric cartesian coordinates on the source
ellipsoid, moved through WGS84 with the Bursa-Wolf parameters of both datums,
and converted back to geodetic coordinates on the target ellipsoid.
"""

import logging
from typing import Any, List, Optional, Tuple, Union

import numpy as np

from crskit.core.errors import TransformationError
from crskit.models.datum import HorizontalDatum, PrimeMeridian
from crskit.models.units import DEGREE, Unit

logger = logging.getLogger(__name__)


def _horizontal_datum(obj: Any) -> HorizontalDatum:
    if isinstance(obj, HorizontalDatum):
        return obj
    datum = getattr(obj, "horizontal_datum", None)
    if isinstance(datum, HorizontalDatum):
        return datum
    raise TransformationError(
        f"{type(obj).__name__} has no horizontal datum",
        source=getattr(obj, "name", None),
    )


class _AngularFrame:
    """Angular unit and prime meridian the longitudes of one side are given in."""

    def __init__(self, obj: Any):
        # Projected systems shift the coordinates of their geographic system
        obj = getattr(obj, "geographic_cs", obj)
        self.unit: Unit = getattr(obj, "angular_unit", DEGREE)
        meridian: PrimeMeridian = getattr(obj, "prime_meridian", PrimeMeridian.GREENWICH)
        self.meridian = meridian.longitude_in(DEGREE)

    @property
    def is_greenwich_degrees(self) -> bool:
        return self.unit == DEGREE and self.meridian == 0.0

    def _convert(self, values: np.ndarray, target: Unit, source: Unit) -> np.ndarray:
        if target.sexagesimal or source.sexagesimal:
            return np.array([target.convert(float(v), source) for v in values], dtype=float)
        return values * (source.factor / target.factor)

    def to_greenwich_degrees(
        self, lons: np.ndarray, lats: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        if self.is_greenwich_degrees:
            return lons, lats
        return (
            self._convert(lons, DEGREE, self.unit) + self.meridian,
            self._convert(lats, DEGREE, self.unit),
        )

    def from_greenwich_degrees(
        self, lons: np.ndarray, lats: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray]:
        if self.is_greenwich_degrees:
            return lons, lats
        # Keep longitudes in [-180, 180) around the prime meridian
        relative = (lons - self.meridian + 180.0) % 360.0 - 180.0
        return self._convert(relative, self.unit, DEGREE), self._convert(lats, self.unit, DEGREE)


def _to_wgs84_matrix(datum: HorizontalDatum, role: str) -> np.ndarray:
    if datum.to_wgs84 is not None:
        return datum.to_wgs84.affine_transform()
    if datum.is_wgs84:
        return np.eye(4)
    raise TransformationError(
        f"Datum {datum.name} has no Bursa-Wolf parameters to WGS84",
        **{role: datum.name},
    )


class DatumShift:
    """
    Shift of geodetic coordinates from one horizontal datum to another.

    When given datums, longitudes are in degrees from Greenwich and
    latitudes in degrees. When given geographic (or projected) coordinate
    systems, coordinates are in the angular unit of that system, with
    longitudes measured from its prime meridian. Heights are in metres
    above the ellipsoid.

    Args:
        source: Source horizontal datum, or a coordinate system having one
        target: Target horizontal datum, or a coordinate system having one

    Raises:
        TransformationError: If a datum other than WGS84 has no TOWGS84
            parameters
    """

    def __init__(self, source: Any, target: Any):
        self._source_obj = source
        self._target_obj = target
        self.source = _horizontal_datum(source)
        self.target = _horizontal_datum(target)
        self._source_frame = _AngularFrame(source)
        self._target_frame = _AngularFrame(target)

        if self.source == self.target:
            self.matrix = np.eye(4)
        else:
            source_matrix = _to_wgs84_matrix(self.source, "source")
            target_matrix = _to_wgs84_matrix(self.target, "target")
            self.matrix = np.linalg.inv(target_matrix) @ source_matrix
        logger.debug("Datum shift %s -> %s", self.source.name, self.target.name)

    @property
    def is_identity(self) -> bool:
        return bool(np.allclose(self.matrix, np.eye(4), rtol=0.0, atol=1e-15)) and (
            self.source.ellipsoid == self.target.ellipsoid
            and self._source_frame.unit == self._target_frame.unit
            and self._source_frame.meridian == self._target_frame.meridian
        )

    def inverse(self) -> "DatumShift":
        """Shift in the opposite direction."""
        return DatumShift(self._target_obj, self._source_obj)

    def _apply(
        self, lons: np.ndarray, lats: np.ndarray, heights: np.ndarray
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        lons, lats = self._source_frame.to_greenwich_degrees(lons, lats)
        x, y, z = self.source.ellipsoid.geodetic_to_geocentric(lons, lats, heights)
        points = np.vstack([np.ravel(x), np.ravel(y), np.ravel(z), np.ones(np.size(x))])
        shifted = self.matrix @ points
        out_lons, out_lats, out_heights = self.target.ellipsoid.geocentric_to_geodetic(
            shifted[0], shifted[1], shifted[2]
        )
        out_lons, out_lats = self._target_frame.from_greenwich_degrees(out_lons, out_lats)
        return out_lons, out_lats, out_heights

    def transform(
        self, lon: float, lat: float, height: Optional[float] = None
    ) -> Tuple[float, ...]:
        """
        Shift a single coordinate.

        Returns:
            (lon, lat) or (lon, lat, height) when a height was given
        """
        lons, lats, heights = self._apply(
            np.array([lon], dtype=float),
            np.array([lat], dtype=float),
            np.array([0.0 if height is None else height], dtype=float),
        )
        if height is None:
            return (float(lons[0]), float(lats[0]))
        return (float(lons[0]), float(lats[0]), float(heights[0]))

    def transform_batch(
        self,
        lons: Union[List[float], np.ndarray],
        lats: Union[List[float], np.ndarray],
        heights: Optional[Union[List[float], np.ndarray]] = None,
    ) -> Tuple[np.ndarray, ...]:
        """
        Shift arrays of coordinates.

        Args:
            lons: Longitudes, in the source angular unit
            lats: Latitudes, in the source angular unit
            heights: Ellipsoidal heights in metres, optional

        Returns:
            Tuple of arrays (lons, lats) or (lons, lats, heights)

        Raises:
            TransformationError: If the arrays differ in length
        """
        lons = np.asarray(lons, dtype=float).ravel()
        lats = np.asarray(lats, dtype=float).ravel()
        if len(lons) != len(lats):
            raise TransformationError(
                f"Longitude and latitude arrays differ in length ({len(lons)} != {len(lats)})",
                source=self.source.name,
                target=self.target.name,
            )
        if heights is None:
            h = np.zeros_like(lons)
        else:
            h = np.asarray(heights, dtype=float).ravel()
            if len(h) != len(lons):
                raise TransformationError(
                    f"Height array length {len(h)} doesn't match {len(lons)} coordinates",
                    source=self.source.name,
                    target=self.target.name,
                )

        out_lons, out_lats, out_heights = self._apply(lons, lats, h)
        if heights is None:
            return out_lons, out_lats
        return out_lons, out_lats, out_heights

    def __repr__(self) -> str:
        return f"DatumShift({self.source.name!r} -> {self.target.name!r})"
