"""
Ellipsoids, prime meridians, Bursa-Wolf parameters and datums.

Geodetic computations here are numpy-vectorised: scalars and arrays are
accepted wherever coordinates are.
"""

import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Optional, Tuple

import numpy as np

from crskit.models.enums import DatumType
from crskit.models.info import Authority, Info
from crskit.models.units import DEGREE, METRE, Unit, UnitKind

# Seconds of arc to radians
_ARC_SECOND = math.pi / 180.0 / 3600.0


@dataclass(frozen=True)
class Ellipsoid(Info):
    """
    Oblate ellipsoid of revolution approximating the shape of the Earth.

    Attributes:
        semi_major_axis: Equatorial radius, in ``axis_unit``
        semi_minor_axis: Polar radius, in ``axis_unit``
        inverse_flattening: a / (a - b); infinite for a sphere
        ivf_definitive: True when the inverse flattening, not the minor
            axis, defines the ellipsoid
        axis_unit: Linear unit of both axes
    """

    semi_major_axis: float
    semi_minor_axis: float
    inverse_flattening: float
    ivf_definitive: bool = False
    axis_unit: Unit = METRE

    WGS84: ClassVar["Ellipsoid"]

    def __post_init__(self) -> None:
        super().__post_init__()
        for label, value in (
            ("semi-major axis", self.semi_major_axis),
            ("semi-minor axis", self.semi_minor_axis),
        ):
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"Ellipsoid {label} must be positive and finite, got {value}")
        if self.semi_minor_axis > self.semi_major_axis:
            raise ValueError(
                f"Semi-minor axis {self.semi_minor_axis} is greater than "
                f"semi-major axis {self.semi_major_axis}"
            )
        if self.axis_unit.kind != UnitKind.LINEAR:
            raise ValueError(f"Ellipsoid axis unit must be linear, got {self.axis_unit.name}")

    @classmethod
    def create_ellipsoid(
        cls,
        name: str,
        semi_major_axis: float,
        semi_minor_axis: float,
        axis_unit: Unit = METRE,
        **info: Any,
    ) -> "Ellipsoid":
        """Create an ellipsoid from its two axes."""
        a = float(semi_major_axis)
        b = float(semi_minor_axis)
        ivf = math.inf if a == b else a / (a - b)
        return cls(name, a, b, ivf, False, axis_unit, **info)

    @classmethod
    def create_flattened_sphere(
        cls,
        name: str,
        semi_major_axis: float,
        inverse_flattening: float,
        axis_unit: Unit = METRE,
        **info: Any,
    ) -> "Ellipsoid":
        """
        Create an ellipsoid from its semi-major axis and inverse flattening.

        An infinite inverse flattening gives a sphere.
        """
        a = float(semi_major_axis)
        ivf = float(inverse_flattening)
        if math.isnan(ivf) or ivf <= 1:
            raise ValueError(f"Inverse flattening must be greater than 1, got {ivf}")
        b = a if math.isinf(ivf) else a * (1.0 - 1.0 / ivf)
        return cls(name, a, b, ivf, True, axis_unit, **info)

    @property
    def flattening(self) -> float:
        if math.isinf(self.inverse_flattening):
            return 0.0
        return 1.0 / self.inverse_flattening

    @property
    def eccentricity_squared(self) -> float:
        f = self.flattening
        return f * (2.0 - f)

    @property
    def eccentricity(self) -> float:
        return math.sqrt(self.eccentricity_squared)

    @property
    def is_sphere(self) -> bool:
        return self.semi_major_axis == self.semi_minor_axis

    @property
    def semi_major_metres(self) -> float:
        return self.axis_unit.to_base(self.semi_major_axis)

    def geodetic_to_geocentric(
        self, longitude: Any, latitude: Any, height: Any = 0.0
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Convert geodetic coordinates to geocentric cartesian coordinates.

        Args:
            longitude: Longitude(s) in degrees
            latitude: Latitude(s) in degrees
            height: Ellipsoidal height(s) in metres

        Returns:
            Tuple of (x, y, z) in metres
        """
        lam = np.radians(np.asarray(longitude, dtype=float))
        phi = np.radians(np.asarray(latitude, dtype=float))
        h = np.asarray(height, dtype=float)

        a = self.semi_major_metres
        e2 = self.eccentricity_squared
        sin_phi = np.sin(phi)
        cos_phi = np.cos(phi)
        n = a / np.sqrt(1.0 - e2 * sin_phi**2)

        x = (n + h) * cos_phi * np.cos(lam)
        y = (n + h) * cos_phi * np.sin(lam)
        z = (n * (1.0 - e2) + h) * sin_phi
        return x, y, z

    def geocentric_to_geodetic(
        self, x: Any, y: Any, z: Any, tolerance: float = 1e-14, max_iterations: int = 20
    ) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Convert geocentric cartesian coordinates to geodetic coordinates.

        Latitude is found by fixed-point iteration, which converges in a few
        steps for Earth-like flattening.

        Args:
            x: X coordinate(s) in metres
            y: Y coordinate(s) in metres
            z: Z coordinate(s) in metres
            tolerance: Convergence threshold on latitude, in radians
            max_iterations: Upper bound on iterations

        Returns:
            Tuple of (longitude, latitude, height) in degrees and metres
        """
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        z = np.asarray(z, dtype=float)

        a = self.semi_major_metres
        e2 = self.eccentricity_squared
        p = np.hypot(x, y)

        lam = np.arctan2(y, x)
        phi = np.arctan2(z, p * (1.0 - e2))
        for _ in range(max_iterations):
            sin_phi = np.sin(phi)
            n = a / np.sqrt(1.0 - e2 * sin_phi**2)
            next_phi = np.arctan2(z + e2 * n * sin_phi, p)
            converged = np.all(np.abs(next_phi - phi) < tolerance)
            phi = next_phi
            if converged:
                break

        sin_phi = np.sin(phi)
        h = p * np.cos(phi) + z * sin_phi - a * np.sqrt(1.0 - e2 * sin_phi**2)
        return np.degrees(lam), np.degrees(phi), h

    def orthodromic_distance(self, lon1: float, lat1: float, lon2: float, lat2: float) -> float:
        """
        Shortest distance between two points on the ellipsoid.

        Uses Vincenty's inverse formula. Nearly antipodal points, where the
        iteration doesn't converge, fall back to a great circle on the mean
        radius.

        Args:
            lon1: Longitude of the first point, in degrees
            lat1: Latitude of the first point, in degrees
            lon2: Longitude of the second point, in degrees
            lat2: Latitude of the second point, in degrees

        Returns:
            Distance in metres
        """
        solution = self._inverse_problem(lon1, lat1, lon2, lat2)
        if solution is None:
            return self._great_circle_distance(lon1, lat1, lon2, lat2)
        return solution[0]

    def azimuth(self, lon1: float, lat1: float, lon2: float, lat2: float) -> float:
        """
        Forward azimuth of the geodesic from the first point to the second.

        Args:
            lon1: Longitude of the starting point, in degrees
            lat1: Latitude of the starting point, in degrees
            lon2: Longitude of the destination, in degrees
            lat2: Latitude of the destination, in degrees

        Returns:
            Azimuth in degrees clockwise from north, from -180 to +180;
            0 for coincident points
        """
        solution = self._inverse_problem(lon1, lat1, lon2, lat2)
        if solution is None:
            return math.degrees(self._great_circle_azimuth(lon1, lat1, lon2, lat2))
        return math.degrees(solution[1])

    def destination(
        self, longitude: float, latitude: float, azimuth: float, distance: float
    ) -> Tuple[float, float]:
        """
        Point reached by following a geodesic (Vincenty's direct formula).

        Args:
            longitude: Longitude of the starting point, in degrees from -180 to +180
            latitude: Latitude of the starting point, in degrees from -90 to +90
            azimuth: Direction in degrees clockwise from north, from -180 to +180
            distance: Distance in metres, from 0 to ``max_orthodromic_distance``

        Returns:
            (longitude, latitude) of the destination in degrees, the
            longitude within -180 to +180

        Raises:
            ValueError: If an argument is out of range
        """
        _check_range("longitude", longitude, -180.0, 180.0)
        _check_range("latitude", latitude, -90.0, 90.0)
        _check_range("azimuth", azimuth, -180.0, 180.0)
        _check_range("distance", distance, 0.0, self.max_orthodromic_distance)

        a = self.semi_major_metres
        f = self.flattening
        b = (1.0 - f) * a
        alpha1 = math.radians(azimuth)
        sin_alpha1, cos_alpha1 = math.sin(alpha1), math.cos(alpha1)

        tan_u1 = (1.0 - f) * math.tan(math.radians(latitude))
        cos_u1 = 1.0 / math.sqrt(1.0 + tan_u1**2)
        sin_u1 = tan_u1 * cos_u1
        sigma1 = math.atan2(tan_u1, cos_alpha1)
        sin_alpha = cos_u1 * sin_alpha1
        cos2_alpha = 1.0 - sin_alpha**2
        u_sq = cos2_alpha * (a**2 - b**2) / b**2
        big_a = 1.0 + u_sq / 16384.0 * (4096.0 + u_sq * (-768.0 + u_sq * (320.0 - 175.0 * u_sq)))
        big_b = u_sq / 1024.0 * (256.0 + u_sq * (-128.0 + u_sq * (74.0 - 47.0 * u_sq)))

        sigma = distance / (b * big_a)
        for _ in range(100):
            cos_2sigma_m = math.cos(2.0 * sigma1 + sigma)
            sin_sigma, cos_sigma = math.sin(sigma), math.cos(sigma)
            delta_sigma = _delta_sigma(big_b, sin_sigma, cos_sigma, cos_2sigma_m)
            previous = sigma
            sigma = distance / (b * big_a) + delta_sigma
            if abs(sigma - previous) < 1e-12:
                break
        cos_2sigma_m = math.cos(2.0 * sigma1 + sigma)
        sin_sigma, cos_sigma = math.sin(sigma), math.cos(sigma)

        tmp = sin_u1 * sin_sigma - cos_u1 * cos_sigma * cos_alpha1
        phi2 = math.atan2(
            sin_u1 * cos_sigma + cos_u1 * sin_sigma * cos_alpha1,
            (1.0 - f) * math.hypot(sin_alpha, tmp),
        )
        lam = math.atan2(
            sin_sigma * sin_alpha1, cos_u1 * cos_sigma - sin_u1 * sin_sigma * cos_alpha1
        )
        c = f / 16.0 * cos2_alpha * (4.0 + f * (4.0 - 3.0 * cos2_alpha))
        big_l = lam - (1.0 - c) * f * sin_alpha * (
            sigma + c * sin_sigma * (cos_2sigma_m + c * cos_sigma * (-1.0 + 2.0 * cos_2sigma_m**2))
        )
        lon2 = (longitude + math.degrees(big_l) + 180.0) % 360.0 - 180.0
        return lon2, math.degrees(phi2)

    @property
    def max_orthodromic_distance(self) -> float:
        """Longest geodesic handled by ``destination``: half a meridian, in metres."""
        return self.meridian_arc_length(-90.0, 90.0)

    def meridian_arc_length(self, latitude1: float, latitude2: float) -> float:
        """
        Length of the meridian arc between two latitudes.

        Args:
            latitude1: Latitude of the first point, in degrees from -90 to +90
            latitude2: Latitude of the second point, in degrees from -90 to +90

        Returns:
            Arc length in metres, never negative

        Raises:
            ValueError: If a latitude is out of range
        """
        _check_range("latitude", latitude1, -90.0, 90.0)
        _check_range("latitude", latitude2, -90.0, 90.0)
        phi1, phi2 = math.radians(latitude1), math.radians(latitude2)

        # Series expansion in powers of the eccentricity, up to e^10
        e2 = self.eccentricity_squared
        e4, e6, e8, e10 = e2**2, e2**3, e2**4, e2**5
        c0 = (
            1.0
            + 0.75 * e2
            + 0.703125 * e4
            + 0.68359375 * e6
            + 0.67291259765625 * e8
            + 0.6661834716796875 * e10
        )
        c2 = (
            0.75 * e2 + 0.9375 * e4 + 1.025390625 * e6 + 1.07666015625 * e8 + 1.1103057861328125 * e10
        )
        c4 = 0.234375 * e4 + 0.41015625 * e6 + 0.538330078125 * e8 + 0.63446044921875 * e10
        c6 = 0.068359375 * e6 + 0.15380859375 * e8 + 0.23792266845703125 * e10
        c8 = 0.01922607421875 * e8 + 0.0528717041015625 * e10
        c10 = 0.00528717041015625 * e10

        def series(phi: float) -> float:
            return (
                c0 * phi
                - c2 / 2.0 * math.sin(2.0 * phi)
                + c4 / 4.0 * math.sin(4.0 * phi)
                - c6 / 6.0 * math.sin(6.0 * phi)
                + c8 / 8.0 * math.sin(8.0 * phi)
                - c10 / 10.0 * math.sin(10.0 * phi)
            )

        return abs(self.semi_major_metres * (1.0 - e2) * (series(phi2) - series(phi1)))

    def _inverse_problem(
        self, lon1: float, lat1: float, lon2: float, lat2: float
    ) -> Optional[Tuple[float, float]]:
        """Vincenty inverse: (distance, forward azimuth in radians), or None if not converging."""
        a = self.semi_major_metres
        f = self.flattening
        b = (1.0 - f) * a

        big_l = math.radians(lon2 - lon1)
        u1 = math.atan((1.0 - f) * math.tan(math.radians(lat1)))
        u2 = math.atan((1.0 - f) * math.tan(math.radians(lat2)))
        sin_u1, cos_u1 = math.sin(u1), math.cos(u1)
        sin_u2, cos_u2 = math.sin(u2), math.cos(u2)

        lam = big_l
        for _ in range(100):
            sin_lam, cos_lam = math.sin(lam), math.cos(lam)
            sin_sigma = math.hypot(cos_u2 * sin_lam, cos_u1 * sin_u2 - sin_u1 * cos_u2 * cos_lam)
            if sin_sigma == 0.0:
                return 0.0, 0.0
            cos_sigma = sin_u1 * sin_u2 + cos_u1 * cos_u2 * cos_lam
            sigma = math.atan2(sin_sigma, cos_sigma)
            sin_alpha = cos_u1 * cos_u2 * sin_lam / sin_sigma
            cos2_alpha = 1.0 - sin_alpha**2
            # Equatorial lines have cos2_alpha == 0
            cos_2sigma_m = cos_sigma - 2.0 * sin_u1 * sin_u2 / cos2_alpha if cos2_alpha else 0.0
            c = f / 16.0 * cos2_alpha * (4.0 + f * (4.0 - 3.0 * cos2_alpha))
            previous = lam
            lam = big_l + (1.0 - c) * f * sin_alpha * (
                sigma
                + c * sin_sigma * (cos_2sigma_m + c * cos_sigma * (-1.0 + 2.0 * cos_2sigma_m**2))
            )
            if abs(lam - previous) < 1e-12:
                break
        else:
            return None

        u_sq = cos2_alpha * (a**2 - b**2) / b**2
        big_a = 1.0 + u_sq / 16384.0 * (4096.0 + u_sq * (-768.0 + u_sq * (320.0 - 175.0 * u_sq)))
        big_b = u_sq / 1024.0 * (256.0 + u_sq * (-128.0 + u_sq * (74.0 - 47.0 * u_sq)))
        distance = b * big_a * (sigma - _delta_sigma(big_b, sin_sigma, cos_sigma, cos_2sigma_m))
        sin_lam, cos_lam = math.sin(lam), math.cos(lam)
        alpha1 = math.atan2(cos_u2 * sin_lam, cos_u1 * sin_u2 - sin_u1 * cos_u2 * cos_lam)
        return distance, alpha1

    def _great_circle_distance(self, lon1: float, lat1: float, lon2: float, lat2: float) -> float:
        a = self.semi_major_metres
        b = a * (1.0 - self.flattening)
        radius = (2.0 * a + b) / 3.0
        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        d_phi = phi2 - phi1
        d_lam = math.radians(lon2 - lon1)
        h = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
        return 2.0 * radius * math.asin(min(1.0, math.sqrt(h)))

    @staticmethod
    def _great_circle_azimuth(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
        phi1, phi2 = math.radians(lat1), math.radians(lat2)
        d_lam = math.radians(lon2 - lon1)
        return math.atan2(
            math.sin(d_lam) * math.cos(phi2),
            math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(d_lam),
        )


def _delta_sigma(big_b: float, sin_sigma: float, cos_sigma: float, cos_2sigma_m: float) -> float:
    return (
        big_b
        * sin_sigma
        * (
            cos_2sigma_m
            + big_b
            / 4.0
            * (
                cos_sigma * (-1.0 + 2.0 * cos_2sigma_m**2)
                - big_b
                / 6.0
                * cos_2sigma_m
                * (-3.0 + 4.0 * sin_sigma**2)
                * (-3.0 + 4.0 * cos_2sigma_m**2)
            )
        )
    )


def _check_range(label: str, value: float, low: float, high: float) -> None:
    if not low <= value <= high:
        raise ValueError(f"{label.capitalize()} {value} is out of range [{low}, {high}]")


@dataclass(frozen=True)
class PrimeMeridian(Info):
    """
    Meridian from which longitudes are measured.

    Attributes:
        longitude: Longitude east of Greenwich, in ``angular_unit``
        angular_unit: Unit of the longitude
    """

    longitude: float
    angular_unit: Unit = DEGREE

    GREENWICH: ClassVar["PrimeMeridian"]

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.angular_unit.kind != UnitKind.ANGULAR:
            raise ValueError(
                f"Prime meridian unit must be angular, got {self.angular_unit.name}"
            )
        object.__setattr__(self, "longitude", float(self.longitude))

    def longitude_in(self, unit: Unit) -> float:
        """Longitude converted to another angular unit."""
        return unit.convert(self.longitude, self.angular_unit)


@dataclass(frozen=True)
class BursaWolfParameters:
    """
    Seven-parameter (position vector) transformation to WGS84.

    Attributes:
        dx: X translation in metres
        dy: Y translation in metres
        dz: Z translation in metres
        ex: X rotation in arc-seconds
        ey: Y rotation in arc-seconds
        ez: Z rotation in arc-seconds
        ppm: Scale correction in parts per million
        area_of_use: Description of where the parameters apply
    """

    dx: float = 0.0
    dy: float = 0.0
    dz: float = 0.0
    ex: float = 0.0
    ey: float = 0.0
    ez: float = 0.0
    ppm: float = 0.0
    area_of_use: Optional[str] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        for name in ("dx", "dy", "dz", "ex", "ey", "ez", "ppm"):
            object.__setattr__(self, name, float(getattr(self, name)))

    @property
    def is_identity(self) -> bool:
        return not any(self.as_tuple())

    def as_tuple(self) -> Tuple[float, float, float, float, float, float, float]:
        """The seven TOWGS84 values in WKT order."""
        return (self.dx, self.dy, self.dz, self.ex, self.ey, self.ez, self.ppm)

    def affine_transform(self) -> np.ndarray:
        """
        Build the 4x4 affine matrix applying these parameters to geocentric
        coordinates.

        Rotations are small, so their sines are replaced by the angles in
        radians.
        """
        s = 1.0 + self.ppm / 1e6
        rs = s * _ARC_SECOND
        return np.array(
            [
                [s, -self.ez * rs, self.ey * rs, self.dx],
                [self.ez * rs, s, -self.ex * rs, self.dy],
                [-self.ey * rs, self.ex * rs, s, self.dz],
                [0.0, 0.0, 0.0, 1.0],
            ]
        )

    @classmethod
    def from_affine(
        cls, matrix: Any, area_of_use: Optional[str] = None
    ) -> "BursaWolfParameters":
        """
        Recover the parameters from a matrix built by ``affine_transform``.

        Raises:
            ValueError: If the matrix is not a 4x4 affine matrix
        """
        m = np.asarray(matrix, dtype=float)
        if m.shape != (4, 4):
            raise ValueError(f"Expected a 4x4 matrix, got shape {m.shape}")
        if not np.allclose(m[3], [0.0, 0.0, 0.0, 1.0]):
            raise ValueError("Last matrix row must be [0, 0, 0, 1]")

        s = float(m[0, 0])
        rs = s * _ARC_SECOND
        return cls(
            dx=float(m[0, 3]),
            dy=float(m[1, 3]),
            dz=float(m[2, 3]),
            ex=float(m[2, 1] - m[1, 2]) / (2.0 * rs),
            ey=float(m[0, 2] - m[2, 0]) / (2.0 * rs),
            ez=float(m[1, 0] - m[0, 1]) / (2.0 * rs),
            ppm=(s - 1.0) * 1e6,
            area_of_use=area_of_use,
        )


@dataclass(frozen=True)
class Datum(Info):
    """Base class of datums."""

    datum_type: DatumType

    def __post_init__(self) -> None:
        super().__post_init__()
        if not isinstance(self.datum_type, DatumType):
            raise ValueError(f"Expected a DatumType, got {self.datum_type!r}")


@dataclass(frozen=True)
class HorizontalDatum(Datum):
    """
    Datum positioning an ellipsoid relative to the Earth.

    Attributes:
        ellipsoid: Reference ellipsoid
        to_wgs84: Parameters shifting geocentric coordinates to WGS84
    """

    ellipsoid: Ellipsoid
    to_wgs84: Optional[BursaWolfParameters] = None

    WGS84: ClassVar["HorizontalDatum"]

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.datum_type.is_horizontal:
            raise ValueError(f"{self.datum_type} is not a horizontal datum type")
        if not isinstance(self.ellipsoid, Ellipsoid):
            raise ValueError("Horizontal datum requires an ellipsoid")

    @property
    def is_wgs84(self) -> bool:
        """Tell whether this datum is WGS 1984 itself."""
        if self.authority is not None and self.authority == _WGS84_DATUM_AUTHORITY:
            return True
        key = self.name.replace(" ", "_").upper()
        return key in ("WGS_1984", "WGS84", "WORLD_GEODETIC_SYSTEM_1984")


@dataclass(frozen=True)
class VerticalDatum(Datum):
    """Datum for heights or depths."""

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.datum_type.is_vertical:
            raise ValueError(f"{self.datum_type} is not a vertical datum type")


@dataclass(frozen=True)
class LocalDatum(Datum):
    """Datum of a local (engineering) coordinate system."""

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.datum_type.is_local:
            raise ValueError(f"{self.datum_type} is not a local datum type")


_WGS84_DATUM_AUTHORITY = Authority("EPSG", "6326")

Ellipsoid.WGS84 = Ellipsoid.create_flattened_sphere(
    "WGS 84", 6378137.0, 298.257223563, METRE, authority=Authority("EPSG", "7030")
)
PrimeMeridian.GREENWICH = PrimeMeridian("Greenwich", 0.0, DEGREE, authority=Authority("EPSG", "8901"))
HorizontalDatum.WGS84 = HorizontalDatum(
    "WGS_1984", DatumType.GEOCENTRIC, Ellipsoid.WGS84, authority=_WGS84_DATUM_AUTHORITY
)
