"""
Authority factory backed by the PROJ database bundled with pyproj.

Coordinate systems are exported by PROJ as WKT1 (GDAL flavour) and read
back with the crskit WKT parser, so they come out exactly as a WKT file
from GDAL would.
"""

import logging
import math
from functools import lru_cache
from typing import Any, Dict, Optional

import pyproj
from pyproj.database import get_units_map
from pyproj.enums import WktVersion
from pyproj.exceptions import CRSError

from crskit.core.authority.base import AuthorityFactory, Code
from crskit.core.authority.epsg import SEXAGESIMAL_UNITS
from crskit.core.errors import FactoryError, NoSuchAuthorityCodeError, WKTParseError
from crskit.core.factory import CoordinateSystemFactory
from crskit.models.cs import CoordinateSystem
from crskit.models.datum import Datum, Ellipsoid, PrimeMeridian
from crskit.models.enums import DatumType
from crskit.models.info import Authority
from crskit.models.units import Unit, UnitKind
from crskit.utils.logging import log_performance

logger = logging.getLogger(__name__)

_get_proj_crs_from_authority = lru_cache(maxsize=64)(pyproj.CRS.from_authority)

_UNIT_KINDS = {
    "linear": UnitKind.LINEAR,
    "angular": UnitKind.ANGULAR,
    "scale": UnitKind.SCALE,
    "time": UnitKind.TIME,
}


@lru_cache(maxsize=8)
def _units_by_code(authority: str) -> Dict[str, Any]:
    return {unit.code: unit for unit in get_units_map(auth_name=authority).values()}


class ProjAuthorityFactory(AuthorityFactory):
    """
    Creates objects from authority codes known to PROJ.

    Args:
        authority: Authority name in the PROJ database (e.g., 'EPSG', 'ESRI')
        factory: Factory used to build the objects
    """

    def __init__(self, authority: str = "EPSG", factory: Optional[CoordinateSystemFactory] = None):
        super().__init__(factory)
        self._authority = authority.upper()
        self._parser = self.factory.wkt_parser()

    @property
    def authority(self) -> str:
        return self._authority

    def _info(self, code: str) -> Dict[str, Authority]:
        return {"authority": Authority(self.authority, code)}

    @log_performance()
    def create_coordinate_system(self, code: Code) -> CoordinateSystem:
        """
        Create a coordinate system from its WKT1 export by PROJ.

        Raises:
            NoSuchAuthorityCodeError: If PROJ doesn't know the code
            FactoryError: If the system has no WKT1 representation
        """
        code = self.normalize_code(code)
        try:
            crs = _get_proj_crs_from_authority(self.authority, code)
        except CRSError as exc:
            raise NoSuchAuthorityCodeError(code, self.authority, details={"proj": str(exc)}) from exc

        try:
            wkt = crs.to_wkt(version=WktVersion.WKT1_GDAL)
            if not wkt:
                raise CRSError("PROJ returned no WKT1 text")
        except CRSError as exc:
            raise FactoryError(
                f"{self.authority}:{code} ({crs.name}) can't be expressed as WKT1",
                code=code,
                details={"proj": str(exc)},
            ) from exc
        logger.debug("Parsing PROJ WKT for %s:%s", self.authority, code)
        try:
            return self._parser.parse_coordinate_system(wkt)
        except WKTParseError as exc:
            raise FactoryError(
                f"Can't read WKT of {self.authority}:{code}: {exc.message}",
                code=code,
                details={"wkt": wkt},
            ) from exc

    def create_unit(self, code: Code) -> Unit:
        code = self.normalize_code(code)
        proj_unit = _units_by_code(self.authority).get(code)
        if proj_unit is None:
            raise NoSuchAuthorityCodeError(code, self.authority)
        if code in SEXAGESIMAL_UNITS:
            return SEXAGESIMAL_UNITS[code].with_authority(Authority(self.authority, code))

        kind = _UNIT_KINDS.get(proj_unit.category)
        if kind is None:
            raise FactoryError(
                f"Unit {self.authority}:{code} has unsupported category {proj_unit.category!r}",
                code=code,
            )
        try:
            return Unit(proj_unit.name, kind, proj_unit.conv_factor, **self._info(code))
        except ValueError as exc:
            raise FactoryError(f"Invalid unit {self.authority}:{code}: {exc}", code=code) from exc

    def _ellipsoid(self, proj_ellipsoid: Any, code: Optional[str]) -> Ellipsoid:
        info = self._info(code) if code else {}
        ivf = proj_ellipsoid.inverse_flattening
        if not proj_ellipsoid.is_semi_minor_computed or not ivf:
            return self.factory.create_ellipsoid(
                proj_ellipsoid.name,
                proj_ellipsoid.semi_major_metre,
                proj_ellipsoid.semi_minor_metre,
                **info,
            )
        return self.factory.create_flattened_sphere(
            proj_ellipsoid.name,
            proj_ellipsoid.semi_major_metre,
            math.inf if ivf == 0 else ivf,
            **info,
        )

    def create_ellipsoid(self, code: Code) -> Ellipsoid:
        code = self.normalize_code(code)
        try:
            proj_ellipsoid = pyproj.crs.Ellipsoid.from_authority(self.authority, code)
        except CRSError as exc:
            raise NoSuchAuthorityCodeError(code, self.authority) from exc
        return self._ellipsoid(proj_ellipsoid, code)

    def create_prime_meridian(self, code: Code) -> PrimeMeridian:
        code = self.normalize_code(code)
        try:
            meridian = pyproj.crs.PrimeMeridian.from_authority(self.authority, code)
        except CRSError as exc:
            raise NoSuchAuthorityCodeError(code, self.authority) from exc
        unit = Unit(meridian.unit_name, UnitKind.ANGULAR, meridian.unit_conversion_factor)
        return self.factory.create_prime_meridian(
            meridian.name, meridian.longitude, unit, **self._info(code)
        )

    def create_datum(self, code: Code) -> Datum:
        code = self.normalize_code(code)
        try:
            datum = pyproj.crs.Datum.from_authority(self.authority, code)
        except CRSError as exc:
            raise NoSuchAuthorityCodeError(code, self.authority) from exc

        type_name = (datum.type_name or "").lower()
        if "vertical" in type_name:
            # Same type as the VERT_DATUM elements PROJ writes in WKT1
            return self.factory.create_vertical_datum(
                datum.name, DatumType.GEOID_MODEL_DERIVED, **self._info(code)
            )
        if "geodetic" in type_name:
            return self.factory.create_horizontal_datum(
                datum.name,
                DatumType.GEOCENTRIC,
                self._ellipsoid(datum.ellipsoid, None),
                **self._info(code),
            )
        raise FactoryError(
            f"Datum {self.authority}:{code} has unsupported type {datum.type_name!r}",
            code=code,
        )

    def create_object(self, code: Code) -> Any:
        """
        Create the object designated by a code, whatever its kind.

        Tries coordinate systems, datums, ellipsoids, prime meridians,
        then units.
        """
        code = self.normalize_code(code)
        for create in (
            self.create_coordinate_system,
            self.create_datum,
            self.create_ellipsoid,
            self.create_prime_meridian,
            self.create_unit,
        ):
            try:
                return create(code)
            except NoSuchAuthorityCodeError:
                continue
        raise NoSuchAuthorityCodeError(code, self.authority)
