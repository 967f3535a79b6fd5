"""
EPSG authority factory backed by a SQL database.

Reads the EPSG geodetic parameter dataset (6.x table layout) through any
DB-API 2.0 connection. Queries are written once in MS-Access style and
adapted by a :class:`~crskit.core.authority.dialect.SQLDialect`.
"""

import logging
import math
import sqlite3
from dataclasses import replace
from typing import Any, Dict, List, Optional, Sequence, Tuple

from crskit.core.authority.base import AuthorityFactory, Code
from crskit.core.authority.dialect import ACCESS, SQLDialect, dialect_for_name
from crskit.core.config import Settings
from crskit.core.errors import ConfigurationError, FactoryError, NoSuchAuthorityCodeError
from crskit.core.factory import CoordinateSystemFactory
from crskit.models.cs import (
    AxisInfo,
    CoordinateSystem,
    GeographicCoordinateSystem,
    Projection,
)
from crskit.models.datum import BursaWolfParameters, Datum, Ellipsoid, PrimeMeridian
from crskit.models.enums import AxisOrientation, DatumType
from crskit.models.info import Authority
from crskit.models.units import (
    ARC_SECOND,
    DEGREE,
    DMS,
    METRE,
    PPM,
    SEXAGESIMAL_DMS,
    UNITY,
    Unit,
    UnitKind,
)
from crskit.utils.logging import PerformanceTimer, log_performance

logger = logging.getLogger(__name__)

AUTHORITY = "EPSG"

# Transformation methods giving Bursa-Wolf parameters to WGS84
GEOCENTRIC_TRANSLATIONS = "9603"
POSITION_VECTOR = "9606"
COORDINATE_FRAME_ROTATION = "9607"

# Units that are not a plain multiple of their base unit
SEXAGESIMAL_UNITS = {
    "9107": DMS,
    # The hemisphere letter of DDDMMSS.ssH is not kept
    "9108": DMS,
    "9110": SEXAGESIMAL_DMS,
}
_UNSUPPORTED_UNITS = {"9111"}
_UNITY_UNITS = {"9201", "9203"}

_UNIT_KINDS = {
    "length": UnitKind.LINEAR,
    "angle": UnitKind.ANGULAR,
    "scale": UnitKind.SCALE,
    "time": UnitKind.TIME,
}

# EPSG method names whose OGC classification doesn't follow the generic rule
METHOD_NAMES = {
    "Lambert Conic Conformal (1SP)": "Lambert_Conformal_Conic_1SP",
    "Lambert Conic Conformal (2SP)": "Lambert_Conformal_Conic_2SP",
    "Mercator (variant A)": "Mercator_1SP",
    "Mercator (1SP)": "Mercator_1SP",
    "Mercator (variant B)": "Mercator_2SP",
    "Mercator (2SP)": "Mercator_2SP",
    "Albers Equal Area": "Albers_Conic_Equal_Area",
    "Polar Stereographic (variant A)": "Polar_Stereographic",
}

# EPSG parameter names whose OGC name doesn't follow the generic rule
PARAMETER_NAMES = {
    "Latitude of natural origin": "latitude_of_origin",
    "Longitude of natural origin": "central_meridian",
    "Scale factor at natural origin": "scale_factor",
    "False easting": "false_easting",
    "False northing": "false_northing",
    "Latitude of false origin": "latitude_of_origin",
    "Longitude of false origin": "central_meridian",
    "Easting at false origin": "false_easting",
    "Northing at false origin": "false_northing",
    "Latitude of 1st standard parallel": "standard_parallel_1",
    "Latitude of 2nd standard parallel": "standard_parallel_2",
    "Latitude of centre": "latitude_of_center",
    "Longitude of centre": "longitude_of_center",
}

_QUERIES = {
    "unit": (
        "SELECT UNIT_OF_MEAS_NAME, UNIT_OF_MEAS_TYPE, FACTOR_B, FACTOR_C"
        " FROM [Unit of Measure] WHERE UOM_CODE = ?"
    ),
    "ellipsoid": (
        "SELECT ELLIPSOID_NAME, SEMI_MAJOR_AXIS, INV_FLATTENING, SEMI_MINOR_AXIS, UOM_CODE"
        " FROM [Ellipsoid] WHERE ELLIPSOID_CODE = ?"
    ),
    "prime_meridian": (
        "SELECT PRIME_MERIDIAN_NAME, GREENWICH_LONGITUDE, UOM_CODE"
        " FROM [Prime Meridian] WHERE PRIME_MERIDIAN_CODE = ?"
    ),
    "datum": (
        "SELECT DATUM_NAME, DATUM_TYPE, ELLIPSOID_CODE, PRIME_MERIDIAN_CODE"
        " FROM [Datum] WHERE DATUM_CODE = ?"
    ),
    "bursa_wolf": (
        "SELECT CO.COORD_OP_CODE, CO.COORD_OP_METHOD_CODE, AR.AREA_OF_USE"
        " FROM [Coordinate_Operation] as CO"
        " INNER JOIN [Coordinate Reference System] as CRS"
        " ON CO.SOURCE_CRS_CODE = CRS.COORD_REF_SYS_CODE"
        " LEFT JOIN [Area] as AR ON AR.AREA_CODE = CO.AREA_OF_USE_CODE"
        " WHERE CRS.DATUM_CODE = ? AND CO.TARGET_CRS_CODE = 4326"
        " ORDER BY CO.COORD_OP_CODE"
    ),
    "parameters": (
        "SELECT COPU.PARAMETER_CODE, COP.PARAMETER_NAME, COPV.PARAMETER_VALUE, COPV.UOM_CODE"
        " FROM [Coordinate_Operation Parameter Usage] as COPU,"
        " [Coordinate_Operation] as CO,"
        " [Coordinate_Operation Parameter] as COP,"
        " [Coordinate_Operation Parameter Value] as COPV"
        " WHERE CO.COORD_OP_CODE = ?"
        " AND CO.COORD_OP_METHOD_CODE = COPU.COORD_OP_METHOD_CODE"
        " AND COP.PARAMETER_CODE = COPU.PARAMETER_CODE"
        " AND COPV.PARAMETER_CODE = COPU.PARAMETER_CODE"
        " AND COPV.COORD_OP_CODE = ?"
        " ORDER BY COPU.SORT_ORDER"
    ),
    "operation": (
        "SELECT CO.COORD_OP_NAME, COM.COORD_OP_METHOD_NAME"
        " FROM [Coordinate_Operation] as CO"
        " INNER JOIN [Coordinate_Operation Method] as COM"
        " ON CO.COORD_OP_METHOD_CODE = COM.COORD_OP_METHOD_CODE"
        " WHERE CO.COORD_OP_CODE = ?"
    ),
    "crs": (
        "SELECT COORD_REF_SYS_NAME, COORD_REF_SYS_KIND, COORD_SYS_CODE, DATUM_CODE,"
        " SOURCE_GEOGCRS_CODE, PROJECTION_CONV_CODE, CMPD_HORIZCRS_CODE, CMPD_VERTCRS_CODE"
        " FROM [Coordinate Reference System] WHERE COORD_REF_SYS_CODE = ?"
    ),
    "dimension": "SELECT DIMENSION FROM [Coordinate System] WHERE COORD_SYS_CODE = ?",
    # ORDER is a reserved word, hence the brackets
    "axes": (
        "SELECT AN.COORD_AXIS_NAME, CA.COORD_AXIS_ORIENTATION, CA.UOM_CODE"
        " FROM [Coordinate Axis] as CA"
        " INNER JOIN [Coordinate Axis Name] as AN"
        " ON CA.COORD_AXIS_NAME_CODE = AN.COORD_AXIS_NAME_CODE"
        " WHERE CA.COORD_SYS_CODE = ?"
        " ORDER BY CA.[ORDER]"
    ),
}


def from_epsg_to_ogc(method_name: str) -> str:
    """
    Translate an EPSG operation method name into an OGC classification.

    Names without an explicit mapping are title-cased and joined with
    underscores: 'Transverse Mercator' gives 'Transverse_Mercator'.
    """
    mapped = METHOD_NAMES.get(method_name.strip())
    if mapped:
        return mapped
    cleaned = method_name.replace("(", " ").replace(")", " ")
    return "_".join(word[:1].upper() + word[1:] for word in cleaned.split())


def parameter_to_ogc(parameter_name: str) -> str:
    """Translate an EPSG parameter name into an OGC parameter name."""
    mapped = PARAMETER_NAMES.get(parameter_name.strip())
    if mapped:
        return mapped
    return "_".join(parameter_name.lower().split())


class EPSGFactory(AuthorityFactory):
    """
    Creates objects from EPSG codes stored in a SQL database.

    Args:
        connection: Open DB-API 2.0 connection
        dialect: SQL dialect of the database (Access style by default)
        owns_connection: Close the connection when the factory is closed
        paramstyle: DB-API paramstyle of the driver (e.g., 'qmark' for sqlite3)
        factory: Factory used to build the objects

    Example:
        >>> with EPSGFactory(sqlite3.connect("epsg.db")) as epsg:
        ...     wgs84 = epsg.create_geographic_coordinate_system("EPSG:4326")
    """

    def __init__(
        self,
        connection: Any,
        dialect: Optional[SQLDialect] = None,
        owns_connection: bool = False,
        paramstyle: str = "qmark",
        factory: Optional[CoordinateSystemFactory] = None,
    ):
        super().__init__(factory)
        self.connection = connection
        self.dialect = dialect or ACCESS
        self.owns_connection = owns_connection
        self.paramstyle = paramstyle
        self._error_class = getattr(connection, "Error", Exception)
        self._statements: Dict[str, str] = {}

    @property
    def authority(self) -> str:
        return AUTHORITY

    # Database access

    def _query(self, key: str, code: str, *parameters: Any) -> List[Tuple[Any, ...]]:
        """Run a named query, adapting its SQL to the dialect once."""
        sql = self._statements.get(key)
        if sql is None:
            sql = self.dialect.prepare_statement(_QUERIES[key], self.paramstyle)
            self._statements[key] = sql
        params = self.dialect.bind(parameters, self.paramstyle)
        try:
            with PerformanceTimer(f"EPSG query {key} ({code})"):
                cursor = self.connection.cursor()
                try:
                    cursor.execute(sql, params)
                    return list(cursor.fetchall())
                finally:
                    cursor.close()
        except self._error_class as exc:
            raise FactoryError(
                f"Database failure while reading EPSG:{code}: {exc}",
                code=code,
                error_code="DATABASE_ERROR",
                details={"query": key},
            ) from exc

    def _single_row(self, rows: Sequence[Tuple[Any, ...]], code: str, table: str) -> Tuple[Any, ...]:
        """Return the only record for a code; identical duplicates are tolerated."""
        if not rows:
            raise NoSuchAuthorityCodeError(code, AUTHORITY)
        first = rows[0]
        for row in rows[1:]:
            if row != first:
                raise FactoryError(
                    f"Disagreeing duplicate records for code {code} in table {table}",
                    code=code,
                    details={"table": table},
                )
        return first

    @staticmethod
    def _required(value: Any, column: str, code: str) -> Any:
        if value is None:
            raise FactoryError(
                f'Missing value in column "{column}" for code {code}',
                code=code,
                details={"column": column},
            )
        return value

    @staticmethod
    def _code(value: Any) -> str:
        # Numeric columns may come back as int, float or text depending on the driver
        if isinstance(value, float) and value.is_integer():
            value = int(value)
        return str(value).strip()

    def _authority(self, code: str) -> Dict[str, Authority]:
        return {"authority": Authority(AUTHORITY, code)}

    # Units

    def create_unit(self, code: Code) -> Unit:
        code = self.normalize_code(code)
        name, unit_type, factor_b, factor_c = self._single_row(
            self._query("unit", code, code), code, "Unit of Measure"
        )
        name = self._required(name, "UNIT_OF_MEAS_NAME", code)

        if code in _UNSUPPORTED_UNITS:
            raise FactoryError(f"Unit EPSG:{code} ({name}) is not supported", code=code)
        if code in SEXAGESIMAL_UNITS:
            return replace(SEXAGESIMAL_UNITS[code], name=name, authority=Authority(AUTHORITY, code))
        if code in _UNITY_UNITS:
            return replace(UNITY, name=name, authority=Authority(AUTHORITY, code))

        kind = _UNIT_KINDS.get(str(self._required(unit_type, "UNIT_OF_MEAS_TYPE", code)).lower())
        if kind is None:
            raise FactoryError(f"Unit type {unit_type!r} of EPSG:{code} is not supported", code=code)
        factor_b = float(self._required(factor_b, "FACTOR_B", code))
        factor_c = float(self._required(factor_c, "FACTOR_C", code))

        logger.debug("Creating unit EPSG:%s (%s)", code, name)
        try:
            return Unit(name, kind, factor_b / factor_c, **self._authority(code))
        except (ValueError, ZeroDivisionError) as exc:
            raise FactoryError(f"Invalid unit EPSG:{code}: {exc}", code=code) from exc

    def _create_unit_of_kind(self, code: str, kind: UnitKind, owner: str) -> Unit:
        unit = self.create_unit(code)
        if unit.kind != kind:
            raise FactoryError(
                f"{owner} uses unit EPSG:{code} ({unit.name}), expected a {kind.value} unit",
                code=code,
            )
        return unit

    # Ellipsoids, prime meridians and datums

    def create_ellipsoid(self, code: Code) -> Ellipsoid:
        code = self.normalize_code(code)
        name, semi_major, inverse_flattening, semi_minor, uom = self._single_row(
            self._query("ellipsoid", code, code), code, "Ellipsoid"
        )
        name = self._required(name, "ELLIPSOID_NAME", code)
        semi_major = float(self._required(semi_major, "SEMI_MAJOR_AXIS", code))
        unit = self._create_unit_of_kind(
            self._code(self._required(uom, "UOM_CODE", code)), UnitKind.LINEAR, f"Ellipsoid {code}"
        )

        logger.debug("Creating ellipsoid EPSG:%s (%s)", code, name)
        if inverse_flattening is not None:
            if semi_minor is not None:
                logger.warning(
                    "Ellipsoid EPSG:%s defines both inverse flattening and semi-minor axis; "
                    "using inverse flattening",
                    code,
                )
            ivf = float(inverse_flattening)
            return self.factory.create_flattened_sphere(
                name, semi_major, math.inf if ivf == 0 else ivf, unit, **self._authority(code)
            )
        if semi_minor is not None:
            return self.factory.create_ellipsoid(
                name, semi_major, float(semi_minor), unit, **self._authority(code)
            )
        raise FactoryError(
            f"Ellipsoid EPSG:{code} has neither inverse flattening nor semi-minor axis",
            code=code,
        )

    def create_prime_meridian(self, code: Code) -> PrimeMeridian:
        code = self.normalize_code(code)
        name, longitude, uom = self._single_row(
            self._query("prime_meridian", code, code), code, "Prime Meridian"
        )
        name = self._required(name, "PRIME_MERIDIAN_NAME", code)
        longitude = float(self._required(longitude, "GREENWICH_LONGITUDE", code))
        unit = self._create_unit_of_kind(
            self._code(self._required(uom, "UOM_CODE", code)),
            UnitKind.ANGULAR,
            f"Prime meridian {code}",
        )
        logger.debug("Creating prime meridian EPSG:%s (%s)", code, name)
        return self.factory.create_prime_meridian(name, longitude, unit, **self._authority(code))

    def _datum_row(self, code: str) -> Tuple[Any, ...]:
        return self._single_row(self._query("datum", code, code), code, "Datum")

    def create_datum(self, code: Code) -> Datum:
        code = self.normalize_code(code)
        name, datum_type, ellipsoid_code, _ = self._datum_row(code)
        name = self._required(name, "DATUM_NAME", code)
        datum_type = str(self._required(datum_type, "DATUM_TYPE", code)).strip().lower()
        logger.debug("Creating %s datum EPSG:%s (%s)", datum_type, code, name)

        if datum_type == "geodetic":
            ellipsoid = self.create_ellipsoid(
                self._code(self._required(ellipsoid_code, "ELLIPSOID_CODE", code))
            )
            to_wgs84 = self._create_bursa_wolf(code)
            return self.factory.create_horizontal_datum(
                name, DatumType.GEOCENTRIC, ellipsoid, to_wgs84, **self._authority(code)
            )
        if datum_type == "vertical":
            return self.factory.create_vertical_datum(
                name, DatumType.ELLIPSOIDAL, **self._authority(code)
            )
        raise FactoryError(
            f"Datum EPSG:{code} has unsupported type {datum_type!r}",
            code=code,
            details={"datum_type": datum_type},
        )

    def _create_parameters(self, operation_code: str) -> Optional[List[Tuple[str, str, float, Unit]]]:
        """
        Parameters of a coordinate operation, in method order.

        Returns:
            List of (code, name, value, unit), or None when a value is
            missing (e.g. given by a grid file instead)
        """
        rows = self._query("parameters", operation_code, operation_code, operation_code)
        parameters = []
        for parameter_code, name, value, uom in rows:
            if value is None:
                return None
            unit = self.create_unit(self._code(self._required(uom, "UOM_CODE", operation_code)))
            parameters.append(
                (
                    self._code(parameter_code),
                    self._required(name, "PARAMETER_NAME", operation_code),
                    float(value),
                    unit,
                )
            )
        return parameters

    def _create_bursa_wolf(self, datum_code: str) -> Optional[BursaWolfParameters]:
        """First usable transformation from the datum to WGS84, if any."""
        for operation_code, method_code, area_of_use in self._query(
            "bursa_wolf", datum_code, datum_code
        ):
            operation_code = self._code(operation_code)
            method_code = self._code(method_code)
            if method_code not in (
                GEOCENTRIC_TRANSLATIONS,
                POSITION_VECTOR,
                COORDINATE_FRAME_ROTATION,
            ):
                logger.debug(
                    "Skipping operation EPSG:%s with method %s for datum %s",
                    operation_code,
                    method_code,
                    datum_code,
                )
                continue
            parameters = self._create_parameters(operation_code)
            expected = 3 if method_code == GEOCENTRIC_TRANSLATIONS else 7
            if not parameters or len(parameters) < expected:
                logger.warning(
                    "Skipping operation EPSG:%s for datum %s: incomplete parameters",
                    operation_code,
                    datum_code,
                )
                continue

            values = [METRE.convert(value, unit) for _, _, value, unit in parameters[:3]]
            if expected == 7:
                rotations = [ARC_SECOND.convert(value, unit) for _, _, value, unit in parameters[3:6]]
                if method_code == COORDINATE_FRAME_ROTATION:
                    rotations = [-r for r in rotations]
                _, _, scale, scale_unit = parameters[6]
                values.extend(rotations)
                values.append(PPM.convert(scale, scale_unit))
            return BursaWolfParameters(*values, area_of_use=area_of_use)
        return None

    # Coordinate systems

    def _create_axes(self, cs_code: str, owner: str) -> Tuple[Tuple[AxisInfo, ...], Unit]:
        """Axes of a coordinate system and the unit shared by all of them."""
        dimension = self._single_row(
            self._query("dimension", cs_code, cs_code), cs_code, "Coordinate System"
        )[0]
        dimension = int(self._required(dimension, "DIMENSION", cs_code))

        axes = []
        unit_codes = set()
        for name, orientation, uom in self._query("axes", cs_code, cs_code):
            name = self._required(name, "COORD_AXIS_NAME", cs_code)
            orientation = str(self._required(orientation, "COORD_AXIS_ORIENTATION", cs_code))
            try:
                direction = AxisOrientation.from_name(orientation)
            except ValueError:
                logger.warning(
                    "Axis %r of coordinate system %s has orientation %r; using OTHER",
                    name,
                    cs_code,
                    orientation,
                )
                direction = AxisOrientation.OTHER
            axes.append(AxisInfo(name, direction))
            unit_codes.add(self._code(self._required(uom, "UOM_CODE", cs_code)))

        if len(axes) != dimension:
            raise FactoryError(
                f"Coordinate system {cs_code} of {owner} declares {dimension} dimensions "
                f"but has {len(axes)} axes",
                code=cs_code,
            )
        if len(unit_codes) != 1:
            raise FactoryError(
                f"Coordinate system {cs_code} of {owner} doesn't use the same unit on all axes",
                code=cs_code,
                details={"units": sorted(unit_codes)},
            )
        return tuple(axes), self.create_unit(unit_codes.pop())

    def _create_projection(self, conversion_code: str) -> Projection:
        name, method_name = self._single_row(
            self._query("operation", conversion_code, conversion_code),
            conversion_code,
            "Coordinate_Operation",
        )
        name = self._required(name, "COORD_OP_NAME", conversion_code)
        classification = from_epsg_to_ogc(
            self._required(method_name, "COORD_OP_METHOD_NAME", conversion_code)
        )

        parameters = []
        for _, epsg_name, value, unit in self._create_parameters(conversion_code) or ():
            ogc_name = parameter_to_ogc(epsg_name)
            if not self.factory.is_parameter_known(classification, ogc_name):
                logger.warning(
                    "Parameter %r of conversion EPSG:%s is not used by %s; skipped",
                    epsg_name,
                    conversion_code,
                    classification,
                )
                continue
            if unit.kind == UnitKind.LINEAR:
                value = METRE.convert(value, unit)
            elif unit.kind == UnitKind.ANGULAR:
                value = DEGREE.convert(value, unit)
            elif unit.kind == UnitKind.SCALE:
                value = UNITY.convert(value, unit)
            parameters.append((ogc_name, value))

        return self.factory.create_projection(
            name, classification, parameters, **self._authority(conversion_code)
        )

    def _create_geographic(self, code: str, row: Tuple[Any, ...]) -> GeographicCoordinateSystem:
        name, _, cs_code, datum_code = row[:4]
        cs_code = self._code(self._required(cs_code, "COORD_SYS_CODE", code))
        datum_code = self._code(self._required(datum_code, "DATUM_CODE", code))
        axes, unit = self._create_axes(cs_code, f"EPSG:{code}")
        datum = self.create_horizontal_datum(datum_code)
        meridian_code = self._required(self._datum_row(datum_code)[3], "PRIME_MERIDIAN_CODE", datum_code)
        prime_meridian = self.create_prime_meridian(self._code(meridian_code))
        return self.factory.create_geographic_coordinate_system(
            name, unit, datum, prime_meridian, axes, **self._authority(code)
        )

    @log_performance()
    def create_coordinate_system(self, code: Code) -> CoordinateSystem:
        """
        Create a coordinate reference system of any supported kind.

        Raises:
            NoSuchAuthorityCodeError: If the code is not in the database
            FactoryError: For unsupported kinds or inconsistent records
        """
        code = self.normalize_code(code)
        row = self._single_row(self._query("crs", code, code), code, "Coordinate Reference System")
        name = self._required(row[0], "COORD_REF_SYS_NAME", code)
        kind = str(self._required(row[1], "COORD_REF_SYS_KIND", code)).strip().lower()
        (_, _, cs_code, datum_code, source_code, conversion_code, head_code, tail_code) = row
        logger.debug("Creating %s coordinate system EPSG:%s (%s)", kind, code, name)

        if kind == "geographic 2d":
            return self._create_geographic(code, row)

        if kind == "projected":
            geographic_cs = self.create_geographic_coordinate_system(
                self._code(self._required(source_code, "SOURCE_GEOGCRS_CODE", code))
            )
            projection = self._create_projection(
                self._code(self._required(conversion_code, "PROJECTION_CONV_CODE", code))
            )
            axes, unit = self._create_axes(
                self._code(self._required(cs_code, "COORD_SYS_CODE", code)), f"EPSG:{code}"
            )
            return self.factory.create_projected_coordinate_system(
                name, geographic_cs, projection, unit, axes, **self._authority(code)
            )

        if kind == "vertical":
            datum = self.create_vertical_datum(
                self._code(self._required(datum_code, "DATUM_CODE", code))
            )
            axes, unit = self._create_axes(
                self._code(self._required(cs_code, "COORD_SYS_CODE", code)), f"EPSG:{code}"
            )
            return self.factory.create_vertical_coordinate_system(
                name, datum, unit, axes[0], **self._authority(code)
            )

        if kind == "geocentric":
            datum_code = self._code(self._required(datum_code, "DATUM_CODE", code))
            datum = self.create_horizontal_datum(datum_code)
            meridian_code = self._required(
                self._datum_row(datum_code)[3], "PRIME_MERIDIAN_CODE", datum_code
            )
            axes, unit = self._create_axes(
                self._code(self._required(cs_code, "COORD_SYS_CODE", code)), f"EPSG:{code}"
            )
            return self.factory.create_geocentric_coordinate_system(
                name,
                unit,
                datum,
                self.create_prime_meridian(self._code(meridian_code)),
                axes,
                **self._authority(code),
            )

        if kind == "compound":
            head = self.create_coordinate_system(
                self._code(self._required(head_code, "CMPD_HORIZCRS_CODE", code))
            )
            tail = self.create_coordinate_system(
                self._code(self._required(tail_code, "CMPD_VERTCRS_CODE", code))
            )
            return self.factory.create_compound_coordinate_system(
                name, head, tail, **self._authority(code)
            )

        raise FactoryError(
            f"Coordinate reference system EPSG:{code} has unsupported kind {kind!r}",
            code=code,
            details={"kind": kind},
        )

    @log_performance()
    def create_object(self, code: Code) -> Any:
        """
        Create the object designated by a code, whatever its kind.

        Tables are searched in order: coordinate reference systems, datums,
        ellipsoids, prime meridians, then units.
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
            except NoSuchAuthorityCodeError as exc:
                # Only a miss on the code itself moves on to the next table
                if exc.code != code:
                    raise
        raise NoSuchAuthorityCodeError(code, AUTHORITY)

    def close(self) -> None:
        if self.owns_connection:
            logger.debug("Closing EPSG database connection")
            self.connection.close()


def open_epsg_factory(config: Optional[Settings] = None) -> AuthorityFactory:
    """
    Open the EPSG factory described by the settings.

    A configured sqlite database is used when set; otherwise codes are
    resolved through the PROJ database shipped with pyproj.

    Raises:
        ConfigurationError: If the configured database file doesn't exist
    """
    if config is None:
        from crskit.core.config import settings as config

    if config.epsg_database is not None:
        path = config.epsg_database
        if not path.is_file():
            raise ConfigurationError(
                f"EPSG database not found: {path}",
                config_key="epsg_database",
            )
        logger.info("Opening EPSG database %s (%s dialect)", path, config.sql_dialect)
        connection = sqlite3.connect(str(path))
        return EPSGFactory(
            connection, dialect=dialect_for_name(config.sql_dialect), owns_connection=True
        )

    from crskit.core.authority.proj import ProjAuthorityFactory

    logger.info("Using the PROJ database for EPSG codes")
    return ProjAuthorityFactory(AUTHORITY)
