"""
Tests for the SQL-backed EPSG factory.
"""

import logging
import math
import sqlite3
from pathlib import Path

import pytest

from crskit.core.authority.dialect import ANSI, ORACLE, SQLDialect
from crskit.core.authority.epsg import (
    EPSGFactory,
    from_epsg_to_ogc,
    open_epsg_factory,
    parameter_to_ogc,
)
from crskit.core.config import Settings
from crskit.core.errors import ConfigurationError, FactoryError, NoSuchAuthorityCodeError
from crskit.models.cs import (
    AxisInfo,
    CompoundCoordinateSystem,
    GeocentricCoordinateSystem,
    GeographicCoordinateSystem,
    ProjectedCoordinateSystem,
    VerticalCoordinateSystem,
)
from crskit.models.datum import Ellipsoid, HorizontalDatum, PrimeMeridian, VerticalDatum
from crskit.models.enums import AxisOrientation, DatumType
from crskit.models.info import Authority
from crskit.models.units import UnitKind


class TestNameTranslation:
    """Tests for EPSG to OGC name translation."""

    @pytest.mark.parametrize(
        "method, expected",
        [
            ("Transverse Mercator", "Transverse_Mercator"),
            ("Lambert Conic Conformal (2SP)", "Lambert_Conformal_Conic_2SP"),
            ("Mercator (variant A)", "Mercator_1SP"),
            ("Oblique Stereographic", "Oblique_Stereographic"),
            ("Cassini-Soldner", "Cassini-Soldner"),
        ],
    )
    def test_from_epsg_to_ogc(self, method: str, expected: str) -> None:
        """Test method names map onto OGC classifications."""
        assert from_epsg_to_ogc(method) == expected

    def test_parameter_to_ogc(self) -> None:
        """Test parameter names map onto OGC names."""
        assert parameter_to_ogc("Longitude of natural origin") == "central_meridian"
        assert parameter_to_ogc("Azimuth of initial line") == "azimuth_of_initial_line"


class TestCodes:
    """Tests for code normalization."""

    def test_prefixed_code(self, epsg_factory: EPSGFactory) -> None:
        """Test the authority prefix is optional and case-insensitive."""
        assert epsg_factory.normalize_code("EPSG:4326") == "4326"
        assert epsg_factory.normalize_code("epsg: 4326 ") == "4326"
        assert epsg_factory.normalize_code(4326) == "4326"

    def test_foreign_prefix(self, epsg_factory: EPSGFactory) -> None:
        """Test codes of another authority are not found."""
        with pytest.raises(NoSuchAuthorityCodeError) as exc_info:
            epsg_factory.normalize_code("ESRI:102100")

        assert exc_info.value.authority == "ESRI"

    def test_non_numeric(self, epsg_factory: EPSGFactory) -> None:
        """Test non-numeric codes are not found."""
        with pytest.raises(NoSuchAuthorityCodeError):
            epsg_factory.create_unit("metre")


class TestUnits:
    """Tests for create_unit."""

    def test_metre(self, epsg_factory: EPSGFactory) -> None:
        """Test a linear unit."""
        unit = epsg_factory.create_unit(9001)

        assert unit.name == "metre"
        assert unit.kind == UnitKind.LINEAR
        assert unit.factor == 1.0
        assert unit.authority == Authority("EPSG", "9001")

    def test_degree(self, epsg_factory: EPSGFactory) -> None:
        """Test angular factors are B / C."""
        unit = epsg_factory.create_unit("9102")

        assert unit.kind == UnitKind.ANGULAR
        assert unit.factor == pytest.approx(math.pi / 180.0)

    def test_sexagesimal(self, epsg_factory: EPSGFactory) -> None:
        """Test the DDD.MMSSsss unit has no factor columns."""
        unit = epsg_factory.create_unit(9110)

        assert unit.sexagesimal
        assert unit.code == "9110"
        assert unit.to_base(52.3) == pytest.approx(math.radians(52.5))

    def test_unity(self, epsg_factory: EPSGFactory) -> None:
        """Test scale units."""
        assert epsg_factory.create_unit(9201).kind == UnitKind.SCALE
        assert epsg_factory.create_unit(9202).factor == pytest.approx(1e-6)

    def test_packed_dms(self, epsg_factory: EPSGFactory) -> None:
        """Test DDDMMSS.sss values are unpacked."""
        unit = epsg_factory.create_unit(9107)

        assert unit.sexagesimal
        assert unit.sexagesimal_scale == 10000.0
        assert unit.code == "9107"
        assert unit.name == "degree minute second"
        assert unit.to_base(523000) == pytest.approx(math.radians(52.5))

    def test_hemisphere_dms(self, epsg_factory: EPSGFactory) -> None:
        """Test the hemisphere form reads like the packed one."""
        unit = epsg_factory.create_unit(9108)

        assert unit.code == "9108"
        assert unit.to_base(-13000) == pytest.approx(math.radians(-1.5))

    def test_unsupported(self, epsg_factory: EPSGFactory) -> None:
        """Test sexagesimal DM is refused."""
        with pytest.raises(FactoryError) as exc_info:
            epsg_factory.create_unit(9111)

        assert exc_info.value.code == "9111"

    def test_missing(self, epsg_factory: EPSGFactory) -> None:
        """Test unknown codes."""
        with pytest.raises(NoSuchAuthorityCodeError) as exc_info:
            epsg_factory.create_unit(9999)

        assert exc_info.value.code == "9999"
        assert exc_info.value.error_code == "NO_SUCH_AUTHORITY_CODE"


class TestEllipsoidsAndDatums:
    """Tests for ellipsoids, prime meridians and datums."""

    def test_flattened_ellipsoid(self, epsg_factory: EPSGFactory) -> None:
        """Test an ellipsoid defined by inverse flattening."""
        ellipsoid = epsg_factory.create_ellipsoid(7030)

        assert ellipsoid.name == "WGS 84"
        assert ellipsoid.semi_major_axis == 6378137.0
        assert ellipsoid.inverse_flattening == 298.257223563
        assert ellipsoid.ivf_definitive

    def test_sphere_from_axes(self, epsg_factory: EPSGFactory) -> None:
        """Test an ellipsoid defined by its two axes."""
        ellipsoid = epsg_factory.create_ellipsoid(7035)

        assert ellipsoid.is_sphere
        assert not ellipsoid.ivf_definitive

    def test_both_definitions_warn(
        self, epsg_factory: EPSGFactory, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test inverse flattening wins over a redundant minor axis."""
        with caplog.at_level(logging.WARNING, logger="crskit.core.authority.epsg"):
            ellipsoid = epsg_factory.create_ellipsoid(7004)

        assert ellipsoid.inverse_flattening == 299.1528128
        assert "both inverse flattening and semi-minor axis" in caplog.text

    def test_neither_definition(self, epsg_factory: EPSGFactory) -> None:
        """Test an ellipsoid missing both definitions."""
        with pytest.raises(FactoryError):
            epsg_factory.create_ellipsoid(7099)

    def test_prime_meridian(self, epsg_factory: EPSGFactory) -> None:
        """Test Greenwich."""
        meridian = epsg_factory.create_prime_meridian(8901)

        assert meridian.longitude == 0.0
        assert meridian.angular_unit.code == "9102"

    def test_prime_meridian_missing_unit(self, epsg_factory: EPSGFactory) -> None:
        """Test a missing dependent record is reported with its own code."""
        with pytest.raises(NoSuchAuthorityCodeError) as exc_info:
            epsg_factory.create_prime_meridian(8903)

        assert exc_info.value.code == "9105"

    def test_horizontal_datum(self, epsg_factory: EPSGFactory) -> None:
        """Test Bursa-Wolf parameters come from the position vector operation."""
        datum = epsg_factory.create_horizontal_datum(6277)

        assert isinstance(datum, HorizontalDatum)
        assert datum.datum_type is DatumType.GEOCENTRIC
        assert datum.ellipsoid.name == "Airy 1830"
        shift = datum.to_wgs84
        assert shift.dx == pytest.approx(446.448)
        assert shift.dy == pytest.approx(-125.157)
        assert shift.dz == pytest.approx(542.06)
        assert shift.ex == pytest.approx(0.15)
        assert shift.ey == pytest.approx(0.247)
        assert shift.ez == pytest.approx(0.842)
        assert shift.ppm == pytest.approx(-20.489)
        assert shift.area_of_use == "UK - Great Britain; Isle of Man"

    def test_wgs84_datum(self, epsg_factory: EPSGFactory) -> None:
        """Test WGS 84 has no shift to itself."""
        datum = epsg_factory.create_horizontal_datum("EPSG:6326")

        assert datum.is_wgs84
        assert datum.to_wgs84 is None

    def test_geocentric_translations(self, epsg_factory: EPSGFactory) -> None:
        """Test a three parameter operation leaves rotations and scale at zero."""
        shift = epsg_factory.create_horizontal_datum(6230).to_wgs84

        assert (shift.dx, shift.dy, shift.dz) == pytest.approx((-87.0, -98.0, -121.0))
        assert (shift.ex, shift.ey, shift.ez, shift.ppm) == (0.0, 0.0, 0.0, 0.0)
        assert shift.area_of_use == "Europe - west"

    def test_coordinate_frame_rotation(self, epsg_factory: EPSGFactory) -> None:
        """Test coordinate frame rotations are negated into position vector ones."""
        shift = epsg_factory.create_horizontal_datum(6313).to_wgs84

        assert (shift.dx, shift.dy, shift.dz) == pytest.approx((-99.059, 53.322, -112.486))
        assert shift.ex == pytest.approx(0.419)
        assert shift.ey == pytest.approx(-0.83)
        assert shift.ez == pytest.approx(1.885)
        assert shift.ppm == pytest.approx(-1.0)

    def test_vertical_datum(self, epsg_factory: EPSGFactory) -> None:
        """Test vertical datums."""
        datum = epsg_factory.create_vertical_datum(5101)

        assert isinstance(datum, VerticalDatum)
        assert datum.datum_type is DatumType.ELLIPSOIDAL

    def test_unsupported_datum_type(self, epsg_factory: EPSGFactory) -> None:
        """Test engineering datums are refused."""
        with pytest.raises(FactoryError) as exc_info:
            epsg_factory.create_datum(9300)

        assert exc_info.value.details["datum_type"] == "engineering"

    def test_narrowing(self, epsg_factory: EPSGFactory) -> None:
        """Test asking for the wrong kind of datum."""
        with pytest.raises(FactoryError) as exc_info:
            epsg_factory.create_horizontal_datum(5101)

        assert exc_info.value.error_code == "UNEXPECTED_OBJECT_TYPE"


class TestCoordinateSystems:
    """Tests for create_coordinate_system and its narrowing variants."""

    def test_geographic(self, epsg_factory: EPSGFactory) -> None:
        """Test WGS 84 with latitude-first axes."""
        cs = epsg_factory.create_geographic_coordinate_system("EPSG:4326")

        assert isinstance(cs, GeographicCoordinateSystem)
        assert cs.authority == Authority("EPSG", "4326")
        assert cs.axes == (
            AxisInfo("Geodetic latitude", AxisOrientation.NORTH),
            AxisInfo("Geodetic longitude", AxisOrientation.EAST),
        )
        assert cs.angular_unit.code == "9122"
        assert cs.prime_meridian.code == "8901"
        assert cs.horizontal_datum.is_wgs84

    def test_projected(self, epsg_factory: EPSGFactory) -> None:
        """Test the British National Grid."""
        cs = epsg_factory.create_projected_coordinate_system(27700)

        assert isinstance(cs, ProjectedCoordinateSystem)
        assert cs.geographic_cs.code == "4277"
        assert cs.projection.name == "British National Grid"
        assert cs.projection.classification == "Transverse_Mercator"
        assert cs.projection.code == "19916"
        assert cs.projection.parameter_names == (
            "latitude_of_origin",
            "central_meridian",
            "scale_factor",
            "false_easting",
            "false_northing",
        )
        assert cs.projection.get("latitude_of_origin") == pytest.approx(49.0)
        assert cs.projection.get("central_meridian") == pytest.approx(-2.0)
        assert cs.projection.get("scale_factor") == pytest.approx(0.9996012717)
        assert cs.projection.get("false_easting") == pytest.approx(400000.0)
        assert cs.projection.get("false_northing") == pytest.approx(-100000.0)
        assert cs.axes == (
            AxisInfo("Easting", AxisOrientation.EAST),
            AxisInfo("Northing", AxisOrientation.NORTH),
        )
        assert cs.horizontal_datum.to_wgs84 is not None

    def test_vertical(self, epsg_factory: EPSGFactory) -> None:
        """Test a vertical system."""
        cs = epsg_factory.create_vertical_coordinate_system(5701)

        assert isinstance(cs, VerticalCoordinateSystem)
        assert cs.axes == (AxisInfo("Gravity-related height", AxisOrientation.UP),)
        assert cs.vertical_datum.code == "5101"

    def test_compound(self, epsg_factory: EPSGFactory) -> None:
        """Test a compound of projected and vertical systems."""
        cs = epsg_factory.create_compound_coordinate_system(7405)

        assert isinstance(cs, CompoundCoordinateSystem)
        assert cs.dimension == 3
        assert cs.head.code == "27700"
        assert cs.tail.code == "5701"

    def test_geocentric(self, epsg_factory: EPSGFactory) -> None:
        """Test earth-centred systems get three metre axes."""
        cs = epsg_factory.create_coordinate_system(4978)

        assert isinstance(cs, GeocentricCoordinateSystem)
        assert cs.dimension == 3
        assert cs.linear_unit.code == "9001"
        assert cs.horizontal_datum.is_wgs84
        assert cs.prime_meridian.name == "Greenwich"
        assert [axis.orientation for axis in cs.axes] == [
            AxisOrientation.OTHER,
            AxisOrientation.EAST,
            AxisOrientation.NORTH,
        ]

    def test_axis_count_mismatch(self, epsg_factory: EPSGFactory) -> None:
        """Test a coordinate system with fewer axes than its dimension."""
        with pytest.raises(FactoryError) as exc_info:
            epsg_factory.create_coordinate_system(4999)

        assert exc_info.value.code == "6999"
        assert "declares 3 dimensions but has 2 axes" in str(exc_info.value)

    def test_mixed_axis_units(self, epsg_factory: EPSGFactory) -> None:
        """Test axes must share one unit."""
        with pytest.raises(FactoryError) as exc_info:
            epsg_factory.create_coordinate_system(4998)

        assert exc_info.value.code == "6998"
        assert exc_info.value.details["units"] == ["9102", "9122"]

    def test_unsupported_kind(self, epsg_factory: EPSGFactory) -> None:
        """Test engineering systems are refused."""
        with pytest.raises(FactoryError) as exc_info:
            epsg_factory.create_coordinate_system(5800)

        assert exc_info.value.details["kind"] == "engineering"

    def test_narrowing(self, epsg_factory: EPSGFactory) -> None:
        """Test asking a projected code for a geographic system."""
        with pytest.raises(FactoryError) as exc_info:
            epsg_factory.create_geographic_coordinate_system(27700)

        assert exc_info.value.error_code == "UNEXPECTED_OBJECT_TYPE"

    def test_horizontal_accepts_projected(self, epsg_factory: EPSGFactory) -> None:
        """Test projected systems are horizontal."""
        assert epsg_factory.create_horizontal_coordinate_system(27700).code == "27700"

    def test_missing(self, epsg_factory: EPSGFactory) -> None:
        """Test unknown codes."""
        with pytest.raises(NoSuchAuthorityCodeError):
            epsg_factory.create_coordinate_system(3857)


class TestCreateObject:
    """Tests for create_object."""

    @pytest.mark.parametrize(
        "code, cls",
        [
            ("4326", GeographicCoordinateSystem),
            ("6326", HorizontalDatum),
            ("7030", Ellipsoid),
            ("8901", PrimeMeridian),
        ],
    )
    def test_tables_in_turn(self, epsg_factory: EPSGFactory, code: str, cls: type) -> None:
        """Test each table is tried in turn."""
        assert isinstance(epsg_factory.create_object(code), cls)

    def test_unit(self, epsg_factory: EPSGFactory) -> None:
        """Test units are the last table searched."""
        assert epsg_factory.create_object("EPSG:9001").name == "metre"

    def test_nested_miss_is_raised(self, epsg_factory: EPSGFactory) -> None:
        """Test a missing dependency isn't mistaken for a missing code."""
        with pytest.raises(NoSuchAuthorityCodeError) as exc_info:
            epsg_factory.create_object(8903)

        assert exc_info.value.code == "9105"

    def test_not_found(self, epsg_factory: EPSGFactory) -> None:
        """Test a code found in no table."""
        with pytest.raises(NoSuchAuthorityCodeError) as exc_info:
            epsg_factory.create_object(1)

        assert exc_info.value.code == "1"

    def test_describe(self, epsg_factory: EPSGFactory) -> None:
        """Test describe returns the object name."""
        assert epsg_factory.describe(27700) == "OSGB 1936 / British National Grid"


class TestDatabase:
    """Tests for dialects, duplicates and database failures."""

    @pytest.mark.parametrize("dialect", [ANSI, ORACLE])
    def test_other_dialects(self, epsg_connection: sqlite3.Connection, dialect) -> None:
        """Test quoted identifiers and Oracle aliases run on sqlite."""
        factory = EPSGFactory(epsg_connection, dialect=dialect)

        cs = factory.create_compound_coordinate_system(7405)

        assert cs.head.horizontal_datum.to_wgs84 is not None

    def test_named_paramstyle(self, epsg_connection: sqlite3.Connection) -> None:
        """Test placeholders rewritten for the named DB-API style."""
        factory = EPSGFactory(epsg_connection, paramstyle="named")

        assert factory.create_ellipsoid(7001).name == "Airy 1830"
        assert factory.create_horizontal_datum(6277).to_wgs84 is not None

    def test_statements_adapted_once(
        self, epsg_connection: sqlite3.Connection, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test each query is rewritten for the dialect only on first use."""
        adapted = []
        original = SQLDialect.prepare_statement

        def counting(dialect, sql, paramstyle="qmark"):
            adapted.append(sql)
            return original(dialect, sql, paramstyle)

        monkeypatch.setattr(SQLDialect, "prepare_statement", counting)
        factory = EPSGFactory(epsg_connection, dialect=ANSI, paramstyle="named")

        factory.create_unit(9001)
        factory.create_unit(9002)
        factory.create_unit(9001)

        assert len(adapted) == 1
        assert factory.create_unit(9002).name == "foot"

    def test_identical_duplicates(self, epsg_connection: sqlite3.Connection) -> None:
        """Test identical duplicate records are tolerated, disagreeing ones are not."""
        epsg_connection.executescript(
            """
            DROP TABLE [Prime Meridian];
            CREATE TABLE [Prime Meridian] (
                PRIME_MERIDIAN_CODE INTEGER,
                PRIME_MERIDIAN_NAME TEXT,
                GREENWICH_LONGITUDE REAL,
                UOM_CODE INTEGER
            );
            INSERT INTO [Prime Meridian] VALUES (8901, 'Greenwich', 0, 9102);
            INSERT INTO [Prime Meridian] VALUES (8901, 'Greenwich', 0, 9102);
            INSERT INTO [Prime Meridian] VALUES (8902, 'Lisbon', -9.0754862, 9110);
            INSERT INTO [Prime Meridian] VALUES (8902, 'Lisbon', -9.1, 9110);
            """
        )
        factory = EPSGFactory(epsg_connection)

        assert factory.create_prime_meridian(8901).name == "Greenwich"
        with pytest.raises(FactoryError) as exc_info:
            factory.create_prime_meridian(8902)

        assert exc_info.value.details["table"] == "Prime Meridian"

    def test_database_error(self, epsg_connection: sqlite3.Connection) -> None:
        """Test driver errors become FactoryError with the cause chained."""
        epsg_connection.execute("DROP TABLE [Ellipsoid]")
        factory = EPSGFactory(epsg_connection)

        with pytest.raises(FactoryError) as exc_info:
            factory.create_ellipsoid(7030)

        assert exc_info.value.error_code == "DATABASE_ERROR"
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)

    def test_close_owned_connection(self, epsg_database_path: Path) -> None:
        """Test the context manager closes an owned connection."""
        connection = sqlite3.connect(str(epsg_database_path))
        with EPSGFactory(connection, owns_connection=True) as factory:
            factory.create_unit(9001)

        with pytest.raises(sqlite3.ProgrammingError):
            connection.cursor()

    def test_close_borrowed_connection(self, epsg_connection: sqlite3.Connection) -> None:
        """Test a borrowed connection stays open."""
        with EPSGFactory(epsg_connection) as factory:
            factory.create_unit(9001)

        epsg_connection.cursor().close()


class TestOpenFactory:
    """Tests for open_epsg_factory."""

    def test_sqlite_database(self, epsg_database_path: Path) -> None:
        """Test a configured database file is opened with its dialect."""
        config = Settings(_env_file=None, epsg_database=epsg_database_path, sql_dialect="oracle")

        with open_epsg_factory(config) as factory:
            assert isinstance(factory, EPSGFactory)
            assert factory.dialect is ORACLE
            assert factory.create_projected_coordinate_system(27700).code == "27700"

    def test_missing_database(self, tmp_path: Path) -> None:
        """Test a configured path that doesn't exist."""
        config = Settings(_env_file=None, epsg_database=tmp_path / "missing.db")

        with pytest.raises(ConfigurationError) as exc_info:
            open_epsg_factory(config)

        assert exc_info.value.details["config_key"] == "epsg_database"
