"""
Shared fixtures: a sample EPSG database and well-known WKT strings.
"""

import sqlite3
from pathlib import Path
from typing import Iterator

import pytest

from crskit.core.authority.epsg import EPSGFactory

FIXTURES_DIR = Path(__file__).parent / "fixtures"
EPSG_SAMPLE_SQL = FIXTURES_DIR / "epsg_sample.sql"

WGS84_WKT = (
    'GEOGCS["WGS 84",'
    'DATUM["WGS_1984",SPHEROID["WGS 84",6378137,298.257223563,AUTHORITY["EPSG","7030"]],'
    'AUTHORITY["EPSG","6326"]],'
    'PRIMEM["Greenwich",0,AUTHORITY["EPSG","8901"]],'
    'UNIT["degree",0.0174532925199433,AUTHORITY["EPSG","9122"]],'
    'AXIS["Latitude",NORTH],AXIS["Longitude",EAST],'
    'AUTHORITY["EPSG","4326"]]'
)

BNG_WKT = (
    'PROJCS["OSGB 1936 / British National Grid",'
    'GEOGCS["OSGB 1936",'
    'DATUM["OSGB_1936",SPHEROID["Airy 1830",6377563.396,299.3249646,AUTHORITY["EPSG","7001"]],'
    "TOWGS84[446.448,-125.157,542.06,0.15,0.247,0.842,-20.489],"
    'AUTHORITY["EPSG","6277"]],'
    'PRIMEM["Greenwich",0,AUTHORITY["EPSG","8901"]],'
    'UNIT["degree",0.0174532925199433,AUTHORITY["EPSG","9122"]],'
    'AUTHORITY["EPSG","4277"]],'
    'PROJECTION["Transverse_Mercator"],'
    'PARAMETER["latitude_of_origin",49],'
    'PARAMETER["central_meridian",-2],'
    'PARAMETER["scale_factor",0.9996012717],'
    'PARAMETER["false_easting",400000],'
    'PARAMETER["false_northing",-100000],'
    'UNIT["metre",1,AUTHORITY["EPSG","9001"]],'
    'AXIS["Easting",EAST],AXIS["Northing",NORTH],'
    'AUTHORITY["EPSG","27700"]]'
)


def load_sample_database(connection: sqlite3.Connection) -> None:
    """Create the sample EPSG tables in an open sqlite connection."""
    connection.executescript(EPSG_SAMPLE_SQL.read_text(encoding="utf-8"))
    connection.commit()


@pytest.fixture
def epsg_connection() -> Iterator[sqlite3.Connection]:
    """In-memory sqlite database holding the sample EPSG tables."""
    connection = sqlite3.connect(":memory:")
    load_sample_database(connection)
    yield connection
    connection.close()


@pytest.fixture
def epsg_factory(epsg_connection: sqlite3.Connection) -> EPSGFactory:
    """EPSG factory over the sample database, Access dialect."""
    return EPSGFactory(epsg_connection)


@pytest.fixture
def epsg_database_path(tmp_path: Path) -> Path:
    """Sample EPSG database written to a sqlite file."""
    path = tmp_path / "epsg.db"
    connection = sqlite3.connect(str(path))
    try:
        load_sample_database(connection)
    finally:
        connection.close()
    return path


@pytest.fixture
def wgs84_wkt() -> str:
    return WGS84_WKT


@pytest.fixture
def bng_wkt() -> str:
    return BNG_WKT
