"""
crskit - coordinate reference systems: datums, Well-Known Text and EPSG codes.

This package provides the coordinate system object model, a WKT 1 reader
and writer, and authority factories resolving EPSG codes from a SQL
database or the PROJ database.
"""

__version__ = "0.1.0"

from crskit.core.factory import CoordinateSystemFactory
from crskit.core.wkt import format_wkt, parse_wkt

__all__ = ["CoordinateSystemFactory", "__version__", "format_wkt", "parse_wkt"]
