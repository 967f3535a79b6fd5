"""
Authority factories.

Objects are looked up by authority code, either in an EPSG SQL database
or in the PROJ database shipped with pyproj.
"""

from crskit.core.authority.base import AuthorityFactory
from crskit.core.authority.dialect import ACCESS, ANSI, ORACLE, POSTGRES, SQLDialect, dialect_for_name
from crskit.core.authority.epsg import EPSGFactory, from_epsg_to_ogc, open_epsg_factory, parameter_to_ogc
from crskit.core.authority.proj import ProjAuthorityFactory

__all__ = [
    "ACCESS",
    "ANSI",
    "AuthorityFactory",
    "EPSGFactory",
    "ORACLE",
    "POSTGRES",
    "ProjAuthorityFactory",
    "SQLDialect",
    "dialect_for_name",
    "from_epsg_to_ogc",
    "open_epsg_factory",
    "parameter_to_ogc",
]
