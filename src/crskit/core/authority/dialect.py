"""
SQL dialects for the EPSG database.

Queries are written once in MS-Access style: bracketed table names,
``as`` before table aliases and ``?`` placeholders. A dialect rewrites
them for another database engine and DB-API parameter style.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, Sequence, Tuple, Union

from crskit.core.errors import ConfigurationError

_BRACKETED = re.compile(r"\[([^\]]+)\]")

Parameters = Union[Sequence[Any], Dict[str, Any]]


@dataclass(frozen=True)
class SQLDialect:
    """
    Rewrites Access-style SQL.

    Attributes:
        name: Dialect name
        quote_identifiers: Turn ``[Name]`` into ``"Name"``
        drop_table_alias_as: Remove ``" as "``; Oracle rejects ``AS``
            before a table alias
    """

    name: str
    quote_identifiers: bool = False
    drop_table_alias_as: bool = False

    def adapt(self, sql: str) -> str:
        """Rewrite identifiers and aliases for this dialect."""
        if self.quote_identifiers:
            sql = _BRACKETED.sub(r'"\1"', sql)
        if self.drop_table_alias_as:
            sql = sql.replace(" as ", " ")
        return sql

    def prepare(
        self, sql: str, parameters: Sequence[Any], paramstyle: str = "qmark"
    ) -> Tuple[str, Parameters]:
        """
        Adapt a query and its positional parameters to a DB-API paramstyle.

        Args:
            sql: Access-style query with ``?`` placeholders
            parameters: Positional parameter values
            paramstyle: Driver paramstyle (qmark, format, pyformat, numeric, named)

        Returns:
            Tuple of (sql, parameters) ready for ``cursor.execute``

        Raises:
            ConfigurationError: For an unknown paramstyle
        """
        return self.prepare_statement(sql, paramstyle), self.bind(parameters, paramstyle)

    def prepare_statement(self, sql: str, paramstyle: str = "qmark") -> str:
        """Adapt a query and rewrite its ``?`` placeholders for a paramstyle."""
        sql = self.adapt(sql)
        if paramstyle == "qmark":
            return sql

        pieces = sql.split("?")
        if paramstyle in ("format", "pyformat"):
            return "%s".join(piece.replace("%", "%%") for piece in pieces)
        if paramstyle == "numeric":
            return _join(pieces, lambda i: f":{i + 1}")
        if paramstyle == "named":
            return _join(pieces, lambda i: f":p{i + 1}")
        raise ConfigurationError(f"Unsupported DB-API paramstyle: {paramstyle}")

    @staticmethod
    def bind(parameters: Sequence[Any], paramstyle: str = "qmark") -> Parameters:
        """Arrange positional parameter values for a paramstyle."""
        if paramstyle == "named":
            return {f"p{i + 1}": value for i, value in enumerate(parameters)}
        return tuple(parameters)


def _join(pieces: Sequence[str], placeholder: Any) -> str:
    out = [pieces[0]]
    for index, piece in enumerate(pieces[1:]):
        out.append(placeholder(index))
        out.append(piece)
    return "".join(out)


ACCESS = SQLDialect("access")
ANSI = SQLDialect("ansi", quote_identifiers=True)
ORACLE = SQLDialect("oracle", quote_identifiers=True, drop_table_alias_as=True)
POSTGRES = SQLDialect("postgres", quote_identifiers=True)

_DIALECTS = {d.name: d for d in (ACCESS, ANSI, ORACLE, POSTGRES)}


def dialect_for_name(name: str) -> SQLDialect:
    """
    Look up a dialect by name, ignoring case.

    Raises:
        ConfigurationError: If the name is unknown
    """
    try:
        return _DIALECTS[name.strip().lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown SQL dialect: {name}",
            config_key="sql_dialect",
            suggestions=[f"Use one of: {', '.join(sorted(_DIALECTS))}"],
        ) from None
