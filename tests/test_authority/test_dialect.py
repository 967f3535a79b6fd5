"""
Tests for SQL dialect rewriting.
"""

import pytest

from crskit.core.authority.dialect import ACCESS, ANSI, ORACLE, POSTGRES, dialect_for_name
from crskit.core.errors import ConfigurationError

QUERY = (
    "SELECT A.UOM_CODE, A.UNIT_OF_MEAS_NAME FROM [Unit of Measure] as A "
    "WHERE A.UOM_CODE = ?"
)


class TestAdapt:
    """Tests for SQLDialect.adapt."""

    def test_access_unchanged(self) -> None:
        """Test the Access dialect leaves queries as written."""
        assert ACCESS.adapt(QUERY) == QUERY

    def test_ansi_quotes_identifiers(self) -> None:
        """Test brackets become double quotes."""
        assert ANSI.adapt(QUERY) == (
            'SELECT A.UOM_CODE, A.UNIT_OF_MEAS_NAME FROM "Unit of Measure" as A '
            "WHERE A.UOM_CODE = ?"
        )

    def test_postgres_quotes_identifiers(self) -> None:
        """Test PostgreSQL quoting matches ANSI."""
        assert POSTGRES.adapt(QUERY) == ANSI.adapt(QUERY)

    def test_oracle_drops_as(self) -> None:
        """Test Oracle removes AS before table aliases."""
        sql = ORACLE.adapt(QUERY)

        assert " as " not in sql
        assert 'FROM "Unit of Measure" A WHERE' in sql

    def test_oracle_keeps_words_containing_as(self) -> None:
        """Test only the standalone word is removed."""
        sql = ORACLE.adapt("SELECT BASE_CRS_CODE, AREA FROM [Coordinate Reference System] as C")

        assert sql == 'SELECT BASE_CRS_CODE, AREA FROM "Coordinate Reference System" C'


class TestPrepare:
    """Tests for DB-API paramstyle conversion."""

    def test_qmark(self) -> None:
        """Test qmark keeps placeholders."""
        sql, params = ACCESS.prepare(QUERY, ["9001"])

        assert sql == QUERY
        assert params == ("9001",)

    def test_format_escapes_percent(self) -> None:
        """Test format style uses %s and escapes literal percent signs."""
        sql, params = ANSI.prepare("SELECT * FROM [T] WHERE NAME LIKE '%x' AND CODE = ?", [7], "format")

        assert sql == "SELECT * FROM \"T\" WHERE NAME LIKE '%%x' AND CODE = %s"
        assert params == (7,)

    def test_pyformat(self) -> None:
        """Test pyformat is handled like format."""
        sql, _ = POSTGRES.prepare("SELECT * FROM [T] WHERE A = ? AND B = ?", [1, 2], "pyformat")

        assert sql == 'SELECT * FROM "T" WHERE A = %s AND B = %s'

    def test_numeric(self) -> None:
        """Test numbered placeholders start at 1."""
        sql, params = ORACLE.prepare("SELECT * FROM [T] as X WHERE A = ? AND B = ?", [1, 2], "numeric")

        assert sql == 'SELECT * FROM "T" X WHERE A = :1 AND B = :2'
        assert params == (1, 2)

    def test_named(self) -> None:
        """Test named placeholders with a parameter mapping."""
        sql, params = ANSI.prepare("SELECT * FROM [T] WHERE A = ? AND B = ?", ["x", "y"], "named")

        assert sql == 'SELECT * FROM "T" WHERE A = :p1 AND B = :p2'
        assert params == {"p1": "x", "p2": "y"}

    def test_statement_without_parameters(self) -> None:
        """Test the SQL can be prepared apart from its values."""
        sql = ORACLE.prepare_statement("SELECT * FROM [T] as X WHERE A = ?", "named")

        assert sql == 'SELECT * FROM "T" X WHERE A = :p1'

    @pytest.mark.parametrize(
        "paramstyle, expected",
        [("qmark", ("x", 2)), ("numeric", ("x", 2)), ("named", {"p1": "x", "p2": 2})],
    )
    def test_bind(self, paramstyle: str, expected) -> None:
        """Test values are arranged to match the rewritten placeholders."""
        assert ACCESS.bind(["x", 2], paramstyle) == expected

    def test_unknown_paramstyle(self) -> None:
        """Test unsupported paramstyles raise ConfigurationError."""
        with pytest.raises(ConfigurationError):
            ACCESS.prepare(QUERY, ["9001"], "dollar")


class TestDialectForName:
    """Tests for dialect_for_name."""

    @pytest.mark.parametrize(
        "name, expected",
        [("access", ACCESS), ("ANSI", ANSI), (" Oracle ", ORACLE), ("postgres", POSTGRES)],
    )
    def test_known(self, name: str, expected) -> None:
        """Test lookup ignores case and whitespace."""
        assert dialect_for_name(name) is expected

    def test_unknown(self) -> None:
        """Test unknown names list the available dialects."""
        with pytest.raises(ConfigurationError) as exc_info:
            dialect_for_name("mysql")

        assert exc_info.value.details["config_key"] == "sql_dialect"
        assert "access, ansi, oracle, postgres" in exc_info.value.suggestions[0]
