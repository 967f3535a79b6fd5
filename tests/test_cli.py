"""
Tests for the command line interface.
"""

import io
import logging
from pathlib import Path
from typing import Iterator

import pytest

from crskit.cli import build_parser, main
from crskit.core.config import Settings


@pytest.fixture(autouse=True)
def restore_root_logger() -> Iterator[None]:
    """main() reconfigures logging; put the root logger back afterwards."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def wkt_file(tmp_path: Path, wgs84_wkt: str) -> Path:
    path = tmp_path / "wgs84.prj"
    path.write_text(wgs84_wkt, encoding="utf-8")
    return path


class TestParser:
    """Tests for argument parsing."""

    def test_command_required(self) -> None:
        """Test running without a command is a usage error."""
        with pytest.raises(SystemExit):
            build_parser().parse_args([])

    def test_epsg_options(self, tmp_path: Path) -> None:
        """Test epsg command options."""
        args = build_parser().parse_args(
            ["epsg", "4326", "EPSG:27700", "--database", str(tmp_path / "epsg.db"), "--dialect", "oracle"]
        )

        assert args.codes == ["4326", "EPSG:27700"]
        assert args.database == tmp_path / "epsg.db"
        assert args.dialect == "oracle"

    def test_unknown_dialect(self) -> None:
        """Test dialect choices are enforced."""
        with pytest.raises(SystemExit):
            build_parser().parse_args(["epsg", "4326", "--dialect", "mysql"])

    def test_log_level_default(self) -> None:
        """Test the option is unset unless given."""
        assert build_parser().parse_args(["tree", "-"]).log_level is None

    def test_log_level_from_settings(
        self, wkt_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        """Test the configured level applies when the option is omitted."""
        monkeypatch.setattr("crskit.cli.settings", Settings(_env_file=None, log_level="ERROR"))

        assert main(["tree", str(wkt_file)]) == 0
        assert logging.getLogger().level == logging.ERROR

        assert main(["--log-level", "INFO", "tree", str(wkt_file)]) == 0
        assert logging.getLogger().level == logging.INFO

    def test_log_level_fallback(
        self, wkt_file: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        """Test WARNING applies when neither option nor setting is given."""
        monkeypatch.setattr("crskit.cli.settings", Settings(_env_file=None, log_level=None))

        assert main(["tree", str(wkt_file)]) == 0
        assert logging.getLogger().level == logging.WARNING


class TestFormat:
    """Tests for the format command."""

    def test_format_file(self, wkt_file: Path, capsys: pytest.CaptureFixture) -> None:
        """Test WKT is reformatted with indentation."""
        assert main(["format", str(wkt_file), "--indent", "2"]) == 0

        out = capsys.readouterr().out
        assert out.startswith('GEOGCS["WGS 84",\n  DATUM["WGS_1984",\n    SPHEROID[')
        assert out.rstrip().endswith('AUTHORITY["EPSG","4326"]]')

    def test_format_stdin(
        self, wgs84_wkt: str, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
    ) -> None:
        """Test reading WKT from standard input."""
        monkeypatch.setattr("sys.stdin", io.StringIO(wgs84_wkt))

        assert main(["format", "-", "--indent", "4"]) == 0
        assert 'AXIS["Latitude",NORTH]' in capsys.readouterr().out

    def test_malformed_wkt(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        """Test parse errors are reported on stderr with exit status 1."""
        path = tmp_path / "bad.prj"
        path.write_text('GEOGCS["WGS 84"', encoding="utf-8")

        assert main(["format", str(path)]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert captured.err.startswith("crskit: WKT_PARSE_ERROR")

    def test_missing_file(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        """Test unreadable files are reported."""
        assert main(["format", str(tmp_path / "missing.prj")]) == 1
        assert "crskit:" in capsys.readouterr().err


class TestTree:
    """Tests for the tree command."""

    def test_tree(self, wkt_file: Path, capsys: pytest.CaptureFixture) -> None:
        """Test the element tree is printed one node per line."""
        assert main(["tree", str(wkt_file)]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0] == "GEOGCS"
        assert lines[1] == '  "WGS 84"'
        assert lines[2] == "  DATUM"
        assert '      "EPSG"' in lines


class TestEpsg:
    """Tests for the epsg command."""

    def test_epsg_database(self, epsg_database_path: Path, capsys: pytest.CaptureFixture) -> None:
        """Test codes are looked up in a sqlite database."""
        status = main(["epsg", "4326", "EPSG:27700", "--database", str(epsg_database_path)])

        assert status == 0
        lines = capsys.readouterr().out.splitlines()
        assert len(lines) == 2
        assert lines[0].startswith('GEOGCS["WGS 84"')
        assert lines[1].startswith('PROJCS["OSGB 1936 / British National Grid"')
        assert "TOWGS84[" in lines[1]

    def test_epsg_unknown_code(self, epsg_database_path: Path, capsys: pytest.CaptureFixture) -> None:
        """Test unknown codes give exit status 1."""
        assert main(["epsg", "1234", "--database", str(epsg_database_path)]) == 1
        assert "NO_SUCH_AUTHORITY_CODE" in capsys.readouterr().err

    def test_epsg_without_wkt1_form(self, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture) -> None:
        """Test a PROJ code with no WKT1 form is reported, not raised."""
        monkeypatch.setattr("crskit.cli.settings", Settings(_env_file=None, epsg_database=None))

        assert main(["epsg", "4979"]) == 1

        err = capsys.readouterr().err
        assert err.startswith("crskit: FACTORY_ERROR")
        assert "Traceback" not in err

    def test_epsg_missing_database(self, tmp_path: Path, capsys: pytest.CaptureFixture) -> None:
        """Test a database path that doesn't exist."""
        assert main(["epsg", "4326", "--database", str(tmp_path / "missing.db")]) == 1
        assert "CONFIGURATION_ERROR" in capsys.readouterr().err
