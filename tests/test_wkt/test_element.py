"""
Tests for the WKT element tree.
"""

import pytest

from crskit.core.errors import WKTParseError
from crskit.core.wkt.element import WKTElement


class TestParseTree:
    """Tests for WKTElement.parse_tree."""

    def test_simple_element(self) -> None:
        """Test strings, numbers and nested elements become children."""
        root = WKTElement.parse_tree('SPHEROID["WGS 84",6378137,298.257223563,AUTHORITY["EPSG","7030"]]')

        assert root.keyword == "SPHEROID"
        assert root.offset == 0
        assert root.children[0] == "WGS 84"
        assert root.children[1] == 6378137.0
        assert root.children[2] == 298.257223563
        assert isinstance(root.children[3], WKTElement)
        assert root.children[3].keyword == "AUTHORITY"

    def test_parentheses_and_whitespace(self) -> None:
        """Test round brackets and surrounding whitespace are accepted."""
        root = WKTElement.parse_tree('  unit ( "metre" , 1 )  ')

        assert root.keyword == "UNIT"
        assert root.children == ["metre", 1.0]

    def test_void_element(self) -> None:
        """Test keywords without brackets are void elements."""
        root = WKTElement.parse_tree('AXIS["Lat",NORTH]')
        orientation = root.children[1]

        assert orientation.is_void
        assert orientation.keyword == "NORTH"
        assert orientation.offset == 11

    def test_exponent_numbers(self) -> None:
        """Test scientific notation."""
        root = WKTElement.parse_tree("TOWGS84[1e-3,-2.5E2,+3]")

        assert root.children == [0.001, -250.0, 3.0]

    def test_empty_brackets(self) -> None:
        """Test an element with no parameters."""
        assert WKTElement.parse_tree("FOO[]").children == []

    def test_trailing_text(self) -> None:
        """Test text after the root element is rejected."""
        with pytest.raises(WKTParseError) as exc_info:
            WKTElement.parse_tree('UNIT["metre",1] extra')

        assert exc_info.value.offset == 16

    @pytest.mark.parametrize(
        "text, fragment",
        [
            ('UNIT["metre",1', "Missing closing bracket"),
            ('UNIT["metre",1)', "Mismatched brackets"),
            ('UNIT["metre" 1]', "Expected ','"),
            ('UNIT["metre,1]', "Missing closing quote"),
            ('UNIT["metre",1.2.3]', "Unparsable number"),
            ('UNIT["metre",,1]', "Missing parameter"),
            ('["metre",1]', "Expected a keyword"),
            ("", "Expected a keyword"),
        ],
    )
    def test_malformed(self, text: str, fragment: str) -> None:
        """Test syntax errors are reported with a message."""
        with pytest.raises(WKTParseError) as exc_info:
            WKTElement.parse_tree(text)

        assert fragment in exc_info.value.message


class TestPulling:
    """Tests for pulling children off an element."""

    def test_pull_in_order(self) -> None:
        """Test pulling each kind of child."""
        root = WKTElement.parse_tree('AXIS["Easting",EAST]')

        assert root.pull_string("name") == "Easting"
        assert root.pull_void_element("orientation").keyword == "EAST"
        root.close()

    def test_pull_double_skips_strings(self) -> None:
        """Test pulling the first number regardless of position."""
        root = WKTElement.parse_tree('UNIT["metre",1]')

        assert root.pull_double("factor") == 1.0
        assert root.pull_string("name") == "metre"

    def test_pull_integer(self) -> None:
        """Test integral numbers."""
        root = WKTElement.parse_tree("VERT_DATUM[2005]")

        assert root.pull_integer("datum type") == 2005

    def test_pull_integer_rejects_fraction(self) -> None:
        """Test non-integral numbers are rejected."""
        root = WKTElement.parse_tree("VERT_DATUM[2005.5]")

        with pytest.raises(WKTParseError):
            root.pull_integer("datum type")

    def test_missing_parameter(self) -> None:
        """Test missing children name the parameter and the element."""
        root = WKTElement.parse_tree('SPHEROID["WGS 84",6378137]')
        root.pull_string("name")
        root.pull_double("semi-major axis")

        with pytest.raises(WKTParseError) as exc_info:
            root.pull_double("inverse flattening")

        assert exc_info.value.keyword == "SPHEROID"
        assert 'Missing parameter "inverse flattening"' in exc_info.value.message

    def test_pull_element(self) -> None:
        """Test pulling nested elements by keyword."""
        root = WKTElement.parse_tree('DATUM["D",SPHEROID["S",1,2],AUTHORITY["EPSG","1"]]')

        assert root.pull_optional_element("TOWGS84") is None
        assert root.pull_element("AUTHORITY").keyword == "AUTHORITY"
        assert root.pull_element("SPHEROID", "ELLIPSOID").keyword == "SPHEROID"

    def test_pull_element_missing(self) -> None:
        """Test missing required element."""
        root = WKTElement.parse_tree('DATUM["D"]')

        with pytest.raises(WKTParseError) as exc_info:
            root.pull_element("SPHEROID")

        assert 'Missing parameter "SPHEROID"' in exc_info.value.message

    def test_optional_element_ignores_void(self) -> None:
        """Test void elements aren't returned as bracketed ones."""
        root = WKTElement.parse_tree('AXIS["X",NORTH]')

        assert root.pull_optional_element("NORTH") is None

    def test_close_reports_leftovers(self) -> None:
        """Test unconsumed children are reported."""
        root = WKTElement.parse_tree('PRIMEM["Greenwich",0,EXTRA["x"]]')
        root.pull_string("name")
        root.pull_double("longitude")

        with pytest.raises(WKTParseError) as exc_info:
            root.close()

        assert 'Unexpected parameter "EXTRA"' in exc_info.value.message
        assert exc_info.value.offset == 21

    def test_close_reports_leftover_value(self) -> None:
        """Test unconsumed values are reported."""
        root = WKTElement.parse_tree('UNIT["metre",1,2]')
        root.pull_string("name")
        root.pull_double("factor")

        with pytest.raises(WKTParseError) as exc_info:
            root.close()

        assert "Unexpected parameter 2.0" in exc_info.value.message

    def test_print_tree(self) -> None:
        """Test debugging dump of the tree."""
        root = WKTElement.parse_tree('AXIS["Lat",NORTH]')

        assert root.print_tree() == 'AXIS\n  "Lat"\n  NORTH'
