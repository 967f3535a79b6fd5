"""
Well-Known Text (WKT) support.

This module provides:
- A tokenizer producing a pull-based element tree
- A parser building coordinate system objects through a factory
- A formatter writing them back, optionally indented
"""

from crskit.core.wkt.element import WKTElement
from crskit.core.wkt.formatter import WKTFormatter, format_wkt
from crskit.core.wkt.parser import COORDINATE_SYSTEM_KEYWORDS, WKTParser, parse_wkt

__all__ = [
    "COORDINATE_SYSTEM_KEYWORDS",
    "WKTElement",
    "WKTFormatter",
    "WKTParser",
    "format_wkt",
    "parse_wkt",
]
