"""
Metadata shared by every named coordinate system object.
"""

from dataclasses import dataclass, field
from typing import Optional


@dataclass(frozen=True)
class Authority:
    """
    Reference to the definition of an object in an authority database.

    Attributes:
        name: Authority name (e.g., 'EPSG')
        code: Authority-specific code, kept as text (e.g., '4326')
    """

    name: str
    code: str

    def __post_init__(self) -> None:
        object.__setattr__(self, "code", str(self.code).strip())

    def __str__(self) -> str:
        return f"{self.name}:{self.code}"


@dataclass(frozen=True)
class Info:
    """
    Base class for named objects.

    Metadata fields are keyword-only so that subclasses can declare their
    own positional fields.

    Attributes:
        name: Human-readable name, never blank
        authority: Optional authority reference
        alias: Alternative name
        abbreviation: Short name
        remarks: Free-form comments
    """

    name: str
    authority: Optional[Authority] = field(default=None, kw_only=True)
    alias: Optional[str] = field(default=None, kw_only=True)
    abbreviation: Optional[str] = field(default=None, kw_only=True)
    remarks: Optional[str] = field(default=None, kw_only=True)

    def __post_init__(self) -> None:
        if self.name is None or not str(self.name).strip():
            raise ValueError(f"{type(self).__name__} name must not be blank")

    @property
    def code(self) -> Optional[str]:
        """Authority code, if any."""
        return self.authority.code if self.authority else None

    def to_wkt(self, indent: Optional[int] = None) -> str:
        """
        Format this object as Well-Known Text.

        Args:
            indent: Spaces per nesting level, or None for a single line

        Returns:
            WKT string
        """
        from crskit.core.wkt.formatter import WKTFormatter

        return WKTFormatter(indent=indent).format(self)

    def __str__(self) -> str:
        return self.to_wkt()
