"""
Base class of authority factories.

An authority factory creates objects from codes assigned by an authority
such as EPSG. Subclasses implement the ``create_*`` primitives; the
narrowing helpers here check the kind of object found.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional, Type, TypeVar, Union

from crskit.core.errors import FactoryError, NoSuchAuthorityCodeError
from crskit.core.factory import CoordinateSystemFactory, get_default_factory
from crskit.models.cs import (
    CompoundCoordinateSystem,
    CoordinateSystem,
    GeographicCoordinateSystem,
    HorizontalCoordinateSystem,
    ProjectedCoordinateSystem,
    VerticalCoordinateSystem,
)
from crskit.models.datum import Datum, Ellipsoid, HorizontalDatum, PrimeMeridian, VerticalDatum
from crskit.models.units import Unit

T = TypeVar("T")

Code = Union[int, str]


class AuthorityFactory(ABC):
    """
    Creates coordinate system objects from authority codes.

    Codes may be given as ``4326``, ``"4326"`` or ``"EPSG:4326"``.
    Factories hold resources; use them as context managers or call
    :meth:`close`.
    """

    def __init__(self, factory: Optional[CoordinateSystemFactory] = None):
        self.factory = factory or get_default_factory()

    @property
    @abstractmethod
    def authority(self) -> str:
        """Name of the authority whose codes this factory understands."""

    def normalize_code(self, code: Code) -> str:
        """
        Strip the optional authority prefix and check the code is numeric.

        Raises:
            NoSuchAuthorityCodeError: For a foreign prefix or a non-numeric code
        """
        text = str(code).strip()
        if ":" in text:
            prefix, text = text.split(":", 1)
            prefix, text = prefix.strip(), text.strip()
            if prefix.upper() != self.authority.upper():
                raise NoSuchAuthorityCodeError(text, prefix)
        if not text.isdigit():
            raise NoSuchAuthorityCodeError(text, self.authority)
        return text

    @abstractmethod
    def create_object(self, code: Code) -> Any:
        """Create whatever object the code designates."""

    @abstractmethod
    def create_unit(self, code: Code) -> Unit:
        """Create a unit of measure."""

    @abstractmethod
    def create_ellipsoid(self, code: Code) -> Ellipsoid:
        """Create an ellipsoid."""

    @abstractmethod
    def create_prime_meridian(self, code: Code) -> PrimeMeridian:
        """Create a prime meridian."""

    @abstractmethod
    def create_datum(self, code: Code) -> Datum:
        """Create a datum of any kind."""

    @abstractmethod
    def create_coordinate_system(self, code: Code) -> CoordinateSystem:
        """Create a coordinate reference system of any kind."""

    def _narrow(self, obj: Any, cls: Type[T], code: Code, what: str) -> T:
        if not isinstance(obj, cls):
            raise FactoryError(
                f"{self.authority}:{code} is a {type(obj).__name__}, not a {what}",
                code=str(code),
                error_code="UNEXPECTED_OBJECT_TYPE",
            )
        return obj

    def create_horizontal_datum(self, code: Code) -> HorizontalDatum:
        return self._narrow(self.create_datum(code), HorizontalDatum, code, "horizontal datum")

    def create_vertical_datum(self, code: Code) -> VerticalDatum:
        return self._narrow(self.create_datum(code), VerticalDatum, code, "vertical datum")

    def create_horizontal_coordinate_system(self, code: Code) -> HorizontalCoordinateSystem:
        return self._narrow(
            self.create_coordinate_system(code),
            HorizontalCoordinateSystem,
            code,
            "horizontal coordinate system",
        )

    def create_geographic_coordinate_system(self, code: Code) -> GeographicCoordinateSystem:
        return self._narrow(
            self.create_coordinate_system(code),
            GeographicCoordinateSystem,
            code,
            "geographic coordinate system",
        )

    def create_projected_coordinate_system(self, code: Code) -> ProjectedCoordinateSystem:
        return self._narrow(
            self.create_coordinate_system(code),
            ProjectedCoordinateSystem,
            code,
            "projected coordinate system",
        )

    def create_vertical_coordinate_system(self, code: Code) -> VerticalCoordinateSystem:
        return self._narrow(
            self.create_coordinate_system(code),
            VerticalCoordinateSystem,
            code,
            "vertical coordinate system",
        )

    def create_compound_coordinate_system(self, code: Code) -> CompoundCoordinateSystem:
        return self._narrow(
            self.create_coordinate_system(code),
            CompoundCoordinateSystem,
            code,
            "compound coordinate system",
        )

    def describe(self, code: Code) -> str:
        """Name of the object designated by a code."""
        return self.create_object(code).name

    def close(self) -> None:
        """Release resources held by the factory."""

    def __enter__(self) -> "AuthorityFactory":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
