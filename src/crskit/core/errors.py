"""
Custom exception hierarchy for crskit.

This module defines the exceptions raised by the coordinate system model,
the WKT reader and the authority factories, so callers can handle every
library failure through one base class.
"""

from typing import Any, Dict, List, Optional


class CRSKitException(Exception):
    """
    Base exception for all crskit-specific errors.

    Attributes:
        error_code: String identifier for the error type
        message: User-friendly error message
        details: Technical details for logging/debugging
        suggestions: Optional list of resolution suggestions
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize CRSKitException.

        Args:
            message: User-friendly error message
            error_code: String identifier for the error type
            details: Technical details for logging
            suggestions: List of suggestions for resolution
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert exception to dictionary.

        Returns:
            Dictionary representation of the error
        """
        return {
            "error_code": self.error_code,
            "message": self.message,
            "details": self.details,
            "suggestions": self.suggestions,
        }

    def __str__(self) -> str:
        """String representation of the exception."""
        return f"{self.error_code}: {self.message}"

    def __repr__(self) -> str:
        """Detailed string representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"error_code='{self.error_code}', "
            f"message='{self.message}')"
        )


class UnitError(CRSKitException):
    """
    Raised when a value can't be converted between two units.

    Used for conversions between incompatible unit kinds (for example
    metres to degrees) or for units of the wrong kind passed as argument.
    """

    def __init__(
        self,
        message: str,
        unit: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if unit:
            error_details["unit"] = unit

        super().__init__(
            message=message,
            error_code="UNIT_ERROR",
            details=error_details,
            suggestions=suggestions or ["Check that both units measure the same quantity"],
        )


class FactoryError(CRSKitException):
    """
    Raised when a factory can't create the requested object.

    Used for invalid constructor arguments, inconsistent database records,
    or failures of the backing store (the driver exception is chained).
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        error_code: str = "FACTORY_ERROR",
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        """
        Initialize FactoryError.

        Args:
            message: User-friendly error message
            code: Authority code being created, if any
            error_code: Specific error code
            details: Technical details about the failure
            suggestions: List of suggestions for resolution
        """
        error_details = details or {}
        if code is not None:
            error_details["code"] = code

        super().__init__(
            message=message,
            error_code=error_code,
            details=error_details,
            suggestions=suggestions or [],
        )
        self.code = code


class NoSuchAuthorityCodeError(FactoryError):
    """
    Raised when an authority code is not found in the backing store.
    """

    def __init__(
        self,
        code: str,
        authority: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        """
        Initialize NoSuchAuthorityCodeError.

        Args:
            code: The code that could not be found
            authority: Authority name (e.g. 'EPSG')
            details: Technical details about the lookup
        """
        error_details = details or {}
        if authority:
            error_details["authority"] = authority
            message = f"No object found for code {authority}:{code}"
        else:
            message = f"No object found for code {code}"

        super().__init__(
            message=message,
            code=str(code),
            error_code="NO_SUCH_AUTHORITY_CODE",
            details=error_details,
            suggestions=[
                "Check the code exists in the authority database",
                "Verify the authority prefix (e.g. 'EPSG:4326')",
            ],
        )
        self.authority = authority


class WKTParseError(CRSKitException):
    """
    Raised when a Well-Known Text string can't be parsed.

    Attributes:
        offset: Index in the text where the failure was detected
        keyword: Keyword of the element being parsed, if any
    """

    def __init__(
        self,
        message: str,
        offset: int = 0,
        keyword: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        error_details = details or {}
        error_details["offset"] = offset
        if keyword:
            error_details["keyword"] = keyword
            message = f'Error in "{keyword}": {message}'

        super().__init__(
            message=message,
            error_code="WKT_PARSE_ERROR",
            details=error_details,
            suggestions=[
                "Check brackets and quotes are balanced",
                "Verify the element parameters follow the OGC WKT grammar",
            ],
        )
        self.offset = offset
        self.keyword = keyword


class TransformationError(CRSKitException):
    """
    Raised when coordinates can't be shifted between two datums.
    """

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        target: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if source:
            error_details["source"] = source
        if target:
            error_details["target"] = target

        default_suggestions = [
            "Provide TOWGS84 (Bursa-Wolf) parameters for both datums",
            "Ensure coordinate arrays have the same length",
        ]

        super().__init__(
            message=message,
            error_code="TRANSFORMATION_ERROR",
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )


class ConfigurationError(CRSKitException):
    """
    Raised when library configuration is invalid.

    Used for missing database files or unknown SQL dialect names.
    """

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestions: Optional[List[str]] = None,
    ):
        error_details = details or {}
        if config_key:
            error_details["config_key"] = config_key

        default_suggestions = [
            "Check CRSKIT_* environment variables are set correctly",
            "Verify the .env file syntax",
        ]

        super().__init__(
            message=message,
            error_code="CONFIGURATION_ERROR",
            details=error_details,
            suggestions=suggestions or default_suggestions,
        )
