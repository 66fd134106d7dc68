"""
Sheet Geocoder — Shared Python Package
=======================================
Re-exports the shared base class, exception hierarchy, and validator
utilities so individual modules can import from a single location::

    from shared.python import GeoTool, Validators
    from shared.python.exceptions import ApiError
"""

from shared.python.base_tool import GeoTool
from shared.python.exceptions import (
    ApiError,
    ColumnNotFoundError,
    GeocodeFailure,
    InputValidationError,
    InvalidInputError,
    MissingCredentialError,
    NetworkError,
    OutputWriteError,
    ParseError,
    SheetGeocoderError,
)
from shared.python.validators import Validators

__all__ = [
    "GeoTool",
    "Validators",
    "SheetGeocoderError",
    "InputValidationError",
    "ColumnNotFoundError",
    "GeocodeFailure",
    "InvalidInputError",
    "MissingCredentialError",
    "NetworkError",
    "ApiError",
    "ParseError",
    "OutputWriteError",
]
