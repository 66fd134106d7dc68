"""
Sheet Geocoder — Custom Exception Hierarchy
============================================
Every Sheet Geocoder module raises exceptions from this module so callers
can catch them at the right level of granularity.

Hierarchy::

    SheetGeocoderError                   ← catch-all base
    ├── InputValidationError             ← bad files, missing columns, etc.
    │   └── ColumnNotFoundError          ← CSV/table column missing
    ├── GeocodeFailure                   ← classified outcome of one request
    │   ├── InvalidInputError            ← bad forward/reverse arguments
    │   ├── MissingCredentialError       ← no API key configured
    │   ├── NetworkError                 ← DNS / connection / timeout
    │   ├── ApiError                     ← service answered non-200
    │   └── ParseError                   ← malformed response body
    └── OutputWriteError                 ← cannot write to output path

``GeocodeFailure`` subclasses double as values: the geocoding client can
*return* them from its ``try_*`` methods and *raise* them from its plain
methods.

Usage::

    from shared.python.exceptions import ApiError

    raise ApiError(402, "quota exceeded")
"""

from __future__ import annotations


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


class SheetGeocoderError(Exception):
    """Base exception for all Sheet Geocoder modules.

    Catch this to handle any project-specific error without caring about
    the exact subtype.

    Args:
        message: Human-readable description of the error.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


# ---------------------------------------------------------------------------
# Input validation
# ---------------------------------------------------------------------------


class InputValidationError(SheetGeocoderError):
    """Raised when a tool's inputs fail pre-processing validation.

    This is the parent class for more specific input problems.
    """


class ColumnNotFoundError(InputValidationError):
    """Raised when an expected column is absent from a tabular dataset.

    Args:
        column: The name of the missing column.
        available: List of column names that ARE present, used to
                   generate a helpful error message.

    Example::

        raise ColumnNotFoundError("address", df.columns.tolist())
    """

    def __init__(self, column: str, available: list[str]) -> None:
        available_str = ", ".join(f"'{c}'" for c in available)
        super().__init__(
            f"Column '{column}' not found. Available columns: {available_str}"
        )
        self.column: str = column
        self.available: list[str] = available


# ---------------------------------------------------------------------------
# Geocoding failures
# ---------------------------------------------------------------------------


class GeocodeFailure(SheetGeocoderError):
    """Classified failure of a single geocoding request.

    Never retried internally.  ``kind`` is a stable identifier for the
    failure class, independent of the Python class name.
    """

    kind: str = "GeocodeFailure"


class InvalidInputError(GeocodeFailure):
    """Raised when ``forward`` / ``reverse`` receive unusable arguments.

    A caller bug: the request is rejected before any credential lookup or
    HTTP call.
    """

    kind = "InvalidInput"


class MissingCredentialError(GeocodeFailure):
    """Raised when the credential provider has no (or an empty) API key."""

    kind = "MissingCredential"

    def __init__(self, message: str = "Missing OpenCage API key.") -> None:
        super().__init__(message)


class NetworkError(GeocodeFailure):
    """Raised when the HTTP transport fails before a response is received.

    Args:
        cause: The underlying transport exception (DNS failure, refused
               connection, timeout, ...).  Kept unmodified, so its text
               may contain the full request URL.
        detail: Text for the message.  Defaults to the class name of
                *cause*; callers pass a redacted ``str(cause)``.
    """

    kind = "NetworkError"

    def __init__(self, cause: BaseException, detail: str | None = None) -> None:
        super().__init__(f"Network error: {detail or type(cause).__name__}")
        self.cause: BaseException = cause


class ApiError(GeocodeFailure):
    """Raised when the geocoding service rejects a request (HTTP non-200).

    Args:
        code: HTTP status code returned by the service.
        message: The service's ``status.message``, or a synthesised one.
        reason: Stable short identifier derived from *code*
                (e.g. ``"invalid_key"``, ``"quota_exceeded"``).

    Example::

        raise ApiError(401, "invalid API key", reason="invalid_key")
    """

    kind = "ApiError"

    def __init__(self, code: int, message: str, reason: str = "unknown") -> None:
        super().__init__(message)
        self.code: int = code
        self.reason: str = reason

    def __repr__(self) -> str:
        return f"ApiError(code={self.code}, reason={self.reason!r}, message={self.message!r})"


class ParseError(GeocodeFailure):
    """Raised when the response body is not the expected JSON envelope."""

    kind = "ParseError"


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------


class OutputWriteError(SheetGeocoderError):
    """Raised when the tool cannot write its output to disk.

    Args:
        output_path: String representation of the path that failed.
        reason: Underlying OS or library error message.

    Example::

        raise OutputWriteError("/read-only/dir/out.csv", "Permission denied")
    """

    def __init__(self, output_path: str, reason: str) -> None:
        super().__init__(
            f"Failed to write output to '{output_path}': {reason}"
        )
        self.output_path: str = output_path
        self.reason: str = reason
