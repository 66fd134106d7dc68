"""
Sheet Geocoder — Shared Input Validators
=========================================
Static utility methods used across the project to validate common
preconditions before processing begins.

All methods raise an appropriate exception from
:mod:`shared.python.exceptions` rather than returning booleans — this
makes ``validate_inputs`` implementations and request builders simple
and readable::

    class MyTool(GeoTool):
        def validate_inputs(self) -> None:
            Validators.assert_file_exists(self.input_path)
            Validators.assert_supported_extension(self.input_path, [".csv"])
"""

from __future__ import annotations

import math
from numbers import Real
from pathlib import Path
from typing import Sequence

# pandas is only needed by assert_columns_exist and is typed loosely there
# so this module stays import-light.

from shared.python.exceptions import (
    ColumnNotFoundError,
    InputValidationError,
    InvalidInputError,
    OutputWriteError,
)


class Validators:
    """Collection of static precondition checks shared across the project.

    All methods are ``@staticmethod`` — this class is never instantiated.
    It exists purely as a logical namespace.
    """

    # ------------------------------------------------------------------
    # File-system checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_file_exists(path: Path) -> None:
        """Assert that *path* points to an existing regular file.

        Args:
            path: Path object to check.

        Raises:
            InputValidationError: If *path* does not exist or is a
                directory rather than a file.

        Example::

            Validators.assert_file_exists(Path("data/addresses.csv"))
        """
        path = Path(path)
        if not path.exists():
            raise InputValidationError(
                f"Input file not found: '{path}'. "
                "Check that the path is correct and the file exists."
            )
        if path.is_dir():
            raise InputValidationError(
                f"Expected a file but got a directory: '{path}'."
            )

    @staticmethod
    def assert_output_dir_writable(output_path: Path) -> None:
        """Assert that the parent directory of *output_path* is writable.

        Creates the parent directory (and any missing parents) if it does
        not yet exist, so users never have to pre-create output dirs.

        Args:
            output_path: Intended output file path.  The parent directory
                         is created if absent.

        Raises:
            OutputWriteError: If the parent directory cannot be created.
        """
        parent = Path(output_path).parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise OutputWriteError(str(output_path), str(exc)) from exc

    @staticmethod
    def assert_supported_extension(path: Path, extensions: Sequence[str]) -> None:
        """Assert that *path* has one of the allowed file extensions.

        Args:
            path: File path to check.
            extensions: Sequence of allowed extensions, each starting with
                        a dot (e.g. ``[".csv"]``).

        Raises:
            InputValidationError: If the file extension is not in
                *extensions*.
        """
        path = Path(path)
        suffix = path.suffix.lower()
        allowed = [ext.lower() for ext in extensions]
        if suffix not in allowed:
            raise InputValidationError(
                f"Unsupported file extension '{suffix}' for '{path.name}'. "
                f"Accepted extensions: {', '.join(allowed)}"
            )

    # ------------------------------------------------------------------
    # Tabular data checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_columns_exist(
        df: object,  # pandas DataFrame — typed loosely to avoid hard dep
        required_columns: Sequence[str],
    ) -> None:
        """Assert that all *required_columns* are present in *df*.

        Args:
            df: A ``pandas.DataFrame`` (typed as ``object`` here to avoid
                importing pandas at module load time).
            required_columns: List of column names that must be present.

        Raises:
            ColumnNotFoundError: On the first missing column found.

        Example::

            Validators.assert_columns_exist(df, ["address"])
        """
        available = list(df.columns)  # type: ignore[union-attr]
        for col in required_columns:
            if col not in available:
                raise ColumnNotFoundError(col, available)

    # ------------------------------------------------------------------
    # Geocoding request checks
    # ------------------------------------------------------------------

    @staticmethod
    def assert_query_text(text: object) -> None:
        """Assert that *text* is a non-blank string usable as a forward query.

        Raises:
            InvalidInputError: If *text* is not a string or is empty
                after stripping whitespace.
        """
        if not isinstance(text, str) or not text.strip():
            raise InvalidInputError(
                "Forward geocoding requires a non-empty query string."
            )

    @staticmethod
    def assert_coordinate(value: object, name: str, limit: float) -> None:
        """Assert that *value* is a finite number within ``[-limit, limit]``.

        Args:
            value: The latitude or longitude to check.  ``bool`` is
                   rejected even though it subclasses ``int``.
            name: Label used in the error message (``"latitude"``).
            limit: Absolute bound, 90 for latitude and 180 for longitude.

        Raises:
            InvalidInputError: If *value* is not numeric, is NaN/inf, or
                lies outside the allowed range.

        Example::

            Validators.assert_coordinate(41.4036, "latitude", 90)
        """
        if isinstance(value, bool) or not isinstance(value, Real):
            raise InvalidInputError(
                f"Reverse geocoding requires a numeric {name}, got {value!r}."
            )
        if not math.isfinite(value):
            raise InvalidInputError(f"{name.capitalize()} must be finite, got {value!r}.")
        if not -limit <= value <= limit:
            raise InvalidInputError(
                f"{name.capitalize()} {value!r} is outside [-{limit:g}, {limit:g}]."
            )
