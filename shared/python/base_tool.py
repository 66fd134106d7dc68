"""
Sheet Geocoder — Shared Base Tool
==================================
Base class for the sheet-in / sheet-out tools of the project.  Today that
is :class:`~opencage_geocoder.batch.SpreadsheetGeocoder`, which reads an
address column from a CSV, geocodes it row by row, and writes the result
columns back out.

Design Pattern:
    Template Method — :meth:`GeoTool.run` checks the sheet
    (``validate_inputs``), geocodes it (``process``), then logs a
    one-line report built from ``run_summary``.

Usage::

    from shared.python.base_tool import GeoTool

    class MySheetTool(GeoTool):
        def validate_inputs(self) -> None:
            Validators.assert_file_exists(self.input_path)
        def process(self) -> None:
            ...
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from pathlib import Path

# ---------------------------------------------------------------------------
# Project root logger — modules log through children of it, e.g.
#   logging.getLogger("sheetgeocoder.opencage_geocoder.batch").
# ---------------------------------------------------------------------------
logger = logging.getLogger("sheetgeocoder")

LOG_FORMAT = "[%(asctime)s] %(levelname)-8s %(name)s — %(message)s"


class GeoTool(ABC):
    """Base class for tools that turn one input sheet into one output sheet.

    Subclasses implement :meth:`validate_inputs` and :meth:`process`, and
    may override :meth:`run_summary` to add counts to the final log line.
    Nothing is written when validation fails, so a bad column name costs
    no API requests.

    Attributes:
        input_path: The sheet to read.
        output_path: Where the processed sheet is written.
        verbose: Log per-row DEBUG messages as well.
    """

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        *,
        verbose: bool = False,
    ) -> None:
        self.input_path: Path = Path(input_path)
        self.output_path: Path = Path(output_path)
        self.verbose: bool = verbose

        self._configure_logging()

    @abstractmethod
    def validate_inputs(self) -> None:
        """Check the input sheet and output location before any request.

        Raises:
            InputValidationError: Missing file, wrong extension or
                missing column.
            OutputWriteError: The output directory cannot be created.
        """

    @abstractmethod
    def process(self) -> None:
        """Geocode the sheet and write the output.

        Called only after :meth:`validate_inputs` succeeded.  Per-row
        geocoding failures are recorded in the output, not raised.
        """

    def run_summary(self) -> str:
        """Short description of the last :meth:`process` call, or ``""``."""
        return ""

    def run(self) -> None:
        """Validate the sheet, geocode it, and log where the result went.

        Raises:
            InputValidationError: From :meth:`validate_inputs`.
            OutputWriteError: If the output sheet cannot be written.
        """
        logger.info("Starting %s on %s", self.__class__.__name__, self.input_path)
        start = time.perf_counter()

        self.validate_inputs()
        self.process()

        self._report_success(time.perf_counter() - start)

    def _report_success(self, elapsed: float) -> None:
        summary = self.run_summary()
        logger.info(
            "%s finished in %.2fs%s, output written to %s",
            self.__class__.__name__,
            elapsed,
            f" ({summary})" if summary else "",
            self.output_path,
        )

    def _configure_logging(self) -> None:
        """Attach one console handler to the ``sheetgeocoder`` logger.

        Repeated tool instances reuse the existing handler; only the level
        follows ``verbose``.
        """
        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt="%H:%M:%S"))
            logger.addHandler(handler)

        logger.setLevel(logging.DEBUG if self.verbose else logging.INFO)

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"input_path={self.input_path!r}, "
            f"output_path={self.output_path!r})"
        )
