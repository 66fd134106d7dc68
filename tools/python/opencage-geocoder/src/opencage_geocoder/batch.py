"""
OpenCage Geocoder — Batch Module
=================================
Geocodes a column of spreadsheet cells one row at a time.

Classes:
    BatchRunner           Maps an ordered sequence of addresses (or
                          coordinate pairs) to :class:`BatchRow` objects.
                          A failed row never stops the batch.
    SpreadsheetGeocoder   Primary tool class (inherits GeoTool): reads a
                          CSV column, runs the batch, and writes three
                          result columns next to it.

Usage::

    from pathlib import Path
    from opencage_geocoder import GeocodeClient, EnvCredentialProvider
    from opencage_geocoder.batch import SpreadsheetGeocoder

    SpreadsheetGeocoder(
        input_path=Path("data/stores.csv"),
        output_path=Path("output/stores_geocoded.csv"),
        address_col="address",
        client=GeocodeClient(EnvCredentialProvider()),
    ).run()
"""

from __future__ import annotations

import logging
import math
from collections import Counter
from pathlib import Path
from typing import Any, Iterable, Mapping

import pandas as pd

from opencage_geocoder.client import GeocodeClient, Outcome
from opencage_geocoder.credentials import EnvCredentialProvider
from opencage_geocoder.models import ERROR_PREFIX, NO_RESULTS_MARKER, BatchRow
from shared.python.base_tool import GeoTool
from shared.python.exceptions import GeocodeFailure, OutputWriteError
from shared.python.validators import Validators

logger = logging.getLogger("sheetgeocoder.opencage_geocoder.batch")

RESULT_COLUMNS = ("formatted", "latitude", "longitude")


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return not str(value).strip()


def _free_column_name(existing: Iterable[str], name: str) -> str:
    """Return *name*, or the first of ``name_geocoded``, ``name_geocoded_2``,
    ... not already in *existing*."""
    taken = set(existing)
    if name not in taken:
        return name
    candidate = f"{name}_geocoded"
    n = 2
    while candidate in taken:
        candidate = f"{name}_geocoded_{n}"
        n += 1
    return candidate


# ---------------------------------------------------------------------------
# Batch runner
# ---------------------------------------------------------------------------


class BatchRunner:
    """Run one geocoding request per input row, strictly in order.

    This is the only place geocoding failures are recovered: each
    :class:`~shared.python.exceptions.GeocodeFailure` becomes an
    ``"ERROR: ..."`` marker in its own row and the next row is processed
    as usual.

    Args:
        client: The :class:`GeocodeClient` used for every row.
        options: Extra API parameters sent with every request
                 (e.g. ``{"language": "en", "countrycode": "de"}``).
    """

    def __init__(
        self,
        client: GeocodeClient,
        options: Mapping[str, Any] | None = None,
    ) -> None:
        self.client = client
        self.options: dict[str, Any] = dict(options or {})

    def run(self, addresses: Iterable[Any]) -> list[BatchRow]:
        """Forward-geocode every address.

        Returns:
            Exactly one :class:`BatchRow` per input, in input order.
            Blank cells give an all-empty row and no request is made.
        """
        rows: list[BatchRow] = []
        for i, value in enumerate(addresses):
            if _is_blank(value):
                rows.append(BatchRow(address=""))
                continue
            address = str(value).strip()
            logger.debug("[%d] Geocoding: %s", i + 1, address)
            outcome = self.client.try_forward(address, self.options)
            rows.append(self._to_row(address, outcome))
        return rows

    def run_reverse(self, pairs: Iterable[tuple[Any, Any]]) -> list[BatchRow]:
        """Reverse-geocode every ``(latitude, longitude)`` pair.

        A pair with either coordinate blank gives an all-empty row.
        """
        rows: list[BatchRow] = []
        for i, (lat, lng) in enumerate(pairs):
            if _is_blank(lat) or _is_blank(lng):
                rows.append(BatchRow(address=""))
                continue
            label = f"{lat},{lng}"
            logger.debug("[%d] Reverse geocoding: %s", i + 1, label)
            outcome = self.client.try_reverse(lat, lng, self.options)
            rows.append(self._to_row(label, outcome))
        return rows

    @staticmethod
    def summary(rows: Iterable[BatchRow]) -> dict[str, int]:
        """Count rows per status (``ok``, ``no_results``, ``error``, ``empty``)."""
        counts = Counter(row.status for row in rows)
        return {status: counts.get(status, 0) for status in ("ok", "no_results", "error", "empty")}

    @staticmethod
    def _to_row(address: str, outcome: Outcome) -> BatchRow:
        if isinstance(outcome, GeocodeFailure):
            logger.warning("  ✗ Failed: %s — %s", address, outcome.message)
            return BatchRow(
                address=address,
                formatted=ERROR_PREFIX + outcome.message,
                status="error",
                error_kind=outcome.kind,
            )

        best = outcome.best
        if best is None:
            logger.debug("  ∅ No results: %s", address)
            return BatchRow(address=address, formatted=NO_RESULTS_MARKER, status="no_results")

        logger.debug("  ✓ %s → (%.5f, %.5f)", address, best.latitude, best.longitude)
        return BatchRow(
            address=address,
            formatted=best.formatted,
            latitude=best.latitude,
            longitude=best.longitude,
            status="ok",
        )


# ---------------------------------------------------------------------------
# Main tool class
# ---------------------------------------------------------------------------


class SpreadsheetGeocoder(GeoTool):
    """Geocode one column of a CSV sheet and write the results beside it.

    Three columns (``formatted``, ``latitude``, ``longitude``) are inserted
    immediately to the right of the input column.  If a column of that name
    already exists the new one gets a ``_geocoded`` suffix, then
    ``_geocoded_2``, ``_geocoded_3`` and so on.  Every input row is kept.

    Args:
        input_path: Path to the input CSV file.
        output_path: Path for the output CSV file.
        address_col: Column holding the address text (forward mode).
        client: A configured :class:`GeocodeClient`.
        options: Extra API parameters sent with every request.
        reverse: Reverse-geocode ``lat_col`` / ``lng_col`` instead of
                 forward-geocoding ``address_col``.
        lat_col: Latitude column (reverse mode).
        lng_col: Longitude column (reverse mode).
        verbose: Enable DEBUG-level logging.
    """

    def __init__(
        self,
        input_path: Path,
        output_path: Path,
        address_col: str = "address",
        client: GeocodeClient | None = None,
        options: Mapping[str, Any] | None = None,
        *,
        reverse: bool = False,
        lat_col: str = "lat",
        lng_col: str = "lng",
        verbose: bool = False,
    ) -> None:
        super().__init__(input_path, output_path, verbose=verbose)
        self.address_col = address_col
        self.reverse = reverse
        self.lat_col = lat_col
        self.lng_col = lng_col
        if client is None:
            client = GeocodeClient(EnvCredentialProvider())
        self.runner = BatchRunner(client, options)

        self._rows: list[BatchRow] = []

    # ------------------------------------------------------------------
    # GeoTool abstract method implementations
    # ------------------------------------------------------------------

    @property
    def input_columns(self) -> list[str]:
        return [self.lat_col, self.lng_col] if self.reverse else [self.address_col]

    def validate_inputs(self) -> None:
        """Validate the sheet before any request is made.

        Raises:
            InputValidationError: If the file is missing or not a CSV.
            ColumnNotFoundError: If an input column does not exist.
            OutputWriteError: If the output directory cannot be created.
        """
        Validators.assert_file_exists(self.input_path)
        Validators.assert_supported_extension(self.input_path, [".csv"])
        Validators.assert_output_dir_writable(self.output_path)

        df_peek = pd.read_csv(self.input_path, nrows=0)
        Validators.assert_columns_exist(df_peek, self.input_columns)
        logger.debug("Inputs validated successfully.")

    def process(self) -> None:
        """Geocode every row and write the output sheet.

        Raises:
            OutputWriteError: If writing the output file fails.
        """
        if self.reverse:
            df = pd.read_csv(self.input_path)
            lats = pd.to_numeric(df[self.lat_col], errors="coerce").tolist()
            lngs = pd.to_numeric(df[self.lng_col], errors="coerce").tolist()
            logger.info("Starting reverse geocoding of %d rows...", len(df))
            rows = self.runner.run_reverse(zip(lats, lngs))
            anchor = self.lng_col
        else:
            df = pd.read_csv(self.input_path, dtype=str, keep_default_na=False)
            logger.info("Starting geocoding of %d addresses...", len(df))
            rows = self.runner.run(df[self.address_col].tolist())
            anchor = self.address_col

        self._rows = rows
        self._insert_results(df, rows, anchor)
        self._write_csv(df)

    def run_summary(self) -> str:
        """Per-status row counts of the last run, e.g. ``"2 ok, 1 failed"``."""
        counts = BatchRunner.summary(self._rows)
        return (
            f"{counts['ok']} ok, {counts['no_results']} without results, "
            f"{counts['error']} failed, {counts['empty']} blank"
        )

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _insert_results(df: pd.DataFrame, rows: list[BatchRow], anchor: str) -> None:
        position = df.columns.get_loc(anchor) + 1
        triples = [row.as_triple() for row in rows]
        for offset, name in enumerate(RESULT_COLUMNS):
            column = _free_column_name(df.columns, name)
            df.insert(position + offset, column, [t[offset] for t in triples])

    def _write_csv(self, df: pd.DataFrame) -> None:
        try:
            df.to_csv(self.output_path, index=False)
        except OSError as exc:
            raise OutputWriteError(str(self.output_path), str(exc)) from exc

    @property
    def rows(self) -> list[BatchRow]:
        """All :class:`BatchRow` objects from the last run, or ``[]``."""
        return self._rows
