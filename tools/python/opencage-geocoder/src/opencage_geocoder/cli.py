"""
OpenCage Geocoder — CLI Entry Point
====================================
Installed as the ``sheet-geocode`` command via ``pyproject.toml``.

Usage:
    sheet-geocode --input data/addresses.csv --output output/geocoded.csv \\
                  --address-col full_address --language en --countrycode de

    sheet-geocode --input data/points.csv --output output/places.csv \\
                  --reverse --lat-col lat --lng-col lng
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

from opencage_geocoder.batch import SpreadsheetGeocoder
from opencage_geocoder.client import DEFAULT_USER_AGENT, GeocodeClient
from opencage_geocoder.credentials import (
    DEFAULT_KEY_ENV_VAR,
    CredentialProvider,
    EnvCredentialProvider,
    StaticCredentialProvider,
)
from shared.python.exceptions import SheetGeocoderError


@click.command(
    name="sheet-geocode",
    help="Geocode a column of a CSV sheet with the OpenCage API.",
)
@click.option(
    "--input", "-i", "input_path",
    required=True,
    type=click.Path(exists=True, file_okay=True, dir_okay=False, path_type=Path),
    help="Path to the input CSV file.",
)
@click.option(
    "--output", "-o", "output_path",
    required=True,
    type=click.Path(file_okay=True, dir_okay=False, path_type=Path),
    help="Path for the output CSV file.",
)
@click.option(
    "--address-col",
    default="address",
    show_default=True,
    help="CSV column containing address strings.",
)
@click.option(
    "--reverse",
    is_flag=True,
    default=False,
    help="Reverse-geocode latitude/longitude columns instead of addresses.",
)
@click.option("--lat-col", default="lat", show_default=True, help="Latitude column (with --reverse).")
@click.option("--lng-col", default="lng", show_default=True, help="Longitude column (with --reverse).")
@click.option(
    "--api-key",
    default=None,
    help=f"OpenCage API key.  When omitted the {DEFAULT_KEY_ENV_VAR} "
         "environment variable is read before every request.",
)
@click.option("--language", default=None, help="Preferred result language, e.g. 'en'.")
@click.option(
    "--countrycode",
    default=None,
    help="Comma-separated ISO 3166-1 alpha-2 codes to restrict results to.",
)
@click.option(
    "--user-agent",
    default=DEFAULT_USER_AGENT,
    show_default=True,
    help="User-Agent header sent with each request.",
)
@click.option("--timeout", default=10.0, show_default=True, type=float, help="HTTP timeout in seconds.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable debug logging.")
def main(
    input_path: Path,
    output_path: Path,
    address_col: str,
    reverse: bool,
    lat_col: str,
    lng_col: str,
    api_key: str | None,
    language: str | None,
    countrycode: str | None,
    user_agent: str,
    timeout: float,
    verbose: bool,
) -> None:
    """CLI entry point — wires Click options into SpreadsheetGeocoder."""
    credentials: CredentialProvider
    if api_key:
        credentials = StaticCredentialProvider(api_key)
    else:
        credentials = EnvCredentialProvider()
        if not credentials.get_credential():
            click.echo(
                f"Error: --api-key or {DEFAULT_KEY_ENV_VAR} env var required.",
                err=True,
            )
            sys.exit(1)

    options = {"language": language, "countrycode": countrycode}
    client = GeocodeClient(credentials, user_agent=user_agent, timeout=timeout)

    tool = SpreadsheetGeocoder(
        input_path=input_path,
        output_path=output_path,
        address_col=address_col,
        client=client,
        options={k: v for k, v in options.items() if v},
        reverse=reverse,
        lat_col=lat_col,
        lng_col=lng_col,
        verbose=verbose,
    )

    click.echo(f"Geocoding {input_path} ...")
    try:
        with client:
            tool.run()
    except SheetGeocoderError as exc:
        click.echo(f"Error: {exc.message}", err=True)
        sys.exit(1)

    success = sum(1 for r in tool.rows if r.success)
    click.echo(f"\nOutput written to: {output_path}")
    click.echo(f"Geocoded: {success}/{len(tool.rows)} rows successfully.")


if __name__ == "__main__":
    main()
