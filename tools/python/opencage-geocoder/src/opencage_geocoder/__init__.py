"""
OpenCage Geocoder
==================
A Sheet Geocoder tool: a thin OpenCage API client plus a batch runner that
geocodes a spreadsheet column row by row.

Public API::

    from opencage_geocoder import GeocodeClient, BatchRunner, EnvCredentialProvider
"""

from opencage_geocoder.batch import BatchRunner, SpreadsheetGeocoder
from opencage_geocoder.client import (
    PRODUCT_VERSION,
    GeocodeClient,
    decode_query,
    encode_query,
)
from opencage_geocoder.credentials import (
    CredentialProvider,
    EnvCredentialProvider,
    StaticCredentialProvider,
)
from opencage_geocoder.models import (
    BatchRow,
    Candidate,
    GeocodeQuery,
    GeocodeResult,
    RateInfo,
)

__all__ = [
    "GeocodeClient",
    "BatchRunner",
    "SpreadsheetGeocoder",
    "CredentialProvider",
    "EnvCredentialProvider",
    "StaticCredentialProvider",
    "GeocodeQuery",
    "GeocodeResult",
    "Candidate",
    "RateInfo",
    "BatchRow",
    "encode_query",
    "decode_query",
]
__version__ = PRODUCT_VERSION
