"""
OpenCage Geocoder — HTTP Client
================================
Builds forward and reverse geocoding requests for the OpenCage API,
executes them with :mod:`requests`, and classifies every response into a
:class:`~opencage_geocoder.models.GeocodeResult` or a
:class:`~shared.python.exceptions.GeocodeFailure`.

Two calling styles:

* ``try_forward`` / ``try_reverse`` / ``execute`` *return* either a
  result or a failure and never raise a ``GeocodeFailure``.  The batch
  runner uses these.
* ``forward`` / ``reverse`` return the result and *raise* the failure,
  for library callers.

Usage::

    from opencage_geocoder import GeocodeClient, EnvCredentialProvider

    client = GeocodeClient(EnvCredentialProvider())
    result = client.forward("Brandenburg Gate, Berlin", {"language": "de"})
    print(result.best.formatted)

Reference:
    https://opencagedata.com/api
"""

from __future__ import annotations

import logging
from typing import Any, Mapping
from urllib.parse import parse_qsl, quote, urlencode

import requests

from opencage_geocoder.credentials import CredentialProvider, StaticCredentialProvider
from opencage_geocoder.models import GeocodeQuery, GeocodeResult, status_message
from shared.python.exceptions import (
    ApiError,
    GeocodeFailure,
    InvalidInputError,
    MissingCredentialError,
    NetworkError,
    ParseError,
)

logger = logging.getLogger("sheetgeocoder.opencage_geocoder")

OPENCAGE_URL = "https://api.opencagedata.com/geocode/v1/json"
PRODUCT_NAME = "sheet-geocoder"
PRODUCT_VERSION = "1.0.0"
DEFAULT_USER_AGENT = f"{PRODUCT_NAME}/{PRODUCT_VERSION}"

# Parameters the client always sets itself.
RESERVED_PARAMS = ("q", "key")

# HTTP status → ApiError.reason.  Documented at
# https://opencagedata.com/api#codes
_STATUS_REASONS: dict[int, str] = {
    400: "invalid_request",
    401: "invalid_key",
    402: "quota_exceeded",
    403: "forbidden",
    404: "not_found",
    405: "method_not_allowed",
    408: "timeout",
    410: "request_too_long",
    426: "upgrade_required",
    429: "rate_limited",
    503: "server_error",
}

REDACTED = "***"

Outcome = GeocodeResult | GeocodeFailure


# ---------------------------------------------------------------------------
# Query-string helpers
# ---------------------------------------------------------------------------


def _param_value(value: Any) -> str:
    if isinstance(value, bool):
        return "1" if value else "0"
    return str(value)


def build_params(query: GeocodeQuery, key: str) -> dict[str, str]:
    """Merge the caller's options with the reserved ``q`` and ``key``.

    Options keep their insertion order and come first; ``None`` values are
    dropped.  ``q`` and ``key`` always come last and always win over an
    option of the same name.
    """
    params: dict[str, str] = {
        str(name): _param_value(value)
        for name, value in query.options.items()
        if value is not None and str(name) not in RESERVED_PARAMS
    }
    params["q"] = query.q
    params["key"] = key
    return params


def encode_query(params: Mapping[str, Any]) -> str:
    """Percent-encode *params* into a query string, in insertion order.

    Keys and values are both escaped with :func:`urllib.parse.quote`, so a
    space becomes ``%20`` and ``,`` becomes ``%2C``.

    Example::

        >>> encode_query({"q": "52.5,13.4", "language": "de"})
        'q=52.5%2C13.4&language=de'
    """
    return urlencode(
        [(str(k), _param_value(v)) for k, v in params.items()],
        quote_via=quote,
    )


def decode_query(query_string: str) -> dict[str, str]:
    """Inverse of :func:`encode_query`."""
    return dict(parse_qsl(query_string, keep_blank_values=True))


# ---------------------------------------------------------------------------
# Response classification
# ---------------------------------------------------------------------------


def classify_api_error(code: int, payload: Any) -> ApiError:
    """Build the :class:`ApiError` for a non-200 response.

    The HTTP status decides :attr:`ApiError.reason`; the service's
    ``status.message`` is used verbatim as the message when present,
    otherwise ``"Unknown API Error (HTTP <code>)"``.
    """
    reason = _STATUS_REASONS.get(code)
    if reason is None:
        reason = "server_error" if 500 <= code < 600 else "unknown"

    message = status_message(payload) or f"Unknown API Error (HTTP {code})"
    return ApiError(code, message, reason=reason)


def redact(text: str, secret: str) -> str:
    """Replace *secret*, raw and percent-encoded, with ``***`` in *text*."""
    for form in (quote(secret, safe=""), secret):
        if form:
            text = text.replace(form, REDACTED)
    return text


def _json_or_none(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------


class GeocodeClient:
    """Forward and reverse geocoding against the OpenCage API.

    Sequential and synchronous: one HTTP request per call, no retries, no
    caching.  The API key is fetched from *credentials* on every request.

    Args:
        credentials: Where to read the API key from.  A plain string is
                     wrapped in a :class:`StaticCredentialProvider`.
        base_url: Endpoint for the GET requests.
        user_agent: ``User-Agent`` header, ``<product>/<version>``.
        timeout: HTTP timeout in seconds.
        session: Optional pre-configured :class:`requests.Session`.
    """

    def __init__(
        self,
        credentials: CredentialProvider | str | None,
        *,
        base_url: str = OPENCAGE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 10,
        session: requests.Session | None = None,
    ) -> None:
        if credentials is None or isinstance(credentials, str):
            credentials = StaticCredentialProvider(credentials)
        self.credentials: CredentialProvider = credentials
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers["User-Agent"] = self.user_agent

    # ------------------------------------------------------------------
    # Result-returning API
    # ------------------------------------------------------------------

    def try_forward(self, query: str, options: Mapping[str, Any] | None = None) -> Outcome:
        """Geocode place text; returns a result or a failure, never raises one."""
        try:
            geocode_query = GeocodeQuery.forward(query, options)
        except InvalidInputError as exc:
            return exc
        return self.execute(geocode_query)

    def try_reverse(
        self,
        latitude: float,
        longitude: float,
        options: Mapping[str, Any] | None = None,
    ) -> Outcome:
        """Reverse-geocode a coordinate pair; returns a result or a failure."""
        try:
            geocode_query = GeocodeQuery.reverse(latitude, longitude, options)
        except InvalidInputError as exc:
            return exc
        return self.execute(geocode_query)

    def execute(self, query: GeocodeQuery) -> Outcome:
        """Send an already validated *query* and classify the response.

        Returns:
            :class:`GeocodeResult` on HTTP 200 (even with no candidates),
            otherwise one of :class:`MissingCredentialError`,
            :class:`NetworkError`, :class:`ApiError` or :class:`ParseError`.
        """
        key = self.credentials.get_credential()
        if not key or not key.strip():
            logger.error("No API key available from %r", self.credentials)
            return MissingCredentialError()

        params = build_params(query, key)
        url = f"{self.base_url}?{encode_query(params)}"
        logger.debug("GET %s (%s q=%r)", self.base_url, query.mode, query.q)

        try:
            response = self._session.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            detail = redact(str(exc), key)
            logger.warning("Request for %r failed: %s", query.q, detail)
            return NetworkError(exc, detail)

        return self._classify(response)

    # ------------------------------------------------------------------
    # Raising API
    # ------------------------------------------------------------------

    def forward(self, query: str, options: Mapping[str, Any] | None = None) -> GeocodeResult:
        """Geocode place text into ranked candidates.

        Args:
            query: Free-form address or place name.  Must not be blank.
            options: Extra API parameters (``language``, ``countrycode``,
                     ``limit``, ``no_annotations``, ...).

        Raises:
            InvalidInputError: *query* is empty.
            MissingCredentialError: No API key is configured.
            NetworkError: The request never got a response.
            ApiError: The service answered with a non-200 status.
            ParseError: The response body was not the expected JSON.
        """
        return self._unwrap(self.try_forward(query, options))

    def reverse(
        self,
        latitude: float,
        longitude: float,
        options: Mapping[str, Any] | None = None,
    ) -> GeocodeResult:
        """Reverse-geocode a WGS84 coordinate pair.

        Raises:
            InvalidInputError: A coordinate is non-numeric, non-finite or
                out of range.
            MissingCredentialError, NetworkError, ApiError, ParseError:
                As for :meth:`forward`.
        """
        return self._unwrap(self.try_reverse(latitude, longitude, options))

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _unwrap(outcome: Outcome) -> GeocodeResult:
        if isinstance(outcome, GeocodeFailure):
            raise outcome
        return outcome

    def _classify(self, response: requests.Response) -> Outcome:
        if response.status_code != 200:
            error = classify_api_error(response.status_code, _json_or_none(response))
            logger.warning(
                "OpenCage returned HTTP %d (%s): %s",
                error.code, error.reason, error.message,
            )
            return error

        try:
            payload = response.json()
        except ValueError as exc:
            return ParseError(f"Malformed JSON in response body: {exc}")

        try:
            result = GeocodeResult.from_envelope(payload, status_code=response.status_code)
        except ParseError as exc:
            return exc

        if result.rate is not None:
            logger.debug(
                "Rate: %s of %s requests remaining", result.rate.remaining, result.rate.limit
            )
        logger.debug("%d candidate(s) returned", len(result.candidates))
        return result

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "GeocodeClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"GeocodeClient(base_url={self.base_url!r}, user_agent={self.user_agent!r})"
