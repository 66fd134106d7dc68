"""
OpenCage Geocoder — Data Model
===============================
Immutable request/response types exchanged between
:class:`~opencage_geocoder.client.GeocodeClient` and its callers.

Classes:
    GeocodeQuery    Validated forward or reverse request plus extra options.
    Candidate       One ranked match from the service.
    RateInfo        Free-tier quota counters echoed by the service.
    GeocodeResult   Decoded response envelope (possibly zero candidates).
    BatchRow        One output row of a spreadsheet batch.

Response envelope handled by :meth:`GeocodeResult.from_envelope`::

    {
      "status": {"code": 200, "message": "OK"},
      "total_results": 1,
      "rate": {"limit": 2500, "remaining": 2499, "reset": 1700000000},
      "results": [
        {"formatted": "...", "confidence": 9,
         "geometry": {"lat": 52.51, "lng": 13.37},
         "components": {"country_code": "de", ...}}
      ]
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

from shared.python.exceptions import InvalidInputError, ParseError
from shared.python.validators import Validators

QueryMode = Literal["forward", "reverse"]
RowStatus = Literal["empty", "ok", "no_results", "error"]


# ---------------------------------------------------------------------------
# Request
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class GeocodeQuery:
    """A validated geocoding request.

    Prefer the :meth:`forward` and :meth:`reverse` constructors over
    building this directly.

    Attributes:
        mode: ``"forward"`` (text → coordinates) or ``"reverse"``
              (coordinates → text).
        text: Free-form place text; forward mode only.
        latitude: WGS84 latitude; reverse mode only.
        longitude: WGS84 longitude; reverse mode only.
        options: Extra API parameters such as ``language`` or
                 ``countrycode``.  ``q`` and ``key`` in here are ignored.

    Raises:
        InvalidInputError: If the fields do not satisfy the mode.
    """

    mode: QueryMode
    text: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    options: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.mode == "forward":
            Validators.assert_query_text(self.text)
        elif self.mode != "reverse":
            raise InvalidInputError(f"Unknown query mode: {self.mode!r}")
        else:
            Validators.assert_coordinate(self.latitude, "latitude", 90)
            Validators.assert_coordinate(self.longitude, "longitude", 180)

    @classmethod
    def forward(cls, text: str, options: Mapping[str, Any] | None = None) -> "GeocodeQuery":
        return cls(mode="forward", text=text, options=dict(options or {}))

    @classmethod
    def reverse(
        cls,
        latitude: float,
        longitude: float,
        options: Mapping[str, Any] | None = None,
    ) -> "GeocodeQuery":
        return cls(
            mode="reverse",
            latitude=latitude,
            longitude=longitude,
            options=dict(options or {}),
        )

    @property
    def q(self) -> str:
        """Value of the ``q`` wire parameter.

        Reverse queries are sent as ``"<latitude>,<longitude>"``, plain
        decimal text joined by a comma.
        """
        if self.mode == "forward":
            return self.text  # type: ignore[return-value]
        return f"{self.latitude},{self.longitude}"


# ---------------------------------------------------------------------------
# Response
# ---------------------------------------------------------------------------


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class Candidate:
    """One geocoding match, in the order the service ranked it.

    Attributes:
        formatted: Display address, e.g. ``"Brandenburg Gate, Pariser Platz,
                   10117 Berlin, Germany"``.
        latitude: WGS84 latitude of the match.
        longitude: WGS84 longitude of the match.
        components: Open-ended address parts (``country_code``, ``road``,
                    ``city``, ``_type``, ...).
        confidence: Service confidence 0–10, or ``None`` if not sent.
    """

    formatted: str
    latitude: float
    longitude: float
    components: dict[str, Any] = field(default_factory=dict)
    confidence: int | None = None

    @classmethod
    def from_dict(cls, raw: Any) -> "Candidate":
        """Decode one entry of the envelope's ``results`` list.

        Raises:
            ParseError: If *raw* is not an object or lacks a numeric
                ``geometry.lat`` / ``geometry.lng``.
        """
        if not isinstance(raw, dict):
            raise ParseError(f"Expected a result object, got {type(raw).__name__}.")
        geometry = raw.get("geometry")
        if not isinstance(geometry, dict):
            raise ParseError("Result is missing its 'geometry' object.")
        lat, lng = geometry.get("lat"), geometry.get("lng")
        if not (_is_number(lat) and _is_number(lng)):
            raise ParseError(f"Result geometry has non-numeric lat/lng: {geometry!r}")

        components = raw.get("components")
        confidence = raw.get("confidence")
        return cls(
            formatted=str(raw.get("formatted") or ""),
            latitude=float(lat),
            longitude=float(lng),
            components=dict(components) if isinstance(components, dict) else {},
            confidence=confidence if _is_number(confidence) else None,
        )


@dataclass(frozen=True)
class RateInfo:
    """Quota counters the service attaches to free-trial responses."""

    limit: int | None
    remaining: int | None
    reset: int | None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "RateInfo":
        def _int(name: str) -> int | None:
            value = raw.get(name)
            return int(value) if _is_number(value) else None

        return cls(limit=_int("limit"), remaining=_int("remaining"), reset=_int("reset"))


@dataclass(frozen=True)
class GeocodeResult:
    """Decoded response of a successful (HTTP 200) request.

    An empty :attr:`candidates` tuple is still a success: the service
    understood the query and found nothing.

    Attributes:
        candidates: Matches in the service's relevance order.
        status_code: ``status.code`` from the envelope (normally 200).
        status_message: ``status.message`` from the envelope.
        total_results: ``total_results`` from the envelope, or the number
                       of candidates when absent.
        rate: Quota counters, when the service sent them.
    """

    candidates: tuple[Candidate, ...] = ()
    status_code: int = 200
    status_message: str = "OK"
    total_results: int = 0
    rate: RateInfo | None = None

    @property
    def best(self) -> Candidate | None:
        """Top-ranked candidate, or ``None`` for an empty result."""
        return self.candidates[0] if self.candidates else None

    @property
    def is_empty(self) -> bool:
        return not self.candidates

    @classmethod
    def from_envelope(cls, payload: Any, status_code: int = 200) -> "GeocodeResult":
        """Decode the JSON envelope returned by the service.

        Args:
            payload: The parsed JSON body.
            status_code: HTTP status, used when the envelope has no
                         ``status.code``.

        Raises:
            ParseError: If the envelope shape does not match.
        """
        if not isinstance(payload, dict):
            raise ParseError(
                f"Expected a JSON object envelope, got {type(payload).__name__}."
            )

        raw_results = payload.get("results")
        if raw_results is None:
            raw_results = []
        if not isinstance(raw_results, list):
            raise ParseError("Envelope field 'results' is not a list.")
        candidates = tuple(Candidate.from_dict(r) for r in raw_results)

        status = payload.get("status")
        status = status if isinstance(status, dict) else {}
        code = status.get("code")
        total = payload.get("total_results")
        rate = payload.get("rate")

        return cls(
            candidates=candidates,
            status_code=int(code) if _is_number(code) else status_code,
            status_message=str(status.get("message") or "OK"),
            total_results=int(total) if _is_number(total) else len(candidates),
            rate=RateInfo.from_dict(rate) if isinstance(rate, dict) else None,
        )


def status_message(payload: Any) -> str | None:
    """Return ``status.message`` from an error envelope, if there is one."""
    if not isinstance(payload, dict):
        return None
    status = payload.get("status")
    if not isinstance(status, dict):
        return None
    message = status.get("message")
    if isinstance(message, str) and message.strip():
        return message
    return None


# ---------------------------------------------------------------------------
# Batch output
# ---------------------------------------------------------------------------


NO_RESULTS_MARKER = "No results found"
ERROR_PREFIX = "ERROR: "


@dataclass(frozen=True)
class BatchRow:
    """One output row of a spreadsheet batch.

    Attributes:
        address: The input cell value as text (``""`` for blank cells).
        formatted: Top candidate's display address, the no-results marker,
                   or ``"ERROR: <message>"``.
        latitude: Top candidate's latitude, ``None`` otherwise.
        longitude: Top candidate's longitude, ``None`` otherwise.
        status: ``"empty"``, ``"ok"``, ``"no_results"`` or ``"error"``.
        error_kind: :attr:`GeocodeFailure.kind` for failed rows.
    """

    address: str
    formatted: str = ""
    latitude: float | None = None
    longitude: float | None = None
    status: RowStatus = "empty"
    error_kind: str | None = None

    @property
    def success(self) -> bool:
        return self.status == "ok"

    def as_triple(self) -> tuple[str, Any, Any]:
        """The three cells written next to the input column.

        Missing coordinates are rendered as ``""`` so that blank and failed
        rows leave empty cells.
        """
        return (
            self.formatted,
            "" if self.latitude is None else self.latitude,
            "" if self.longitude is None else self.longitude,
        )
