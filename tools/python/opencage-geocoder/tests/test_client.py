"""
Tests — OpenCage Client
========================
Unit tests for :class:`~opencage_geocoder.client.GeocodeClient` and the
query-string helpers.

All HTTP calls are mocked via the ``responses`` library — no real
network requests are made during testing.
"""

from __future__ import annotations

import logging
import math
from urllib.parse import urlsplit

import pytest
import requests
import responses as rsps_lib

from opencage_geocoder.client import (
    DEFAULT_USER_AGENT,
    OPENCAGE_URL,
    GeocodeClient,
    build_params,
    classify_api_error,
    decode_query,
    encode_query,
    redact,
)
from opencage_geocoder.credentials import EnvCredentialProvider, StaticCredentialProvider
from opencage_geocoder.models import GeocodeQuery, GeocodeResult
from shared.python.exceptions import (
    ApiError,
    GeocodeFailure,
    InvalidInputError,
    MissingCredentialError,
    NetworkError,
    ParseError,
)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


def _hit(formatted: str, lat: float, lng: float, **components: str) -> dict:
    """Build one entry of the ``results`` list."""
    return {
        "formatted": formatted,
        "confidence": 9,
        "geometry": {"lat": lat, "lng": lng},
        "components": components,
    }


def _envelope(*results: dict, code: int = 200, message: str = "OK") -> dict:
    """Build a mock OpenCage JSON envelope."""
    return {
        "status": {"code": code, "message": message},
        "total_results": len(results),
        "rate": {"limit": 2500, "remaining": 2499, "reset": 1700000000},
        "results": list(results),
    }


def _sent_params(call_index: int = 0) -> dict[str, str]:
    return decode_query(urlsplit(rsps_lib.calls[call_index].request.url).query)


@pytest.fixture()
def client() -> GeocodeClient:
    return GeocodeClient(StaticCredentialProvider("test-key"))


# ---------------------------------------------------------------------------
# Query-string helpers
# ---------------------------------------------------------------------------


class TestQueryString:
    def test_round_trip_recovers_pairs(self) -> None:
        params = {
            "q": "Königstraße 1, 70173 Stuttgart",
            "language": "de",
            "key": "a+b/c=d&e",
            "countrycode": "de,at",
        }
        assert decode_query(encode_query(params)) == params

    def test_preserves_insertion_order(self) -> None:
        encoded = encode_query({"language": "en", "q": "x", "key": "k"})
        assert [part.split("=")[0] for part in encoded.split("&")] == ["language", "q", "key"]

    def test_space_and_comma_are_percent_encoded(self) -> None:
        assert encode_query({"q": "41.4036,2.1744 x"}) == "q=41.4036%2C2.1744%20x"

    def test_forced_keys_win_over_options(self) -> None:
        query = GeocodeQuery.forward("Berlin", {"q": "Paris", "key": "evil", "language": "de"})
        params = build_params(query, "real-key")
        assert params == {"language": "de", "q": "Berlin", "key": "real-key"}

    def test_none_dropped_and_bool_rendered(self) -> None:
        query = GeocodeQuery.forward("Berlin", {"no_annotations": True, "language": None})
        assert build_params(query, "k") == {"no_annotations": "1", "q": "Berlin", "key": "k"}


# ---------------------------------------------------------------------------
# Forward geocoding
# ---------------------------------------------------------------------------


class TestForward:
    @rsps_lib.activate
    def test_known_address_ranked_results(self, client: GeocodeClient) -> None:
        rsps_lib.add(
            rsps_lib.GET, OPENCAGE_URL,
            json=_envelope(
                _hit("Brandenburg Gate, Pariser Platz, 10117 Berlin, Germany",
                     52.5162767, 13.3777025, country_code="de"),
                _hit("Brandenburger Tor, Potsdam, Germany", 52.4, 13.05, country_code="de"),
            ),
            status=200,
        )
        result = client.forward("Brandenburg Gate, Berlin")
        assert isinstance(result, GeocodeResult)
        assert len(result.candidates) == 2
        assert result.best.components["country_code"] == "de"
        assert result.candidates[1].formatted.startswith("Brandenburger Tor, Potsdam")
        assert result.rate is not None and result.rate.remaining == 2499

    @rsps_lib.activate
    def test_request_parameters_and_user_agent(self, client: GeocodeClient) -> None:
        rsps_lib.add(rsps_lib.GET, OPENCAGE_URL, json=_envelope(), status=200)
        client.forward("Brandenburg Gate, Berlin", {"language": "en", "countrycode": "de"})
        assert _sent_params() == {
            "language": "en",
            "countrycode": "de",
            "q": "Brandenburg Gate, Berlin",
            "key": "test-key",
        }
        assert rsps_lib.calls[0].request.headers["User-Agent"] == DEFAULT_USER_AGENT

    @rsps_lib.activate
    def test_no_results_is_success(self, client: GeocodeClient) -> None:
        rsps_lib.add(rsps_lib.GET, OPENCAGE_URL, json=_envelope(), status=200)
        result = client.forward("NOWHERE-INTERESTING")
        assert result.candidates == ()
        assert result.is_empty
        assert result.best is None

    @rsps_lib.activate
    def test_empty_query_never_calls_http(self, client: GeocodeClient) -> None:
        with pytest.raises(InvalidInputError):
            client.forward("")
        with pytest.raises(InvalidInputError):
            client.forward("   ")
        assert len(rsps_lib.calls) == 0

    @rsps_lib.activate
    @pytest.mark.parametrize("key", [None, ""])
    def test_missing_credential_never_calls_http(self, key: str | None) -> None:
        client = GeocodeClient(StaticCredentialProvider(key))
        with pytest.raises(MissingCredentialError):
            client.forward("Berlin")
        assert len(rsps_lib.calls) == 0

    @rsps_lib.activate
    def test_invalid_input_checked_before_credential(self) -> None:
        client = GeocodeClient(StaticCredentialProvider(None))
        with pytest.raises(InvalidInputError):
            client.forward("")

    @rsps_lib.activate
    def test_credential_read_fresh_each_request(self, monkeypatch: pytest.MonkeyPatch) -> None:
        rsps_lib.add(rsps_lib.GET, OPENCAGE_URL, json=_envelope(), status=200)
        client = GeocodeClient(EnvCredentialProvider("TEST_OPENCAGE_KEY"))
        monkeypatch.setenv("TEST_OPENCAGE_KEY", "first")
        client.forward("Berlin")
        monkeypatch.setenv("TEST_OPENCAGE_KEY", "rotated")
        client.forward("Berlin")
        assert _sent_params(0)["key"] == "first"
        assert _sent_params(1)["key"] == "rotated"


# ---------------------------------------------------------------------------
# Reverse geocoding
# ---------------------------------------------------------------------------


class TestReverse:
    @rsps_lib.activate
    def test_nearby_feature(self, client: GeocodeClient) -> None:
        rsps_lib.add(
            rsps_lib.GET, OPENCAGE_URL,
            json=_envelope(
                _hit("Carrer de la Marina, 08013 Barcelona, Spain", 41.4036, 2.1744,
                     road="Plaça de la Sagrada Família", country_code="es"),
            ),
            status=200,
        )
        result = client.reverse(41.4036, 2.1744)
        assert "Sagrada" in result.best.components["road"]

    @rsps_lib.activate
    def test_q_is_comma_joined_decimals(self, client: GeocodeClient) -> None:
        rsps_lib.add(rsps_lib.GET, OPENCAGE_URL, json=_envelope(), status=200)
        client.reverse(41.4036, 2.1744, {"language": "es"})
        assert _sent_params()["q"] == "41.4036,2.1744"
        assert "q=41.4036%2C2.1744" in rsps_lib.calls[0].request.url

    @rsps_lib.activate
    @pytest.mark.parametrize(
        "lat, lng",
        [("41.4", 2.17), (None, 2.17), (True, 2.17), (math.nan, 2.17), (41.4, math.inf), (91.0, 0.0), (0.0, -181.0)],
    )
    def test_bad_coordinates_raise(self, client: GeocodeClient, lat: object, lng: object) -> None:
        with pytest.raises(InvalidInputError):
            client.reverse(lat, lng)  # type: ignore[arg-type]
        assert len(rsps_lib.calls) == 0


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------


class TestErrors:
    @rsps_lib.activate
    def test_401_invalid_key(self, client: GeocodeClient) -> None:
        rsps_lib.add(
            rsps_lib.GET, OPENCAGE_URL,
            json=_envelope(code=401, message="invalid API key"), status=401,
        )
        with pytest.raises(ApiError) as exc_info:
            client.forward("Berlin")
        assert exc_info.value.code == 401
        assert exc_info.value.reason == "invalid_key"
        assert "invalid api key" in exc_info.value.message.lower()

    @rsps_lib.activate
    def test_402_quota_exceeded(self, client: GeocodeClient) -> None:
        rsps_lib.add(
            rsps_lib.GET, OPENCAGE_URL,
            json=_envelope(code=402, message="quota exceeded"), status=402,
        )
        with pytest.raises(ApiError) as exc_info:
            client.forward("Berlin")
        assert exc_info.value.reason == "quota_exceeded"
        assert "quota" in exc_info.value.message.lower()

    @rsps_lib.activate
    def test_403_not_retried(self, client: GeocodeClient) -> None:
        rsps_lib.add(
            rsps_lib.GET, OPENCAGE_URL,
            json=_envelope(code=403, message="IP address rejected"), status=403,
        )
        outcome = client.try_forward("Berlin")
        assert isinstance(outcome, ApiError)
        assert outcome.reason == "forbidden"
        assert outcome.message == "IP address rejected"
        assert len(rsps_lib.calls) == 1

    @rsps_lib.activate
    def test_unknown_status_without_body(self, client: GeocodeClient) -> None:
        rsps_lib.add(rsps_lib.GET, OPENCAGE_URL, body="<html>teapot</html>", status=418)
        with pytest.raises(ApiError) as exc_info:
            client.forward("Berlin")
        assert exc_info.value.message == "Unknown API Error (HTTP 418)"
        assert exc_info.value.reason == "unknown"

    def test_status_without_message_gets_generic_text(self) -> None:
        error = classify_api_error(401, {"results": []})
        assert error.message == "Unknown API Error (HTTP 401)"
        assert error.reason == "invalid_key"
        assert classify_api_error(402, None).reason == "quota_exceeded"
        assert classify_api_error(502, None).reason == "server_error"

    @rsps_lib.activate
    def test_transport_failure_is_network_error(self, client: GeocodeClient) -> None:
        cause = requests.ConnectionError("Name or service not known")
        rsps_lib.add(rsps_lib.GET, OPENCAGE_URL, body=cause)
        with pytest.raises(NetworkError) as exc_info:
            client.forward("Berlin")
        assert exc_info.value.cause is cause
        assert exc_info.value.kind == "NetworkError"

    @rsps_lib.activate
    def test_transport_failure_hides_api_key(self, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.DEBUG, logger="sheetgeocoder")
        rsps_lib.add_callback(
            rsps_lib.GET, OPENCAGE_URL,
            callback=lambda request: requests.ConnectionError(
                f"Max retries exceeded with url: {request.path_url}"
            ),
        )
        client = GeocodeClient(StaticCredentialProvider("SECRET-KEY-123"))

        outcome = client.try_forward("Berlin")

        assert isinstance(outcome, NetworkError)
        assert "SECRET-KEY-123" in str(outcome.cause)
        assert "SECRET-KEY-123" not in outcome.message
        assert "key=***" in outcome.message
        assert "SECRET-KEY-123" not in caplog.text

    def test_redact_covers_raw_and_encoded_key(self) -> None:
        text = "url: /json?q=x&key=a%20b%2Fc raw=a b/c"
        assert redact(text, "a b/c") == "url: /json?q=x&key=*** raw=***"
        assert redact("nothing here", "") == "nothing here"

    @rsps_lib.activate
    def test_malformed_json_is_parse_error(self, client: GeocodeClient) -> None:
        rsps_lib.add(rsps_lib.GET, OPENCAGE_URL, body="{not json", status=200)
        with pytest.raises(ParseError):
            client.forward("Berlin")

    @rsps_lib.activate
    def test_result_without_geometry_is_parse_error(self, client: GeocodeClient) -> None:
        rsps_lib.add(
            rsps_lib.GET, OPENCAGE_URL,
            json={"status": {"code": 200, "message": "OK"}, "results": [{"formatted": "x"}]},
            status=200,
        )
        outcome = client.try_forward("Berlin")
        assert isinstance(outcome, ParseError)

    @rsps_lib.activate
    def test_try_methods_return_failures(self, client: GeocodeClient) -> None:
        outcome = client.try_forward("")
        assert isinstance(outcome, GeocodeFailure)
        assert outcome.kind == "InvalidInput"
        assert isinstance(client.try_reverse(100.0, 0.0), InvalidInputError)
