from unittest.mock import patch

import pytest
import requests

from config.config import settings
from listing.geocoder import Geocoder, GeocodingError
from listing.listing_model import Coordinate

ADDRESS = "140 Commonwealth Ave, Chestnut Hill, MA 02467"


@pytest.fixture
def mock_get():
    with patch('listing.geocoder.requests.get') as mock_get:
        yield mock_get


def respond(mock_get, payload=None, error=None):
    response = mock_get.return_value
    response.json.return_value = payload
    if error:
        response.raise_for_status.side_effect = error


def test_first_candidate_is_returned(mock_get):
    respond(mock_get, {
        "status": "OK",
        "results": [
            {"geometry": {"location": {"lat": 42.3355, "lng": -71.1685}}},
            {"geometry": {"location": {"lat": 1.0, "lng": 2.0}}},
        ],
    })

    assert Geocoder(api_key="test-key").geocode(ADDRESS) == Coordinate(latitude=42.3355, longitude=-71.1685)

    args, kwargs = mock_get.call_args
    assert args == (settings.Geocoding.API_URL,)
    assert kwargs["params"] == {"address": ADDRESS, "key": "test-key"}
    assert kwargs["timeout"] == settings.Geocoding.TIMEOUT_IN_SECONDS


@pytest.mark.parametrize("payload", [
    {"status": "ZERO_RESULTS", "results": []},
    {"status": "OK", "results": []},
])
def test_no_candidates_fails(mock_get, payload):
    respond(mock_get, payload)

    with pytest.raises(GeocodingError, match="Unable to geocode address"):
        Geocoder(api_key="test-key").geocode("nowhere at all")


def test_api_error_status_fails(mock_get):
    respond(mock_get, {"status": "REQUEST_DENIED", "error_message": "bad key", "results": []})

    with pytest.raises(GeocodingError, match="REQUEST_DENIED"):
        Geocoder(api_key="test-key").geocode(ADDRESS)


def test_malformed_candidate_fails(mock_get):
    respond(mock_get, {"status": "OK", "results": [{"geometry": {}}]})

    with pytest.raises(GeocodingError, match="malformed candidate"):
        Geocoder(api_key="test-key").geocode(ADDRESS)


def test_transport_error_fails(mock_get):
    respond(mock_get, error=requests.HTTPError("500 Server Error"))

    with pytest.raises(GeocodingError) as exc_info:
        Geocoder(api_key="test-key").geocode(ADDRESS)
    assert isinstance(exc_info.value.__cause__, requests.HTTPError)


def test_blank_address_fails_without_calling_service(mock_get):
    with pytest.raises(GeocodingError):
        Geocoder(api_key="test-key").geocode("   ")
    mock_get.assert_not_called()


def test_missing_api_key_fails(mock_get):
    with patch('listing.geocoder.secret_mgr') as mock_secrets:
        mock_secrets.secret.return_value = None
        with pytest.raises(GeocodingError, match="no API key"):
            Geocoder().geocode(ADDRESS)
    mock_get.assert_not_called()


def test_disabled_geocoding_returns_none(mock_get):
    with patch.object(settings.FeatureFlags, 'ENABLE_GEOCODING', False):
        assert Geocoder(api_key="test-key").geocode(ADDRESS) is None
    mock_get.assert_not_called()
