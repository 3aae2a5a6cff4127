import argparse
from typing import Optional

import requests
from rich import print

from logger import logger
from config.config import settings
from gcp.secret import secret_mgr
from listing.listing_model import Coordinate


class GeocodingError(Exception):
    """The address could not be resolved to a coordinate"""

    def __init__(self, address: str, detail: str = None):
        self.address = address
        self.detail = detail
        message = f"Unable to geocode address '{address}'"
        super().__init__(f"{message}: {detail}" if detail else message)


class Geocoder:
    """Resolves free text addresses with the Google Geocoding API"""

    STATUS_OK = 'OK'
    STATUS_ZERO_RESULTS = 'ZERO_RESULTS'

    def __init__(self, api_key: str = None):
        self._api_key = api_key

    @property
    def api_key(self) -> Optional[str]:
        if self._api_key is None:
            self._api_key = secret_mgr.secret(settings.Secret.GOOGLE_MAPS_API_KEY)
        return self._api_key

    def geocode(self, address: str) -> Optional[Coordinate]:
        """
        Coordinate of the first candidate the geocoding service returns for the address.
        Returns None when geocoding is turned off, raises GeocodingError when the address
        can't be resolved.
        """
        if not settings.FeatureFlags.ENABLE_GEOCODING:
            logger.warning(f"[GEOCODER] Geocoding disabled - not resolving '{address}'")
            return None

        if not address or not address.strip():
            raise GeocodingError(address, "address is empty")

        if not self.api_key:
            raise GeocodingError(address, "no API key configured")

        logger.info(f"[GEOCODER] Resolving address: '{address}'")
        try:
            response = requests.get(
                settings.Geocoding.API_URL,
                params={'address': address, 'key': self.api_key},
                timeout=settings.Geocoding.TIMEOUT_IN_SECONDS)
            response.raise_for_status()
            result = response.json()
        except (requests.RequestException, ValueError) as e:
            raise GeocodingError(address, str(e)) from e

        status = result.get('status')
        candidates = result.get('results') or []
        if status == self.STATUS_ZERO_RESULTS or (status == self.STATUS_OK and not candidates):
            raise GeocodingError(address, "no candidates found")
        if status != self.STATUS_OK:
            raise GeocodingError(address, f"{status}: {result.get('error_message', 'no details')}")

        try:
            location = candidates[0]['geometry']['location']
            coordinate = Coordinate(latitude=location['lat'], longitude=location['lng'])
        except (KeyError, TypeError, ValueError) as e:
            raise GeocodingError(address, f"malformed candidate: {e}") from e
        logger.info(f"[GEOCODER] '{address}' -> ({coordinate.latitude}, {coordinate.longitude})")
        return coordinate


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Google Geocoding')
    parser.add_argument('-a', '--address', required=True, type=str, help='Address')
    args = parser.parse_args()

    try:
        print(Geocoder().geocode(args.address))
    except GeocodingError as e:
        logger.error(e)
