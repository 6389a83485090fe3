"""
Reverse geocoding for submitted spots (OpenStreetMap Nominatim).
Never blocks a submission: any failure yields the "Unknown Location" sentinel.
"""
import logging
from typing import Any

import httpx

from parkaccess.core.constants import UNKNOWN_CITY

logger = logging.getLogger(__name__)

# Nominatim address keys, most specific settlement first
CITY_KEYS = ("city", "town", "village", "suburb")


def city_from_address(address: dict[str, Any] | None) -> str:
    if not isinstance(address, dict):
        return UNKNOWN_CITY
    for key in CITY_KEYS:
        value = address.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return UNKNOWN_CITY


class ReverseGeocoder:
    """Callable (lat, lon) -> city name."""

    def __init__(
        self,
        url: str,
        *,
        user_agent: str,
        timeout: float = 10.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._user_agent = user_agent
        self._timeout = timeout
        self._http = http_client

    def _get(self, params: dict[str, Any]) -> httpx.Response:
        headers = {"User-Agent": self._user_agent, "Accept": "application/json"}
        if self._http is not None:
            return self._http.get(self._url, params=params, headers=headers)
        with httpx.Client(timeout=self._timeout) as c:
            return c.get(self._url, params=params, headers=headers)

    def __call__(self, latitude: float, longitude: float) -> str:
        params = {"format": "json", "lat": latitude, "lon": longitude}
        try:
            r = self._get(params)
            r.raise_for_status()
            data = r.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Reverse geocoding failed for %s,%s: %s", latitude, longitude, e)
            return UNKNOWN_CITY
        return city_from_address(data.get("address") if isinstance(data, dict) else None)
