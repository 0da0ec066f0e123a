"""
Location collaborators.

A location provider supplies the current coordinate; a geocoder turns it into a
city name. Both are optional and every failure resolves to ``None``.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Tuple
import asyncio

import requests

from app.utils.logger import get_logger

logger = get_logger(__name__)

Coordinate = Tuple[float, float]

# Nominatim address fields, most specific first
_PLACE_FIELDS = ("city", "town", "village", "municipality", "suburb", "county")


class LocationProvider(ABC):
    """Source of the device's current position."""

    @abstractmethod
    def current_coordinate(self) -> Optional[Coordinate]:
        """Return (latitude, longitude) or None when no fix is available."""


class StaticLocationProvider(LocationProvider):
    """Fixed position, e.g. configured for a home track."""

    def __init__(self, latitude: Optional[float] = None, longitude: Optional[float] = None):
        self.latitude = latitude
        self.longitude = longitude

    def current_coordinate(self) -> Optional[Coordinate]:
        if self.latitude is None or self.longitude is None:
            return None
        return (self.latitude, self.longitude)


class Geocoder(ABC):
    """Reverse geocoding contract."""

    @abstractmethod
    def city_name(self, latitude: float, longitude: float) -> Optional[str]:
        """Blocking lookup of the place name for a coordinate."""


class NominatimGeocoder(Geocoder):
    """Reverse geocoding through a Nominatim-compatible HTTP endpoint."""

    def __init__(
        self,
        url: str = "https://nominatim.openstreetmap.org/reverse",
        user_agent: str = "moto-lap-timer/0.1",
        timeout: float = 5.0,
        session: Optional[requests.Session] = None,
    ):
        self.url = url
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": user_agent})

    @classmethod
    def from_settings(cls, geocoding_settings) -> "NominatimGeocoder":
        return cls(
            url=geocoding_settings.url,
            user_agent=geocoding_settings.user_agent,
            timeout=geocoding_settings.timeout_seconds,
        )

    @staticmethod
    def _place_from(payload: Dict[str, Any]) -> Optional[str]:
        address = payload.get("address") or {}
        for field in _PLACE_FIELDS:
            if address.get(field):
                return address[field]
        return None

    def city_name(self, latitude: float, longitude: float) -> Optional[str]:
        params = {"format": "jsonv2", "lat": latitude, "lon": longitude, "zoom": 10}
        try:
            response = self.session.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning(f"Reverse geocoding failed for ({latitude}, {longitude}): {e}")
            return None

        if not isinstance(payload, dict):
            return None
        return self._place_from(payload)


async def resolve_city(
    geocoder: Geocoder,
    coordinate: Coordinate,
    timeout: float,
) -> Optional[str]:
    """
    Run a blocking geocoder lookup off the event loop with an upper bound.

    Args:
        geocoder: Geocoder to query
        coordinate: (latitude, longitude)
        timeout: Seconds before giving up

    Returns:
        Place name, or None on failure or timeout
    """
    latitude, longitude = coordinate
    try:
        return await asyncio.wait_for(
            asyncio.to_thread(geocoder.city_name, latitude, longitude),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Reverse geocoding timed out after {timeout}s")
    except Exception as e:
        logger.warning(f"Reverse geocoding raised: {e}")
    return None
