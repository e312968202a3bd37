import logging
from dataclasses import replace
from typing import Optional

import httpx

from .base import LocationProvider, ReverseGeocoder, UserLocation, Coordinate
from ..core.cache import LocationCache
from ..core.config import settings

logger = logging.getLogger(__name__)

class StaticLocationProvider(LocationProvider):
    """A fix handed over by the caller (e.g. query parameters)."""
    def __init__(self, location: Optional[UserLocation]):
        self.location = location

    async def current(self) -> Optional[UserLocation]:
        return self.location

class CachedLocationProvider(LocationProvider):
    """
    Remembers the last fix so a later request without one (permission
    revoked, GPS off) still searches around where the user was.
    """
    def __init__(self, source: LocationProvider, cache: LocationCache, key: str = "default"):
        self.source = source
        self.cache = cache
        self.key = key

    async def current(self) -> Optional[UserLocation]:
        fix = await self.source.current()
        if fix is not None:
            self.cache.set(self.key, fix)
            return fix
        return self.cache.get(self.key)

    def clear(self) -> None:
        self.cache.clear(self.key)

class MockReverseGeocode(ReverseGeocoder):
    """Knows no place names; region fallback then relies on the caller."""
    async def locate(self, point: Coordinate) -> tuple[Optional[str], Optional[str]]:
        return None, None

class HttpReverseGeocode(ReverseGeocoder):
    """
    Placeholder for a reverse geocoding provider.
    Expects GEO_BASE_URL/reverse to answer {"city": ..., "state": ...}.
    """
    def __init__(self, base_url: str, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.transport = transport

    async def locate(self, point: Coordinate) -> tuple[Optional[str], Optional[str]]:
        async with httpx.AsyncClient(timeout=10, transport=self.transport) as client:
            r = await client.get(f"{self.base_url}/reverse", params={"lat": point.latitude, "lon": point.longitude})
            r.raise_for_status()
            j = r.json()
            if not isinstance(j, dict):
                return None, None
            return j.get("city") or j.get("subregion"), j.get("state") or j.get("region")

async def enrich_location(location: UserLocation, geocoder: ReverseGeocoder) -> UserLocation:
    """Fill in a missing city/state. Geocoding trouble never blocks a search."""
    if location.city and location.state:
        return location
    try:
        city, state = await geocoder.locate(location.point())
    except (httpx.HTTPError, ValueError, KeyError) as e:
        logger.warning("reverse geocoding failed: %s", e)
        return location
    return replace(location, city=location.city or city, state=location.state or state)

def reverse_geocoder() -> ReverseGeocoder:
    """
    Factory picks mock or http based on env flags.
    """
    if settings.GEO_PROVIDER == "http" and settings.GEO_BASE_URL:
        return HttpReverseGeocode(settings.GEO_BASE_URL)
    return MockReverseGeocode()
