import logging
from typing import List, Optional, Iterable

import httpx

from .base import ListingStore, Listing, ListingLocation, Coordinate
from ..core.config import settings
from ..core.errors import GeoQueryUnavailable, StoreQueryError, TransientStoreError
from ..core.utils import fnv1a_32, seeded_rand
from ..services.distance import distance_km

logger = logging.getLogger(__name__)

class MockListings(ListingStore):
    """
    In-memory listing store. The geo-query behaves like the hosted
    database's: every row within `max_radius_km`, unordered.
    """
    def __init__(self, listings: Optional[Iterable[Listing]] = None):
        self.listings: List[Listing] = list(listings or [])

    @classmethod
    def sample(cls, center: Coordinate, count: int = 24) -> "MockListings":
        """
        Synthetic listings scattered up to ~150km around `center`.
        Entirely deterministic; same center → same listings.
        """
        seed = fnv1a_32(f"{center.latitude},{center.longitude}")
        kinds = ["room-rent", "flat-rent", "house-rent", "office-rent", "house-buy", "land-buy"]
        out: List[Listing] = []
        for i in range(count):
            r1, r2, r3, r4 = seeded_rand(seed + i * 7919, 4)
            # Bias toward the center: most listings land within a few km
            dlat = (r1 - 0.5) * 2.7 * r3 ** 2
            dlon = (r2 - 0.5) * 2.7 * r3 ** 2
            out.append(Listing(
                id=f"mock-{i:03d}",
                title=f"{kinds[i % len(kinds)].replace('-', ' ').title()} #{i}",
                price=float(5_000 + int(r4 * 95_000)),
                status="active",
                created_at=f"2026-01-{1 + i % 28:02d}T00:00:00Z",
                location=ListingLocation(
                    address=f"{1 + int(r4 * 200)} Sample Marg",
                    coordinates=Coordinate(
                        latitude=round(center.latitude + dlat, 6),
                        longitude=round(center.longitude + dlon, 6),
                    ),
                ),
            ))
        return cls(out)

    async def search_by_location(self, latitude: float, longitude: float, max_radius_km: float) -> List[Listing]:
        origin = Coordinate(latitude=latitude, longitude=longitude)
        out = []
        for listing in await self.active_listings():
            point = listing.usable_point()
            if point is not None and distance_km(origin, point) <= max_radius_km:
                out.append(listing)
        return out

    async def active_listings(self) -> List[Listing]:
        active = [l for l in self.listings if l.status in (None, "active")]
        # Newest first, like the hosted query's ORDER BY created_at DESC
        active.sort(key=lambda l: l.created_at or "", reverse=True)
        return active

class HttpListings(ListingStore):
    """
    Client for the hosted listing database's REST/RPC endpoints.
    Maps HTTP failures onto the store error taxonomy so the engine can
    decide what to retry and when to fall back.
    """
    def __init__(self, base_url: str, timeout: float = 10, api_key: Optional[str] = None,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.headers = {"apikey": api_key, "Authorization": f"Bearer {api_key}"} if api_key else {}
        self.transport = transport

    async def search_by_location(self, latitude: float, longitude: float, max_radius_km: float) -> List[Listing]:
        rows = await self._get(
            "/rpc/search_properties_by_location",
            {"search_lat": latitude, "search_lon": longitude, "max_radius": max_radius_km},
            geo_query=True,
        )
        return [Listing.from_row(r) for r in rows]

    async def active_listings(self) -> List[Listing]:
        rows = await self._get(
            "/properties",
            {"select": "*", "status": "eq.active", "order": "created_at.desc"},
        )
        return [Listing.from_row(r) for r in rows]

    async def _get(self, path: str, params: dict, geo_query: bool = False) -> list:
        async with httpx.AsyncClient(timeout=self.timeout, headers=self.headers, transport=self.transport) as client:
            try:
                r = await client.get(f"{self.base_url}{path}", params=params)
            except httpx.TransportError as e:
                raise TransientStoreError(f"{path}: {e}") from e

        code = r.status_code
        if code >= 400:
            logger.warning("listing store %s returned %d", path, code)
        if geo_query and code in (404, 501):
            raise GeoQueryUnavailable(f"{path}: HTTP {code}")
        if code in (408, 429) or code >= 500:
            raise TransientStoreError(f"{path}: HTTP {code}")
        if code >= 400:
            raise StoreQueryError(f"{path}: HTTP {code} {r.text[:200]}")
        try:
            rows = r.json()
        except ValueError as e:
            raise StoreQueryError(f"{path}: undecodable body {r.text[:200]!r}") from e
        if not isinstance(rows, list) or not all(isinstance(row, dict) and "id" in row for row in rows):
            raise StoreQueryError(f"{path}: expected a list of rows")
        return rows

def listing_client() -> ListingStore:
    """
    Factory picks mock or http based on env flags.
    """
    if settings.STORE_PROVIDER == "http" and settings.STORE_BASE_URL:
        return HttpListings(settings.STORE_BASE_URL, timeout=settings.STORE_TIMEOUT_SECONDS,
                            api_key=settings.STORE_API_KEY)
    return MockListings.sample(
        Coordinate(latitude=settings.MOCK_CENTER_LAT, longitude=settings.MOCK_CENTER_LON),
        count=settings.MOCK_LISTING_COUNT,
    )
