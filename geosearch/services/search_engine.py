"""
Proximity-based listing discovery.

Widens the search radius along a fixed ladder until something turns up, then
falls back to the user's city, then state, and finally the whole listing set.
The in-memory and remote paths share the same threshold functions, so for the
same listings they agree on radius, strategy and membership.
"""

import asyncio
import logging
from typing import Any, Callable, Iterable, List, Optional, Sequence

import httpx

from ..core.config import settings
from ..core.errors import GeoQueryUnavailable, InvalidCoordinate, StoreUnavailable, TransientStoreError
from ..core.utils import normalize_region
from ..data.base import (
    AnnotatedListing,
    Coordinate,
    Listing,
    ListingStore,
    SearchResult,
    SearchStrategy,
)
from ..data.listing_client import listing_client
from .distance import distance_km

logger = logging.getLogger(__name__)

# Failures worth another attempt. Anything else is reported as-is.
TRANSIENT_ERRORS = (
    TransientStoreError,
    asyncio.TimeoutError,
    TimeoutError,
    ConnectionError,
    httpx.TransportError,
)


def _origin(location: Coordinate) -> Coordinate:
    if location is None or not location.validate():
        raise InvalidCoordinate(
            getattr(location, "latitude", None), getattr(location, "longitude", None)
        )
    return Coordinate(latitude=float(location.latitude), longitude=float(location.longitude))


def within_radius(
    origin: Coordinate, listings: Iterable[Listing], radius_km: float
) -> List[AnnotatedListing]:
    """
    Listings no further than `radius_km` from `origin`, closest first.
    Listings without usable coordinates are skipped. Ties keep input order.
    """
    hits = []
    for listing in listings:
        point = listing.usable_point()
        if point is None:
            continue
        d = distance_km(origin, point)
        if d <= radius_km:
            hits.append(AnnotatedListing(listing=listing, distance_km=d))
    hits.sort(key=lambda a: a.distance_km)
    return hits


def scan_ladder(
    origin: Coordinate, listings: Sequence[Listing], radii: Sequence[float]
) -> Optional[SearchResult]:
    """First radius with any hit wins; larger radii are never tried."""
    for radius in radii:
        hits = within_radius(origin, listings, radius)
        logger.debug("radius %.0fkm: %d hit(s)", radius, len(hits))
        if hits:
            return SearchResult(listings=hits, radius_km=radius, strategy=SearchStrategy.RADIUS)
    return None


def match_region(user_location: Coordinate, listings: Iterable[Listing]) -> SearchResult:
    """
    City, then state, case-insensitive. With neither matching, the whole
    input comes back untouched, never an empty "nothing available".
    """
    listings = list(listings)
    tiers = (
        (SearchStrategy.CITY, "city"),
        (SearchStrategy.STATE, "state"),
    )
    for strategy, attr in tiers:
        wanted = normalize_region(getattr(user_location, attr, None))
        if not wanted:
            continue
        matched = [l for l in listings if normalize_region(getattr(l.location, attr, None)) == wanted]
        if matched:
            return SearchResult(
                listings=[AnnotatedListing(listing=l) for l in matched],
                radius_km=0,
                strategy=strategy,
            )
    return SearchResult(
        listings=[AnnotatedListing(listing=l) for l in listings],
        radius_km=0,
        strategy=SearchStrategy.UNFILTERED,
    )


def annotate_and_sort_by_distance(
    user_location: Optional[Coordinate], listings: Iterable[Listing]
) -> List[AnnotatedListing]:
    """
    Attach a distance to every listing and sort closest first.

    Without a user location (location services off) this is a pass-through
    with no distances. Listings that can't be measured keep distance None
    and trail the measured ones in input order.
    """
    if user_location is None:
        return [AnnotatedListing(listing=l) for l in listings]

    origin = _origin(user_location)
    measured, unmeasured = [], []
    for listing in listings:
        point = listing.usable_point()
        if point is None:
            unmeasured.append(AnnotatedListing(listing=listing))
        else:
            measured.append(AnnotatedListing(listing=listing, distance_km=distance_km(origin, point)))
    measured.sort(key=lambda a: a.distance_km)
    return measured + unmeasured


class GeoSearchEngine:
    """
    Orchestrates:
      user location → radius ladder → city → state → everything
    either over listings already in memory (`find_nearby`) or as a series
    of store geo-queries (`find_nearby_remote`) with retries and a
    client-side fallback when the geo-query itself is broken.
    """
    def __init__(
        self,
        store: Optional[ListingStore] = None,
        radii: Optional[Sequence[float]] = None,
        max_retries: Optional[int] = None,
        backoff_base_seconds: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
        sleep: Optional[Callable[[float], Any]] = None,
    ):
        radii = tuple(float(r) for r in (radii if radii is not None else settings.SEARCH_RADII_KM))
        if not radii:
            raise ValueError("radius ladder must not be empty")
        if radii[0] <= 0 or any(b <= a for a, b in zip(radii, radii[1:])):
            raise ValueError(f"radius ladder must be positive and strictly ascending: {radii}")
        self.radii = radii

        self.store = store if store is not None else listing_client()
        self.max_retries = settings.STORE_MAX_RETRIES if max_retries is None else max_retries
        self.backoff_base_seconds = (
            settings.STORE_BACKOFF_BASE_SECONDS if backoff_base_seconds is None else backoff_base_seconds
        )
        self.timeout_seconds = settings.STORE_TIMEOUT_SECONDS if timeout_seconds is None else timeout_seconds
        self._sleep = sleep or asyncio.sleep

    def ladder(self, max_radius_km: Optional[float] = None) -> tuple:
        if max_radius_km is None:
            return self.radii
        steps = tuple(r for r in self.radii if r <= max_radius_km)
        if not steps:
            raise ValueError(
                f"max_radius_km={max_radius_km} is below the smallest search radius {self.radii[0]}"
            )
        return steps

    def find_nearby(self, user_location: Coordinate, listings: Iterable[Listing]) -> SearchResult:
        return self._resolve(user_location, _origin(user_location), list(listings), self.radii)

    def annotate_and_sort_by_distance(
        self, user_location: Optional[Coordinate], listings: Iterable[Listing]
    ) -> List[AnnotatedListing]:
        return annotate_and_sort_by_distance(user_location, listings)

    async def find_nearby_remote(
        self, user_location: Coordinate, max_radius_km: Optional[float] = None
    ) -> SearchResult:
        origin = _origin(user_location)
        ladder = self.ladder(max_radius_km)

        try:
            for radius in ladder:
                rows = await self._call(
                    "geo-query", self.store.search_by_location,
                    origin.latitude, origin.longitude, radius,
                )
                hits = within_radius(origin, rows, radius)
                logger.debug("geo-query %.0fkm: %d row(s), %d hit(s)", radius, len(rows), len(hits))
                if hits:
                    return SearchResult(listings=hits, radius_km=radius, strategy=SearchStrategy.RADIUS)
        except (GeoQueryUnavailable, *TRANSIENT_ERRORS) as e:
            logger.warning("geo-query failed (%s: %s); filtering client-side", type(e).__name__, e)
            active = await self._active_listings()
            return self._resolve(user_location, origin, active, ladder)

        # Ladder exhausted without a hit: rescan the full set client-side so
        # rows the geo-query missed still land on the same radius
        active = await self._active_listings()
        return self._resolve(user_location, origin, active, ladder)

    def _resolve(self, user_location, origin, listings, ladder) -> SearchResult:
        result = scan_ladder(origin, listings, ladder)
        if result is None:
            result = match_region(user_location, listings)
        return result

    async def _active_listings(self) -> List[Listing]:
        try:
            return await self._call("active-listings", self.store.active_listings)
        except (GeoQueryUnavailable, *TRANSIENT_ERRORS) as e:
            logger.error("active listing fetch failed (%s: %s)", type(e).__name__, e)
            raise StoreUnavailable("listing store is unavailable") from e

    async def _call(self, name: str, fn, *args):
        """
        One store call under a timeout. Transient failures are retried
        `max_retries` times, sleeping base * 2**n between attempts.
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                return await asyncio.wait_for(fn(*args), timeout=self.timeout_seconds)
            except TRANSIENT_ERRORS as e:
                if attempt > self.max_retries:
                    raise
                delay = self.backoff_base_seconds * 2 ** (attempt - 1)
                logger.warning(
                    "%s attempt %d failed (%s: %s); retrying in %.1fs",
                    name, attempt, type(e).__name__, e, delay,
                )
                await self._sleep(delay)
