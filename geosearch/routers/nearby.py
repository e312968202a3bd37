from dataclasses import replace
from functools import lru_cache

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response

from ..schemas import RankRequest, SortRequest, SearchResponse, SortResponse, LocationIn
from ..services.search_engine import GeoSearchEngine
from ..data.base import Listing, UserLocation
from ..data.location_client import (
    CachedLocationProvider,
    StaticLocationProvider,
    enrich_location,
    reverse_geocoder,
)
from ..core.cache import LocationCache, location_cache
from ..core.metrics import record_search

router = APIRouter()

@lru_cache
def engine_dep() -> GeoSearchEngine:
    # One engine per process; it holds configuration only
    return GeoSearchEngine()

def cache_dep() -> LocationCache:
    return location_cache

def _user_location(loc: LocationIn) -> UserLocation:
    return UserLocation(**loc.model_dump())

@router.get("/nearby", response_model=SearchResponse)
async def get_nearby(
    lat: float | None = Query(default=None),
    lon: float | None = Query(default=None),
    city: str | None = Query(default=None),
    state: str | None = Query(default=None),
    max_radius_km: float | None = Query(default=None, gt=0),
    x_device_id: str | None = Header(default=None, alias="x-device-id"),
    engine: GeoSearchEngine = Depends(engine_dep),
    cache: LocationCache = Depends(cache_dep),
):
    if (lat is None) != (lon is None):
        raise HTTPException(status_code=422, detail="lat and lon must be given together")
    try:
        engine.ladder(max_radius_km)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    fix = None
    if lat is not None:
        fix = UserLocation(latitude=lat, longitude=lon, city=city, state=state).ensure_valid()

    provider = CachedLocationProvider(StaticLocationProvider(fix), cache, key=x_device_id or "anon")
    location = await provider.current()
    if location is None:
        raise HTTPException(status_code=422, detail="lat and lon are required (no last known location)")
    if fix is None and (city or state):
        location = replace(location, city=city or location.city, state=state or location.state)

    location = await enrich_location(location, reverse_geocoder())
    result = await engine.find_nearby_remote(location, max_radius_km=max_radius_km)
    record_search("remote", result.strategy.value)
    return result.to_dict()

@router.delete("/nearby/location", status_code=204)
async def forget_location(
    x_device_id: str | None = Header(default=None, alias="x-device-id"),
    cache: LocationCache = Depends(cache_dep),
):
    cache.clear(x_device_id or "anon")
    return Response(status_code=204)

@router.post("/nearby/rank", response_model=SearchResponse)
async def rank_nearby(body: RankRequest, engine: GeoSearchEngine = Depends(engine_dep)):
    listings = [Listing.from_row(item.model_dump()) for item in body.listings]
    result = engine.find_nearby(_user_location(body.location), listings)
    record_search("memory", result.strategy.value)
    return result.to_dict()

@router.post("/nearby/sort", response_model=SortResponse)
async def sort_by_distance(body: SortRequest, engine: GeoSearchEngine = Depends(engine_dep)):
    listings = [Listing.from_row(item.model_dump()) for item in body.listings]
    location = _user_location(body.location) if body.location else None
    annotated = engine.annotate_and_sort_by_distance(location, listings)
    return {"total_found": len(annotated), "listings": [a.to_dict() for a in annotated]}
