from typing import Any
from pydantic import BaseModel, ConfigDict, Field

class LocationIn(BaseModel):
    # Range checks happen in the engine so every entry point reports them alike
    latitude: float
    longitude: float
    city: str | None = None
    state: str | None = None
    address: str | None = None
    country: str | None = None

class ListingIn(BaseModel):
    """A store row as the client holds it. Unknown columns pass through."""
    model_config = ConfigDict(extra="allow")

    id: str | int
    title: str | None = None
    price: float | None = None
    status: str | None = None
    address: str | None = None
    city: str | None = None
    state: str | None = None
    pincode: str | int | None = None
    # Unparsable coordinates only exclude the listing from radius matching
    latitude: Any = None
    longitude: Any = None

class RankRequest(BaseModel):
    location: LocationIn
    listings: list[ListingIn] = Field(default_factory=list)

class SortRequest(BaseModel):
    location: LocationIn | None = None
    listings: list[ListingIn] = Field(default_factory=list)

class ListingOut(BaseModel):
    id: str
    title: str = ""
    price: float | None = None
    status: str | None = None
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    latitude: float | None = None
    longitude: float | None = None
    distance_km: float | None = None

class SearchResponse(BaseModel):
    strategy: str
    radius_km: float
    total_found: int
    listings: list[ListingOut]

class SortResponse(BaseModel):
    total_found: int
    listings: list[ListingOut]
