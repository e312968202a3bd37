from typing import Protocol, List, Optional, Any, Dict
from dataclasses import dataclass, field
from enum import Enum

from ..core.errors import InvalidCoordinate
from ..core.utils import as_finite, display_km

# ----- Data shapes (thin & explicit) -----

@dataclass
class Coordinate:
    latitude: float
    longitude: float

    def validate(self) -> bool:
        """True when both values are finite and inside the valid ranges."""
        lat, lon = as_finite(self.latitude), as_finite(self.longitude)
        if lat is None or lon is None:
            return False
        return -90 <= lat <= 90 and -180 <= lon <= 180

@dataclass
class UserLocation(Coordinate):
    city: Optional[str] = None
    state: Optional[str] = None
    address: Optional[str] = None
    country: Optional[str] = None

    def ensure_valid(self) -> "UserLocation":
        if not self.validate():
            raise InvalidCoordinate(self.latitude, self.longitude)
        return self

    def point(self) -> Coordinate:
        return Coordinate(latitude=float(self.latitude), longitude=float(self.longitude))

    def to_dict(self) -> dict:
        return {
            "latitude": self.latitude, "longitude": self.longitude,
            "city": self.city, "state": self.state,
            "address": self.address, "country": self.country,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "UserLocation":
        return cls(
            latitude=d["latitude"], longitude=d["longitude"],
            city=d.get("city"), state=d.get("state"),
            address=d.get("address"), country=d.get("country"),
        )

@dataclass
class ListingLocation:
    address: str = ""
    city: str = ""
    state: str = ""
    pincode: str = ""
    coordinates: Optional[Coordinate] = None

@dataclass
class Listing:
    """
    A property listing as the store hands it over. Only the id, location
    and status matter here; everything else rides along untouched in `row`.
    """
    id: str
    location: ListingLocation
    title: str = ""
    price: Optional[float] = None
    status: Optional[str] = None
    created_at: Optional[str] = None
    row: Dict[str, Any] = field(default_factory=dict, repr=False)

    def usable_point(self) -> Optional[Coordinate]:
        """The listing's coordinates, or None when missing or out of range."""
        c = self.location.coordinates
        if c is None or not c.validate():
            return None
        return Coordinate(latitude=float(c.latitude), longitude=float(c.longitude))

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "Listing":
        """Map a flat store row (latitude/longitude columns) into a Listing."""
        lat, lon = as_finite(row.get("latitude")), as_finite(row.get("longitude"))
        coords = Coordinate(latitude=lat, longitude=lon) if lat is not None and lon is not None else None
        return cls(
            id=str(row["id"]),
            title=row.get("title") or "",
            price=row.get("price"),
            status=row.get("status"),
            created_at=row.get("created_at"),
            location=ListingLocation(
                address=row.get("address") or "",
                city=row.get("city") or "",
                state=row.get("state") or "",
                pincode=str(row.get("pincode") or ""),
                coordinates=coords,
            ),
            row=dict(row),
        )

    def to_dict(self) -> dict:
        c = self.location.coordinates
        return {
            "id": self.id,
            "title": self.title,
            "price": self.price,
            "status": self.status,
            "address": self.location.address,
            "city": self.location.city,
            "state": self.location.state,
            "pincode": self.location.pincode,
            "latitude": c.latitude if c else None,
            "longitude": c.longitude if c else None,
        }

class SearchStrategy(str, Enum):
    RADIUS = "radius"
    CITY = "city"
    STATE = "state"
    UNFILTERED = "unfiltered"

@dataclass
class AnnotatedListing:
    listing: Listing
    distance_km: Optional[float] = None   # unrounded

    def to_dict(self) -> dict:
        d = self.listing.to_dict()
        d["distance_km"] = display_km(self.distance_km)
        return d

@dataclass
class SearchResult:
    listings: List[AnnotatedListing]
    radius_km: float
    strategy: SearchStrategy

    @property
    def total_found(self) -> int:
        return len(self.listings)

    def to_dict(self) -> dict:
        return {
            "strategy": self.strategy.value,
            "radius_km": self.radius_km,
            "total_found": self.total_found,
            "listings": [a.to_dict() for a in self.listings],
        }

# ----- Protocols (interfaces) -----

class ListingStore(Protocol):
    async def search_by_location(
        self, latitude: float, longitude: float, max_radius_km: float
    ) -> List[Listing]: ...
    async def active_listings(self) -> List[Listing]: ...

class LocationProvider(Protocol):
    async def current(self) -> Optional[UserLocation]: ...

class ReverseGeocoder(Protocol):
    async def locate(self, point: Coordinate) -> tuple[Optional[str], Optional[str]]: ...
