"""Shared fixtures for the nearby-search tests."""

import pytest

from geosearch.data.base import Coordinate, Listing, ListingLocation, UserLocation


def listing(listing_id, lat, lon, city="", state="", status="active"):
    coords = None if lat is None and lon is None else Coordinate(latitude=lat, longitude=lon)
    return Listing(
        id=listing_id,
        title=f"Listing {listing_id}",
        status=status,
        location=ListingLocation(city=city, state=state, coordinates=coords),
    )


@pytest.fixture
def make_listing():
    return listing


@pytest.fixture
def kathmandu():
    """User standing in central Kathmandu, no region names known."""
    return UserLocation(latitude=27.7, longitude=85.3)


@pytest.fixture
def nepal_listings():
    return {
        "L1": listing("L1", 27.71, 85.31, city="Kathmandu", state="Bagmati"),   # ~1.5km
        "L2": listing("L2", 28.2, 84.0, city="Pokhara", state="Gandaki"),       # ~140km
        "L3": listing("L3", 27.7, 85.3, city="Kathmandu", state="Bagmati"),     # same spot
    }
