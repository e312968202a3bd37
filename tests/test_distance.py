"""
Unit tests for haversine distance.
"""

import math

import pytest

from geosearch.data.base import Coordinate
from geosearch.services.distance import EARTH_RADIUS_KM, distance_km, haversine_distance


class TestHaversineDistance:
    """Tests for haversine distance calculation."""

    def test_same_point_distance_zero(self):
        a = Coordinate(latitude=27.7, longitude=85.3)
        assert distance_km(a, a) == 0.0

    def test_known_distance_nyc_la(self):
        """NYC to LA is roughly 3,944 km."""
        distance = haversine_distance(40.7128, -74.0060, 34.0522, -118.2437)
        assert 3900 < distance < 4000

    def test_known_distance_london_paris(self):
        """London to Paris is roughly 344 km."""
        distance = haversine_distance(51.5074, -0.1278, 48.8566, 2.3522)
        assert 340 < distance < 350

    @pytest.mark.parametrize("a,b", [
        ((40.7128, -74.0060), (34.0522, -118.2437)),
        ((27.7, 85.3), (28.2, 84.0)),
        ((-33.8688, 151.2093), (51.5074, -0.1278)),
    ])
    def test_symmetry(self, a, b):
        pa, pb = Coordinate(*a), Coordinate(*b)
        assert abs(distance_km(pa, pb) - distance_km(pb, pa)) < 1e-9

    @pytest.mark.parametrize("a,b", [
        ((0, 0), (0, 180)),
        ((90, 0), (-90, 0)),
        ((45, -30), (-45, 150)),
    ])
    def test_antipodal_points_are_half_circumference(self, a, b):
        distance = distance_km(Coordinate(*a), Coordinate(*b))
        assert not math.isnan(distance)
        assert distance == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-6)

    def test_collinear_points_add_up(self):
        """Along the equator the legs sum exactly to the whole."""
        a, b, c = Coordinate(0, 0), Coordinate(0, 1), Coordinate(0, 2)
        assert distance_km(a, c) == pytest.approx(distance_km(a, b) + distance_km(b, c), abs=1e-6)

    def test_roughly_collinear_points_add_up(self):
        a, b, c = Coordinate(27.0, 85.0), Coordinate(27.5, 85.5), Coordinate(28.0, 86.0)
        assert distance_km(a, c) == pytest.approx(distance_km(a, b) + distance_km(b, c), rel=1e-3)

    def test_not_rounded(self):
        distance = haversine_distance(27.7, 85.3, 27.71, 85.31)
        assert 1.0 < distance < 2.0
        assert distance != round(distance, 1)
