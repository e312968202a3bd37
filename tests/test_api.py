"""
Tests for the HTTP surface.
"""

import httpx
import pytest
from fastapi.testclient import TestClient

from geosearch.core.cache import LocationCache
from geosearch.core.errors import GeoQueryUnavailable, TransientStoreError
from geosearch.data.listing_client import HttpListings, MockListings
from geosearch.main import app
from geosearch.routers.nearby import cache_dep, engine_dep
from geosearch.services.search_engine import GeoSearchEngine


async def no_sleep(delay):
    return None


class BrokenStore:
    async def search_by_location(self, latitude, longitude, max_radius_km):
        raise GeoQueryUnavailable("no rpc")

    async def active_listings(self):
        raise TransientStoreError("down")


@pytest.fixture
def client(nepal_listings):
    store = MockListings(list(nepal_listings.values()))
    cache = LocationCache(ttl_seconds=60)
    app.dependency_overrides[engine_dep] = lambda: GeoSearchEngine(store=store, sleep=no_sleep)
    app.dependency_overrides[cache_dep] = lambda: cache
    yield TestClient(app)
    app.dependency_overrides.clear()


ROWS = [
    {"id": "L1", "latitude": 27.71, "longitude": 85.31, "city": "Kathmandu"},
    {"id": "L2", "latitude": 28.2, "longitude": 84.0, "city": "Pokhara"},
    {"id": "L3", "latitude": 27.7, "longitude": 85.3, "city": "Kathmandu"},
]


class TestMeta:

    def test_health(self, client):
        r = client.get("/v1/health")
        assert r.status_code == 200
        assert r.json() == {"status": "ok"}
        assert "X-Request-Id" in r.headers

    def test_request_id_is_echoed(self, client):
        r = client.get("/v1/ping", headers={"x-request-id": "abc-123"})
        assert r.headers["X-Request-Id"] == "abc-123"


class TestNearbyRemote:

    def test_radius_hit(self, client):
        r = client.get("/v1/nearby", params={"lat": 27.7, "lon": 85.3})
        assert r.status_code == 200
        body = r.json()
        assert body["strategy"] == "radius"
        assert body["radius_km"] == 10
        assert body["total_found"] == 2
        assert [l["id"] for l in body["listings"]] == ["L3", "L1"]
        assert body["listings"][1]["distance_km"] == 1.5

    def test_invalid_coordinate(self, client):
        r = client.get("/v1/nearby", params={"lat": 95, "lon": 85.3})
        assert r.status_code == 422
        assert r.json()["code"] == "invalid_coordinate"

    def test_radius_below_ladder(self, client):
        r = client.get("/v1/nearby", params={"lat": 27.7, "lon": 85.3, "max_radius_km": 5})
        assert r.status_code == 422

    def test_last_known_location_is_reused(self, client):
        headers = {"x-device-id": "phone-1"}
        assert client.get("/v1/nearby", headers=headers).status_code == 422

        client.get("/v1/nearby", params={"lat": 27.7, "lon": 85.3}, headers=headers)
        r = client.get("/v1/nearby", headers=headers)
        assert r.status_code == 200
        assert r.json()["radius_km"] == 10

        assert client.delete("/v1/nearby/location", headers=headers).status_code == 204
        assert client.get("/v1/nearby", headers=headers).status_code == 422

    def test_store_unavailable(self, client):
        app.dependency_overrides[engine_dep] = lambda: GeoSearchEngine(
            store=BrokenStore(), max_retries=0, sleep=no_sleep
        )
        r = client.get("/v1/nearby", params={"lat": 27.7, "lon": 85.3})
        assert r.status_code == 503
        assert r.json()["code"] == "store_unavailable"

    def test_undecodable_store_body_is_a_bad_gateway(self, client):
        store = HttpListings(
            "https://store.example/rest/v1",
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>gateway</html>")),
        )
        app.dependency_overrides[engine_dep] = lambda: GeoSearchEngine(store=store, sleep=no_sleep)
        r = client.get("/v1/nearby", params={"lat": 27.7, "lon": 85.3})
        assert r.status_code == 502
        assert r.json()["code"] == "store_query_error"

    @pytest.mark.parametrize("params", [{"lat": 27.7}, {"lon": 85.3}])
    def test_half_a_coordinate_is_rejected(self, client, params):
        headers = {"x-device-id": "phone-2"}
        client.get("/v1/nearby", params={"lat": 27.7, "lon": 85.3}, headers=headers)
        r = client.get("/v1/nearby", params=params, headers=headers)
        assert r.status_code == 422
        assert "together" in r.json()["detail"]

    def test_region_hint_applies_to_last_known_location(self, client, nepal_listings):
        store = MockListings([nepal_listings["L2"]])
        app.dependency_overrides[engine_dep] = lambda: GeoSearchEngine(store=store, radii=[10, 20], sleep=no_sleep)
        headers = {"x-device-id": "phone-3"}
        client.get("/v1/nearby", params={"lat": 27.7, "lon": 85.3}, headers=headers)

        assert client.get("/v1/nearby", headers=headers).json()["strategy"] == "unfiltered"
        r = client.get("/v1/nearby", params={"city": "Pokhara"}, headers=headers)
        assert r.status_code == 200
        assert r.json()["strategy"] == "city"


class TestRankAndSort:

    def test_rank_kathmandu(self, client):
        r = client.post("/v1/nearby/rank", json={"location": {"latitude": 27.7, "longitude": 85.3}, "listings": ROWS})
        assert r.status_code == 200
        body = r.json()
        assert body["strategy"] == "radius"
        assert [l["id"] for l in body["listings"]] == ["L3", "L1"]
        assert body["listings"][0]["distance_km"] == 0.0

    def test_rank_city_fallback(self, client):
        r = client.post("/v1/nearby/rank", json={
            "location": {"latitude": 27.7, "longitude": 85.3, "city": "pokhara"},
            "listings": ROWS[1:2],
        })
        body = r.json()
        assert body["strategy"] == "city"
        assert body["radius_km"] == 0
        assert body["listings"][0]["distance_km"] is None

    def test_rank_tolerates_malformed_rows(self, client):
        rows = [{"id": "bad", "latitude": "n/a", "longitude": None}] + ROWS[1:2]
        r = client.post("/v1/nearby/rank", json={"location": {"latitude": 27.7, "longitude": 85.3}, "listings": rows})
        assert r.status_code == 200
        body = r.json()
        assert body["strategy"] == "unfiltered"
        assert [l["id"] for l in body["listings"]] == ["bad", "L2"]

    def test_sort_with_location(self, client):
        r = client.post("/v1/nearby/sort", json={"location": {"latitude": 27.7, "longitude": 85.3}, "listings": ROWS})
        body = r.json()
        assert body["total_found"] == 3
        assert [l["id"] for l in body["listings"]] == ["L3", "L1", "L2"]

    def test_sort_without_location_passes_through(self, client):
        r = client.post("/v1/nearby/sort", json={"listings": ROWS})
        body = r.json()
        assert [l["id"] for l in body["listings"]] == ["L1", "L2", "L3"]
        assert all(l["distance_km"] is None for l in body["listings"])
