import json
from typing import Optional

import redis
from cachetools import TTLCache

from .config import settings
from ..data.base import UserLocation

class LocationCache:
    """
    Last known user location, keyed per user/device.
    Redis when USE_REDIS is set, otherwise an in-process TTL cache.
    Injected into the location provider; the search engine never sees it.
    """
    def __init__(self, ttl_seconds: Optional[int] = None, backend=None):
        self.ttl_seconds = ttl_seconds or settings.LOCATION_CACHE_TTL_SECONDS
        self.backend = backend
        if self.backend is None and settings.USE_REDIS:
            self.backend = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)
        self._local = TTLCache(maxsize=4096, ttl=self.ttl_seconds)

    @staticmethod
    def _key(key: str) -> str:
        return f"location:{key}"

    def get(self, key: str = "default") -> Optional[UserLocation]:
        if self.backend:
            raw = self.backend.get(self._key(key))
            return UserLocation.from_dict(json.loads(raw)) if raw else None
        return self._local.get(self._key(key))

    def set(self, key: str, location: UserLocation) -> None:
        if self.backend:
            self.backend.setex(self._key(key), self.ttl_seconds, json.dumps(location.to_dict()))
        else:
            self._local[self._key(key)] = location

    def clear(self, key: str = "default") -> None:
        if self.backend:
            self.backend.delete(self._key(key))
        else:
            self._local.pop(self._key(key), None)

location_cache = LocationCache()
