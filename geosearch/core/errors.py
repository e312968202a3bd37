class GeoSearchError(Exception):
    """Base class for everything the search engine reports to its caller."""


class InvalidCoordinate(GeoSearchError, ValueError):
    """
    The user location is outside the valid lat/lon range.
    A caller programming error; never recovered from.
    """
    def __init__(self, latitude, longitude):
        self.latitude = latitude
        self.longitude = longitude
        super().__init__(f"invalid coordinate: latitude={latitude!r}, longitude={longitude!r}")


class StoreError(GeoSearchError):
    """Failure reported by the listing store."""


class TransientStoreError(StoreError):
    """Network/timeout class of failure. Retried with backoff."""


class GeoQueryUnavailable(StoreError):
    """The store has no usable geo-query; fall back to client-side filtering."""


class StoreQueryError(StoreError):
    """The store rejected the request (malformed query). Not retried."""


class StoreUnavailable(StoreError):
    """Even the unfiltered listing fetch failed."""
