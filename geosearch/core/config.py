import os
from pydantic import BaseModel


def _radii(raw: str) -> list[float]:
    return [float(r) for r in raw.split(",") if r.strip()]


class Settings(BaseModel):
    # Basic
    ENV: str = os.getenv("ENV", "dev")

    # Escalation ladder (km), ascending
    SEARCH_RADII_KM: list[float] = _radii(os.getenv("SEARCH_RADII_KM", "10,20,50,100"))

    # Listing store
    STORE_PROVIDER: str = os.getenv("STORE_PROVIDER", "mock")      # mock | http
    STORE_BASE_URL: str | None = os.getenv("STORE_BASE_URL")
    STORE_API_KEY: str | None = os.getenv("STORE_API_KEY")
    STORE_TIMEOUT_SECONDS: float = float(os.getenv("STORE_TIMEOUT_SECONDS", "10"))
    STORE_MAX_RETRIES: int = int(os.getenv("STORE_MAX_RETRIES", "3"))
    STORE_BACKOFF_BASE_SECONDS: float = float(os.getenv("STORE_BACKOFF_BASE_SECONDS", "2"))

    # Reverse geocoding (fills city/state when the caller omits them)
    GEO_PROVIDER: str = os.getenv("GEO_PROVIDER", "mock")          # mock | http
    GEO_BASE_URL: str | None = os.getenv("GEO_BASE_URL")

    # Sample data for the mock store
    MOCK_CENTER_LAT: float = float(os.getenv("MOCK_CENTER_LAT", "27.7"))
    MOCK_CENTER_LON: float = float(os.getenv("MOCK_CENTER_LON", "85.3"))
    MOCK_LISTING_COUNT: int = int(os.getenv("MOCK_LISTING_COUNT", "24"))

    # Last known location
    LOCATION_CACHE_TTL_SECONDS: int = int(os.getenv("LOCATION_CACHE_TTL_SECONDS", "86400"))
    USE_REDIS: bool = os.getenv("USE_REDIS", "false").lower() == "true"
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")

    # CORS
    ALLOW_ORIGINS: str = os.getenv("ALLOW_ORIGINS", "*")

    # Metrics
    PROMETHEUS_ENABLED: bool = os.getenv("PROMETHEUS_ENABLED", "true").lower() == "true"

settings = Settings()
