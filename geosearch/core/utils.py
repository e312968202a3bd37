import math

def normalize_region(name: str | None) -> str:
    """
    Minimal normalization so region names compare stably:
    - trim whitespace
    - casefold
    - collapse multiple spaces
    """
    if not name:
        return ""
    return " ".join(str(name).strip().casefold().split())

def as_finite(value) -> float | None:
    """Coerce to a finite float, or None for missing/non-numeric/NaN/inf."""
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None

def display_km(distance_km: float | None) -> float | None:
    """Round to 1 decimal place. Presentation boundary only."""
    if distance_km is None:
        return None
    return round(distance_km, 1)

def fnv1a_32(s: str) -> int:
    """Deterministic, fast hash for seed generation."""
    h = 0x811c9dc5
    for c in s.encode("utf-8"):
        h ^= c
        h = (h * 0x01000193) & 0xFFFFFFFF
    return h

def seeded_rand(seed: int, n: int = 1) -> list[float]:
    """
    Stateless pseudo-random generator (Mulberry32-like) so
    same seed → same outputs without storing PRNG state.
    """
    out = []
    t = (seed + 0x6D2B79F5) & 0xFFFFFFFF
    for _ in range(n):
        t = (t ^ (t >> 15)) * (t | 1) & 0xFFFFFFFF
        t ^= t + ((t ^ (t >> 7)) * (t | 61) & 0xFFFFFFFF)
        r = ((t ^ (t >> 14)) & 0xFFFFFFFF) / 4294967296.0
        out.append(r)
    return out
