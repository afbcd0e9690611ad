# src/geo/distance.py
import math

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in kilometres, unrounded."""
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    # clamp float drift so sqrt(1 - a) stays real
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def distance_km(a, b) -> float:
    """
    Distance between two positions, rounded to 2 decimal places.
    Accepts anything with ``lat``/``lng`` attributes.
    """
    return round(haversine_km(a.lat, a.lng, b.lat, b.lng), 2)
