#Purpose: Great-circle distance + urban ETA math.
#Straight-line (haversine) approximation, no road network.
#Used by:
#pricing (trip distance/duration at job creation)
#driver directory (proximity ordering for driver search)
#Pure functions only: no I/O, no policy lookups.

import math
from typing import Tuple

#internal coordinate type :(lat,lon)
LatLon = Tuple[float, float]

EARTH_RADIUS_KM = 6371.0
DEFAULT_AVERAGE_SPEED_KMH = 30.0


def haversine_km(a: LatLon, b: LatLon) -> float:
    """
    Great-circle distance in kilometers between two (lat, lon) points.
    Symmetric, and exactly 0.0 for identical points.
    """
    lat1, lon1 = a
    lat2, lon2 = b

    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_KM * c


def estimate_duration_min(distance_km: float, average_speed_kmh: float = DEFAULT_AVERAGE_SPEED_KMH) -> int:
    """
    Travel time in whole minutes at a constant average speed (truncated).
    """
    if average_speed_kmh <= 0:
        raise ValueError("average_speed_kmh must be > 0")
    return int(distance_km / average_speed_kmh * 60)
