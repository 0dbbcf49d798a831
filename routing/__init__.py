#Marks routing as a package.
#Re-exports the distance/ETA helpers so other modules import from routing
#without knowing internal file names.
#No business logic.

from .geo import LatLon, EARTH_RADIUS_KM, haversine_km, estimate_duration_min

__all__ = [
    "LatLon",
    "EARTH_RADIUS_KM",
    "haversine_km",
    "estimate_duration_min",
]
