"""Great-circle distance helpers used to annotate discovery candidates."""

from __future__ import annotations

import math
from typing import Any, Dict

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the great-circle distance in kilometres between two coordinates."""
    phi1 = math.radians(float(lat1))
    phi2 = math.radians(float(lat2))
    dphi = math.radians(float(lat2) - float(lat1))
    dlambda = math.radians(float(lon2) - float(lon1))

    sin_dphi = math.sin(dphi / 2.0)
    sin_dlambda = math.sin(dlambda / 2.0)
    a = sin_dphi * sin_dphi + math.cos(phi1) * math.cos(phi2) * sin_dlambda * sin_dlambda
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(max(0.0, 1 - a)))
    return float(EARTH_RADIUS_KM * c)


def round_distance(distance_km: float) -> float:
    # Half-up to one decimal place.
    return math.floor(distance_km * 10 + 0.5) / 10


def km_to_meters(distance_km: float) -> float:
    return float(distance_km) * 1000.0


def build_geojson_point(lat: float, lon: float) -> Dict[str, Any]:
    return {"type": "Point", "coordinates": [float(lon), float(lat)]}


__all__ = [
    "EARTH_RADIUS_KM",
    "build_geojson_point",
    "haversine_km",
    "km_to_meters",
    "round_distance",
]
