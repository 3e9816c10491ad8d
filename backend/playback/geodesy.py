# backend/playback/geodesy.py
import math
from typing import Tuple

from config import EARTH_RADIUS_KM

LatLon = Tuple[float, float]  # (lat, lon) in degrees


def great_circle_distance_km(a: LatLon, b: LatLon) -> float:
    """
    Haversine distance in kilometers between two (lat, lon) points.
    Inputs are not validated; keep them within +-90 / +-180.
    """
    lat1, lon1 = a
    lat2, lon2 = b
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    hav = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(hav), math.sqrt(1 - hav))
    return EARTH_RADIUS_KM * c
