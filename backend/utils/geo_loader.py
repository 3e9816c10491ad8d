import logging
import os
from dataclasses import dataclass
from typing import List

import geopandas as gpd

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class Station:
    id: str
    name: str
    lat: float
    lon: float
    region: str = ""
    station_type: str = "dart"
    priority: str = "medium"

    @property
    def coord(self):
        """(lat, lon)"""
        return (self.lat, self.lon)


def _prop(row, key, default=""):
    value = row.get(key, default)
    # geopandas fills missing properties with NaN/None
    if value is None or value != value:
        return default
    return value


def load_stations(path: str) -> List[Station]:
    """
    Read a GeoJSON FeatureCollection of station points.
    Each feature needs a point geometry and an 'id' property;
    'name', 'region', 'type' and 'priority' are optional.
    """
    if not os.path.exists(path):
        raise FileNotFoundError(f"Station catalog not found: {path}")

    gdf = gpd.read_file(path)
    stations = []
    for _, row in gdf.iterrows():
        geom = row.geometry
        if geom is None or geom.is_empty or geom.geom_type != "Point":
            continue

        station_id = _prop(row, "id")
        if not station_id:
            continue

        stations.append(Station(
            id=str(station_id),
            name=str(_prop(row, "name", station_id)),
            lat=float(geom.y),
            lon=float(geom.x),
            region=str(_prop(row, "region")),
            station_type=str(_prop(row, "type", "dart")),
            priority=str(_prop(row, "priority", "medium")),
        ))

    log.info("Loaded %d stations from %s", len(stations), path)
    return stations


def is_oceanic(lat: float, lon: float) -> bool:
    """Rough open-ocean test: drops the Great Lakes and near-origin coordinates."""
    if 41 <= lat <= 49 and -95 <= lon <= -75:
        return False

    is_deep_ocean = abs(lat) > 5 or abs(lon) > 10
    is_pacific = -60 <= lat <= 60 and (lon >= 100 or lon <= -120)
    is_atlantic = -60 <= lat <= 60 and -80 <= lon <= -10
    is_indian = -60 <= lat <= 30 and 20 <= lon <= 120
    return is_deep_ocean and (is_pacific or is_atlantic or is_indian)
