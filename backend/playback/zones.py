# backend/playback/zones.py
"""
Map overlays derived from the playback state.

  - danger_zones(agents): circles around alerting stations the wave has reached,
    radius by severity level
  - wavefront(event, minutes): primary and secondary rings centred on the epicenter

Circles are geodesic (pyproj WGS84 forward solutions), so they stay correct far
from the equator where a lon/lat buffer would be badly distorted.
"""

import json
from typing import List, Tuple

import geopandas as gpd
from pyproj import Geod
from shapely.geometry import LineString, Polygon

from config import (
    CIRCLE_SEGMENTS,
    DANGER_ZONE_RADII_KM,
    SECONDARY_WAVEFRONT_RATIO,
    WAVE_SPEED_KM_PER_MIN,
)

_GEOD = Geod(ellps="WGS84")

def empty_collection() -> dict:
    return {"type": "FeatureCollection", "features": []}


def geodesic_circle(lat: float, lon: float, radius_km: float, segments: int = CIRCLE_SEGMENTS) -> Polygon:
    """Polygon approximating all points radius_km from (lat, lon). Coordinates are (lon, lat)."""
    azimuths = [360.0 * i / segments for i in range(segments)]
    lons, lats, _ = _GEOD.fwd(
        [lon] * segments,
        [lat] * segments,
        azimuths,
        [radius_km * 1000.0] * segments,
    )
    return Polygon(list(zip(lons, lats)))


def danger_zone_radius_km(level_label: str):
    """Radius for a severity label; None for 'normal'."""
    return DANGER_ZONE_RADII_KM.get(level_label)


def _to_feature_collection(records: List[dict], geometries: list) -> dict:
    if not records:
        return empty_collection()
    gdf = gpd.GeoDataFrame(records, geometry=geometries, crs="EPSG:4326")
    return json.loads(gdf.to_json())


def danger_zones(agents) -> dict:
    """
    GeoJSON FeatureCollection of danger zones.
    agents: StationAgent instances; only those alerting after wave arrival get a zone.
    """
    records, geometries = [], []
    for agent in agents:
        if not agent.has_arrived:
            continue
        label = agent.result.level.label
        radius = danger_zone_radius_km(label)
        if radius is None:
            continue
        station = agent.station
        records.append({
            "station_id": station.id,
            "level": label,
            "radius_km": radius,
        })
        geometries.append(geodesic_circle(station.lat, station.lon, radius))
    return _to_feature_collection(records, geometries)


def wavefront_radii_km(minutes_since_event: float) -> Tuple[float, float]:
    """(primary, secondary) wavefront radius after minutes_since_event."""
    primary = max(0.0, minutes_since_event) * WAVE_SPEED_KM_PER_MIN
    return primary, primary * SECONDARY_WAVEFRONT_RATIO


def wavefront(event, minutes_since_event: float) -> dict:
    """GeoJSON rings of the advancing wave; empty before the event starts."""
    primary, secondary = wavefront_radii_km(minutes_since_event)
    if primary <= 0:
        return empty_collection()

    lat, lon = event.epicenter
    records = [
        {"event_id": event.id, "ring": "primary", "radius_km": primary},
        {"event_id": event.id, "ring": "secondary", "radius_km": secondary},
    ]
    # rings are boundaries, not filled areas
    geometries = [
        LineString(geodesic_circle(lat, lon, primary).exterior.coords),
        LineString(geodesic_circle(lat, lon, secondary).exterior.coords),
    ]
    return _to_feature_collection(records, geometries)
