"""
Geodesic helpers for route playback.

This module provides the great-circle distance and bearing between two
positions, linear interpolation between positions, and the projection helpers
used to convert a route into a Shapely LineString in metric coordinates.
"""

from typing import List, Optional, Tuple, NamedTuple
import math
from shapely.geometry import LineString
import pyproj

# Mean Earth radius in meters (spherical model)
EARTH_RADIUS_M = 6371000.0


class Position(NamedTuple):
    """Represents a geographic position with latitude and longitude."""

    latitude: float
    longitude: float


def haversine_distance(pos1: Position, pos2: Position) -> float:
    """
    Calculate the great circle distance between two positions.

    Args:
        pos1: First position
        pos2: Second position

    Returns:
        Distance in meters
    """
    lat1, lon1 = math.radians(pos1.latitude), math.radians(pos1.longitude)
    lat2, lon2 = math.radians(pos2.latitude), math.radians(pos2.longitude)

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    # Rounding can push a just past 1 for antipodal points
    a = min(1.0, a)

    return 2 * EARTH_RADIUS_M * math.asin(math.sqrt(a))


def calculate_bearing(pos1: Position, pos2: Position) -> float:
    """
    Calculate the initial bearing from pos1 to pos2.

    Args:
        pos1: Start position
        pos2: End position

    Returns:
        Bearing in degrees clockwise from north, in [0, 360). Coincident
        positions have no direction and yield 0.0.
    """
    if pos1.latitude == pos2.latitude and pos1.longitude == pos2.longitude:
        return 0.0

    lat1 = math.radians(pos1.latitude)
    lat2 = math.radians(pos2.latitude)
    dlon = math.radians(pos2.longitude - pos1.longitude)

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(
        dlon
    )

    bearing = math.degrees(math.atan2(y, x)) % 360.0
    # -0.0 % 360 and tiny negatives can round to exactly 360.0
    if bearing >= 360.0:
        bearing = 0.0
    return bearing


def interpolate_position(pos1: Position, pos2: Position, t: float) -> Position:
    """
    Linearly interpolate between two positions.

    This is a planar approximation in degree space, which is adequate for the
    short segments between consecutive GPS samples. The fraction is not
    clamped; callers supply t in [0, 1].
    """
    return Position(
        latitude=pos1.latitude + (pos2.latitude - pos1.latitude) * t,
        longitude=pos1.longitude + (pos2.longitude - pos1.longitude) * t,
    )


def create_transverse_mercator_projection(
    bbox: Tuple[float, float, float, float],
) -> pyproj.Proj:
    """
    Create a custom transverse mercator projection centered on the given bounding box.

    Args:
        bbox: Tuple of (south, west, north, east) in decimal degrees

    Returns:
        pyproj.Proj object for the custom projection
    """
    south, west, north, east = bbox

    center_lat = (south + north) / 2.0
    center_lon = (west + east) / 2.0

    proj_string = f"+proj=tmerc +lat_0={center_lat} +lon_0={center_lon} +k=1 +x_0=0 +y_0=0 +datum=WGS84 +units=m +no_defs"
    return pyproj.Proj(proj_string)


def coords_to_polyline(
    positions: List[Position], projection: Optional[pyproj.Proj] = None
) -> LineString:
    """
    Convert a list of positions to a Shapely LineString.

    Args:
        positions: List of Position objects
        projection: Optional pyproj.Proj object for coordinate transformation.
                   If None, uses (longitude, latitude) coordinates directly.

    Returns:
        LineString object in projected coordinates if projection is provided,
        otherwise in geographic coordinates

    Raises:
        ValueError: If positions has less than 2 points
    """
    if not positions or len(positions) < 2:
        raise ValueError("At least two positions are required to create a LineString.")

    lons = [pos.longitude for pos in positions]
    lats = [pos.latitude for pos in positions]

    if projection is not None:
        x_coords, y_coords = projection(lons, lats)
        return LineString(list(zip(x_coords, y_coords)))

    return LineString(list(zip(lons, lats)))
