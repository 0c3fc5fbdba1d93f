#!/usr/bin/env python3
"""
Route data model for playback.
"""

from bisect import bisect_left
from typing import Iterable, List, Optional, TextIO, Tuple
import logging
import math
import gpxpy
import gpxpy.gpx
import pyproj
from shapely.geometry import LineString, Point

from .geometry import (
    Position,
    coords_to_polyline,
    create_transverse_mercator_projection,
)
from .profile import RouteProfile, build_route_profile

logger = logging.getLogger(__name__)


class Route:
    """Represents a recorded route with memoized geometric operations."""

    def __init__(self, coords: Iterable[Position]):
        """Initializes a Route object.

        Args:
            coords: Position objects in traversal order. Routes with fewer than
                two positions are allowed; they simply have zero length.
        """
        self.coords: Tuple[Position, ...] = tuple(coords)
        self.profile: RouteProfile = build_route_profile(self.coords)

        self._bbox: Optional[Tuple[float, float, float, float]] = None
        self._projection: Optional[pyproj.Proj] = None
        self._linestring: Optional[LineString] = None
        self._projected_distances: Optional[List[float]] = None

    @property
    def total_distance(self) -> float:
        """Total route length in meters."""
        return self.profile.total_distance

    def get_bbox(self) -> Tuple[float, float, float, float]:
        """
        Get the bounding box of this route.

        Returns:
            Tuple of (south, west, north, east) in decimal degrees

        Raises:
            ValueError: If the route is empty
        """
        if self._bbox is None:
            if not self.coords:
                raise ValueError("Cannot compute bounding box of an empty route")
            latitudes = [coord.latitude for coord in self.coords]
            longitudes = [coord.longitude for coord in self.coords]
            self._bbox = (
                min(latitudes),
                min(longitudes),
                max(latitudes),
                max(longitudes),
            )
            logger.debug(
                f"Route bounding box calculated: ({self._bbox[0]:.4f}, {self._bbox[1]:.4f}, {self._bbox[2]:.4f}, {self._bbox[3]:.4f})"
            )
        return self._bbox

    @property
    def projection(self) -> pyproj.Proj:
        """Transverse mercator projection centered on the route."""
        if self._projection is None:
            self._projection = create_transverse_mercator_projection(self.get_bbox())
        return self._projection

    @property
    def linestring(self) -> LineString:
        """
        The route as a LineString in projected (metric) coordinates.

        Raises:
            ValueError: If the route has fewer than two positions
        """
        if self._linestring is None:
            self._linestring = coords_to_polyline(list(self.coords), self.projection)
        return self._linestring

    def _get_projected_distances(self) -> List[float]:
        """Cumulative Euclidean distances along the projected LineString."""
        if self._projected_distances is None:
            projected_coords = list(self.linestring.coords)
            distances = [0.0]
            for i in range(1, len(projected_coords)):
                x1, y1 = projected_coords[i - 1]
                x2, y2 = projected_coords[i]
                distances.append(distances[-1] + math.hypot(x2 - x1, y2 - y1))
            self._projected_distances = distances
        return self._projected_distances

    def distance_at_position(self, position: Position) -> float:
        """
        Find the route distance of the point on the route nearest to position.

        The nearest point is found on the projected LineString, then its
        location within the containing segment is carried over to the
        great-circle distance profile so the result is consistent with
        position_at_distance.

        Args:
            position: Arbitrary geographic position, e.g. a tap on the map

        Returns:
            Distance from the route start in meters

        Raises:
            ValueError: If the route has fewer than two positions
        """
        line = self.linestring
        x, y = self.projection(position.longitude, position.latitude)
        projected = line.project(Point(x, y))

        projected_distances = self._get_projected_distances()
        i = min(
            bisect_left(projected_distances, projected, 1),
            len(projected_distances) - 1,
        )

        segment_length = projected_distances[i] - projected_distances[i - 1]
        if segment_length > 0:
            t = (projected - projected_distances[i - 1]) / segment_length
            t = max(0.0, min(1.0, t))
        else:
            t = 0.0

        cumulative = self.profile.cumulative_distances
        return cumulative[i - 1] + t * (cumulative[i] - cumulative[i - 1])

    def progress_at_position(self, position: Position) -> float:
        """
        Find the playback progress of the point on the route nearest to position.

        Returns:
            Progress in [0, 1]; 0.0 for a zero-length route

        Raises:
            ValueError: If the route has fewer than two positions
        """
        if len(self.coords) < 2:
            raise ValueError("At least two positions are required to locate a point")
        if self.total_distance <= 0:
            return 0.0
        distance = self.distance_at_position(position)
        return max(0.0, min(1.0, distance / self.total_distance))

    @classmethod
    def from_gpx(cls, file_input: TextIO) -> "Route":
        """
        Parse GPX data and concatenate all tracks/segments into a single route.

        Args:
            file_input: File-like object containing GPX data

        Returns:
            Route object representing the concatenated route

        Raises:
            gpxpy.gpx.GPXException: If GPX data is malformed.
        """
        gpx_data = gpxpy.parse(file_input)

        coords_data = []

        for track in gpx_data.tracks:
            for segment in track.segments:
                for point in segment.points:
                    coords_data.append(
                        Position(latitude=point.latitude, longitude=point.longitude)
                    )

        route = cls(coords_data)

        logger.debug(f"Parsed {len(route.coords)} track points from GPX file")

        return route

    @classmethod
    def from_file(cls, filename: str) -> "Route":
        """
        Load and parse a GPX file into a route.

        Args:
            filename: Path to GPX file

        Returns:
            Route object representing the route

        Raises:
            FileNotFoundError: If file doesn't exist.
            PermissionError: If file can't be read.
            gpxpy.gpx.GPXException: If GPX file is malformed.
        """
        logger.debug(f"Reading GPX file: {filename}")
        with open(filename, "r", encoding="utf-8") as f:
            return cls.from_gpx(f)

    def __len__(self) -> int:
        """Return number of trackpoints in route."""
        return len(self.coords)

    def __getitem__(self, index):
        """Allow indexing into trackpoints."""
        return self.coords[index]

    def __iter__(self):
        """Allow iteration over trackpoints."""
        return iter(self.coords)
