"""
Distance profile of a route and distance-indexed position lookup.
"""

from bisect import bisect_left
from dataclasses import dataclass
from typing import NamedTuple, Optional, Sequence, Tuple
import logging

from .geometry import (
    Position,
    calculate_bearing,
    haversine_distance,
    interpolate_position,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteProfile:
    """Cumulative distances along a route, in meters."""

    cumulative_distances: Tuple[float, ...]
    total_distance: float

    def __len__(self) -> int:
        return len(self.cumulative_distances)


class ResolvedPosition(NamedTuple):
    """Simulated position and heading at some distance along a route."""

    position: Position
    heading: float
    # Index i of the containing segment (route[i-1], route[i])
    segment_index: int


def build_route_profile(coords: Sequence[Position]) -> RouteProfile:
    """
    Calculate the cumulative distance profile of a route.

    Args:
        coords: Positions in traversal order

    Returns:
        RouteProfile whose cumulative_distances has one entry per position,
        starting at 0.0. Empty routes get an empty profile.
    """
    if not coords:
        return RouteProfile(cumulative_distances=(), total_distance=0.0)

    cumulative = [0.0]
    total = 0.0
    for i in range(1, len(coords)):
        total += haversine_distance(coords[i - 1], coords[i])
        cumulative.append(total)

    logger.debug(f"Built profile for {len(coords)} points, {total:.1f} m total")
    return RouteProfile(cumulative_distances=tuple(cumulative), total_distance=total)


def position_at_distance(
    coords: Sequence[Position], profile: RouteProfile, target_distance: float
) -> Optional[ResolvedPosition]:
    """
    Find the simulated position and heading at a distance along the route.

    The containing segment is the first segment whose end lies at or beyond
    target_distance. Heading is always that segment's bearing, so it changes
    in steps at waypoints rather than turning smoothly.

    Args:
        coords: Positions in traversal order
        profile: Profile built from the same coords
        target_distance: Distance from the start in meters

    Returns:
        ResolvedPosition, or None if the route has fewer than two points
    """
    if len(coords) < 2:
        return None

    distances = profile.cumulative_distances
    i = bisect_left(distances, target_distance, 1)

    if i >= len(distances):
        # Past the end: hold the last point, facing along the final segment
        last = len(coords) - 1
        return ResolvedPosition(
            position=coords[last],
            heading=calculate_bearing(coords[last - 1], coords[last]),
            segment_index=last,
        )

    start, end = coords[i - 1], coords[i]
    heading = calculate_bearing(start, end)
    segment_length = distances[i] - distances[i - 1]

    if segment_length == 0:
        return ResolvedPosition(position=start, heading=heading, segment_index=i)

    t = (target_distance - distances[i - 1]) / segment_length
    return ResolvedPosition(
        position=interpolate_position(start, end, t),
        heading=heading,
        segment_index=i,
    )
