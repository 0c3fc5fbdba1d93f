#!/usr/bin/env python3
"""
Tests for the route distance profile and distance-indexed position lookup.
"""

import pytest

from ridereplay.geometry import Position, haversine_distance
from ridereplay.profile import (
    RouteProfile,
    build_route_profile,
    position_at_distance,
)

EQUATOR_ROUTE = [
    Position(latitude=0.0, longitude=0.0),
    Position(latitude=0.0, longitude=0.01),
    Position(latitude=0.0, longitude=0.02),
]

# East along the equator, then north
L_ROUTE = [
    Position(latitude=0.0, longitude=0.0),
    Position(latitude=0.0, longitude=0.01),
    Position(latitude=0.01, longitude=0.01),
]


class TestBuildRouteProfile:
    def test_empty_route(self):
        profile = build_route_profile([])
        assert profile.cumulative_distances == ()
        assert profile.total_distance == 0.0

    def test_single_point(self):
        profile = build_route_profile([Position(1.0, 2.0)])
        assert profile.cumulative_distances == (0.0,)
        assert profile.total_distance == 0.0

    def test_cumulative_distances_accumulate_segments(self):
        profile = build_route_profile(EQUATOR_ROUTE)
        d01 = haversine_distance(EQUATOR_ROUTE[0], EQUATOR_ROUTE[1])
        d12 = haversine_distance(EQUATOR_ROUTE[1], EQUATOR_ROUTE[2])

        assert len(profile) == 3
        assert profile.cumulative_distances[0] == 0.0
        assert profile.cumulative_distances[1] == pytest.approx(d01)
        assert profile.cumulative_distances[2] == pytest.approx(d01 + d12)
        assert profile.total_distance == profile.cumulative_distances[-1]

    def test_equator_example_total(self):
        profile = build_route_profile(EQUATOR_ROUTE)
        assert profile.total_distance == pytest.approx(2 * 1112, abs=2)

    def test_duplicate_points_add_nothing(self):
        route = [EQUATOR_ROUTE[0], EQUATOR_ROUTE[0], EQUATOR_ROUTE[1]]
        profile = build_route_profile(route)
        assert profile.cumulative_distances[1] == 0.0
        assert profile.cumulative_distances[2] > 0.0

    def test_profile_is_immutable(self):
        profile = build_route_profile(EQUATOR_ROUTE)
        assert isinstance(profile, RouteProfile)
        with pytest.raises(AttributeError):
            profile.total_distance = 0.0


class TestPositionAtDistance:
    def test_fewer_than_two_points_returns_none(self):
        assert position_at_distance([], build_route_profile([]), 0.0) is None
        single = [Position(0.0, 0.0)]
        assert position_at_distance(single, build_route_profile(single), 0.0) is None

    def test_start_of_route(self):
        profile = build_route_profile(EQUATOR_ROUTE)
        result = position_at_distance(EQUATOR_ROUTE, profile, 0.0)
        assert result.position == EQUATOR_ROUTE[0]
        assert result.heading == pytest.approx(90.0)
        assert result.segment_index == 1

    def test_end_of_route(self):
        profile = build_route_profile(EQUATOR_ROUTE)
        result = position_at_distance(EQUATOR_ROUTE, profile, profile.total_distance)
        assert result.position.latitude == pytest.approx(0.0)
        assert result.position.longitude == pytest.approx(0.02)

    def test_equator_example_near_middle_waypoint(self):
        profile = build_route_profile(EQUATOR_ROUTE)
        result = position_at_distance(EQUATOR_ROUTE, profile, 1113)
        assert result.position.latitude == pytest.approx(0.0, abs=1e-9)
        assert result.position.longitude == pytest.approx(0.01, abs=1e-4)
        assert result.heading == pytest.approx(90.0)

    def test_interpolates_within_segment(self):
        profile = build_route_profile(EQUATOR_ROUTE)
        quarter = profile.total_distance / 4
        result = position_at_distance(EQUATOR_ROUTE, profile, quarter)
        assert result.position.longitude == pytest.approx(0.005)
        assert result.segment_index == 1

    def test_past_the_end_holds_last_point(self):
        profile = build_route_profile(L_ROUTE)
        result = position_at_distance(L_ROUTE, profile, profile.total_distance + 500)
        assert result.position == L_ROUTE[-1]
        assert result.heading == pytest.approx(0.0)
        assert result.segment_index == 2

    def test_zero_length_segment_returns_segment_start(self):
        route = [EQUATOR_ROUTE[0], EQUATOR_ROUTE[0], EQUATOR_ROUTE[1]]
        profile = build_route_profile(route)
        result = position_at_distance(route, profile, 0.0)
        assert result.position == route[0]
        # Coincident points have no direction
        assert result.heading == 0.0

    def test_zero_length_route(self):
        route = [EQUATOR_ROUTE[0], EQUATOR_ROUTE[0]]
        profile = build_route_profile(route)
        result = position_at_distance(route, profile, 0.0)
        assert result.position == route[0]
        assert result.heading == 0.0

    def test_waypoint_belongs_to_incoming_segment(self):
        profile = build_route_profile(L_ROUTE)
        result = position_at_distance(L_ROUTE, profile, profile.cumulative_distances[1])
        assert result.segment_index == 1
        assert result.position.longitude == pytest.approx(0.01)
        assert result.heading == pytest.approx(90.0)

    def test_heading_steps_at_waypoints_instead_of_turning(self):
        # Heading comes from the containing segment only. Crossing the corner
        # of the L jumps from east to north with no intermediate values.
        profile = build_route_profile(L_ROUTE)
        corner = profile.cumulative_distances[1]

        before = position_at_distance(L_ROUTE, profile, corner - 0.01)
        after = position_at_distance(L_ROUTE, profile, corner + 0.01)

        assert before.heading == pytest.approx(90.0)
        assert after.heading == pytest.approx(0.0)
        assert haversine_distance(before.position, after.position) < 0.1
