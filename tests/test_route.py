import io

import gpxpy.gpx
import pytest

from ridereplay.geometry import Position
from ridereplay.route import Route

GPX_TWO_SEGMENTS = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="ridereplay-tests" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>Morning ride</name>
    <trkseg>
      <trkpt lat="0.0" lon="0.0"><ele>12.0</ele></trkpt>
      <trkpt lat="0.0" lon="0.01"><ele>13.0</ele></trkpt>
    </trkseg>
    <trkseg>
      <trkpt lat="0.0" lon="0.02"></trkpt>
    </trkseg>
  </trk>
</gpx>
"""

EQUATOR_ROUTE = [
    Position(latitude=0.0, longitude=0.0),
    Position(latitude=0.0, longitude=0.01),
    Position(latitude=0.0, longitude=0.02),
]


def test_route_creation_and_basic_properties():
    """
    Tests basic Route creation, coordinate storage, length, indexing, and iteration.
    """
    route = Route(coords=EQUATOR_ROUTE)

    assert route.coords == tuple(EQUATOR_ROUTE)
    assert len(route) == 3
    assert route[0] == EQUATOR_ROUTE[0]
    assert route[-1] == EQUATOR_ROUTE[-1]
    assert list(route) == EQUATOR_ROUTE


def test_route_is_detached_from_caller_list():
    coords = list(EQUATOR_ROUTE)
    route = Route(coords)
    coords.append(Position(1.0, 1.0))
    assert len(route) == 3


def test_route_profile_is_built_on_creation():
    route = Route(EQUATOR_ROUTE)
    assert len(route.profile) == 3
    assert route.total_distance == route.profile.total_distance
    assert route.total_distance == pytest.approx(2224, abs=2)


def test_degenerate_routes_are_allowed():
    empty = Route([])
    assert len(empty) == 0
    assert not empty
    assert empty.total_distance == 0.0

    single = Route([Position(1.0, 2.0)])
    assert len(single) == 1
    assert single.total_distance == 0.0
    assert single.profile.cumulative_distances == (0.0,)


def test_get_bbox():
    route = Route(
        [Position(10.0, 20.0), Position(10.2, 19.9), Position(10.1, 20.3)]
    )
    assert route.get_bbox() == (10.0, 19.9, 10.2, 20.3)


def test_get_bbox_empty_route_raises():
    with pytest.raises(ValueError):
        Route([]).get_bbox()


def test_linestring_requires_two_points():
    with pytest.raises(ValueError):
        Route([Position(1.0, 2.0)]).linestring


def test_linestring_is_memoized_and_metric():
    route = Route(EQUATOR_ROUTE)
    assert route.linestring is route.linestring
    assert route.linestring.length == pytest.approx(route.total_distance, rel=0.01)


class TestProgressAtPosition:
    def test_waypoints(self):
        route = Route(EQUATOR_ROUTE)
        assert route.progress_at_position(EQUATOR_ROUTE[0]) == pytest.approx(0.0, abs=1e-6)
        assert route.progress_at_position(EQUATOR_ROUTE[1]) == pytest.approx(0.5, abs=1e-3)
        assert route.progress_at_position(EQUATOR_ROUTE[2]) == pytest.approx(1.0, abs=1e-6)

    def test_point_beside_the_route(self):
        route = Route(EQUATOR_ROUTE)
        # A little north of the first quarter mark
        progress = route.progress_at_position(Position(0.001, 0.005))
        assert progress == pytest.approx(0.25, abs=1e-3)

    def test_points_beyond_the_ends_clamp(self):
        route = Route(EQUATOR_ROUTE)
        assert route.progress_at_position(Position(0.0, -0.05)) == pytest.approx(0.0)
        assert route.progress_at_position(Position(0.0, 0.07)) == pytest.approx(1.0)

    def test_distance_matches_profile(self):
        route = Route(EQUATOR_ROUTE)
        distance = route.distance_at_position(EQUATOR_ROUTE[1])
        assert distance == pytest.approx(route.profile.cumulative_distances[1], abs=1.0)

    def test_zero_length_route(self):
        point = Position(5.0, 5.0)
        route = Route([point, point])
        assert route.progress_at_position(Position(5.001, 5.0)) == 0.0

    def test_needs_two_points(self):
        with pytest.raises(ValueError):
            Route([Position(0.0, 0.0)]).progress_at_position(Position(0.0, 0.0))
        with pytest.raises(ValueError):
            Route([]).progress_at_position(Position(0.0, 0.0))


class TestGpxLoading:
    def test_from_gpx_concatenates_segments(self):
        route = Route.from_gpx(io.StringIO(GPX_TWO_SEGMENTS))
        assert len(route) == 3
        assert route[0] == Position(0.0, 0.0)
        assert route[1] == Position(0.0, 0.01)
        assert route[2] == Position(0.0, 0.02)

    def test_from_file(self, tmp_path):
        gpx_path = tmp_path / "ride.gpx"
        gpx_path.write_text(GPX_TWO_SEGMENTS, encoding="utf-8")
        route = Route.from_file(str(gpx_path))
        assert len(route) == 3

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            Route.from_file(str(tmp_path / "missing.gpx"))

    def test_from_gpx_malformed(self):
        with pytest.raises(gpxpy.gpx.GPXException):
            Route.from_gpx(io.StringIO("this is not gpx"))
