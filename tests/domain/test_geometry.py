# tests/domain/test_geometry.py
import math

from traffic_sim.domain.entities.geography import Point, RoadSegment
from traffic_sim.domain.mechanics.mechanics_geometry import (
    bearing_deg,
    compass_direction,
    distance,
    is_finite_point,
    is_point_near_road,
    nearest_road_point,
    point_along_polyline,
    polyline_length,
)


def test_distance_and_polyline_length():
    assert abs(distance(Point(0, 0), Point(3, 4)) - 5.0) < 1e-9
    pts = [Point(0, 0), Point(100, 0), Point(100, 100)]
    assert abs(polyline_length(pts) - 200.0) < 1e-9
    assert polyline_length([Point(1, 1)]) == 0


def test_is_finite_point():
    assert is_finite_point(Point(1.0, 2.0))
    assert not is_finite_point(Point(math.nan, 0.0))
    assert not is_finite_point(Point(0.0, math.inf))
    assert not is_finite_point(None)


def test_compass_uses_screen_coordinates():
    # y grows downwards, so "up" on the map is north
    assert compass_direction(bearing_deg(Point(0, 0), Point(10, 0))) == "E"
    assert compass_direction(bearing_deg(Point(0, 0), Point(0, 10))) == "S"
    assert compass_direction(bearing_deg(Point(0, 0), Point(0, -10))) == "N"
    assert compass_direction(bearing_deg(Point(0, 0), Point(-10, 0))) == "W"


def test_compass_bucket_edges_are_half_open():
    assert compass_direction(22.4) == "E"
    assert compass_direction(22.5) == "SE"
    assert compass_direction(337.4) == "NE"
    assert compass_direction(337.5) == "E"
    assert compass_direction(-90.0) == "N"


def test_point_along_polyline():
    pts = [Point(0, 0), Point(100, 0), Point(100, 100)]
    p, i = point_along_polyline(pts, 0.75)
    assert (p.x, p.y, i) == (100.0, 50.0, 1)
    p, i = point_along_polyline(pts, 0.0)
    assert (p.x, p.y, i) == (0.0, 0.0, 0)
    p, i = point_along_polyline(pts, 1.0)
    assert (p.x, p.y, i) == (100.0, 100.0, 1)


def test_nearest_road_point_is_strict_and_projects():
    roads = [RoadSegment(1, Point(0, 0), Point(100, 0))]
    q = nearest_road_point(Point(50, 20), roads)
    assert q is not None and abs(q.x - 50) < 1e-9 and abs(q.y) < 1e-9
    assert nearest_road_point(Point(50, 30), roads) is None
    assert nearest_road_point(Point(50, 30), roads, threshold=30.5) is not None


def test_nearest_road_point_prefers_closest_road():
    roads = [
        RoadSegment(1, Point(0, 0), Point(100, 0)),
        RoadSegment(2, Point(0, 10), Point(100, 10), points=(Point(50, 12),)),
    ]
    q = nearest_road_point(Point(40, 8), roads)
    assert q is not None and q.y > 9


def test_is_point_near_road():
    roads = [RoadSegment(1, Point(0, 0), Point(100, 0))]
    assert is_point_near_road(Point(50, 19.9), roads)
    assert not is_point_near_road(Point(50, 20.0), roads)
    assert not is_point_near_road(Point(50, 5), [])
