# tests/domain/test_motion_models.py
import math

import numpy as np
import pytest

from traffic_sim.domain.entities.geography import Density, Point, RoadSegment
from traffic_sim.domain.entities.vehicle import Vehicle
from traffic_sim.domain.mechanics.mechanics_path_traversers import BouncingPolylineTraverser, road_polyline
from traffic_sim.domain.mechanics.mechanics_speeds import (
    DENSITY_OSCILLATION,
    FollowingDistance,
    MeanDensitySpeed,
    OscillatingDensitySpeed,
)

LINE = (Point(0, 0), Point(10, 0))


def car(vid=1, x=0.0, y=0.0, *, idx=0, rev=False, speed=1.0, size=2.0, road=1) -> Vehicle:
    return Vehicle(
        id=vid,
        position=Point(x, y),
        target=Point(0, 0),
        speed=speed,
        size=size,
        heading=0.0,
        road_id=road,
        path_index=idx,
        reversed=rev,
    )


# ---------- speed modifiers


@pytest.mark.parametrize("density", list(Density))
def test_oscillation_stays_within_bounds(density):
    model = OscillatingDensitySpeed()
    lo, hi = DENSITY_OSCILLATION[density].bounds
    for t in np.linspace(0.0, 60.0, 241):
        for vid in (1, 2, 17):
            m = model.modifier(float(t), vehicle_id=vid, density=density)
            assert lo - 1e-12 <= m <= hi + 1e-12


def test_oscillation_is_deterministic_and_phase_shifted():
    model = OscillatingDensitySpeed()
    a = model.modifier(3.0, vehicle_id=1, density=Density.MEDIUM)
    assert a == model.modifier(3.0, vehicle_id=1, density=Density.MEDIUM)
    assert abs(a - (0.7 + 0.15 * math.sin(3.0 + 1))) < 1e-12
    assert a != model.modifier(3.0, vehicle_id=2, density=Density.MEDIUM)
    # congested oscillates on a 2 s time scale
    c = model.modifier(4.0, vehicle_id=0, density=Density.CONGESTED)
    assert abs(c - (0.3 + 0.25 * math.sin(2.0))) < 1e-12


def test_mean_speed_model():
    m = MeanDensitySpeed()
    assert m.modifier(123.0, vehicle_id=5, density=Density.HIGH) == 0.5


def test_following_compounds_over_leaders():
    me = car(1, 0, 0, size=2.0)  # min spacing 10
    others = [
        me,
        car(2, 5, 0),  # 0.5
        car(3, 8, 0),  # 0.8
        car(4, -3, 0),  # behind
        car(5, 4, 0, road=2),  # other road
        car(6, 12, 0),  # too far
    ]
    f = FollowingDistance()
    assert abs(f.modifier(me, (1.0, 0.0), others) - 0.4) < 1e-12
    # reversing direction: only the car behind is now ahead
    assert abs(f.modifier(me, (-1.0, 0.0), others) - 0.3) < 1e-12


def test_following_floor():
    me = car(1, 0, 0, size=2.0)
    f = FollowingDistance()
    assert abs(f.modifier(me, (1.0, 0.0), [car(2, 0.5, 0)]) - 0.1) < 1e-12
    assert f.modifier(me, (1.0, 0.0), []) == 1.0


# ---------- traverser


def test_road_polyline_cleans_points():
    seg = RoadSegment(1, Point(0, 0), Point(10, 0), points=(Point(0, 0), Point(math.nan, 1), Point(5, 0)))
    assert road_polyline(seg) == (Point(0, 0), Point(5, 0), Point(10, 0))
    assert road_polyline(RoadSegment(2, Point(1, 1), Point(1, 1))) is None


def test_step_moves_toward_target():
    tr = BouncingPolylineTraverser()
    v = tr.step(car(speed=1.0), LINE, modifier=0.5, dt=1.0)
    assert abs(v.position.x - 0.5) < 1e-12 and v.position.y == 0
    assert v.path_index == 0 and not v.reversed
    assert v.target == Point(10, 0)
    assert abs(v.heading) < 1e-12


def test_step_never_overshoots():
    tr = BouncingPolylineTraverser()
    v = tr.step(car(x=8.0, speed=1.0), LINE, modifier=1.0, dt=3.0)
    assert v.position == Point(10, 0)


def test_arrival_at_end_bounces():
    tr = BouncingPolylineTraverser()
    v = tr.step(car(x=9.5, speed=1.0), LINE, modifier=1.0, dt=1.0)
    assert v.position == Point(10, 0)
    assert v.path_index == 1 and v.reversed
    assert v.target == Point(0, 0)
    assert abs(abs(v.heading) - math.pi) < 1e-12
    assert v.state == "en_route_reverse"


def test_arrival_mid_polyline_keeps_direction():
    poly = (Point(0, 0), Point(10, 0), Point(10, 10))
    tr = BouncingPolylineTraverser()
    v = tr.step(car(x=9.8, speed=1.0), poly, modifier=0.2, dt=1.0)
    assert v.position == Point(10, 0)
    assert v.path_index == 1 and not v.reversed
    assert v.target == Point(10, 10)


def test_out_of_range_index_is_clamped():
    tr = BouncingPolylineTraverser()
    v = tr.step(car(x=5.0, idx=7, rev=False), LINE, modifier=1.0, dt=1.0)
    assert 0 <= v.path_index <= 1
    assert v.reversed and v.position.x < 5.0
