# tests/app/test_build_and_run.py
import math

import pytest
from pydantic import ValidationError

from traffic_sim.app.build import build
from traffic_sim.config.models import ScenarioModel
from traffic_sim.domain.entities.geography import Density, Point, RoadClass, RoadSegment
from traffic_sim.domain.entities.route import InvalidInput, NoPathFound, Route
from traffic_sim.domain.mechanics.mechanics_factory import build_mechanics
from traffic_sim.domain.mechanics.mechanics_speeds import MeanDensitySpeed
from traffic_sim.io.recorder import MemorySink
from traffic_sim.sim.rng import RNGRegistry

CFG = {
    "name": "test",
    "run_id": "t-1",
    "sim": {"epoch": [2025, 1, 1, 0, 0, 0], "seed": 1},
    "log": {"level": "WARNING", "sample_every": 2},
    "solver": {"kind": "astar"},
    "motion": {"speed": {"kind": "oscillating"}, "speed_multiplier": 1.5},
}


@pytest.fixture
def roads() -> tuple[RoadSegment, ...]:
    return (
        RoadSegment(1, Point(0, 0), Point(100, 0)),
        RoadSegment(2, Point(100, 5), Point(100, 100), density=Density.HIGH),
        RoadSegment(3, Point(0, 200), Point(100, 200), density=Density.CONGESTED),
    )


def test_build_runs(roads):
    sink = MemorySink()
    app = build(CFG, sinks=(sink,))
    r = app.mechanics.route(roads, Point(0, 0), Point(100, 100))
    assert isinstance(r, Route) and r.algorithm == "astar"
    assert r.segment_ids == (1, 2)

    state = app.loop.run(app.mechanics.spawn(roads), roads, ticks=4, dt=app.model.motion.dt)
    assert state.tick == 4

    assert [rec.name for rec in sink.records] == ["route_computed", "tick", "tick"]
    computed = sink.named("route_computed")[0]
    assert computed.run_id == "t-1" and computed.segment_ids == (1, 2)
    assert [rec.tick for rec in sink.named("tick")] == [2, 4]


def test_defaults_build_without_config(roads):
    app = build({}, use_logging=False)
    assert app.model == ScenarioModel()
    assert app.mechanics.router.solver.name == "dijkstra"
    assert app.mechanics.router.min_separation == 1.0
    r = app.mechanics.route(roads, Point(0, 0), Point(100, 0))
    assert isinstance(r, Route) and abs(r.distance - 100.0) < 1e-6


def test_same_seed_same_traffic(roads):
    runs = []
    for _ in range(2):
        app = build(CFG, use_logging=False)
        runs.append(app.loop.run(app.mechanics.spawn(roads), roads, ticks=10))
    assert runs[0] == runs[1]


def test_invalid_queries_are_rejected_before_routing(roads):
    app = build({"graph": {"min_separation": 5.0}}, use_logging=False)
    m = app.mechanics

    bad = m.route(roads, Point(math.nan, 0), Point(100, 0))
    assert isinstance(bad, InvalidInput) and isinstance(bad, NoPathFound)
    assert bad.reason == "invalid_input" and "origin" in bad.detail

    bad = m.route(roads, Point(0, 0), Point(0, math.inf))
    assert isinstance(bad, InvalidInput) and "destination" in bad.detail

    bad = m.route(roads, Point(0, 0), Point(3, 3))
    assert isinstance(bad, InvalidInput)

    bad = m.route((), Point(0, 0), Point(100, 0))
    assert isinstance(bad, InvalidInput) and "empty" in bad.detail


def test_unreachable_destination(roads):
    sink = MemorySink()
    app = build(CFG, sinks=(sink,))
    res = app.mechanics.route(roads, Point(0, 0), Point(100, 200))
    assert isinstance(res, NoPathFound) and not isinstance(res, InvalidInput)
    assert res.reason == "unreachable"
    assert sink.records[0].name == "route_rejected"
    assert sink.records[0].reason == "unreachable"


def test_build_mechanics_directly():
    model = ScenarioModel.model_validate({"motion": {"speed": {"kind": "mean"}, "spacing_factor": 3.0}})
    m = build_mechanics(model, RNGRegistry(1))
    assert isinstance(m.simulator.speed_model, MeanDensitySpeed)
    assert m.simulator.following.spacing_factor == 3.0


# ---------- configuration errors


@pytest.mark.parametrize(
    "patch",
    [
        {"bogus": 1},
        {"solver": {"kind": "bellman_ford"}},
        {"motion": {"dt": 0}},
        {"graph": {"max_connect_distance": -1}},
        {"spawn": {"speed_jitter": [1.2, 0.8]}},
        {"log": {"level": "LOUD"}},
        {"solver": {"kind": "dijkstra", "strategy": "fastest"}},
        {"solver": {"kind": "astar", "weather": "hail"}},
    ],
)
def test_config_validation_errors(patch):
    with pytest.raises(ValidationError):
        build(patch, use_logging=False)


def test_solver_factor_overrides_by_label(roads):
    app = build({"solver": {"kind": "dijkstra", "density_factors": {"high": 10.0}}}, use_logging=False)
    r = app.mechanics.route(roads, Point(0, 0), Point(100, 100))
    assert isinstance(r, Route)
    assert abs(r.cost - (100.0 + 5.0 * 10 + 95.0 * 10)) < 1e-6

    with pytest.raises(ValueError):
        build({"solver": {"kind": "dijkstra", "class_factors": {"motorway": 0.5}}}, use_logging=False)


def test_solver_scenario_from_config(roads):
    app = build(
        {"solver": {"kind": "astar", "strategy": "avoid_congestion", "time_of_day": "night", "weather": "rain"}},
        use_logging=False,
    )
    solver = app.mechanics.router.solver
    assert solver.strategy == "avoid_congestion"
    assert abs(solver.scenario_factor - 0.8 * 1.3) < 1e-9

    # road 2 is the only way through, so it is still taken, at the penalised price
    r = app.mechanics.route(roads, Point(0, 0), Point(100, 100))
    assert isinstance(r, Route) and r.segment_ids == (1, 2)
    assert abs(r.cost - (100.0 + 5.0 * 7.5 + 95.0 * 7.5) * 0.8 * 1.3) < 1e-6


# ---------- duplicate road ids


def test_duplicate_road_ids_resolve_to_the_first_road():
    roads = (
        RoadSegment(1, Point(0, 0), Point(100, 0)),
        RoadSegment(1, Point(500, 500), Point(600, 500), road_class=RoadClass.HIGHWAY, density=Density.CONGESTED),
    )
    app = build({}, use_logging=False)
    r = app.mechanics.route(roads, Point(0, 0), Point(100, 0))
    assert isinstance(r, Route)
    assert r.segments == (roads[0],)
    assert r.highway_percentage == 0.0 and r.congested_segments == 0
    assert abs(r.estimated_minutes - 100.0 / 60.0) < 1e-9

    state = app.mechanics.spawn(roads)
    assert state.vehicles and all(abs(v.position.y) < 1e-9 for v in state.vehicles)
    state = app.loop.run(state, roads, ticks=20)
    assert all(abs(v.position.y) < 1e-9 and -1e-9 <= v.position.x <= 100 + 1e-9 for v in state.vehicles)
