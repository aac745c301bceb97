# tests/sim/test_simulation_loop.py
import pytest

from traffic_sim.domain.entities.geography import Point, RoadSegment
from traffic_sim.domain.mechanics.mechanics_spawners import spawn_vehicles
from traffic_sim.domain.state import TrafficState
from traffic_sim.sim.hooks import NoopHooks
from traffic_sim.sim.loop import SimulationLoop
from traffic_sim.sim.rng import RNGRegistry
from traffic_sim.sim.simulator import VehicleSimulator


# --- test hook that records the loop lifecycle ---
class TraceHooks(NoopHooks):
    def __init__(self):
        self.trace = []

    def run_start(self, *, ticks, dt, vehicles):
        self.trace.append(("run_start", ticks, dt))

    def tick_end(self, state, *, dropped, ms):
        self.trace.append(("tick", state.tick, dropped))

    def run_end(self, *, processed, last_t, vehicles, wall_ms):
        self.trace.append(("run_end", processed, last_t))

    def error(self, *, reason, **kw):
        self.trace.append(("error", reason))


@pytest.fixture
def roads() -> tuple[RoadSegment, ...]:
    return (
        RoadSegment(1, Point(0, 0), Point(100, 0)),
        RoadSegment(2, Point(0, 50), Point(100, 50)),
    )


def test_run_notifies_hooks(roads):
    hooks = TraceHooks()
    loop = SimulationLoop(VehicleSimulator(), hooks=hooks)
    state = TrafficState(vehicles=spawn_vehicles(roads, RNGRegistry(1)))
    end = loop.run(state, roads, ticks=3, dt=0.5)
    assert end.tick == 3 and abs(end.t - 1.5) < 1e-12
    assert hooks.trace == [
        ("run_start", 3, 0.5),
        ("tick", 1, 0),
        ("tick", 2, 0),
        ("tick", 3, 0),
        ("run_end", 3, 1.5),
    ]


def test_on_tick_false_stops_the_loop(roads):
    hooks = TraceHooks()
    loop = SimulationLoop(VehicleSimulator(), hooks=hooks)
    state = TrafficState(vehicles=spawn_vehicles(roads, RNGRegistry(1)))
    end = loop.run(state, roads, ticks=10, on_tick=lambda s: s.tick < 4)
    assert end.tick == 4
    assert hooks.trace[-1] == ("run_end", 4, 4.0)


def test_dropped_vehicles_are_reported(roads):
    hooks = TraceHooks()
    loop = SimulationLoop(VehicleSimulator(), hooks=hooks)
    state = TrafficState(vehicles=spawn_vehicles(roads, RNGRegistry(1)))
    on_two = sum(1 for v in state.vehicles if v.road_id == 2)
    loop.step(state, roads[:1], dt=1.0)
    assert hooks.trace == [("tick", 1, on_two)]


def test_frames_yield_each_snapshot(roads):
    loop = SimulationLoop(VehicleSimulator())
    state = TrafficState(vehicles=spawn_vehicles(roads, RNGRegistry(1)))
    ticks = [s.tick for s in loop.frames(state, roads, dt=1.0, ticks=5)]
    assert ticks == [1, 2, 3, 4, 5]


def test_non_positive_dt_is_rejected(roads):
    hooks = TraceHooks()
    loop = SimulationLoop(VehicleSimulator(), hooks=hooks)
    with pytest.raises(ValueError):
        loop.run(TrafficState(), roads, ticks=1, dt=0.0)
    assert hooks.trace == [("error", "bad_dt")]
