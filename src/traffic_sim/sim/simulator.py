# sim/simulator.py
import math
from collections.abc import Iterable, Mapping
from concurrent.futures import Executor

from traffic_sim.app.protocols import PathTraverser, SpeedModel
from traffic_sim.domain.entities.geography import Point, RoadSegment
from traffic_sim.domain.entities.vehicle import Vehicle
from traffic_sim.domain.mechanics.mechanics_path_traversers import (
    BouncingPolylineTraverser,
    road_polyline,
)
from traffic_sim.domain.mechanics.mechanics_speeds import (
    FollowingDistance,
    OscillatingDensitySpeed,
)
from traffic_sim.domain.state import TrafficState, index_roads

Network = Iterable[RoadSegment] | Mapping[int, RoadSegment]


class VehicleSimulator:
    """
    tick(snapshot N) -> snapshot N+1.

    Every vehicle reads only snapshot N (its own and its road-mates' previous
    positions) and writes only its own next value, so roads can be processed
    independently and merged (`executor=`) with the same result as a serial pass.
    """

    def __init__(
        self,
        *,
        speed_model: SpeedModel | None = None,
        following: FollowingDistance | None = None,
        traverser: PathTraverser | None = None,
        speed_multiplier: float = 1.0,
    ):
        self.speed_model = speed_model or OscillatingDensitySpeed()
        self.following = following or FollowingDistance()
        self.traverser = traverser or BouncingPolylineTraverser()
        self.speed_multiplier = speed_multiplier

    def _advance(
        self,
        v: Vehicle,
        road: RoadSegment,
        polyline: tuple[Point, ...],
        road_mates: list[Vehicle],
        t: float,
        dt: float,
    ) -> Vehicle:
        target = self.traverser.target(v, polyline)
        dx, dy = target.x - v.position.x, target.y - v.position.y
        d = math.hypot(dx, dy) or 1.0
        m = self.speed_model.modifier(t, vehicle_id=v.id, density=road.density)
        m *= self.following.modifier(v, (dx / d, dy / d), road_mates)
        return self.traverser.step(v, polyline, m, dt)

    def _advance_road(self, road, polyline, mates, t, dt) -> list[Vehicle]:
        return [self._advance(v, road, polyline, mates, t, dt) for v in mates]

    def tick(
        self,
        state: TrafficState,
        network: Network,
        dt: float = 1.0,
        *,
        executor: Executor | None = None,
    ) -> TrafficState:
        roads = index_roads(network)
        step_dt = dt * self.speed_multiplier

        groups: dict[int, tuple[RoadSegment, tuple[Point, ...], list[Vehicle]]] = {}
        for rid, mates in state.by_road().items():
            road = roads.get(rid)
            poly = road_polyline(road) if road is not None else None
            if poly is None:
                continue  # road gone from the snapshot (or undrivable): drop its vehicles
            groups[rid] = (road, poly, mates)

        if executor is None:
            moved = [
                self._advance_road(road, poly, mates, state.t, step_dt)
                for road, poly, mates in groups.values()
            ]
        else:
            futures = [
                executor.submit(self._advance_road, road, poly, mates, state.t, step_dt)
                for road, poly, mates in groups.values()
            ]
            moved = [f.result() for f in futures]

        by_id = {v.id: v for part in moved for v in part}
        vehicles = tuple(by_id[v.id] for v in state.vehicles if v.id in by_id)
        return TrafficState(t=state.t + dt, tick=state.tick + 1, vehicles=vehicles)
