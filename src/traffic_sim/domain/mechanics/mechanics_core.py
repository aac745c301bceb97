# traffic_sim/domain/mechanics/mechanics_core.py
import time
from collections.abc import Iterable
from concurrent.futures import Executor
from dataclasses import dataclass, field

from traffic_sim.app.protocols import GraphFactory, PathSolver, RouteAssembler, Router, VehicleSpawner
from traffic_sim.domain.entities.geography import Point, RoadSegment
from traffic_sim.domain.entities.route import InvalidInput, NoPathFound, RouteResult
from traffic_sim.domain.mechanics.mechanics_geometry import distance, is_finite_point
from traffic_sim.domain.mechanics.mechanics_graph import DESTINATION, ORIGIN
from traffic_sim.domain.state import TrafficState, index_roads
from traffic_sim.sim.hooks import EngineHooks, NoopHooks
from traffic_sim.sim.simulator import Network, VehicleSimulator


def validate_query(
    segments: tuple[RoadSegment, ...], origin: Point, destination: Point, min_separation: float
) -> InvalidInput | None:
    if not is_finite_point(origin):
        return InvalidInput(detail="origin has missing or non-finite coordinates")
    if not is_finite_point(destination):
        return InvalidInput(detail="destination has missing or non-finite coordinates")
    if distance(origin, destination) < min_separation:
        return InvalidInput(detail="origin and destination are the same point; pick two different places")
    if not segments:
        return InvalidInput(detail="road network is empty; draw at least one road")
    return None


@dataclass
class NetworkRouter(Router):
    builder: GraphFactory
    solver: PathSolver
    assembler: RouteAssembler
    min_separation: float = 1.0
    hooks: EngineHooks = field(default_factory=NoopHooks)

    def route(self, segments: Iterable[RoadSegment], origin: Point, destination: Point) -> RouteResult:
        t0 = time.perf_counter()
        segments = tuple(segments or ())
        bad = validate_query(segments, origin, destination, self.min_separation)
        if bad is not None:
            self.hooks.route_not_found(bad, graph_stats=None, ms=(time.perf_counter() - t0) * 1000)
            return bad

        graph = self.builder.build(segments, origin, destination)
        solved = self.solver.solve(graph, ORIGIN, DESTINATION)
        if isinstance(solved, NoPathFound):
            self.hooks.route_not_found(
                solved, graph_stats=graph.stats, ms=(time.perf_counter() - t0) * 1000
            )
            return solved

        lookup = index_roads(segments)
        route = self.assembler.assemble(
            graph, solved.path, lookup, algorithm=self.solver.name, cost=solved.cost
        )
        self.hooks.route_solved(route, graph_stats=graph.stats, ms=(time.perf_counter() - t0) * 1000)
        return route


@dataclass
class Mechanics:
    """Convenience façade: routing on one side, vehicle motion on the other."""

    router: NetworkRouter
    spawner: VehicleSpawner
    simulator: VehicleSimulator

    def route(self, segments: Iterable[RoadSegment], origin: Point, destination: Point) -> RouteResult:
        return self.router.route(segments, origin, destination)

    def spawn(self, segments: Iterable[RoadSegment]) -> TrafficState:
        return TrafficState(t=0.0, tick=0, vehicles=self.spawner.spawn(segments))

    def tick(
        self,
        state: TrafficState,
        network: Network,
        dt: float = 1.0,
        *,
        executor: Executor | None = None,
    ) -> TrafficState:
        return self.simulator.tick(state, network, dt, executor=executor)
