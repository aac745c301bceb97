import heapq
import itertools
import math
from collections.abc import Mapping
from dataclasses import dataclass

from traffic_sim.app.protocols import PathSolver
from traffic_sim.domain.entities.geography import Density, RoadClass, RoadSegment
from traffic_sim.domain.entities.route import NoPathFound
from traffic_sim.domain.mechanics.mechanics_geometry import distance
from traffic_sim.domain.mechanics.mechanics_graph import GraphEdge, NodeKey, RoadGraph

CLASS_COST_FACTOR: dict[RoadClass, float] = {
    RoadClass.HIGHWAY: 0.8,
    RoadClass.NORMAL: 1.0,
    RoadClass.RESIDENTIAL: 1.2,
}

DENSITY_COST_FACTOR: dict[Density, float] = {
    Density.LOW: 1.0,
    Density.MEDIUM: 1.0,
    Density.HIGH: 1.5,
    Density.CONGESTED: 2.0,
}

# scenario multipliers, applied to every edge
TIME_OF_DAY_FACTOR = {"morning": 1.5, "afternoon": 1.2, "evening": 1.7, "night": 0.8}
DAY_TYPE_FACTOR = {"weekday": 1.2, "weekend": 1.0, "holiday": 1.3}
WEATHER_FACTOR = {"clear": 1.0, "rain": 1.3, "snow": 1.8, "fog": 1.5}

AVOID_CONGESTION_PENALTY = 5.0
STRATEGIES = ("shortest_path", "avoid_congestion")


@dataclass(frozen=True)
class SolveResult:
    cost: float
    path: tuple[NodeKey, ...]


class DijkstraSolver(PathSolver):
    """
    Single-source shortest path over a RoadGraph.
    Entering a node costs edge.length x the road factor of the node's own segment;
    synthetic nodes have factor 1.0. The scenario factor (time of day, day type,
    weather) scales every edge. With strategy "avoid_congestion" roads that are
    HIGH or CONGESTED cost AVOID_CONGESTION_PENALTY times more.
    """

    name = "dijkstra"

    def __init__(
        self,
        class_factors: Mapping[RoadClass, float] | None = None,
        density_factors: Mapping[Density, float] | None = None,
        *,
        strategy: str = "shortest_path",
        time_of_day: str | None = None,
        day_type: str | None = None,
        weather: str | None = None,
    ):
        if strategy not in STRATEGIES:
            raise ValueError(f"Unknown routing strategy {strategy!r}")
        self.class_factors = {**CLASS_COST_FACTOR, **(class_factors or {})}
        self.density_factors = {**DENSITY_COST_FACTOR, **(density_factors or {})}
        self.strategy = strategy
        self.scenario_factor = (
            TIME_OF_DAY_FACTOR.get(time_of_day, 1.0)
            * DAY_TYPE_FACTOR.get(day_type, 1.0)
            * WEATHER_FACTOR.get(weather, 1.0)
        )

    def road_factor(self, segment: RoadSegment | None) -> float:
        if segment is None:
            return 1.0
        f = self.class_factors.get(segment.road_class, 1.0) * self.density_factors.get(segment.density, 1.0)
        if self.strategy == "avoid_congestion" and segment.is_congested:
            f *= AVOID_CONGESTION_PENALTY
        return f

    def edge_cost(self, graph: RoadGraph, edge: GraphEdge, entered: NodeKey) -> float:
        return edge.length * self.road_factor(graph.node(entered).segment) * self.scenario_factor

    def _h(self, graph: RoadGraph, key: NodeKey, goal: NodeKey) -> float:
        return 0.0

    def solve(self, graph: RoadGraph, origin: NodeKey, destination: NodeKey) -> SolveResult | NoPathFound:
        if origin not in graph or destination not in graph:
            return NoPathFound("unreachable", "query node missing from graph")

        dist: dict[NodeKey, float] = {origin: 0.0}
        prev: dict[NodeKey, NodeKey] = {}
        settled: set[NodeKey] = set()
        seq = itertools.count()
        q = [(self._h(graph, origin, destination), next(seq), origin)]

        while q:
            _, _, u = heapq.heappop(q)
            if u in settled:
                continue
            settled.add(u)
            if u == destination:
                return SolveResult(dist[u], self._walk_back(prev, origin, destination))
            du = dist[u]
            for v, e in graph.neighbors(u):
                if v in settled:
                    continue
                alt = du + self.edge_cost(graph, e, v)
                if alt < dist.get(v, math.inf):
                    dist[v] = alt
                    prev[v] = u
                    heapq.heappush(q, (alt + self._h(graph, v, destination), next(seq), v))

        return NoPathFound("unreachable", "no road connects origin and destination")

    @staticmethod
    def _walk_back(prev: dict[NodeKey, NodeKey], origin: NodeKey, destination: NodeKey) -> tuple[NodeKey, ...]:
        path = [destination]
        while path[-1] != origin:
            path.append(prev[path[-1]])
        path.reverse()
        return tuple(path)


class AStarSolver(DijkstraSolver):
    """Same cost model; Euclidean heuristic scaled by the cheapest factor keeps it admissible."""

    name = "astar"

    def __init__(
        self,
        class_factors: Mapping[RoadClass, float] | None = None,
        density_factors: Mapping[Density, float] | None = None,
        **scenario: str | None,
    ):
        super().__init__(class_factors, density_factors, **scenario)
        # access and intersection links cost 1.0 per unit; the congestion penalty only adds
        cheapest = min(1.0, min(self.class_factors.values()) * min(self.density_factors.values()))
        self._hscale = cheapest * self.scenario_factor

    def _h(self, graph: RoadGraph, key: NodeKey, goal: NodeKey) -> float:
        return distance(graph.point(key), graph.point(goal)) * self._hscale
