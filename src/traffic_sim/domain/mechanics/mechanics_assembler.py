from collections.abc import Mapping, Sequence
from dataclasses import replace

from traffic_sim.app.protocols import RouteAssembler
from traffic_sim.domain.entities.geography import Density, Point, RoadClass, RoadSegment
from traffic_sim.domain.entities.route import Route
from traffic_sim.domain.errors import GraphIntegrityError
from traffic_sim.domain.mechanics.mechanics_geometry import (
    bearing_deg,
    compass_bucket,
    polyline_length,
)
from traffic_sim.domain.mechanics.mechanics_graph import (
    DESTINATION,
    ORIGIN,
    NodeKey,
    RoadGraph,
    SegmentNode,
)

BASE_SPEED = 60.0  # map units per minute

CLASS_SPEED_FACTOR: dict[RoadClass, float] = {
    RoadClass.HIGHWAY: 1.5,
    RoadClass.NORMAL: 1.0,
    RoadClass.RESIDENTIAL: 0.7,
}

DENSITY_SPEED_FACTOR: dict[Density, float] = {
    Density.LOW: 1.0,
    Density.MEDIUM: 0.8,
    Density.HIGH: 0.6,
    Density.CONGESTED: 0.3,
}

ALGORITHM_LABELS = {"dijkstra": "Shortest Path", "astar": "A*"}


def count_direction_changes(bearings: Sequence[float]) -> int:
    """Transitions between 8-way compass buckets of consecutive bearings (degrees)."""
    buckets = [compass_bucket(b) for b in bearings]
    return sum(1 for a, b in zip(buckets, buckets[1:]) if a != b)


def format_minutes(minutes: float) -> str:
    hours, mins = divmod(round(minutes), 60)
    return f"{mins} min" if hours == 0 else f"{hours} hr {mins} min"


def describe_route(route: Route) -> str:
    n = len(route.segments)
    label = ALGORITHM_LABELS.get(route.algorithm, route.algorithm)
    parts = [f"This route was calculated using the {label} algorithm."]

    pct = round(route.highway_percentage)
    if pct > 70:
        parts.append(f"It primarily uses highways ({pct}% of the route).")
    elif pct > 30:
        parts.append(f"It uses a mix of highways ({pct}%) and local roads.")
    else:
        parts.append("It mostly uses local roads.")

    if route.congested_segments == 0:
        parts.append("It avoids all congested areas.")
    elif route.congested_segments == 1:
        parts.append("It passes through 1 congested area.")
    else:
        parts.append(f"It passes through {route.congested_segments} congested areas.")

    if route.direction_changes <= 1:
        parts.append("With minimal intersections, this route minimizes the 'traffic snake' effect.")
    elif route.direction_changes <= 3:
        parts.append("This route has a few intersections where traffic flow might slow down.")
    else:
        parts.append(
            "This route has several intersections which may create traffic snakes during peak hours."
        )

    congested = sum(1 for s in route.segments if s.density is Density.CONGESTED)
    high = sum(1 for s in route.segments if s.density is Density.HIGH)
    impact = (congested * 0.4 + high * 0.2) / n if n else 0.0
    delay = round(route.estimated_minutes * impact)
    eta = f"Estimated travel time is {format_minutes(route.estimated_minutes)}"
    if delay > 2:
        eta += f" including approximately {delay} minutes of potential delay due to traffic."
    else:
        eta += "."
    parts.append(eta)
    return " ".join(parts)


class PathAssembler(RouteAssembler):
    """Node path -> Route (road list, polyline, metrics). Pure; same input, equal output."""

    def __init__(
        self,
        *,
        base_speed: float = BASE_SPEED,
        class_speed_factors: Mapping[RoadClass, float] | None = None,
        density_speed_factors: Mapping[Density, float] | None = None,
        describe: bool = True,
    ):
        self.base_speed = base_speed
        self.class_speed = {**CLASS_SPEED_FACTOR, **(class_speed_factors or {})}
        self.density_speed = {**DENSITY_SPEED_FACTOR, **(density_speed_factors or {})}
        self.describe = describe

    # ---------------------------------------------------------

    @staticmethod
    def _runs(path: Sequence[NodeKey]) -> list[tuple[int, list[SegmentNode]]]:
        runs: list[tuple[int, list[SegmentNode]]] = []
        for key in path:
            if not isinstance(key, SegmentNode):
                continue
            if runs and runs[-1][0] == key.segment_id:
                runs[-1][1].append(key)
            else:
                runs.append((key.segment_id, [key]))
        return runs

    @staticmethod
    def _run_points(graph: RoadGraph, sid: int, run: list[SegmentNode]) -> list[Point]:
        order = graph.segment_nodes.get(sid)
        if order is None:
            raise GraphIntegrityError(f"path visits segment {sid} that the graph does not hold")
        pos = {k: i for i, k in enumerate(order)}
        i, j = pos[run[0]], pos[run[-1]]
        keys = order[i : j + 1] if i <= j else order[j : i + 1][::-1]
        return [graph.point(k) for k in keys]

    def estimated_minutes(self, segments: Sequence[RoadSegment], distance: float) -> float:
        if not segments:
            return 0.0
        total_len, weighted = 0.0, 0.0
        for s in segments:
            L = polyline_length(s.polyline)
            v = (
                self.base_speed
                * self.class_speed.get(s.road_class, 1.0)
                * self.density_speed.get(s.density, 1.0)
            )
            total_len += L
            weighted += v * L
        if total_len == 0 or weighted == 0:
            return distance / self.base_speed
        return distance / (weighted / total_len)

    def assemble(
        self,
        graph: RoadGraph,
        path: Sequence[NodeKey],
        road_lookup: Mapping[int, RoadSegment] | None = None,
        *,
        algorithm: str = "dijkstra",
        cost: float = 0.0,
    ) -> Route:
        origin = graph.point(path[0]) if path else graph.point(ORIGIN)
        destination = graph.point(path[-1]) if path else graph.point(DESTINATION)

        segments: list[RoadSegment] = []
        bearings: list[float] = []
        polyline: list[Point] = [origin]

        def push(p: Point) -> None:
            if p != polyline[-1]:
                polyline.append(p)

        for sid, run in self._runs(path):
            seg = road_lookup.get(sid) if road_lookup is not None else graph.node(run[0]).segment
            if seg is None:
                raise GraphIntegrityError(f"segment {sid} missing from road lookup")
            segments.append(seg)
            pts = self._run_points(graph, sid, run)
            # single-node runs have no travel direction; fall back to the drawn one
            entry, exit_ = (pts[0], pts[-1]) if pts[0] != pts[-1] else (seg.start, seg.end)
            bearings.append(bearing_deg(entry, exit_))
            for p in pts:
                push(p)
        push(destination)

        distance = polyline_length(polyline)
        eta = self.estimated_minutes(segments, distance)
        congested = sum(1 for s in segments if s.is_congested)
        turns = count_direction_changes(bearings)
        highways = sum(1 for s in segments if s.road_class is RoadClass.HIGHWAY)
        highway_pct = highways / len(segments) * 100 if segments else 0.0

        route = Route(
            algorithm=algorithm,
            segment_ids=tuple(s.id for s in segments),
            segments=tuple(segments),
            polyline=tuple(polyline),
            distance=distance,
            cost=cost,
            estimated_minutes=eta,
            congested_segments=congested,
            direction_changes=turns,
            highway_segments=highways,
            highway_percentage=highway_pct,
            score=distance * (1 + congested * 0.1 + turns * 0.05),
        )
        if self.describe:
            route = replace(route, description=describe_route(route))
        return route
