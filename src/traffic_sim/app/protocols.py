from collections.abc import Iterable, Mapping, Sequence
from typing import Protocol, runtime_checkable

from traffic_sim.domain.entities.geography import Density, Point, RoadSegment
from traffic_sim.domain.entities.route import Route, RouteResult
from traffic_sim.domain.entities.vehicle import Vehicle


# ------------- Routing --------------------
@runtime_checkable
class GraphFactory(Protocol):
    """
    Responsibilities:
    • Turn a road snapshot into a graph of addressable nodes.
    • Splice synthetic origin/destination nodes in by proximity.
    Units: map units for coordinates and distances.
    """

    def build(self, segments: Iterable[RoadSegment], origin: Point, destination: Point): ...


@runtime_checkable
class PathSolver(Protocol):
    """
    Weighted shortest path between two node keys.
    Returns NoPathFound (never raises) when the destination is unreachable.
    """

    name: str

    def solve(self, graph, origin, destination): ...


@runtime_checkable
class RouteAssembler(Protocol):
    def assemble(
        self,
        graph,
        path: Sequence,
        road_lookup: Mapping[int, RoadSegment] | None = None,
        *,
        algorithm: str = ...,
        cost: float = ...,
    ) -> Route: ...


@runtime_checkable
class Router(Protocol):
    """
    Responsibilities:
      • Validate a query.
      • Compute a congestion-aware route between two points on a road snapshot.
    """

    def route(self, segments: Iterable[RoadSegment], origin: Point, destination: Point) -> RouteResult: ...


# ------------- Motion --------------------
@runtime_checkable
class SpeedModel(Protocol):
    """
    Dimensionless speed multiplier for a vehicle on a road of the given density at
    simulation time t (seconds). Must stay > 0.
    """

    def modifier(self, t: float, *, vehicle_id: int, density: Density) -> float: ...


@runtime_checkable
class PathTraverser(Protocol):
    """
    Responsibilities:
      • Advance one vehicle along its road polyline for one tick.
      • Keep the polyline index in bounds (reverse at the ends).
    """

    def target(self, v: Vehicle, polyline: tuple[Point, ...]) -> Point: ...
    def step(self, v: Vehicle, polyline: tuple[Point, ...], modifier: float, dt: float) -> Vehicle: ...


@runtime_checkable
class VehicleSpawner(Protocol):
    def spawn(self, segments: Iterable[RoadSegment]) -> tuple[Vehicle, ...]: ...
