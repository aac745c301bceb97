# traffic_sim/domain/state.py
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field

from traffic_sim.domain.entities.geography import RoadSegment
from traffic_sim.domain.entities.vehicle import Vehicle


@dataclass(frozen=True)
class TrafficState:
    """One simulation frame. Never mutated; tick N reads it and emits N+1."""

    t: float = 0.0  # simulation seconds
    tick: int = 0
    vehicles: tuple[Vehicle, ...] = field(default_factory=tuple)

    def by_road(self) -> dict[int, list[Vehicle]]:
        out: dict[int, list[Vehicle]] = {}
        for v in self.vehicles:
            out.setdefault(v.road_id, []).append(v)
        return out

    def vehicle(self, vehicle_id: int) -> Vehicle | None:
        return next((v for v in self.vehicles if v.id == vehicle_id), None)


def index_roads(segments: Iterable[RoadSegment] | Mapping[int, RoadSegment]) -> dict[int, RoadSegment]:
    """Road id -> road. On duplicate ids the first road wins, as in the graph builder."""
    if isinstance(segments, Mapping):
        return dict(segments)
    out: dict[int, RoadSegment] = {}
    for s in segments:
        out.setdefault(s.id, s)
    return out


def vehicle_snapshot(state: TrafficState) -> list[dict]:
    """Render-facing view of a frame."""
    return [
        {
            "id": v.id,
            "road_id": v.road_id,
            "x": v.position.x,
            "y": v.position.y,
            "heading": v.heading,
            "reversed": v.reversed,
        }
        for v in state.vehicles
    ]
