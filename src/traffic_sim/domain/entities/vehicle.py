# domain/entities/vehicle.py
from dataclasses import dataclass

from traffic_sim.domain.entities.geography import Point


@dataclass(frozen=True)
class Vehicle:
    id: int
    position: Point
    target: Point
    speed: float  # units per second before density / following modifiers
    size: float
    heading: float  # radians, atan2 convention
    road_id: int
    path_index: int  # polyline point the vehicle last left
    reversed: bool = False  # True => walking the polyline towards index 0

    @property
    def state(self) -> str:
        return "en_route_reverse" if self.reversed else "en_route_forward"

    def next_index(self) -> int:
        return self.path_index - 1 if self.reversed else self.path_index + 1
