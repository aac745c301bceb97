from dataclasses import dataclass, field
from enum import Enum


# Core geometry types used by mechanics
@dataclass(frozen=True)
class Point:
    x: float  # map units (canvas pixels in the drawing tool)
    y: float


class RoadClass(Enum):
    HIGHWAY = "HIGHWAY"
    NORMAL = "NORMAL"
    RESIDENTIAL = "RESIDENTIAL"


class Density(Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CONGESTED = "CONGESTED"


@dataclass(frozen=True)
class RoadSegment:
    """A drawn road: start, optional waypoints, end, plus classification."""

    id: int
    start: Point
    end: Point
    points: tuple[Point, ...] = field(default_factory=tuple)  # intermediate waypoints
    road_class: RoadClass = RoadClass.NORMAL
    density: Density = Density.LOW

    @property
    def polyline(self) -> tuple[Point, ...]:
        return (self.start, *self.points, self.end)

    @property
    def is_congested(self) -> bool:
        return self.density in (Density.HIGH, Density.CONGESTED)
