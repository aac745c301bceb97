from dataclasses import dataclass
from typing import Literal

from traffic_sim.domain.entities.geography import Point, RoadSegment

NoPathReason = Literal["unreachable", "invalid_input"]


@dataclass(frozen=True)
class Route:
    algorithm: str
    segment_ids: tuple[int, ...]
    segments: tuple[RoadSegment, ...]
    polyline: tuple[Point, ...]
    distance: float  # raw polyline length, what the UI shows
    cost: float  # solver weighted cost; not comparable with distance
    estimated_minutes: float
    congested_segments: int
    direction_changes: int
    highway_segments: int
    highway_percentage: float
    score: float
    description: str = ""

    @property
    def origin(self) -> Point:
        return self.polyline[0]

    @property
    def destination(self) -> Point:
        return self.polyline[-1]


@dataclass(frozen=True)
class NoPathFound:
    """Expected outcome: origin and destination cannot be connected."""

    reason: NoPathReason = "unreachable"
    detail: str = ""


@dataclass(frozen=True)
class InvalidInput(NoPathFound):
    """Query rejected before graph construction."""

    reason: NoPathReason = "invalid_input"


RouteResult = Route | NoPathFound
