import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from traffic_sim.app.protocols import SpeedModel
from traffic_sim.domain.entities.geography import Density
from traffic_sim.domain.entities.vehicle import Vehicle


@dataclass(frozen=True)
class Oscillation:
    mean: float
    amplitude: float
    time_scale_s: float = 1.0

    @property
    def bounds(self) -> tuple[float, float]:
        return self.mean - self.amplitude, self.mean + self.amplitude


DENSITY_OSCILLATION: dict[Density, Oscillation] = {
    Density.LOW: Oscillation(1.0, 0.10, 1.0),
    Density.MEDIUM: Oscillation(0.7, 0.15, 1.0),
    Density.HIGH: Oscillation(0.5, 0.20, 1.0),
    Density.CONGESTED: Oscillation(0.3, 0.25, 2.0),
}


class OscillatingDensitySpeed(SpeedModel):
    """Density mean plus a per-vehicle phase-shifted sine on simulation time."""

    def __init__(self, profile: Mapping[Density, Oscillation] | None = None):
        self.profile = {**DENSITY_OSCILLATION, **(profile or {})}

    def modifier(self, t: float, *, vehicle_id: int, density: Density) -> float:
        o = self.profile[density]
        return o.mean + o.amplitude * math.sin(t / o.time_scale_s + vehicle_id)


class MeanDensitySpeed(SpeedModel):
    def __init__(self, profile: Mapping[Density, Oscillation] | None = None):
        self.profile = {**DENSITY_OSCILLATION, **(profile or {})}

    def modifier(self, t: float, *, vehicle_id: int, density: Density) -> float:
        return self.profile[density].mean


class FollowingDistance:
    """
    Car-following slowdown. Every vehicle on the same road that is ahead (positive
    projection on the direction of travel) and closer than size * spacing_factor
    multiplies the speed by max(min_factor, gap / min_spacing).
    """

    def __init__(self, spacing_factor: float = 5.0, min_factor: float = 0.1):
        self.spacing_factor, self.min_factor = spacing_factor, min_factor

    def modifier(
        self, v: Vehicle, direction: tuple[float, float], others: Iterable[Vehicle]
    ) -> float:
        min_spacing = v.size * self.spacing_factor
        if min_spacing <= 0:
            return 1.0
        ux, uy = direction
        m = 1.0
        for o in others:
            if o.id == v.id or o.road_id != v.road_id:
                continue
            dx, dy = o.position.x - v.position.x, o.position.y - v.position.y
            if ux * dx + uy * dy <= 0:
                continue
            gap = math.hypot(dx, dy)
            if gap < min_spacing:
                m *= max(self.min_factor, gap / min_spacing)
        return m
