from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from traffic_sim.app.protocols import VehicleSpawner
from traffic_sim.domain.entities.geography import Density, RoadClass, RoadSegment
from traffic_sim.domain.entities.vehicle import Vehicle
from traffic_sim.domain.mechanics.mechanics_geometry import heading, point_along_polyline
from traffic_sim.domain.mechanics.mechanics_path_traversers import road_polyline
from traffic_sim.domain.state import index_roads
from traffic_sim.sim.rng import RNGRegistry


@dataclass(frozen=True)
class ClassProfile:
    base_speed: float
    size: float


CLASS_PROFILE: dict[RoadClass, ClassProfile] = {
    RoadClass.HIGHWAY: ClassProfile(1.5, 4.0),
    RoadClass.NORMAL: ClassProfile(1.0, 3.0),
    RoadClass.RESIDENTIAL: ClassProfile(0.5, 2.0),
}

# inclusive vehicle-count ranges per road
DENSITY_COUNT: dict[Density, tuple[int, int]] = {
    Density.LOW: (1, 2),
    Density.MEDIUM: (3, 5),
    Density.HIGH: (6, 9),
    Density.CONGESTED: (10, 14),
}


class DensitySpawner(VehicleSpawner):
    """
    Populates every drivable road with a density-dependent number of vehicles at
    random positions and directions. Draws come from a per-road substream, so the
    placement on one road does not depend on the other roads. Ids run from 1.
    """

    def __init__(
        self,
        rng_registry: RNGRegistry,
        *,
        counts: Mapping[Density, tuple[int, int]] | None = None,
        profiles: Mapping[RoadClass, ClassProfile] | None = None,
        speed_jitter: tuple[float, float] = (0.8, 1.2),
        speed_scale: float = 1.0,
    ):
        self.rng_registry = rng_registry
        self.counts = {**DENSITY_COUNT, **(counts or {})}
        self.profiles = {**CLASS_PROFILE, **(profiles or {})}
        self.speed_jitter = speed_jitter
        self.speed_scale = speed_scale

    def _road_vehicles(self, seg: RoadSegment, first_id: int) -> list[Vehicle]:
        poly = road_polyline(seg)
        if poly is None:
            return []
        rng = self.rng_registry.fresh("spawn", seg.id)
        lo, hi = self.counts[seg.density]
        prof = self.profiles[seg.road_class]
        out = []
        for k in range(int(rng.integers(lo, hi + 1))):
            p, i = point_along_polyline(poly, float(rng.random()))
            rev = bool(rng.random() > 0.5)
            jitter = float(rng.uniform(*self.speed_jitter))
            idx, target = (i + 1, poly[i]) if rev else (i, poly[i + 1])
            out.append(
                Vehicle(
                    id=first_id + k,
                    position=p,
                    target=target,
                    speed=prof.base_speed * jitter * self.speed_scale,
                    size=prof.size,
                    heading=heading(poly[idx], target),
                    road_id=seg.id,
                    path_index=idx,
                    reversed=rev,
                )
            )
        return out

    def spawn(self, segments: Iterable[RoadSegment]) -> tuple[Vehicle, ...]:
        vehicles: list[Vehicle] = []
        for seg in index_roads(segments).values():
            vehicles.extend(self._road_vehicles(seg, first_id=len(vehicles) + 1))
        return tuple(vehicles)


def spawn_vehicles(segments: Iterable[RoadSegment], rng_registry: RNGRegistry, **kw) -> tuple[Vehicle, ...]:
    return DensitySpawner(rng_registry, **kw).spawn(segments)
