import math
from dataclasses import replace

from traffic_sim.app.protocols import PathTraverser
from traffic_sim.domain.entities.geography import Point, RoadSegment
from traffic_sim.domain.entities.vehicle import Vehicle
from traffic_sim.domain.mechanics.mechanics_geometry import distance, heading, is_finite_point


def road_polyline(seg: RoadSegment) -> tuple[Point, ...] | None:
    """Drivable polyline of a road: finite points, no repeats; None if fewer than two remain."""
    pts: list[Point] = []
    for p in seg.polyline:
        if is_finite_point(p) and (not pts or p != pts[-1]):
            pts.append(p)
    return tuple(pts) if len(pts) >= 2 else None


class BouncingPolylineTraverser(PathTraverser):
    """
    Walks a vehicle along its road's polyline and turns it around at either end.
    path_index is always kept inside [0, len(polyline) - 1].
    """

    @staticmethod
    def _orient(idx: int, rev: bool, n: int) -> tuple[int, bool, int]:
        idx = min(max(idx, 0), n - 1)
        nxt = idx - 1 if rev else idx + 1
        if not 0 <= nxt < n:
            rev = not rev
            nxt = idx - 1 if rev else idx + 1
        return idx, rev, nxt

    def target(self, v: Vehicle, polyline: tuple[Point, ...]) -> Point:
        _, _, nxt = self._orient(v.path_index, v.reversed, len(polyline))
        return polyline[nxt]

    def step(self, v: Vehicle, polyline: tuple[Point, ...], modifier: float, dt: float) -> Vehicle:
        n = len(polyline)
        idx, rev, nxt = self._orient(v.path_index, v.reversed, n)
        target = polyline[nxt]
        d = distance(v.position, target)

        if d == 0 or d < v.speed * dt:
            # snap, then pick the next target (bounce at the ends)
            idx, rev, nxt = self._orient(nxt, rev, n)
            after = polyline[nxt]
            return replace(
                v,
                position=target,
                target=after,
                path_index=idx,
                reversed=rev,
                heading=heading(target, after),
            )

        travel = min(d, max(0.0, v.speed * modifier * dt))
        ux, uy = (target.x - v.position.x) / d, (target.y - v.position.y) / d
        return replace(
            v,
            position=Point(v.position.x + ux * travel, v.position.y + uy * travel),
            target=target,
            path_index=idx,
            reversed=rev,
            heading=math.atan2(uy, ux),
        )
