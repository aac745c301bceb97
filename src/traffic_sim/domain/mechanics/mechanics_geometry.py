import math
from collections.abc import Iterable, Sequence

from traffic_sim.domain.entities.geography import Point, RoadSegment

COMPASS = ("E", "SE", "S", "SW", "W", "NW", "N", "NE")  # y grows downwards on the map


def distance(a: Point, b: Point) -> float:
    return math.hypot(b.x - a.x, b.y - a.y)


def is_finite_point(p) -> bool:
    if p is None:
        return False
    try:
        return math.isfinite(p.x) and math.isfinite(p.y)
    except (AttributeError, TypeError):
        return False


def polyline_length(points: Sequence[Point]) -> float:
    return sum(distance(points[i], points[i + 1]) for i in range(len(points) - 1))


def closest_point_on_segment(p: Point, a: Point, b: Point) -> Point:
    dx, dy = b.x - a.x, b.y - a.y
    L2 = dx * dx + dy * dy
    if L2 == 0:
        return a
    t = max(0.0, min(1.0, ((p.x - a.x) * dx + (p.y - a.y) * dy) / L2))
    return Point(a.x + t * dx, a.y + t * dy)


def distance_to_segment(p: Point, a: Point, b: Point) -> float:
    return distance(p, closest_point_on_segment(p, a, b))


def heading(a: Point, b: Point) -> float:
    """Direction of travel a -> b in radians."""
    return math.atan2(b.y - a.y, b.x - a.x)


def bearing_deg(a: Point, b: Point) -> float:
    """Bearing a -> b normalised to [0, 360)."""
    return math.degrees(heading(a, b)) % 360.0


def compass_bucket(angle_deg: float) -> int:
    """Index into COMPASS. Each bucket covers [centre - 22.5, centre + 22.5)."""
    return int(((angle_deg % 360.0) + 22.5) // 45.0) % 8


def compass_direction(angle_deg: float) -> str:
    return COMPASS[compass_bucket(angle_deg)]


def point_along_polyline(points: Sequence[Point], frac: float) -> tuple[Point, int]:
    """Point at `frac` of the polyline's length and the index of the piece it lies on."""
    lengths = [distance(points[i], points[i + 1]) for i in range(len(points) - 1)]
    total = sum(lengths)
    if not lengths or total == 0:
        return points[0], 0
    target = max(0.0, min(1.0, frac)) * total
    walked = 0.0
    for i, L in enumerate(lengths):
        if L > 0 and target <= walked + L:
            s = (target - walked) / L
            a, b = points[i], points[i + 1]
            return Point(a.x + s * (b.x - a.x), a.y + s * (b.y - a.y)), i
        walked += L
    # float slack at the very end
    last = max(i for i, L in enumerate(lengths) if L > 0)
    return points[last + 1], last


# ---------------- network snapping ----------------


def _pieces(seg: RoadSegment) -> Iterable[tuple[Point, Point]]:
    pts = [p for p in seg.polyline if is_finite_point(p)]
    return zip(pts, pts[1:])


def nearest_road_point(
    p: Point, segments: Iterable[RoadSegment], threshold: float = 30.0
) -> Point | None:
    """Closest point on any road strictly within `threshold` of p, else None."""
    best, best_d = None, threshold
    for seg in segments:
        for a, b in _pieces(seg):
            q = closest_point_on_segment(p, a, b)
            d = distance(p, q)
            if d < best_d:
                best, best_d = q, d
    return best


def is_point_near_road(p: Point, segments: Iterable[RoadSegment], threshold: float = 20.0) -> bool:
    return any(
        distance_to_segment(p, a, b) < threshold for seg in segments for a, b in _pieces(seg)
    )
