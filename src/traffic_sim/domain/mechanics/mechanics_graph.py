import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Literal

import numpy as np

from traffic_sim.app.protocols import GraphFactory
from traffic_sim.domain.entities.geography import Point, RoadSegment
from traffic_sim.domain.errors import GraphIntegrityError
from traffic_sim.domain.mechanics.mechanics_geometry import distance, is_finite_point

log = logging.getLogger(__name__)

Role = Literal["start", "end"] | int  # int => index into RoadSegment.points


# ------------- node identities --------------------


@dataclass(frozen=True)
class SegmentNode:
    segment_id: int
    role: Role


@dataclass(frozen=True)
class SyntheticNode:
    kind: Literal["origin", "destination"]


NodeKey = SegmentNode | SyntheticNode

ORIGIN = SyntheticNode("origin")
DESTINATION = SyntheticNode("destination")


# ------------- graph --------------------


@dataclass(frozen=True)
class GraphEdge:
    a: NodeKey
    b: NodeKey
    length: float  # unweighted geometric distance
    segment_id: int | None = None  # None => intersection or access link

    def other(self, key: NodeKey) -> NodeKey:
        if key == self.a:
            return self.b
        if key == self.b:
            return self.a
        raise GraphIntegrityError(f"{key!r} is not an endpoint of {self!r}")


@dataclass
class GraphNode:
    key: NodeKey
    point: Point
    segment: RoadSegment | None = None  # None => synthetic
    edges: list[GraphEdge] = field(default_factory=list)

    def neighbors(self) -> Iterator[tuple[NodeKey, GraphEdge]]:
        for e in self.edges:
            yield e.other(self.key), e


@dataclass
class GraphStats:
    segments: int = 0
    skipped_segments: int = 0
    skipped_points: int = 0
    intersection_links: int = 0
    access_links: int = 0


class RoadGraph:
    def __init__(self):
        self.nodes: dict[NodeKey, GraphNode] = {}
        self.edges: list[GraphEdge] = []
        # cleaned polyline of every accepted segment, as node keys in road order
        self.segment_nodes: dict[int, list[NodeKey]] = {}
        self.stats = GraphStats()

    def __contains__(self, key: NodeKey) -> bool:
        return key in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def node(self, key: NodeKey) -> GraphNode:
        try:
            return self.nodes[key]
        except KeyError:
            raise GraphIntegrityError(f"unknown node {key!r}") from None

    def add_node(self, key: NodeKey, point: Point, segment: RoadSegment | None = None) -> GraphNode:
        if key in self.nodes:
            raise GraphIntegrityError(f"duplicate node {key!r}")
        n = GraphNode(key, point, segment)
        self.nodes[key] = n
        return n

    def add_edge(self, a: NodeKey, b: NodeKey, length: float, segment_id: int | None = None) -> GraphEdge:
        na, nb = self.node(a), self.node(b)
        e = GraphEdge(a, b, float(length), segment_id)
        na.edges.append(e)
        nb.edges.append(e)
        self.edges.append(e)
        return e

    def neighbors(self, key: NodeKey) -> Iterator[tuple[NodeKey, GraphEdge]]:
        return self.node(key).neighbors()

    def road_nodes(self) -> list[GraphNode]:
        return [n for n in self.nodes.values() if n.segment is not None]

    def point(self, key: NodeKey) -> Point:
        return self.node(key).point

    def copy(self) -> "RoadGraph":
        """Structural copy; edges are immutable and shared."""
        g = RoadGraph()
        for k, n in self.nodes.items():
            g.nodes[k] = GraphNode(k, n.point, n.segment, list(n.edges))
        g.edges = list(self.edges)
        g.segment_nodes = {sid: list(keys) for sid, keys in self.segment_nodes.items()}
        g.stats = GraphStats(**vars(self.stats))
        return g


# ------------- builder --------------------


def _clean_polyline(seg: RoadSegment, stats: GraphStats) -> list[tuple[NodeKey, Point]] | None:
    if not (is_finite_point(seg.start) and is_finite_point(seg.end)):
        return None
    pts: list[tuple[NodeKey, Point]] = [(SegmentNode(seg.id, "start"), seg.start)]
    for i, p in enumerate(seg.points or ()):
        if not is_finite_point(p) or p == pts[-1][1]:
            stats.skipped_points += 1
            continue
        pts.append((SegmentNode(seg.id, i), p))
    if seg.end == pts[-1][1] and len(pts) > 1:
        # last waypoint sits on the end point; the end node wins
        pts.pop()
        stats.skipped_points += 1
    if seg.end == pts[-1][1]:
        return None  # zero-length road
    pts.append((SegmentNode(seg.id, "end"), seg.end))
    return pts


class GraphBuilder(GraphFactory):
    """
    Turns a road snapshot into a RoadGraph and splices the two query nodes in.

    The query-independent part (road nodes, road edges, intersection links) can be
    cached per snapshot with `cache_size > 0`; segments must then be hashable
    (frozen RoadSegment with tuple points).
    """

    def __init__(
        self,
        *,
        max_connect_distance: float = 50.0,
        intersection_threshold: float = 10.0,
        cache_size: int = 0,
    ):
        self.max_connect_distance = max_connect_distance
        self.intersection_threshold = intersection_threshold
        self._base = lru_cache(maxsize=cache_size)(self._build_base) if cache_size else None

    def build(self, segments: Iterable[RoadSegment], origin: Point, destination: Point) -> RoadGraph:
        segments = tuple(segments)
        base = self._base(segments) if self._base else self._build_base(segments)
        return self.splice(base, origin, destination)

    def build_base(self, segments: Iterable[RoadSegment]) -> RoadGraph:
        return self._build_base(tuple(segments))

    def _build_base(self, segments: tuple[RoadSegment, ...]) -> RoadGraph:
        g = RoadGraph()
        for seg in segments:
            if seg.id in g.segment_nodes:
                g.stats.skipped_segments += 1
                log.debug("skip_segment", extra={"extra": {"segment_id": seg.id, "why": "duplicate_id"}})
                continue
            pts = _clean_polyline(seg, g.stats)
            if pts is None:
                g.stats.skipped_segments += 1
                log.debug("skip_segment", extra={"extra": {"segment_id": seg.id, "why": "degenerate"}})
                continue
            for key, p in pts:
                g.add_node(key, p, seg)
            for (ka, pa), (kb, pb) in zip(pts, pts[1:]):
                g.add_edge(ka, kb, distance(pa, pb), seg.id)
            g.segment_nodes[seg.id] = [k for k, _ in pts]
            g.stats.segments += 1
        self._link_intersections(g)
        return g

    def _link_intersections(self, g: RoadGraph) -> None:
        nodes = g.road_nodes()
        n = len(nodes)
        if n < 2:
            return
        xs = np.array([nd.point.x for nd in nodes], dtype=float)
        ys = np.array([nd.point.y for nd in nodes], dtype=float)
        sids = np.array([nd.segment.id for nd in nodes])
        thr = self.intersection_threshold
        for i in range(n - 1):
            d = np.hypot(xs[i + 1 :] - xs[i], ys[i + 1 :] - ys[i])
            hits = np.nonzero((d <= thr) & (sids[i + 1 :] != sids[i]))[0]
            for j in hits:
                g.add_edge(nodes[i].key, nodes[i + 1 + j].key, float(d[j]))
                g.stats.intersection_links += 1

    def splice(self, base: RoadGraph, origin: Point, destination: Point) -> RoadGraph:
        g = base.copy()
        roads = g.road_nodes()
        xs = np.array([nd.point.x for nd in roads], dtype=float)
        ys = np.array([nd.point.y for nd in roads], dtype=float)
        for key, p in ((ORIGIN, origin), (DESTINATION, destination)):
            g.add_node(key, p)
            if not roads:
                continue
            d = np.hypot(xs - p.x, ys - p.y)
            for j in np.nonzero(d <= self.max_connect_distance)[0]:
                g.add_edge(key, roads[j].key, float(d[j]))
                g.stats.access_links += 1
        return g


def build_graph(
    segments: Iterable[RoadSegment],
    origin: Point,
    destination: Point,
    max_connect_distance: float = 50.0,
    intersection_threshold: float = 10.0,
) -> RoadGraph:
    return GraphBuilder(
        max_connect_distance=max_connect_distance,
        intersection_threshold=intersection_threshold,
    ).build(segments, origin, destination)
