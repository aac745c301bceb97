# src/traffic_sim/io/network.py
import json
import math
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from traffic_sim.domain.entities.geography import Density, Point, RoadClass, RoadSegment


def _coord(v: float | None) -> float:
    # missing coordinates become NaN so the graph builder skips the road instead of failing the load
    return math.nan if v is None else float(v)


class PointModel(BaseModel):
    model_config = ConfigDict(extra="ignore")
    x: float | None = None
    y: float | None = None

    def to_point(self) -> Point:
        return Point(_coord(self.x), _coord(self.y))


class RoadSegmentModel(BaseModel):
    """One road record as stored by the map editor (camelCase keys)."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)
    id: int
    start_x: float | None = Field(None, alias="startX")
    start_y: float | None = Field(None, alias="startY")
    end_x: float | None = Field(None, alias="endX")
    end_y: float | None = Field(None, alias="endY")
    points: list[PointModel] = Field(default_factory=list)
    road_type: RoadClass = Field(RoadClass.NORMAL, alias="roadType")
    density: Density = Density.LOW

    @field_validator("points", mode="before")
    @classmethod
    def _none_to_empty(cls, v):
        return [] if v is None else v

    @field_validator("road_type", "density", mode="before")
    @classmethod
    def _upper(cls, v):
        return v.upper() if isinstance(v, str) else v

    def to_segment(self) -> RoadSegment:
        return RoadSegment(
            id=self.id,
            start=Point(_coord(self.start_x), _coord(self.start_y)),
            end=Point(_coord(self.end_x), _coord(self.end_y)),
            points=tuple(p.to_point() for p in self.points),
            road_class=self.road_type,
            density=self.density,
        )


_records = TypeAdapter(list[RoadSegmentModel])


def load_network(records: Iterable[Mapping[str, Any]]) -> tuple[RoadSegment, ...]:
    return tuple(m.to_segment() for m in _records.validate_python(list(records)))


def load_network_json(path: str | Path) -> tuple[RoadSegment, ...]:
    """
    Accepts either a bare list of road records or a map object with a "trafficData"
    list (the shape the map endpoint returns).
    """
    with open(path, encoding="utf-8") as fp:
        data = json.load(fp)
    if isinstance(data, Mapping):
        data = data.get("trafficData", [])
    return load_network(data)


def dump_network(segments: Iterable[RoadSegment]) -> list[dict]:
    return [
        {
            "id": s.id,
            "startX": s.start.x,
            "startY": s.start.y,
            "endX": s.end.x,
            "endY": s.end.y,
            "points": [{"x": p.x, "y": p.y} for p in s.points],
            "roadType": s.road_class.value,
            "density": s.density.value,
        }
        for s in segments
    ]
