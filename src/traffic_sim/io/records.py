# traffic_sim/io/records.py

from dataclasses import dataclass


# Base type for analytics records (written by the Recorder, never fed back into the engine)
@dataclass
class EngineRecord:
    run_id: str
    t: float  # simulation time; 0.0 for route queries
    name: str  # stable record name


@dataclass
class RouteComputedRecord(EngineRecord):
    algorithm: str
    segment_ids: tuple[int, ...]
    distance: float
    cost: float
    estimated_minutes: float
    congested_segments: int
    score: float
    ms: float | None = None


@dataclass
class RouteRejectedRecord(EngineRecord):
    reason: str
    detail: str = ""
    ms: float | None = None


@dataclass
class TickRecord(EngineRecord):
    tick: int
    vehicles: int
    dropped: int = 0
    ms: float | None = None
