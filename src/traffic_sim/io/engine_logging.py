# io/engine_logging.py
import json
import logging
import sys
from dataclasses import asdict, is_dataclass

from traffic_sim.io.recorder import Recorder
from traffic_sim.io.records import RouteComputedRecord, RouteRejectedRecord, TickRecord
from traffic_sim.sim.hooks import NoopHooks


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "level": record.levelname,
            "msg": record.getMessage(),
            "logger": record.name,
        }
        extra = getattr(record, "extra", None)
        if isinstance(extra, dict):
            payload.update(extra)
        return json.dumps(payload, default=str)


def default_json_logger(name="traffic_sim", level="INFO"):
    logger = logging.getLogger(name)
    if not logger.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(JsonFormatter())
        logger.addHandler(h)
    logger.setLevel(level)
    return logger


class EngineLogging(NoopHooks):
    """
    Shapes and emits structured logs for route queries and the tick loop, and
    forwards the matching records to the Recorder.
    """

    def __init__(
        self,
        run_id: str = "local",
        clock=None,
        level: str = "INFO",
        debug: bool = False,
        sample_every: int = 1,
        logger: logging.Logger | None = None,
        recorder: Recorder | None = None,
    ):
        self.run_id, self.clock, self.debug, self.sample_every = (
            run_id,
            clock,
            debug,
            max(1, sample_every),
        )
        self.recorder = recorder
        self.log = logger or default_json_logger(level=level)

    # --------------- Helpers -----------------------------

    def _emit(self, level: str, msg: str, **extra):
        wall = self.clock.to_wall(extra["t"]) if (self.clock and extra.get("t") is not None) else None
        payload = {"run_id": self.run_id}
        if wall:
            payload["wall"] = wall.isoformat()
        self.log.log(getattr(logging, level), msg, extra={"extra": {**payload, **extra}})

    def _record(self, rec):
        if self.recorder:
            self.recorder.emit(rec)

    @staticmethod
    def _stats(graph_stats) -> dict | None:
        return asdict(graph_stats) if is_dataclass(graph_stats) else None

    # --------------- Routing -----------------------------

    def route_solved(self, route, *, graph_stats, ms):
        self._emit(
            "INFO",
            "route_solved",
            algorithm=route.algorithm,
            segments=len(route.segment_ids),
            distance=round(route.distance, 3),
            cost=round(route.cost, 3),
            eta_min=round(route.estimated_minutes, 2),
            graph=self._stats(graph_stats),
            ms=round(ms, 3),
        )
        self._record(
            RouteComputedRecord(
                run_id=self.run_id,
                t=0.0,
                name="route_computed",
                algorithm=route.algorithm,
                segment_ids=route.segment_ids,
                distance=route.distance,
                cost=route.cost,
                estimated_minutes=route.estimated_minutes,
                congested_segments=route.congested_segments,
                score=route.score,
                ms=ms,
            )
        )

    def route_not_found(self, result, *, graph_stats, ms):
        self._emit(
            "INFO",
            "route_not_found",
            reason=result.reason,
            detail=result.detail,
            graph=self._stats(graph_stats),
            ms=round(ms, 3),
        )
        self._record(
            RouteRejectedRecord(
                run_id=self.run_id,
                t=0.0,
                name="route_rejected",
                reason=result.reason,
                detail=result.detail,
                ms=ms,
            )
        )

    # --------------- Tick loop -----------------------------

    def run_start(self, *, ticks, dt, vehicles):
        self._emit("INFO", "run_start", ticks=ticks, dt=dt, vehicles=vehicles)

    def tick_end(self, state, *, dropped, ms):
        if dropped:
            self._emit("WARNING", "vehicles_dropped", t=state.t, tick=state.tick, dropped=dropped)
        if state.tick % self.sample_every:
            return
        if self.debug:
            self._emit("DEBUG", "tick", t=state.t, tick=state.tick, vehicles=len(state.vehicles), ms=round(ms, 3))
        self._record(
            TickRecord(
                run_id=self.run_id,
                t=state.t,
                name="tick",
                tick=state.tick,
                vehicles=len(state.vehicles),
                dropped=dropped,
                ms=ms,
            )
        )

    def run_end(self, *, processed, **extra):
        self._emit("INFO", "run_end", processed=processed, **extra)

    def error(self, *, reason: str, **kw):
        self._emit("ERROR", "engine_error", reason=reason, **kw)
