# sim/clock.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

MIN = 60.0


def minutes(x: float) -> float:
    return x * MIN


@dataclass(frozen=True)
class SimClock:
    """Maps simulation seconds (TrafficState.t) onto wall time for logs."""

    epoch: datetime  # wall time of t=0, tz-aware

    @classmethod
    def utc_epoch(cls, y: int, m: int, d: int, hh=0, mm=0, ss=0) -> SimClock:
        return cls(datetime(y, m, d, hh, mm, ss, tzinfo=UTC))

    def to_sim(self, dt: datetime) -> float:
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return (dt - self.epoch).total_seconds()

    def to_wall(self, t: float) -> datetime:
        return self.epoch + timedelta(seconds=t)

    def ticks_for(self, duration_s: float, dt: float) -> int:
        """Number of fixed-dt ticks that cover duration_s."""
        if dt <= 0:
            raise ValueError("dt must be > 0")
        return max(0, int(round(duration_s / dt)))
