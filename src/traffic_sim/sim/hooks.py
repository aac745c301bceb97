# sim/hooks.py
from typing import Protocol


class EngineHooks(Protocol):
    # routing
    def route_solved(self, route, *, graph_stats, ms): ...
    def route_not_found(self, result, *, graph_stats, ms): ...

    # simulation loop
    def run_start(self, *, ticks, dt, vehicles): ...
    def tick_end(self, state, *, dropped, ms): ...
    def run_end(self, *, processed, last_t, vehicles, wall_ms): ...
    def error(self, *, reason: str, **kw): ...


class NoopHooks:
    def route_solved(self, *_, **__):
        pass

    def route_not_found(self, *_, **__):
        pass

    def run_start(self, **_):
        pass

    def tick_end(self, *_, **__):
        pass

    def run_end(self, **_):
        pass

    def error(self, **_):
        pass
