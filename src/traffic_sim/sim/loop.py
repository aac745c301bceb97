# sim/loop.py

import time
from collections.abc import Callable, Iterator
from concurrent.futures import Executor

from traffic_sim.domain.state import TrafficState
from traffic_sim.sim.hooks import EngineHooks, NoopHooks
from traffic_sim.sim.simulator import Network, VehicleSimulator

TickCallback = Callable[[TrafficState], bool | None]


class SimulationLoop:
    """
    Drives VehicleSimulator.tick at a fixed dt. The loop owns no timing of its own;
    pace it from outside (or pass realtime=True for a sleep-paced demo).
    Stopping is just not ticking again: return False from on_tick, or run fewer ticks.
    """

    def __init__(self, simulator: VehicleSimulator, hooks: EngineHooks | None = None):
        self.simulator = simulator
        self._hooks = hooks or NoopHooks()

    def step(
        self, state: TrafficState, network: Network, dt: float, *, executor: Executor | None = None
    ) -> TrafficState:
        t1 = time.perf_counter()
        nxt = self.simulator.tick(state, network, dt, executor=executor)
        dropped = len(state.vehicles) - len(nxt.vehicles)
        self._hooks.tick_end(nxt, dropped=dropped, ms=(time.perf_counter() - t1) * 1000)
        return nxt

    def frames(
        self, state: TrafficState, network: Network, dt: float, ticks: int | None = None, **kw
    ) -> Iterator[TrafficState]:
        n = 0
        while ticks is None or n < ticks:
            state = self.step(state, network, dt, **kw)
            n += 1
            yield state

    def run(
        self,
        state: TrafficState,
        network: Network,
        *,
        ticks: int,
        dt: float = 1.0,
        on_tick: TickCallback | None = None,
        realtime: bool = False,
        executor: Executor | None = None,
    ) -> TrafficState:
        if dt <= 0:
            self._hooks.error(reason="bad_dt", dt=dt)
            raise ValueError(f"dt must be > 0, got {dt}")
        t0 = time.perf_counter()
        self._hooks.run_start(ticks=ticks, dt=dt, vehicles=len(state.vehicles))
        processed = 0
        for state in self.frames(state, network, dt, ticks, executor=executor):
            processed += 1
            if on_tick is not None and on_tick(state) is False:
                break
            if realtime:
                time.sleep(dt)
        self._hooks.run_end(
            processed=processed,
            last_t=state.t,
            vehicles=len(state.vehicles),
            wall_ms=(time.perf_counter() - t0) * 1000,
        )
        return state
