# traffic_sim/app/build.py
from collections.abc import Mapping
from dataclasses import dataclass

from traffic_sim.config.models import ScenarioModel
from traffic_sim.domain.mechanics.mechanics_core import Mechanics
from traffic_sim.domain.mechanics.mechanics_factory import build_mechanics
from traffic_sim.io.engine_logging import EngineLogging  # JSON logs
from traffic_sim.io.recorder import JsonlSink, Recorder, Sink
from traffic_sim.sim.clock import SimClock
from traffic_sim.sim.hooks import EngineHooks, NoopHooks
from traffic_sim.sim.loop import SimulationLoop
from traffic_sim.sim.rng import RNGRegistry


@dataclass
class App:
    model: ScenarioModel
    clock: SimClock
    rng: RNGRegistry
    hooks: EngineHooks
    mechanics: Mechanics
    loop: SimulationLoop


def build(
    cfg: ScenarioModel | Mapping,
    *,
    use_logging: bool = True,
    sinks: tuple[Sink, ...] | None = None,
) -> App:
    # 0) Validate config
    model = cfg if isinstance(cfg, ScenarioModel) else ScenarioModel.model_validate(cfg)

    # 1) Clock & RNG
    clock = SimClock.utc_epoch(*model.sim.epoch)
    rng_registry = RNGRegistry(model.sim.seed, scenario=model.name)

    # 2) Hooks (logs + records)
    hooks = (
        EngineLogging(
            run_id=model.run_id,
            recorder=Recorder(*(sinks or (JsonlSink(),))),
            clock=clock,
            level=model.log.level,
            debug=model.log.debug,
            sample_every=model.log.sample_every,
        )
        if use_logging
        else NoopHooks()
    )

    # 3) Routing + motion
    mechanics = build_mechanics(model, rng_registry, hooks=hooks)
    loop = SimulationLoop(mechanics.simulator, hooks=hooks)

    return App(model, clock, rng_registry, hooks, mechanics, loop)
