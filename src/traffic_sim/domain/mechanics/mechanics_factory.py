# traffic_sim/domain/mechanics/mechanics_factory.py

from traffic_sim.config.models import ScenarioModel
from traffic_sim.domain.mechanics.mechanics_assembler import PathAssembler
from traffic_sim.domain.mechanics.mechanics_core import Mechanics, NetworkRouter
from traffic_sim.domain.mechanics.mechanics_graph import GraphBuilder
from traffic_sim.domain.mechanics.mechanics_path_traversers import BouncingPolylineTraverser
from traffic_sim.domain.mechanics.mechanics_spawners import DensitySpawner
from traffic_sim.domain.mechanics.mechanics_speeds import FollowingDistance
from traffic_sim.runtime.registries import make_solver, make_speed
from traffic_sim.sim.hooks import EngineHooks, NoopHooks
from traffic_sim.sim.rng import RNGRegistry
from traffic_sim.sim.simulator import VehicleSimulator


def build_mechanics(
    cfg: ScenarioModel, rng_registry: RNGRegistry, *, hooks: EngineHooks | None = None
) -> Mechanics:
    builder = GraphBuilder(
        max_connect_distance=cfg.graph.max_connect_distance,
        intersection_threshold=cfg.graph.intersection_threshold,
        cache_size=cfg.graph.cache_size,
    )
    router = NetworkRouter(
        builder=builder,
        solver=make_solver(cfg.solver),
        assembler=PathAssembler(base_speed=cfg.assembler.base_speed, describe=cfg.assembler.describe),
        min_separation=cfg.graph.min_separation,
        hooks=hooks or NoopHooks(),
    )

    simulator = VehicleSimulator(
        speed_model=make_speed(cfg.motion.speed),
        following=FollowingDistance(
            spacing_factor=cfg.motion.spacing_factor, min_factor=cfg.motion.min_following_factor
        ),
        traverser=BouncingPolylineTraverser(),
        speed_multiplier=cfg.motion.speed_multiplier,
    )
    spawner = DensitySpawner(
        rng_registry,
        speed_jitter=cfg.spawn.speed_jitter,
        speed_scale=cfg.spawn.speed_scale,
    )
    return Mechanics(router=router, spawner=spawner, simulator=simulator)
