# runtime/registries.py
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from traffic_sim.app.protocols import PathSolver, SpeedModel
from traffic_sim.config.models import (
    SolverAStarModel,
    SolverDijkstraModel,
    SolverUnion,
    SpeedMeanModel,
    SpeedModelUnion,
    SpeedOscillatingModel,
)
from traffic_sim.domain.entities.geography import Density, RoadClass
from traffic_sim.domain.mechanics.mechanics_solvers import AStarSolver, DijkstraSolver
from traffic_sim.domain.mechanics.mechanics_speeds import MeanDensitySpeed, OscillatingDensitySpeed

SolverFactory = Callable[[SolverUnion, dict], PathSolver]
SpeedFactory = Callable[[SpeedModelUnion, dict], SpeedModel]

_solver_registry: dict[str, SolverFactory] = {}
_speed_registry: dict[str, SpeedFactory] = {}


def enum_keys(enum: type[Enum], raw: Mapping[str, Any]) -> dict:
    """{"highway": 0.9} -> {RoadClass.HIGHWAY: 0.9}; unknown labels raise ValueError."""
    out = {}
    for k, v in raw.items():
        try:
            out[enum(k.upper())] = v
        except ValueError:
            raise ValueError(f"Unknown {enum.__name__} label {k!r}") from None
    return out


# ------------------- Solvers ---------------------------


def register_solver(kind: str):
    def deco(fn: SolverFactory):
        _solver_registry[kind] = fn
        return fn

    return deco


def make_solver(cfg: SolverUnion, *, deps: dict | None = None) -> PathSolver:
    try:
        factory = _solver_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown solver kind {cfg.kind!r}")
    return factory(cfg, deps or {})


@register_solver("dijkstra")
def _make_dijkstra(cfg: SolverDijkstraModel, deps):
    return DijkstraSolver(
        class_factors=enum_keys(RoadClass, cfg.class_factors),
        density_factors=enum_keys(Density, cfg.density_factors),
        **cfg.scenario(),
    )


@register_solver("astar")
def _make_astar(cfg: SolverAStarModel, deps):
    return AStarSolver(
        class_factors=enum_keys(RoadClass, cfg.class_factors),
        density_factors=enum_keys(Density, cfg.density_factors),
        **cfg.scenario(),
    )


# ------------------- Speed models ---------------------------


def register_speed(kind: str):
    def deco(fn: SpeedFactory):
        _speed_registry[kind] = fn
        return fn

    return deco


def make_speed(cfg: SpeedModelUnion, *, deps: dict | None = None) -> SpeedModel:
    try:
        factory = _speed_registry[cfg.kind]
    except KeyError:
        raise ValueError(f"Unknown speed kind {cfg.kind!r}")
    return factory(cfg, deps or {})


@register_speed("oscillating")
def _make_oscillating(cfg: SpeedOscillatingModel, deps):
    return OscillatingDensitySpeed()


@register_speed("mean")
def _make_mean(cfg: SpeedMeanModel, deps):
    return MeanDensitySpeed()
