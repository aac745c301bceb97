# main.py
"""Load a road network, optionally solve one route, then run the vehicle simulation."""

import argparse
import json
import sys
from collections.abc import Sequence

from traffic_sim.app.build import build
from traffic_sim.domain.entities.geography import Point
from traffic_sim.domain.entities.route import Route
from traffic_sim.domain.state import vehicle_snapshot
from traffic_sim.io.network import load_network_json


def route_summary(result) -> dict:
    if not isinstance(result, Route):
        return {"found": False, "reason": result.reason, "detail": result.detail}
    return {
        "found": True,
        "algorithm": result.algorithm,
        "segment_ids": list(result.segment_ids),
        "polyline": [[p.x, p.y] for p in result.polyline],
        "distance": result.distance,
        "cost": result.cost,
        "estimated_minutes": result.estimated_minutes,
        "congested_segments": result.congested_segments,
        "direction_changes": result.direction_changes,
        "highway_percentage": result.highway_percentage,
        "score": result.score,
        "description": result.description,
    }


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("network", help="JSON file: list of road records or a map object with trafficData")
    parser.add_argument("--config", help="Scenario config JSON (defaults apply when omitted)")
    parser.add_argument("--origin", nargs=2, type=float, metavar=("X", "Y"))
    parser.add_argument("--destination", nargs=2, type=float, metavar=("X", "Y"))
    parser.add_argument("--ticks", type=int, default=0, help="Simulation ticks to run")
    parser.add_argument("--duration", type=float, help="Simulated seconds to run (overrides --ticks)")
    parser.add_argument("--dt", type=float, help="Tick interval in seconds (overrides config)")
    parser.add_argument("--seed", type=int, help="Master seed (overrides config)")
    parser.add_argument("--quiet", action="store_true", help="Disable engine logs and records")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_args(argv)
    cfg: dict = {}
    if args.config:
        with open(args.config, encoding="utf-8") as fp:
            cfg = json.load(fp)
    if args.seed is not None:
        cfg.setdefault("sim", {})["seed"] = args.seed

    app = build(cfg, use_logging=not args.quiet)
    roads = load_network_json(args.network)
    out: dict = {"roads": len(roads)}

    if args.origin and args.destination:
        result = app.mechanics.route(roads, Point(*args.origin), Point(*args.destination))
        out["route"] = route_summary(result)

    dt = args.dt if args.dt is not None else app.model.motion.dt
    ticks = app.clock.ticks_for(args.duration, dt) if args.duration is not None else args.ticks
    if ticks > 0:
        state = app.mechanics.spawn(roads)
        state = app.loop.run(state, roads, ticks=ticks, dt=dt)
        out["t"] = state.t
        out["vehicles"] = vehicle_snapshot(state)

    json.dump(out, sys.stdout)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
