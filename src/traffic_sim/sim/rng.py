# sim/rng.py
from __future__ import annotations

from zlib import crc32

import numpy as np


def _u32(x: int) -> int:
    return int(x & 0xFFFFFFFF)


def _tag(part: object) -> int:
    if isinstance(part, (int, np.integer)):
        return _u32(int(part))
    text = part if isinstance(part, str) else repr(part)
    return _u32(crc32(text.encode("utf-8")))


class RNGRegistry:
    """
    Deterministic numpy Generators keyed by name (+ optional parts, e.g. a road id).
    Entropy path: [master_seed, scenario, name, *parts]; a substream never depends
    on which other substreams were drawn first.
    """

    def __init__(self, master_seed: int, *, scenario: str | int = 0):
        self.master_seed = _u32(master_seed)
        self.scenario_tag = _tag(str(scenario))
        self._cache: dict[tuple[int, ...], np.random.Generator] = {}

    def substream(self, name: str, *parts: object) -> np.random.Generator:
        key = (_tag(name), *(_tag(p) for p in parts))
        gen = self._cache.get(key)
        if gen is None:
            ss = np.random.SeedSequence(entropy=[self.master_seed, self.scenario_tag, *key])
            gen = self._cache[key] = np.random.Generator(np.random.PCG64(ss))
        return gen

    def stream(self, name: str) -> np.random.Generator:
        return self.substream(name)

    def fresh(self, name: str, *parts: object) -> np.random.Generator:
        """Uncached generator; every call restarts the same sequence."""
        key = (_tag(name), *(_tag(p) for p in parts))
        ss = np.random.SeedSequence(entropy=[self.master_seed, self.scenario_tag, *key])
        return np.random.Generator(np.random.PCG64(ss))
