"""
Deterministic luck: a pure function of a string key (and a world seed)
returning a float in [0, 1).

The key is hashed with CRC-32 (never Python's hash(), which is salted per
process) and, together with the seed, seeds a fresh numpy Generator whose
first draw is the answer. Same key and seed, same float, in any process.
"""
from typing import Callable
import zlib
import numpy as np

LuckFn = Callable[[str], float]


def luck(key: str, seed: int = 0) -> float:
    crc = zlib.crc32(key.encode("utf-8")) & 0xFFFFFFFF
    rng = np.random.default_rng([crc, int(seed) & 0xFFFFFFFF])
    return float(rng.random())


def seeded_luck(seed: int) -> LuckFn:
    """Bind a world seed, giving the one-argument form the generator wants."""
    def _luck(key: str) -> float:
        return luck(key, seed)
    return _luck
