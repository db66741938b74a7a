"""
World with: deterministic cache spawning over an unbounded grid, and a sparse
override store remembering every cache the player has touched.

A cell's effective state is either its generated default or an override:
  - no override, spawn roll misses    -> no cache at all (never clickable)
  - no override, spawn roll hits      -> cache holding its initial 2/4/8
  - override present                  -> cache holding the override (0 = empty)
"""
from dataclasses import dataclass, fields
from functools import lru_cache
from typing import Dict, Iterator, Optional, Tuple
import json
import logging
import math

from .errors import ConfigError
from .grid import TILE_DEGREES, Cell, LatLng
from .luck import LuckFn

logger = logging.getLogger(__name__)


@dataclass
class WorldConfig:
    tile_degrees: float = TILE_DEGREES
    interact_range: int = 3          # cells away the player can reach
    viewport_radius: int = 50        # cells kept active around the view
    target_value: int = 64           # token worth crafting to win
    spawn_probability: float = 0.1
    seed: int = 0
    start_lat: float = 36.997936938057016
    start_lng: float = -122.05703507501151

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        """Raise ConfigError unless every field has a usable type and range."""
        for f in fields(self):
            value = getattr(self, f.name)
            ok = (int, float) if f.type is float else (f.type,)
            if isinstance(value, bool) or not isinstance(value, ok):
                raise ConfigError(f"{f.name} must be {f.type.__name__}, got {value!r}")
        if not (math.isfinite(self.tile_degrees) and self.tile_degrees > 0):
            raise ConfigError(f"tile_degrees must be positive, got {self.tile_degrees!r}")
        if self.interact_range < 0:
            raise ConfigError(f"interact_range must be >= 0, got {self.interact_range}")
        if self.viewport_radius < 0:
            raise ConfigError(f"viewport_radius must be >= 0, got {self.viewport_radius}")
        if self.target_value < 2:
            raise ConfigError(f"target_value must be >= 2, got {self.target_value}")
        if not 0 < self.spawn_probability <= 1:
            raise ConfigError(f"spawn_probability must be in (0, 1], got {self.spawn_probability}")
        if not (math.isfinite(self.start_lat) and math.isfinite(self.start_lng)):
            raise ConfigError("start position must be finite")

    @property
    def start(self) -> LatLng:
        return LatLng(self.start_lat, self.start_lng)


def load_config(path: str, **overrides) -> WorldConfig:
    """Read a WorldConfig from a JSON object; keyword overrides win."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise ConfigError(f"cannot read config {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"JSON format error in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigError(f"{path}: expected a JSON object")
    known = {f.name for f in fields(WorldConfig)}
    unknown = sorted(set(raw) - known)
    if unknown:
        raise ConfigError(f"{path}: unknown config keys {unknown}")
    raw.update({k: v for k, v in overrides.items() if v is not None})
    cfg = WorldConfig(**raw)
    logger.info("loaded config from %s", path)
    return cfg


def is_token_value(value) -> bool:
    """0 (empty) or a power of two from 2 up."""
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return value == 0 or (value >= 2 and value & (value - 1) == 0)


# ---------- generation ----------
class Generator:
    """Pure, stateless defaults for every cell, driven by the luck function."""

    def __init__(self, luck: LuckFn, spawn_probability: float = 0.1):
        self.luck = luck
        self.spawn_probability = spawn_probability
        # viewport passes revisit the same cells on every move
        self._spawn_roll = lru_cache(maxsize=1 << 16)(self._roll_spawn)
        self._initial_value = lru_cache(maxsize=1 << 14)(self._roll_value)

    def _roll_spawn(self, cell: Cell) -> float:
        return self.luck(f"{cell.i},{cell.j},spawn")

    def _roll_value(self, cell: Cell) -> int:
        roll = self.luck(f"{cell.i},{cell.j},value")
        return 2 ** (1 + min(2, math.floor(roll * 3)))  # 2, 4 or 8

    def spawn_roll(self, cell: Cell) -> float:
        return self._spawn_roll(cell)

    def should_spawn(self, cell: Cell) -> bool:
        return self.spawn_roll(cell) < self.spawn_probability

    def initial_value(self, cell: Cell) -> int:
        return self._initial_value(cell)


# ---------- cache state ----------
@dataclass(frozen=True)
class CacheState:
    value: int
    overridden: bool = False

    @property
    def empty(self) -> bool:
        return self.value == 0


class CacheStore:
    """Sparse memento of caches whose value differs from the default."""

    def __init__(self, generator: Generator):
        self.generator = generator
        self._overrides: Dict[Cell, int] = {}

    def get(self, cell: Cell) -> Optional[CacheState]:
        """Effective state, or None when the cell never had a cache."""
        stored = self._overrides.get(cell)
        if stored is not None:
            return CacheState(stored, overridden=True)
        if self.generator.should_spawn(cell):
            return CacheState(self.generator.initial_value(cell))
        return None

    def has_cache(self, cell: Cell) -> bool:
        return cell in self._overrides or self.generator.should_spawn(cell)

    def set(self, cell: Cell, value: int) -> None:
        if not is_token_value(value):
            raise ValueError(f"not a token value: {value!r}")
        self._overrides[cell] = value

    # ---------- memento ----------
    def snapshot(self) -> Dict[Cell, int]:
        return dict(self._overrides)

    def restore(self, overrides: Dict[Cell, int]) -> None:
        bad = [v for v in overrides.values() if not is_token_value(v)]
        if bad:
            raise ValueError(f"not token values: {bad!r}")
        self._overrides = dict(overrides)

    def clear(self) -> None:
        self._overrides.clear()

    def items(self) -> Iterator[Tuple[Cell, int]]:
        return iter(sorted(self._overrides.items(), key=lambda kv: (kv[0].i, kv[0].j)))

    def __len__(self) -> int:
        return len(self._overrides)

    def __contains__(self, cell: object) -> bool:
        return cell in self._overrides
