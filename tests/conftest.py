from typing import Dict, List
import pytest

from geo_tokens.grid import Cell, CellRange
from geo_tokens.persist import MemoryStorage
from geo_tokens.session import GameSession
from geo_tokens.world import CacheState, WorldConfig


class FixedLuck:
    """Luck function answering from a table; unknown keys get `default`."""

    def __init__(self, table: Dict[str, float] = None, default: float = 0.99):
        self.table = dict(table or {})
        self.default = default
        self.calls: List[str] = []

    def __call__(self, key: str) -> float:
        self.calls.append(key)
        return self.table.get(key, self.default)

    def cache(self, i: int, j: int, value_roll: float) -> "FixedLuck":
        self.table[f"{i},{j},spawn"] = 0.05
        self.table[f"{i},{j},value"] = value_roll
        return self


class RecordingRenderer:
    def __init__(self):
        self.created: List[Cell] = []
        self.destroyed: List[Cell] = []
        self.refreshed: List[tuple] = []
        self.live: Dict[Cell, CacheState] = {}

    def materialize(self, cell, state):
        self.created.append(cell)
        self.live[cell] = state
        return cell

    def refresh(self, handle, state):
        self.refreshed.append((handle, state.value))
        self.live[handle] = state

    def destroy(self, handle):
        self.destroyed.append(handle)
        del self.live[handle]


class FixedViewport:
    def __init__(self, cells: CellRange):
        self.cells = cells

    def __call__(self) -> CellRange:
        return self.cells


# values: roll 0.0 -> 2, 0.5 -> 4, 0.9 -> 8
VALUE_2, VALUE_4, VALUE_8 = 0.0, 0.5, 0.9


@pytest.fixture
def luck():
    return FixedLuck()


@pytest.fixture
def renderer():
    return RecordingRenderer()


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def config():
    # start lands in cell (0, 0); no buffer so viewports stay small
    return WorldConfig(start_lat=0.00005, start_lng=0.00005, viewport_radius=0,
                       interact_range=3, target_value=8)


@pytest.fixture
def viewport():
    return FixedViewport(CellRange.around(Cell(0, 0), 5))


@pytest.fixture
def make_session(config, luck, viewport, storage, renderer):
    def _make(cfg: WorldConfig = None, **kwargs) -> GameSession:
        args = dict(luck=luck, viewport=viewport, storage=storage, renderer=renderer)
        args.update(kwargs)
        return GameSession(cfg or config, **args)
    return _make
