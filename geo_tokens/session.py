"""
GameSession: one running game.

Owns the config, generator, cache store, player, active caches and storage,
and is the only place that mutates them. Everything happens on the caller's
thread in response to discrete events (move, viewport change, click, new
game); nothing blocks. A caller spreading events over threads must funnel
them through one writer.

Lifecycle:
    session = GameSession.create(config, viewport=..., storage=...)
    session.start()        # load the save or begin fresh, first viewport pass
    ... move / interact / update_viewport ...
    session.close()        # final save, drop representations
"""
from collections import deque
from typing import Any, Callable, Dict, List, Optional
import logging

from .active import ActiveCellManager, Renderer
from .errors import CorruptPersistedState, NoCacheHere, NoRandomSource, NoViewportSource
from .grid import Cell, CellRange, to_cell
from .interact import Transition, in_range, produces_victory, resolve
from .luck import LuckFn, seeded_luck
from .persist import MemoryStorage, SavedGame, Storage, deserialize, serialize
from .player import Player
from .world import CacheStore, Generator, WorldConfig

logger = logging.getLogger(__name__)

ViewportFn = Callable[[], CellRange]
Listener = Callable[[str, Dict[str, Any]], None]


class GameSession:
    def __init__(self, config: WorldConfig, luck: Optional[LuckFn] = None,
                 viewport: Optional[ViewportFn] = None, storage: Optional[Storage] = None,
                 renderer: Optional[Renderer] = None):
        if luck is None:
            raise NoRandomSource("a luck function is required to generate the world")
        if viewport is None:
            raise NoViewportSource("a viewport source is required to know what to show")
        self.cfg = config
        self.viewport = viewport
        self.storage: Storage = storage if storage is not None else MemoryStorage()

        self.generator = Generator(luck, config.spawn_probability)
        self.store = CacheStore(self.generator)
        self.active = ActiveCellManager(self.store, renderer)
        self.player = Player(self.start_cell)
        self.won = False

        # rolling event log (moves, interactions, notices, victory)
        self.events = deque(maxlen=200)
        self.listeners: List[Listener] = []

    @classmethod
    def create(cls, config: Optional[WorldConfig] = None, **kwargs) -> "GameSession":
        """Session using the seeded luck function for config.seed."""
        config = config or WorldConfig()
        kwargs.setdefault("luck", seeded_luck(config.seed))
        return cls(config, **kwargs)

    @property
    def start_cell(self) -> Cell:
        return to_cell(self.cfg.start, self.cfg.tile_degrees)

    # ---------- event logging ----------
    def log_event(self, kind: str, info: Optional[Dict[str, Any]] = None) -> None:
        info = info or {}
        self.events.append({"kind": kind, **info})
        for listener in list(self.listeners):
            listener(kind, info)

    # ---------- lifecycle ----------
    def start(self) -> bool:
        """Load the saved game if there is a usable one. Returns True if loaded."""
        loaded = self.load()
        if not loaded:
            logger.info("starting a fresh world at %s", self.player.cell)
        self.log_event("start", {"i": self.player.cell.i, "j": self.player.cell.j, "loaded": loaded})
        self.update_viewport()
        self.log_event("status")
        return loaded

    def close(self) -> None:
        self.save()
        self.active.clear()
        logger.info("session closed at %s holding %s", self.player.cell, self.player.held)

    def load(self) -> bool:
        try:
            text = self.storage.load()
            if text is None:
                return False
            saved = deserialize(text)
        except CorruptPersistedState as e:
            logger.warning("ignoring corrupt saved game: %s", e)
            self.log_event("corrupt_save", {"error": str(e)})
            return False
        self.store.restore(saved.overrides)
        self.player.cell = saved.player_cell
        self.player.held = saved.held
        self.won = saved.held is not None and saved.held >= self.cfg.target_value
        logger.info("loaded game: player %s, held %s, %d overrides",
                    saved.player_cell, saved.held, len(saved.overrides))
        return True

    def snapshot(self) -> SavedGame:
        return SavedGame(self.player.cell, self.player.held, self.store.snapshot())

    def save(self) -> None:
        self.storage.persist(serialize(self.snapshot()))

    def new_game(self) -> None:
        self.storage.remove()
        self.store.clear()
        self.player.reset(self.start_cell)
        self.won = False
        self.active.clear()
        logger.info("new game")
        # surfaces re-centre on "new_game" before the viewport pass
        self.log_event("new_game")
        self.update_viewport()
        self.save()
        self.log_event("status")

    # ---------- viewport ----------
    def update_viewport(self):
        cells = self.viewport().expand(self.cfg.viewport_radius)
        return self.active.set_viewport(cells)

    # ---------- movement ----------
    def move(self, di: int, dj: int) -> Cell:
        cell = self.player.move(di, dj)
        self._moved()
        return cell

    def move_to(self, cell: Cell) -> bool:
        if not self.player.move_to(cell):
            return False
        self._moved()
        return True

    def reset_position(self) -> None:
        """Back to the starting location, keeping the held token."""
        self.player.cell = self.start_cell
        self._moved()

    def _moved(self) -> None:
        logger.debug("player at %s", self.player.cell)
        self.save()
        # surfaces pan on "move" before the viewport pass reads their bounds
        self.log_event("move", {"i": self.player.cell.i, "j": self.player.cell.j})
        self.update_viewport()
        self.log_event("status")

    # ---------- interaction ----------
    def can_interact(self, cell: Cell) -> bool:
        return in_range(cell, self.player.cell, self.cfg.interact_range)

    def interact(self, cell: Cell) -> Transition:
        state = self.store.get(cell)
        if state is None:
            raise NoCacheHere(cell)
        t = resolve(cell, state.value, self.player.held, self.player.cell, self.cfg.interact_range)
        if not t.outcome.changed:
            logger.debug("%s at %s", t.outcome.value, cell)
            self.log_event("notice", {"outcome": t.outcome.value, "message": t.notice})
            return t

        self.store.set(cell, t.cell_value)
        self.player.held = t.held
        self.active.refresh(cell)
        self.save()
        logger.info("%s at %s: cache %d, held %s", t.outcome.value, cell, t.cell_value, t.held)
        self.log_event(t.outcome.value, {"i": cell.i, "j": cell.j,
                                         "cell_value": t.cell_value, "held": t.held})
        if produces_victory(t, self.cfg.target_value):
            self.won = True
            logger.info("victory: token worth %d or more", self.cfg.target_value)
            self.log_event("victory", {"target": self.cfg.target_value})
        self.log_event("status")
        return t

    # ---------- status ----------
    def status_text(self) -> str:
        lines = [f"Position: ({self.player.cell.i}, {self.player.cell.j})"]
        if self.player.held is None:
            lines.append("Inventory: Empty")
        else:
            lines.append(f"Inventory: Token [{self.player.held}]")
        if self.player.held is not None and self.player.held >= self.cfg.target_value:
            lines.append(f"Victory! You crafted a token worth {self.cfg.target_value} or more!")
        return "\n".join(lines)
